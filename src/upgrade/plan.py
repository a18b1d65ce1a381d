"""Upgrade planning for generated projects.

Combines the version recorded in a project's ``.fsh/manifest.json``, a
release descriptor and the two package manifests into an ``UpgradePlan``,
and applies such a plan to ``Directory.Packages.props`` text.

Typical usage::

    plan = build_upgrade_plan(
        read_project_manifest(manifest_json),
        release,
        parse_manifest(local_props),
        parse_manifest(release_props),
        skip_breaking=True,
    )
    new_props = apply_plan(local_props, plan)
"""

from __future__ import annotations

import json
import re

from pydantic import BaseModel, Field

from .versions import (
    PackageUpdate,
    PackageVersionMap,
    VersionDiff,
    compare_versions,
    diff,
    iter_declarations,
    uncommented_lines,
)


class ProjectManifestError(Exception):
    """Raised when ``.fsh/manifest.json`` is unreadable or lacks a version."""


# ---------------------------------------------------------------------------
# Data Models
# ---------------------------------------------------------------------------


class ReleaseInfo(BaseModel):
    """A published framework release."""

    tag: str = Field(..., description="Git tag, e.g. 'v10.0.1'")
    prerelease: bool = Field(default=False)
    notes: str = Field(default="", description="Release notes (markdown)")
    url: str = Field(default="", description="Human-facing release page")

    @property
    def version(self) -> str:
        return self.tag[1:] if self.tag[:1] in ("v", "V") else self.tag


class UpgradePlan(BaseModel):
    """What an upgrade from the project's version to a release would change."""

    current_version: str
    latest_version: str
    prerelease: bool = False
    notes: str = ""
    diff: VersionDiff = Field(default_factory=VersionDiff)
    skip_breaking: bool = False

    @property
    def update_available(self) -> bool:
        return compare_versions(self.latest_version, self.current_version) > 0

    @property
    def applicable(self) -> list[PackageUpdate]:
        """Updates that ``apply_plan`` will write."""
        return self.diff.safe if self.skip_breaking else list(self.diff.updated)

    @property
    def skipped(self) -> list[PackageUpdate]:
        """Breaking updates withheld because of ``skip_breaking``."""
        return self.diff.breaking if self.skip_breaking else []


# ---------------------------------------------------------------------------
# Project manifest
# ---------------------------------------------------------------------------


def read_project_manifest(text: str) -> str:
    """Return the framework version recorded in ``.fsh/manifest.json`` text."""
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ProjectManifestError(f"Project manifest is not valid JSON: {exc}") from exc
    version = data.get("fshVersion") if isinstance(data, dict) else None
    if not isinstance(version, str) or not version.strip():
        raise ProjectManifestError("Project manifest has no 'fshVersion'")
    return version.strip()


def update_project_manifest(text: str, version: str) -> str:
    """Return manifest text with ``fshVersion`` set to *version*."""
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ProjectManifestError(f"Project manifest is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise ProjectManifestError("Project manifest must be a JSON object")
    data["fshVersion"] = version
    return json.dumps(data, indent=2) + "\n"


# ---------------------------------------------------------------------------
# Planning
# ---------------------------------------------------------------------------


def build_upgrade_plan(
    current_version: str,
    release: ReleaseInfo,
    current_manifest: PackageVersionMap,
    latest_manifest: PackageVersionMap,
    skip_breaking: bool = False,
) -> UpgradePlan:
    return UpgradePlan(
        current_version=current_version,
        latest_version=release.version,
        prerelease=release.prerelease,
        notes=release.notes,
        diff=diff(current_manifest, latest_manifest),
        skip_breaking=skip_breaking,
    )


_RE_VERSION_ATTR = re.compile(r"""(\bVersion\s*=\s*)(["'])[^"']*\2""", re.IGNORECASE)
_RE_INDENT = re.compile(r"^[ \t]*")


def apply_plan(manifest_text: str, plan: UpgradePlan) -> str:
    """Rewrite *manifest_text* according to *plan*.

    The ``Version`` attribute of every applicable update is replaced in
    place; added packages are inserted as ``PackageVersion`` items before the
    ``</ItemGroup>`` that closes the last existing declaration.  Removed
    packages and anything inside ``<!-- -->`` comments are left alone.

    Raises:
        ValueError: Packages must be added but the text has no
            ``</ItemGroup>``.
    """
    targets = {u.package: u.to_version for u in plan.applicable}
    lines = manifest_text.splitlines(keepends=True)
    newline = "\r\n" if lines and lines[0].endswith("\r\n") else "\n"
    declarations = list(iter_declarations(lines))

    # Right to left so earlier offsets on the same line stay valid.
    for declaration in reversed(declarations):
        if declaration.package not in targets:
            continue
        version = targets[declaration.package]
        index, start, end = declaration.line_number - 1, declaration.start, declaration.end
        line = lines[index]
        element = _RE_VERSION_ATTR.sub(
            lambda m: f"{m.group(1)}{m.group(2)}{version}{m.group(2)}", line[start:end], count=1
        )
        lines[index] = line[:start] + element + line[end:]

    if not plan.diff.added:
        return "".join(lines)

    last_declaration = declarations[-1].line_number - 1 if declarations else None
    start = 0 if last_declaration is None else last_declaration + 1
    visible = [text for _, _, text in uncommented_lines(lines)]
    closing = next(
        (i for i in range(start, len(lines)) if "</ItemGroup>" in visible[i]),
        None,
    )
    if closing is None:
        raise ValueError("Manifest has no </ItemGroup> to add packages to")

    if last_declaration is not None:
        indent = _RE_INDENT.match(lines[last_declaration]).group(0)
    else:
        indent = _RE_INDENT.match(lines[closing]).group(0) + "  "
    if closing > 0 and not lines[closing - 1].endswith(("\n", "\r")):
        lines[closing - 1] += newline
    additions = [
        f'{indent}<PackageVersion Include="{change.package}" Version="{change.version}" />{newline}'
        for change in plan.diff.added
    ]
    lines[closing:closing] = additions
    return "".join(lines)
