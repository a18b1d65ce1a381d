"""Version comparison and package-manifest diffing.

Parses ``Directory.Packages.props``-style manifests into a ``{package:
version}`` mapping, orders version strings, and diffs two manifests into
added, removed and updated packages.  An update is breaking exactly when the
leading numeric component of the two versions differs; ``0.x`` versions get
no special treatment.

All functions are pure and operate on in-memory text and mappings.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel, Field

PackageVersionMap = dict[str, str]


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ManifestParseError(Exception):
    """Raised when a package declaration line cannot be interpreted."""

    def __init__(self, line_number: int, line: str, reason: str = "malformed package declaration") -> None:
        self.line_number = line_number
        self.line = line
        self.reason = reason
        super().__init__(f"Line {line_number}: {reason}: {line.strip()}")


# ---------------------------------------------------------------------------
# Data Models
# ---------------------------------------------------------------------------


class PackageChange(BaseModel):
    """A package that was added or removed."""

    package: str
    version: str


class PackageUpdate(BaseModel):
    """A package present in both manifests with differing versions."""

    package: str
    from_version: str
    to_version: str
    is_breaking: bool = False


class VersionDiff(BaseModel):
    """Result of diffing two package manifests.

    A package appears in at most one list; each list is sorted by package
    name, case-insensitively.
    """

    added: list[PackageChange] = Field(default_factory=list)
    removed: list[PackageChange] = Field(default_factory=list)
    updated: list[PackageUpdate] = Field(default_factory=list)

    @property
    def has_changes(self) -> bool:
        return bool(self.added or self.removed or self.updated)

    @property
    def breaking(self) -> list[PackageUpdate]:
        return [u for u in self.updated if u.is_breaking]

    @property
    def safe(self) -> list[PackageUpdate]:
        return [u for u in self.updated if not u.is_breaking]


# ---------------------------------------------------------------------------
# Manifest parsing
# ---------------------------------------------------------------------------

_RE_ELEMENT = re.compile(r"<\s*(PackageVersion|PackageReference)\b(?P<attrs>[^>]*)>?", re.IGNORECASE)
_RE_ATTRIBUTE = re.compile(r"""(\w+)\s*=\s*(?:"([^"]*)"|'([^']*)')""")


@dataclass(frozen=True)
class Declaration:
    """A package declaration found in manifest text.

    ``start``/``end`` are character offsets of the element within its line.
    """

    line_number: int
    start: int
    end: int
    package: str
    version: str


def uncommented_lines(lines: Iterable[str]) -> Iterator[tuple[int, str, str]]:
    """Yield ``(line_number, line, visible)`` for each line.

    ``visible`` is the line with every ``<!-- ... -->`` span (including
    spans opened on earlier lines) replaced by spaces, so offsets into it
    are offsets into ``line``.
    """
    in_comment = False
    for number, line in enumerate(lines, start=1):
        visible: list[str] = []
        pos = 0
        while pos < len(line):
            if in_comment:
                end = line.find("-->", pos)
                stop = len(line) if end == -1 else end + 3
                visible.append(" " * (stop - pos))
                in_comment = end == -1
                pos = stop
            else:
                start = line.find("<!--", pos)
                if start == -1:
                    visible.append(line[pos:])
                    break
                visible.append(line[pos:start] + "    ")
                in_comment = True
                pos = start + 4
        yield number, line, "".join(visible)


def _interpret(match: re.Match[str], line: str, line_number: int) -> Optional[tuple[str, str]]:
    element = match.group(1).lower()
    attrs = {
        key.lower(): (double if double is not None else single)
        for key, double, single in _RE_ATTRIBUTE.findall(match.group("attrs"))
    }
    name = attrs.get("include", attrs.get("update"))
    version = attrs.get("version")

    if element == "packagereference" and version is None:
        return None
    if name is None:
        raise ManifestParseError(line_number, line, "package declaration has no Include attribute")
    if version is None:
        raise ManifestParseError(line_number, line, f"package '{name}' has no Version attribute")
    name, version = name.strip(), version.strip()
    if not name or not version:
        raise ManifestParseError(line_number, line, "empty package name or version")
    return name, version


def iter_declarations(lines: Iterable[str], strict: bool = False) -> Iterator[Declaration]:
    """Yield every package declaration outside XML comments, in order.

    A line may hold several elements.  Malformed declarations are skipped
    unless *strict* is set, in which case the first one raises
    ``ManifestParseError``.
    """
    for number, line, visible in uncommented_lines(lines):
        for match in _RE_ELEMENT.finditer(visible):
            try:
                entry = _interpret(match, line, number)
            except ManifestParseError:
                if strict:
                    raise
                continue
            if entry is not None:
                yield Declaration(number, match.start(), match.end(), *entry)


def parse_manifest_line(line: str, line_number: int = 0) -> Optional[tuple[str, str]]:
    """Interpret one manifest line.

    Returns ``(package, version)`` for the first package declaration on the
    line and ``None`` when there is none (including ``PackageReference``
    items without a ``Version``, which defer to central package management).

    Raises:
        ManifestParseError: A ``PackageVersion`` element lacks its
            ``Include`` or ``Version`` attribute, or one of them is empty.
    """
    for _, _, visible in uncommented_lines([line]):
        for match in _RE_ELEMENT.finditer(visible):
            entry = _interpret(match, line, line_number)
            if entry is not None:
                return entry
    return None


def parse_manifest(text: str, strict: bool = False) -> PackageVersionMap:
    """Parse manifest text into ``{package: version}``.

    Declarations inside ``<!-- -->`` comments are ignored.  Malformed
    declarations are skipped unless *strict* is set.  When a package is
    declared twice the last declaration wins.
    """
    return {d.package: d.version for d in iter_declarations(text.splitlines(), strict=strict)}


# ---------------------------------------------------------------------------
# Version ordering
# ---------------------------------------------------------------------------


def _split(version: str) -> tuple[list[str], list[str]]:
    """Split into release-core segments and pre-release identifiers."""
    version = version.strip()
    if version[:1] in ("v", "V"):
        version = version[1:]
    version = version.split("+", 1)[0]
    core, _, prerelease = version.partition("-")
    return core.split("."), (prerelease.split(".") if prerelease else [])


def _compare_segment(a: str, b: str) -> int:
    a_num, b_num = a.isdigit(), b.isdigit()
    if a_num and b_num:
        x, y = int(a), int(b)
        return (x > y) - (x < y)
    if a_num != b_num:
        # Numeric identifiers sort before alphanumeric ones.
        return -1 if a_num else 1
    return (a > b) - (a < b)


def compare_versions(a: str, b: str) -> int:
    """Return -1, 0 or 1 as *a* sorts before, equal to, or after *b*.

    Release segments compare numerically (missing segments count as ``0``),
    non-numeric segments lexicographically; a pre-release sorts before the
    release it precedes.  Build metadata is ignored.
    """
    core_a, pre_a = _split(a)
    core_b, pre_b = _split(b)

    width = max(len(core_a), len(core_b))
    core_a += ["0"] * (width - len(core_a))
    core_b += ["0"] * (width - len(core_b))
    for x, y in zip(core_a, core_b):
        result = _compare_segment(x, y)
        if result:
            return result

    if not pre_a or not pre_b:
        # A release outranks any of its pre-releases.
        return (not pre_a) - (not pre_b)
    for x, y in zip(pre_a, pre_b):
        result = _compare_segment(x, y)
        if result:
            return result
    return (len(pre_a) > len(pre_b)) - (len(pre_a) < len(pre_b))


def major_component(version: str) -> str:
    """Leading release segment, normalised when numeric (``"01"`` -> ``"1"``)."""
    head = _split(version)[0][0]
    return str(int(head)) if head.isdigit() else head


def is_breaking(from_version: str, to_version: str) -> bool:
    return major_component(from_version) != major_component(to_version)


# ---------------------------------------------------------------------------
# Diffing
# ---------------------------------------------------------------------------


def diff(current: PackageVersionMap, latest: PackageVersionMap) -> VersionDiff:
    """Classify every package across the two manifests.

    Versions that are textually different but compare equal (``1.0`` vs
    ``1.0.0``) are not reported as updates.
    """
    def order(name: str) -> tuple[str, str]:
        return (name.casefold(), name)

    added = [
        PackageChange(package=name, version=latest[name])
        for name in sorted(latest.keys() - current.keys(), key=order)
    ]
    removed = [
        PackageChange(package=name, version=current[name])
        for name in sorted(current.keys() - latest.keys(), key=order)
    ]
    updated = [
        PackageUpdate(
            package=name,
            from_version=current[name],
            to_version=latest[name],
            is_breaking=is_breaking(current[name], latest[name]),
        )
        for name in sorted(current.keys() & latest.keys(), key=order)
        if current[name] != latest[name] and compare_versions(current[name], latest[name]) != 0
    ]
    return VersionDiff(added=added, removed=removed, updated=updated)
