"""FSH scaffolding configuration.

Centralised, typed configuration for the scaffolder and the upgrade workflow.
All settings use Pydantic v2 models so they can be validated at construction
time and serialised to/from JSON or environment variables without
boiler-plate.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field


class ScaffoldConfig(BaseModel):
    """Versions stamped into generated projects and engine strictness."""

    framework_version: str = Field(
        default="10.0.0", description="FSH framework version referenced by new projects"
    )
    target_framework: str = Field(default="net10.0")
    dotnet_sdk_version: str = Field(default="10.0.100")
    strict_optional_files: bool = Field(
        default=False,
        description="Treat unresolved names in optional files as fatal errors",
    )


class ReleaseConfig(BaseModel):
    """Where the upgrade workflow looks for framework releases."""

    api_url: str = Field(default="https://api.github.com")
    raw_url: str = Field(default="https://raw.githubusercontent.com")
    repository: str = Field(default="fullstackhero/dotnet-starter-kit")
    manifest_path: str = Field(default="src/Directory.Packages.props")
    include_prereleases: bool = Field(default=False)
    timeout: int = Field(default=30, ge=1, description="Per-request timeout in seconds")


class Config(BaseModel):
    """Global configuration.

    Instances are typically created once by the CLI entry point and then
    passed to the template engine and the release client.
    """

    scaffold: ScaffoldConfig = Field(default_factory=ScaffoldConfig)
    release: ReleaseConfig = Field(default_factory=ReleaseConfig)

    # ------------------------------------------------------------------
    # Serialisation helpers
    # ------------------------------------------------------------------

    def save(self, path: Path) -> Path:
        """Persist the configuration to a JSON file and return its path."""
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(self.model_dump_json(indent=2), encoding="utf-8")
        return target

    @classmethod
    def load(cls, path: Path) -> "Config":
        """Load a previously-saved configuration from JSON."""
        raw = Path(path).read_text(encoding="utf-8")
        return cls.model_validate_json(raw)

    @classmethod
    def from_env(cls) -> "Config":
        """Build a ``Config`` from environment variables.

        Recognised variables (all optional):
            FSH_FRAMEWORK_VERSION, FSH_TARGET_FRAMEWORK, FSH_DOTNET_SDK,
            FSH_STRICT_OPTIONAL_FILES, FSH_GITHUB_API_URL, FSH_GITHUB_REPO,
            FSH_MANIFEST_PATH, FSH_INCLUDE_PRERELEASES, FSH_HTTP_TIMEOUT.
        """
        scaffold_kwargs: dict[str, Any] = {}
        if os.environ.get("FSH_FRAMEWORK_VERSION"):
            scaffold_kwargs["framework_version"] = os.environ["FSH_FRAMEWORK_VERSION"]
        if os.environ.get("FSH_TARGET_FRAMEWORK"):
            scaffold_kwargs["target_framework"] = os.environ["FSH_TARGET_FRAMEWORK"]
        if os.environ.get("FSH_DOTNET_SDK"):
            scaffold_kwargs["dotnet_sdk_version"] = os.environ["FSH_DOTNET_SDK"]
        if os.environ.get("FSH_STRICT_OPTIONAL_FILES"):
            scaffold_kwargs["strict_optional_files"] = _env_flag("FSH_STRICT_OPTIONAL_FILES")

        release_kwargs: dict[str, Any] = {}
        if os.environ.get("FSH_GITHUB_API_URL"):
            release_kwargs["api_url"] = os.environ["FSH_GITHUB_API_URL"]
        if os.environ.get("FSH_GITHUB_REPO"):
            release_kwargs["repository"] = os.environ["FSH_GITHUB_REPO"]
        if os.environ.get("FSH_MANIFEST_PATH"):
            release_kwargs["manifest_path"] = os.environ["FSH_MANIFEST_PATH"]
        if os.environ.get("FSH_INCLUDE_PRERELEASES"):
            release_kwargs["include_prereleases"] = _env_flag("FSH_INCLUDE_PRERELEASES")
        if os.environ.get("FSH_HTTP_TIMEOUT"):
            release_kwargs["timeout"] = int(os.environ["FSH_HTTP_TIMEOUT"])

        return cls(
            scaffold=ScaffoldConfig(**scaffold_kwargs),
            release=ReleaseConfig(**release_kwargs),
        )


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").strip().lower() in ("1", "true", "yes", "on")
