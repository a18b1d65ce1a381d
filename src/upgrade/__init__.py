"""Package-version diffing and upgrade planning for generated projects."""

from .plan import (
    ProjectManifestError,
    ReleaseInfo,
    UpgradePlan,
    apply_plan,
    build_upgrade_plan,
    read_project_manifest,
    update_project_manifest,
)
from .versions import (
    Declaration,
    ManifestParseError,
    PackageChange,
    PackageUpdate,
    VersionDiff,
    compare_versions,
    diff,
    is_breaking,
    iter_declarations,
    parse_manifest,
    parse_manifest_line,
)

__all__ = [
    "Declaration",
    "ManifestParseError",
    "PackageChange",
    "PackageUpdate",
    "ProjectManifestError",
    "ReleaseInfo",
    "UpgradePlan",
    "VersionDiff",
    "apply_plan",
    "build_upgrade_plan",
    "compare_versions",
    "diff",
    "is_breaking",
    "iter_declarations",
    "parse_manifest",
    "parse_manifest_line",
    "read_project_manifest",
    "update_project_manifest",
]
