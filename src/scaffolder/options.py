"""Project options and the template context derived from them.

``ProjectOptions`` is the finalized, immutable description of a generation
request.  ``build_context`` turns it into the flat mapping of names that
templates may reference, and ``OPTIONS_SCHEMA`` declares those names so the
validator can check templates before they are rendered.
"""

from __future__ import annotations

import re
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from src.config import ScaffoldConfig


# ---------------------------------------------------------------------------
# Enumerated variants
# ---------------------------------------------------------------------------


class ProjectType(str, Enum):
    API = "Api"
    API_BLAZOR = "ApiBlazor"


class Architecture(str, Enum):
    MONOLITH = "Monolith"
    MODULAR_MONOLITH = "ModularMonolith"
    MICROSERVICES = "Microservices"


class DatabaseProvider(str, Enum):
    POSTGRESQL = "PostgreSQL"
    SQL_SERVER = "SqlServer"
    SQLITE = "SQLite"


# ---------------------------------------------------------------------------
# Options model
# ---------------------------------------------------------------------------


class ProjectOptions(BaseModel):
    """Immutable description of the project to scaffold."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(
        ...,
        pattern=r"^[A-Za-z_][A-Za-z0-9_.]*$",
        description="Solution name, also used as the root namespace",
    )
    output_path: Path = Field(default=Path("."), description="Output root chosen by the host")
    project_type: ProjectType = Field(default=ProjectType.API)
    architecture: Architecture = Field(default=Architecture.MONOLITH)
    database: DatabaseProvider = Field(default=DatabaseProvider.POSTGRESQL)
    include_aspire: bool = Field(default=False, description="Add an Aspire AppHost project")
    include_docker: bool = Field(default=False, description="Add Dockerfile and compose file")
    include_sample_module: bool = Field(default=False, description="Add the Catalog sample module")

    @property
    def is_fullstack(self) -> bool:
        return self.project_type is ProjectType.API_BLAZOR


# ---------------------------------------------------------------------------
# Schema of names available to templates
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class OptionsSchema:
    """Names a template may reference, grouped by kind.

    ``collections`` maps each iterable name to the attributes its elements
    expose.
    """

    values: frozenset[str]
    flags: frozenset[str]
    collections: dict[str, frozenset[str]] = field(default_factory=dict)

    def knows(self, name: str) -> bool:
        return name in self.values or name in self.flags or name in self.collections

    def is_collection(self, name: str) -> bool:
        return name in self.collections

    def attributes(self, collection: str) -> frozenset[str]:
        return self.collections.get(collection, frozenset())


OPTIONS_SCHEMA = OptionsSchema(
    values=frozenset({
        "name",
        "output_path",
        "project_type",
        "architecture",
        "database",
        "project_slug",
        "root_namespace",
        "project_symbol",
        "dotnet_channel",
        "db_provider_key",
        "connection_string",
        "solution_guid",
        "api_project_guid",
        "year",
        "framework_version",
        "target_framework",
        "dotnet_sdk_version",
    }),
    flags=frozenset({
        "include_aspire",
        "include_docker",
        "include_sample_module",
        "is_fullstack",
    }),
    collections={
        "modules": frozenset({"name", "namespace", "project", "is_sample"}),
        "packages": frozenset({"name", "version"}),
        "services": frozenset({"name", "project", "port", "module"}),
    },
)


# ---------------------------------------------------------------------------
# Context building
# ---------------------------------------------------------------------------

BUILTIN_MODULES: tuple[str, ...] = ("Identity", "Multitenancy", "Auditing")
SAMPLE_MODULE = "Catalog"

_CONNECTION_STRINGS: dict[DatabaseProvider, str] = {
    DatabaseProvider.POSTGRESQL: (
        "Server=localhost;Port=5432;Database={slug};User Id=postgres;Password=postgres"
    ),
    DatabaseProvider.SQL_SERVER: (
        "Server=localhost,1433;Database={slug};User Id=sa;"
        "Password=Your_password123;TrustServerCertificate=True"
    ),
    DatabaseProvider.SQLITE: "Data Source={slug}.db",
}

_PROVIDER_KEYS: dict[DatabaseProvider, str] = {
    DatabaseProvider.POSTGRESQL: "POSTGRESQL",
    DatabaseProvider.SQL_SERVER: "MSSQL",
    DatabaseProvider.SQLITE: "SQLITE",
}

_EF_PACKAGES: dict[DatabaseProvider, str] = {
    DatabaseProvider.POSTGRESQL: "Npgsql.EntityFrameworkCore.PostgreSQL",
    DatabaseProvider.SQL_SERVER: "Microsoft.EntityFrameworkCore.SqlServer",
    DatabaseProvider.SQLITE: "Microsoft.EntityFrameworkCore.Sqlite",
}

_ASPIRE_PACKAGES: dict[DatabaseProvider, str] = {
    DatabaseProvider.POSTGRESQL: "Aspire.Hosting.PostgreSQL",
    DatabaseProvider.SQL_SERVER: "Aspire.Hosting.SqlServer",
}

_GUID_NAMESPACE = uuid.UUID("6ba7b811-9dad-11d1-80b4-00c04fd430c8")

API_PORT = 8080


def build_context(
    options: ProjectOptions,
    config: ScaffoldConfig | None = None,
) -> dict[str, Any]:
    """Build the template context for *options*.

    Derived identifiers are UUIDv5 values of the project name so that two
    renders of the same options produce byte-identical output.
    """
    config = config or ScaffoldConfig()
    slug = _slugify(options.name)
    namespace = options.name
    efcore_version = _efcore_version(config.target_framework)

    return {
        "name": options.name,
        "output_path": str(options.output_path),
        "project_type": options.project_type,
        "architecture": options.architecture,
        "database": options.database,
        "include_aspire": options.include_aspire,
        "include_docker": options.include_docker,
        "include_sample_module": options.include_sample_module,
        "is_fullstack": options.is_fullstack,
        "project_slug": slug,
        "root_namespace": namespace,
        "project_symbol": options.name.replace(".", "_"),
        "dotnet_channel": _dotnet_channel(config.target_framework),
        "db_provider_key": _PROVIDER_KEYS[options.database],
        "connection_string": _CONNECTION_STRINGS[options.database].format(slug=slug),
        "solution_guid": _guid(options.name, "solution"),
        "api_project_guid": _guid(options.name, "api"),
        "year": str(datetime.now(timezone.utc).year),
        "framework_version": config.framework_version,
        "target_framework": config.target_framework,
        "dotnet_sdk_version": config.dotnet_sdk_version,
        "modules": _modules(options, namespace),
        "packages": _packages(options, config.framework_version, efcore_version),
        "services": _services(options),
    }


def _modules(options: ProjectOptions, namespace: str) -> list[dict[str, Any]]:
    modules = [
        {
            "name": name,
            "namespace": f"FSH.Modules.{name}",
            "project": f"FSH.Modules.{name}",
            "is_sample": False,
        }
        for name in BUILTIN_MODULES
    ]
    if options.include_sample_module:
        modules.append({
            "name": SAMPLE_MODULE,
            "namespace": f"{namespace}.Modules.{SAMPLE_MODULE}",
            "project": f"Modules.{SAMPLE_MODULE}",
            "is_sample": True,
        })
    return modules


def _packages(
    options: ProjectOptions,
    framework_version: str,
    efcore_version: str,
) -> list[dict[str, str]]:
    """Central package versions, sorted by name."""
    versions: dict[str, str] = {
        "FSH.Framework.Web": framework_version,
        "Microsoft.AspNetCore.OpenApi": efcore_version,
        "Microsoft.EntityFrameworkCore.Design": efcore_version,
        "Scalar.AspNetCore": "2.8.6",
        "Serilog.AspNetCore": "9.0.0",
        _EF_PACKAGES[options.database]: efcore_version,
    }
    for module in BUILTIN_MODULES:
        versions[f"FSH.Modules.{module}"] = framework_version
    if options.include_sample_module:
        versions["Mediator.Abstractions"] = "3.0.1"
        versions["Mediator.SourceGenerator"] = "3.0.1"
        versions["FluentValidation.DependencyInjectionExtensions"] = "12.0.0"
    if options.include_aspire:
        versions["Aspire.Hosting.AppHost"] = "13.0.0"
        if options.database in _ASPIRE_PACKAGES:
            versions[_ASPIRE_PACKAGES[options.database]] = "13.0.0"
    if options.is_fullstack:
        versions["Microsoft.AspNetCore.Components.WebAssembly"] = efcore_version
        versions["MudBlazor"] = "8.13.0"
    return [
        {"name": name, "version": versions[name]}
        for name in sorted(versions, key=str.casefold)
    ]


def _services(options: ProjectOptions) -> list[dict[str, Any]]:
    """Deployable services.

    A microservices project runs the same API image once per module, each
    container hosting a single module; every other architecture has one
    service hosting all modules.
    """
    project = f"{options.name}.Api"
    api = {"name": "api", "project": project, "port": API_PORT, "module": "all"}
    if options.architecture is not Architecture.MICROSERVICES:
        return [api]
    names = list(BUILTIN_MODULES)
    if options.include_sample_module:
        names.append(SAMPLE_MODULE)
    services = [api]
    for offset, module in enumerate(names, start=1):
        services.append({
            "name": module.lower(),
            "project": project,
            "port": API_PORT + offset,
            "module": module.lower(),
        })
    return services


def _efcore_version(target_framework: str) -> str:
    """``net10.0`` -> ``10.0.0``."""
    match = re.match(r"net(\d+)\.(\d+)", target_framework)
    if not match:
        return "10.0.0"
    return f"{match.group(1)}.{match.group(2)}.0"


def _dotnet_channel(target_framework: str) -> str:
    """``net10.0`` -> ``10.0`` (container image tag)."""
    match = re.match(r"net(\d+\.\d+)", target_framework)
    return match.group(1) if match else "10.0"


def _guid(name: str, role: str) -> str:
    return str(uuid.uuid5(_GUID_NAMESPACE, f"{name}:{role}")).upper()


def _slugify(text: str) -> str:
    """Convert text to a URL/filename-safe slug (hyphenated)."""
    slug = re.sub(r"[^a-z0-9]+", "-", text.lower().strip())
    return slug.strip("-")
