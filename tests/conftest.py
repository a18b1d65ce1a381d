"""Shared pytest fixtures for the FSH scaffolder test suite.

Provides reusable fixtures for:
- Project options covering the main variant combinations
- Fresh template engines (each with its own cache)
- Sample package manifests for the upgrade workflow
- A generated project written to a temporary directory
"""

from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from src.config import ScaffoldConfig
from src.scaffolder import (
    Architecture,
    DatabaseProvider,
    ProjectOptions,
    ProjectType,
    TemplateCache,
    TemplateEngine,
)


# ---------------------------------------------------------------------------
# Options
# ---------------------------------------------------------------------------


@pytest.fixture
def api_options() -> ProjectOptions:
    """API / Monolith / PostgreSQL with containers, nothing else."""
    return ProjectOptions(
        name="Acme.Shop",
        project_type=ProjectType.API,
        architecture=Architecture.MONOLITH,
        database=DatabaseProvider.POSTGRESQL,
        include_docker=True,
    )


@pytest.fixture
def full_options() -> ProjectOptions:
    """Every optional feature switched on."""
    return ProjectOptions(
        name="Contoso",
        project_type=ProjectType.API_BLAZOR,
        architecture=Architecture.MICROSERVICES,
        database=DatabaseProvider.SQL_SERVER,
        include_aspire=True,
        include_docker=True,
        include_sample_module=True,
    )


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


@pytest.fixture
def scaffold_config() -> ScaffoldConfig:
    return ScaffoldConfig()


@pytest.fixture
def engine(scaffold_config: ScaffoldConfig) -> TemplateEngine:
    """A template engine with a private, empty cache."""
    return TemplateEngine(scaffold_config, cache=TemplateCache())


# ---------------------------------------------------------------------------
# Manifests
# ---------------------------------------------------------------------------


@pytest.fixture
def current_props() -> str:
    return textwrap.dedent("""\
        <Project>
          <PropertyGroup>
            <ManagePackageVersionsCentrally>true</ManagePackageVersionsCentrally>
          </PropertyGroup>
          <ItemGroup>
            <PackageVersion Include="A" Version="1.0.0" />
            <PackageVersion Include="B" Version="2.0.0" />
          </ItemGroup>
        </Project>
    """)


@pytest.fixture
def latest_props() -> str:
    return textwrap.dedent("""\
        <Project>
          <PropertyGroup>
            <ManagePackageVersionsCentrally>true</ManagePackageVersionsCentrally>
          </PropertyGroup>
          <ItemGroup>
            <PackageVersion Include="A" Version="1.1.0" />
            <PackageVersion Include="C" Version="1.0.0" />
          </ItemGroup>
        </Project>
    """)


@pytest.fixture
def generated_project(tmp_path: Path, engine: TemplateEngine, api_options: ProjectOptions) -> Path:
    """An API project generated into a temporary directory (synchronously)."""
    root = tmp_path / api_options.name
    for generated in engine.generate(api_options):
        target = root.joinpath(*generated.path.split("/"))
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(generated.content, encoding="utf-8")
    return root
