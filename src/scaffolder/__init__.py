"""FSH scaffolder -- generates a complete .NET starter-kit solution.

This package takes a finalized ``ProjectOptions`` and produces the list of
files (path plus content) for a new solution: solution manifest, build and
package props, API host, settings and the optional container, Aspire, Blazor
and sample-module files.  Nothing is written to disk here; the host decides
where the files go.

Quick usage::

    from src.scaffolder import ProjectOptions, TemplateEngine

    options = ProjectOptions(name="Acme.Shop", include_docker=True)
    files = TemplateEngine().generate(options)
"""

from src.scaffolder.cache import TemplateCache
from src.scaffolder.engine import FILE_PLAN, GeneratedFile, GenerationResult, TemplateEngine
from src.scaffolder.errors import (
    GenerationError,
    ScaffoldError,
    TemplateNotFoundError,
    TemplateSyntaxError,
    UnresolvedPlaceholderError,
)
from src.scaffolder.loader import TemplateLoader
from src.scaffolder.options import (
    Architecture,
    DatabaseProvider,
    ProjectOptions,
    ProjectType,
    build_context,
)
from src.scaffolder.parser import TemplateParser
from src.scaffolder.renderer import TemplateRenderer
from src.scaffolder.sources import TemplateId, TemplateSource
from src.scaffolder.validator import Finding, Severity, TemplateValidator

__all__ = [
    "Architecture",
    "DatabaseProvider",
    "FILE_PLAN",
    "Finding",
    "GeneratedFile",
    "GenerationError",
    "GenerationResult",
    "ProjectOptions",
    "ProjectType",
    "ScaffoldError",
    "Severity",
    "TemplateCache",
    "TemplateEngine",
    "TemplateId",
    "TemplateLoader",
    "TemplateNotFoundError",
    "TemplateParser",
    "TemplateRenderer",
    "TemplateSource",
    "TemplateSyntaxError",
    "TemplateValidator",
    "UnresolvedPlaceholderError",
    "build_context",
]
