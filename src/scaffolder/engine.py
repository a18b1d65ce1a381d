"""Main scaffolding orchestrator.

Takes a finalized ``ProjectOptions`` and produces the complete list of
generated files for a .NET modular starter-kit solution: solution manifest,
build and package props, API host, settings, repository files, and the
optional container, Aspire, Blazor and sample-module files.

Every file goes through the same pipeline::

    load -> parse (cached) -> validate -> render -> verify

and any fatal condition aborts the whole request with a ``GenerationError``
naming the file and the stage; no partial file list is ever returned.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable

from pydantic import BaseModel, ConfigDict, Field

from src.config import ScaffoldConfig

from .cache import TemplateCache
from .errors import (
    GenerationError,
    TemplateNotFoundError,
    TemplateSyntaxError,
    UnresolvedPlaceholderError,
)
from .loader import TemplateLoader
from .nodes import ParsedTemplate
from .options import ProjectOptions, build_context
from .parser import TemplateParser
from .renderer import TemplateRenderer
from .sources import TemplateId
from .validator import Finding, Severity, TemplateValidator, has_errors


# ---------------------------------------------------------------------------
# Result models
# ---------------------------------------------------------------------------


class GeneratedFile(BaseModel):
    """One rendered file, relative to the project output root."""

    model_config = ConfigDict(frozen=True)

    path: str = Field(..., description="POSIX path relative to the output root")
    content: str = Field(..., description="Final file text")
    identifier: str = Field(..., description="Template the file was rendered from")


class GenerationResult(BaseModel):
    """Files produced by one generation request plus non-fatal findings."""

    files: list[GeneratedFile] = Field(default_factory=list)
    findings: list[Finding] = Field(default_factory=list)

    @property
    def paths(self) -> list[str]:
        return [f.path for f in self.files]

    def get(self, path: str) -> GeneratedFile | None:
        return next((f for f in self.files if f.path == path), None)


class GenerationStage(str, Enum):
    LOAD = "load"
    PARSE = "parse"
    VALIDATE = "validate"
    RENDER = "render"
    VERIFY = "verify"
    ASSEMBLE = "assemble"


# ---------------------------------------------------------------------------
# File plan
# ---------------------------------------------------------------------------


def _always(options: ProjectOptions) -> bool:
    return True


@dataclass(frozen=True)
class FileSpec:
    """A file the engine may emit.

    ``path`` may contain ``{name}``, replaced by the project name.  Optional
    (``required=False``) files tolerate unknown names: they are dropped with
    a warning instead of failing the request.
    """

    identifier: TemplateId
    path: str
    required: bool = True
    when: Callable[[ProjectOptions], bool] = _always

    def output_path(self, options: ProjectOptions) -> str:
        return self.path.format(name=options.name)


_SAMPLE_ROOT = "src/Modules/Catalog/Modules.Catalog"

FILE_PLAN: tuple[FileSpec, ...] = (
    FileSpec(TemplateId.SOLUTION, "{name}.slnx"),
    FileSpec(TemplateId.DIRECTORY_BUILD_PROPS, "Directory.Build.props"),
    FileSpec(TemplateId.DIRECTORY_PACKAGES_PROPS, "Directory.Packages.props"),
    FileSpec(TemplateId.GLOBAL_JSON, "global.json"),
    FileSpec(TemplateId.GITIGNORE, ".gitignore"),
    FileSpec(TemplateId.EDITORCONFIG, ".editorconfig", required=False),
    FileSpec(TemplateId.README, "README.md", required=False),
    FileSpec(TemplateId.PROJECT_MANIFEST, ".fsh/manifest.json"),
    FileSpec(TemplateId.API_PROJECT, "src/{name}.Api/{name}.Api.csproj"),
    FileSpec(TemplateId.API_PROGRAM, "src/{name}.Api/Program.cs"),
    FileSpec(TemplateId.APP_SETTINGS, "src/{name}.Api/appsettings.json"),
    FileSpec(TemplateId.APP_SETTINGS_DEVELOPMENT, "src/{name}.Api/appsettings.Development.json"),
    FileSpec(TemplateId.DOCKERFILE, "src/{name}.Api/Dockerfile", when=lambda o: o.include_docker),
    FileSpec(TemplateId.DOCKER_COMPOSE, "docker-compose.yml", when=lambda o: o.include_docker),
    FileSpec(
        TemplateId.APPHOST_PROJECT,
        "src/{name}.AppHost/{name}.AppHost.csproj",
        when=lambda o: o.include_aspire,
    ),
    FileSpec(TemplateId.APPHOST_PROGRAM, "src/{name}.AppHost/Program.cs", when=lambda o: o.include_aspire),
    FileSpec(
        TemplateId.BLAZOR_PROJECT,
        "src/{name}.Blazor/{name}.Blazor.csproj",
        when=lambda o: o.is_fullstack,
    ),
    FileSpec(TemplateId.BLAZOR_PROGRAM, "src/{name}.Blazor/Program.cs", when=lambda o: o.is_fullstack),
    FileSpec(
        TemplateId.SAMPLE_MODULE_PROJECT,
        f"{_SAMPLE_ROOT}/Modules.Catalog.csproj",
        when=lambda o: o.include_sample_module,
    ),
    FileSpec(
        TemplateId.SAMPLE_MODULE_CLASS,
        f"{_SAMPLE_ROOT}/CatalogModule.cs",
        when=lambda o: o.include_sample_module,
    ),
    FileSpec(
        TemplateId.SAMPLE_ENDPOINT,
        f"{_SAMPLE_ROOT}/Features/GetProducts/GetProductsEndpoint.cs",
        when=lambda o: o.include_sample_module,
    ),
)

# Findings that depend on whether the file is required.
_ESCALATED_CODES = frozenset({"unknown-name", "unknown-attribute"})


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


class TemplateEngine:
    """Drives loader, cache, parser, validator and renderer for every file
    the selected options require.

    Collaborators are injectable; the cache in particular is an explicit
    object so that separate engines (or test runs) never share parsed
    templates unless handed the same ``TemplateCache``.
    """

    def __init__(
        self,
        config: ScaffoldConfig | None = None,
        *,
        loader: TemplateLoader | None = None,
        cache: TemplateCache | None = None,
        parser: TemplateParser | None = None,
        renderer: TemplateRenderer | None = None,
        validator: TemplateValidator | None = None,
        plan: tuple[FileSpec, ...] = FILE_PLAN,
    ) -> None:
        self.config = config or ScaffoldConfig()
        self.loader = loader or TemplateLoader()
        self.cache = cache if cache is not None else TemplateCache()
        self.parser = parser or TemplateParser()
        self.renderer = renderer or TemplateRenderer(self.config)
        self.validator = validator or TemplateValidator()
        self.plan = plan

    # -- Public API --------------------------------------------------------

    def required_files(self, options: ProjectOptions) -> list[FileSpec]:
        """The file specs the given options select, in output order."""
        return [spec for spec in self.plan if spec.when(options)]

    def generate(self, options: ProjectOptions) -> list[GeneratedFile]:
        """Generate every file for *options*.

        Raises:
            GenerationError: Any file failed to load, parse, validate,
                render or verify.
        """
        return self.run(options).files

    def run(self, options: ProjectOptions) -> GenerationResult:
        """Like :meth:`generate` but also returns non-fatal findings."""
        context = build_context(options, self.config)
        files: list[GeneratedFile] = []
        findings: list[Finding] = []
        seen: set[str] = set()

        for spec in self.required_files(options):
            generated = self._generate_file(spec, options, context, findings)
            if generated is None:
                continue
            if generated.path in seen:
                raise GenerationError(
                    spec.identifier.value,
                    generated.path,
                    GenerationStage.ASSEMBLE.value,
                    "Duplicate output path",
                )
            seen.add(generated.path)
            files.append(generated)

        return GenerationResult(files=files, findings=findings)

    def render_file(self, identifier: TemplateId | str, options: ProjectOptions) -> str:
        """Render a single template as a required file and return its text."""
        identifier = TemplateId(identifier)
        spec = next(
            (s for s in self.plan if s.identifier is identifier),
            FileSpec(identifier, identifier.value),
        )
        required = FileSpec(spec.identifier, spec.path)
        generated = self._generate_file(required, options, build_context(options, self.config), [])
        assert generated is not None  # required files never skip
        return generated.content

    # -- Per-file pipeline -------------------------------------------------

    def _generate_file(
        self,
        spec: FileSpec,
        options: ProjectOptions,
        context: dict[str, Any],
        findings: list[Finding],
    ) -> GeneratedFile | None:
        identifier = spec.identifier.value
        path = spec.output_path(options)
        strict = spec.required or self.config.strict_optional_files

        def fail(stage: GenerationStage, message: str, errors: list[Finding] | None = None) -> GenerationError:
            return GenerationError(identifier, path, stage.value, message, errors)

        try:
            raw = self.loader.resolve(spec.identifier, options)
        except TemplateNotFoundError as exc:
            raise fail(GenerationStage.LOAD, str(exc)) from exc

        try:
            parsed = self.cache.get_or_parse(identifier, raw, self._parse_fn(identifier))
        except TemplateSyntaxError as exc:
            raise fail(GenerationStage.PARSE, str(exc)) from exc

        pre = [self._apply_policy(f, strict) for f in self.validator.validate_template(parsed)]
        if has_errors(pre):
            errors = [f for f in pre if f.severity is Severity.ERROR]
            raise fail(GenerationStage.VALIDATE, errors[0].message, errors)

        try:
            text = self.renderer.render(parsed, context)
        except UnresolvedPlaceholderError as exc:
            if strict:
                raise fail(GenerationStage.RENDER, str(exc)) from exc
            findings.extend(pre)
            findings.append(Finding(
                severity=Severity.WARNING,
                code="file-skipped",
                message=f"Optional file '{path}' skipped: {exc}",
                line=exc.line,
                identifier=identifier,
            ))
            return None

        post = self.validator.validate_output(text, identifier)
        if post:
            raise fail(GenerationStage.VERIFY, post[0].message, post)

        findings.extend(pre)
        return GeneratedFile(path=path, content=text, identifier=identifier)

    def _parse_fn(self, identifier: str) -> Callable[[str], ParsedTemplate]:
        return lambda text: self.parser.parse(text, identifier)

    @staticmethod
    def _apply_policy(finding: Finding, strict: bool) -> Finding:
        if strict and finding.code in _ESCALATED_CODES and finding.severity is Severity.WARNING:
            return finding.model_copy(update={"severity": Severity.ERROR})
        return finding
