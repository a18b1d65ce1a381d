"""Exceptions raised by the scaffolding template engine.

Every error carries the structured details a host needs to report the
failure (template identifier, line, stage) in addition to its message.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .validator import Finding


class ScaffoldError(Exception):
    """Base class for all scaffolding engine errors."""


class TemplateNotFoundError(ScaffoldError):
    """Raised when no template variant matches an identifier/options combination."""

    def __init__(
        self,
        identifier: str,
        architecture: str = "",
        database: str = "",
    ) -> None:
        self.identifier = identifier
        self.architecture = architecture
        self.database = database
        detail = ", ".join(
            part for part in (
                f"architecture={architecture}" if architecture else "",
                f"database={database}" if database else "",
            ) if part
        )
        message = f"No template registered for '{identifier}'"
        if detail:
            message += f" ({detail})"
        super().__init__(message)


class TemplateSyntaxError(ScaffoldError):
    """Raised when template text contains a malformed or unsupported directive."""

    def __init__(
        self,
        message: str,
        line: Optional[int] = None,
        identifier: Optional[str] = None,
    ) -> None:
        self.message = message
        self.line = line
        self.identifier = identifier
        location = identifier or "<template>"
        if line is not None:
            location += f":{line}"
        super().__init__(f"{location}: {message}")


class UnresolvedPlaceholderError(ScaffoldError):
    """Raised when a directive references a name the render context lacks."""

    def __init__(self, name: str, line: Optional[int] = None) -> None:
        self.name = name
        self.line = line
        suffix = f" (line {line})" if line is not None else ""
        super().__init__(f"Unresolved placeholder '{name}'{suffix}")


class GenerationError(ScaffoldError):
    """Raised by the engine when a generation request fails.

    Identifies the file and the pipeline stage that failed.  The underlying
    error, if any, is available as ``__cause__``.
    """

    def __init__(
        self,
        identifier: str,
        path: str,
        stage: str,
        message: str,
        findings: Optional[list["Finding"]] = None,
    ) -> None:
        self.identifier = identifier
        self.path = path
        self.stage = stage
        self.findings = list(findings or [])
        super().__init__(f"[{stage}] {path or identifier}: {message}")
