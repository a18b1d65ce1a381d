"""Structural validation of templates and rendered output.

Pre-render checks walk a ``ParsedTemplate`` and report every directive that
references a name the options schema does not declare.  Post-render checks
scan the final text for directive markers the renderer should have consumed.
Findings are data, not exceptions: the engine decides which severities abort
a generation request.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Callable, Mapping, Optional

from pydantic import BaseModel, Field

from .nodes import (
    Conditional,
    Node,
    ParsedTemplate,
    Ref,
    Repeat,
    Substitution,
    predicate_refs,
)
from .options import OPTIONS_SCHEMA, OptionsSchema
from .renderer import FILTERS


# ---------------------------------------------------------------------------
# Data Models
# ---------------------------------------------------------------------------


class Severity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class Finding(BaseModel):
    """A single issue discovered while validating a template or its output."""

    severity: Severity = Field(..., description="info, warning or error")
    code: str = Field(
        ...,
        description=(
            "Issue category, e.g. 'unknown-name', 'unknown-filter', "
            "'unresolved-marker'"
        ),
    )
    message: str = Field(..., description="Human-readable description of the issue")
    line: Optional[int] = Field(default=None, description="1-based line in the template or output")
    identifier: Optional[str] = Field(default=None, description="Template the finding belongs to")


def has_errors(findings: list[Finding]) -> bool:
    return any(f.severity is Severity.ERROR for f in findings)


# ---------------------------------------------------------------------------
# Patterns
# ---------------------------------------------------------------------------

_RE_MARKER = re.compile(r"\{\{.*?\}\}|\{%.*?%\}|\{#.*?#\}", re.DOTALL)


def _find_line(content: str, match_start: int) -> int:
    """Return the 1-based line number for a character offset."""
    return content[:match_start].count("\n") + 1


# ---------------------------------------------------------------------------
# TemplateValidator
# ---------------------------------------------------------------------------


class TemplateValidator:
    """Checks parsed templates against the options schema and rendered text
    for leftover directive markers."""

    def __init__(
        self,
        schema: OptionsSchema = OPTIONS_SCHEMA,
        filters: Mapping[str, Callable[[str], str]] | None = None,
    ) -> None:
        self.schema = schema
        self.filters = frozenset(FILTERS if filters is None else filters)

    def validate_template(self, template: ParsedTemplate) -> list[Finding]:
        """Pre-render check of every directive in *template*."""
        findings: list[Finding] = []
        self._check_nodes(template.nodes, {}, template.identifier, findings)
        return findings

    def validate_output(self, text: str, identifier: Optional[str] = None) -> list[Finding]:
        """Post-render check: no directive marker may survive rendering."""
        return [
            Finding(
                severity=Severity.ERROR,
                code="unresolved-marker",
                message=f"Unresolved directive marker '{match.group(0)}' in output",
                line=_find_line(text, match.start()),
                identifier=identifier,
            )
            for match in _RE_MARKER.finditer(text)
        ]

    # -- Tree walk ---------------------------------------------------------

    def _check_nodes(
        self,
        nodes: tuple[Node, ...],
        loops: dict[str, Optional[str]],
        identifier: Optional[str],
        findings: list[Finding],
    ) -> None:
        for node in nodes:
            if isinstance(node, Substitution):
                self._check_ref(node.ref, node.line, loops, identifier, findings)
                for name in node.filters:
                    if name not in self.filters:
                        findings.append(Finding(
                            severity=Severity.ERROR,
                            code="unknown-filter",
                            message=f"Unknown filter '{name}' applied to '{node.ref.path}'",
                            line=node.line,
                            identifier=identifier,
                        ))
            elif isinstance(node, Conditional):
                for ref in predicate_refs(node.predicate):
                    self._check_ref(ref, node.line, loops, identifier, findings)
                self._check_nodes(node.then, loops, identifier, findings)
                self._check_nodes(node.otherwise, loops, identifier, findings)
            elif isinstance(node, Repeat):
                collection = self._check_source(node, loops, identifier, findings)
                self._check_nodes(node.body, {**loops, node.variable: collection}, identifier, findings)
                if not _references(node.body, node.variable):
                    findings.append(Finding(
                        severity=Severity.INFO,
                        code="unused-loop-variable",
                        message=f"Loop variable '{node.variable}' is never referenced",
                        line=node.line,
                        identifier=identifier,
                    ))

    def _check_source(
        self,
        node: Repeat,
        loops: dict[str, Optional[str]],
        identifier: Optional[str],
        findings: list[Finding],
    ) -> Optional[str]:
        """Validate a loop source and return the collection it iterates."""
        source = node.source
        if source.attribute is not None or source.name in loops:
            findings.append(Finding(
                severity=Severity.ERROR,
                code="not-iterable",
                message=f"'{source.path}' is not a collection",
                line=node.line,
                identifier=identifier,
            ))
            return None
        if not self.schema.knows(source.name):
            findings.append(_unknown_name(source, node.line, identifier))
            return None
        if not self.schema.is_collection(source.name):
            findings.append(Finding(
                severity=Severity.ERROR,
                code="not-iterable",
                message=f"'{source.name}' is not a collection",
                line=node.line,
                identifier=identifier,
            ))
            return None
        return source.name

    def _check_ref(
        self,
        ref: Ref,
        line: int,
        loops: dict[str, Optional[str]],
        identifier: Optional[str],
        findings: list[Finding],
    ) -> None:
        if ref.name in loops:
            collection = loops[ref.name]
            if collection is None:
                # Source already reported.
                return
            attributes = self.schema.attributes(collection)
            if ref.attribute is None or ref.attribute not in attributes:
                findings.append(Finding(
                    severity=Severity.WARNING,
                    code="unknown-attribute",
                    message=(
                        f"'{ref.path}' must name one of "
                        f"{', '.join(sorted(attributes))} of '{collection}' elements"
                    ),
                    line=line,
                    identifier=identifier,
                ))
            return
        if not self.schema.knows(ref.name):
            findings.append(_unknown_name(ref, line, identifier))
        elif ref.attribute is not None:
            findings.append(Finding(
                severity=Severity.WARNING,
                code="unknown-attribute",
                message=f"Option '{ref.name}' has no attribute '{ref.attribute}'",
                line=line,
                identifier=identifier,
            ))


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _unknown_name(ref: Ref, line: int, identifier: Optional[str]) -> Finding:
    return Finding(
        severity=Severity.WARNING,
        code="unknown-name",
        message=f"'{ref.path}' is not a known project option",
        line=line,
        identifier=identifier,
    )


def _references(nodes: tuple[Node, ...], name: str) -> bool:
    for node in ParsedTemplate(nodes).walk():
        if isinstance(node, Substitution) and node.ref.name == name:
            return True
        if isinstance(node, Conditional) and any(
            ref.name == name for ref in predicate_refs(node.predicate)
        ):
            return True
        if isinstance(node, Repeat) and node.source.name == name:
            return True
    return False
