"""Rendering of parsed templates.

Provides the ``TemplateRenderer`` class which walks a ``ParsedTemplate`` and
produces the final file text for a given project context, plus the small set
of case-conversion filters templates may apply to substituted values.
"""

from __future__ import annotations

import re
from collections import ChainMap
from enum import Enum
from typing import Any, Callable, Mapping

from src.config import ScaffoldConfig

from .errors import UnresolvedPlaceholderError
from .nodes import (
    Compare,
    Conditional,
    Flag,
    Junction,
    Literal,
    Node,
    Not,
    ParsedTemplate,
    Predicate,
    Ref,
    Repeat,
    Substitution,
)
from .options import ProjectOptions, build_context


# ---------------------------------------------------------------------------
# Filters
# ---------------------------------------------------------------------------


def _slugify_filter(value: str) -> str:
    """Convert a string to a URL/filename-safe slug."""
    slug = re.sub(r"[^a-z0-9]+", "-", value.lower().strip())
    return slug.strip("-")


def _pascal_case_filter(value: str) -> str:
    """Convert ``some-thing`` or ``some_thing`` to ``SomeThing``."""
    parts = re.split(r"[-_\s.]+", value)
    return "".join(word[:1].upper() + word[1:] for word in parts if word)


def _snake_case_filter(value: str) -> str:
    """Convert ``SomeThing`` or ``some-thing`` to ``some_thing``."""
    s1 = re.sub(r"(.)([A-Z][a-z]+)", r"\1_\2", value)
    s2 = re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", s1)
    return re.sub(r"[-\s.]+", "_", s2).lower()


def _camel_case_filter(value: str) -> str:
    """Convert ``some-thing`` or ``some_thing`` to ``someThing``."""
    pascal = _pascal_case_filter(value)
    if pascal:
        return pascal[0].lower() + pascal[1:]
    return ""


FILTERS: dict[str, Callable[[str], str]] = {
    "lower": str.lower,
    "upper": str.upper,
    "slugify": _slugify_filter,
    "pascal_case": _pascal_case_filter,
    "snake_case": _snake_case_filter,
    "camel_case": _camel_case_filter,
}


# ---------------------------------------------------------------------------
# TemplateRenderer
# ---------------------------------------------------------------------------


class TemplateRenderer:
    """Renders ``ParsedTemplate`` trees against a project context.

    The context is either a ``ProjectOptions`` (converted with
    ``build_context``) or an already-built mapping.  Loop variables are
    layered over the context with a ``ChainMap`` so they shadow, but never
    modify, the shared context.
    """

    def __init__(
        self,
        config: ScaffoldConfig | None = None,
        filters: Mapping[str, Callable[[str], str]] | None = None,
    ) -> None:
        self.config = config or ScaffoldConfig()
        self.filters = dict(FILTERS if filters is None else filters)

    def render(
        self,
        template: ParsedTemplate,
        context: ProjectOptions | Mapping[str, Any],
    ) -> str:
        """Render *template* and return the complete text.

        Raises:
            UnresolvedPlaceholderError: A directive references a name (or
                element attribute) missing from the context.
        """
        if isinstance(context, ProjectOptions):
            context = build_context(context, self.config)
        out: list[str] = []
        self._render_nodes(template.nodes, ChainMap({}, dict(context)), out)
        return "".join(out)

    # -- Tree walk ---------------------------------------------------------

    def _render_nodes(self, nodes: tuple[Node, ...], scope: ChainMap, out: list[str]) -> None:
        for node in nodes:
            if isinstance(node, Literal):
                out.append(node.text)
            elif isinstance(node, Substitution):
                out.append(self._substitute(node, scope))
            elif isinstance(node, Conditional):
                branch = node.then if self._evaluate(node.predicate, scope, node.line) else node.otherwise
                self._render_nodes(branch, scope, out)
            elif isinstance(node, Repeat):
                items = self._lookup(node.source, scope, node.line)
                if isinstance(items, (str, bytes)) or not hasattr(items, "__iter__"):
                    raise UnresolvedPlaceholderError(node.source.path, node.line)
                for item in items:
                    self._render_nodes(node.body, scope.new_child({node.variable: item}), out)
            else:
                raise TypeError(f"Unknown template node: {node!r}")

    def _substitute(self, node: Substitution, scope: ChainMap) -> str:
        text = format_value(self._lookup(node.ref, scope, node.line))
        for name in node.filters:
            func = self.filters.get(name)
            if func is None:
                raise UnresolvedPlaceholderError(f"{node.ref.path}|{name}", node.line)
            text = func(text)
        return text

    def _evaluate(self, predicate: Predicate, scope: ChainMap, line: int) -> bool:
        if isinstance(predicate, Flag):
            return bool(self._lookup(predicate.ref, scope, line))
        if isinstance(predicate, Compare):
            value = format_value(self._lookup(predicate.ref, scope, line))
            if predicate.op == "==":
                return value == predicate.values[0]
            if predicate.op == "!=":
                return value != predicate.values[0]
            return value in predicate.values
        if isinstance(predicate, Not):
            return not self._evaluate(predicate.operand, scope, line)
        if isinstance(predicate, Junction):
            results = (self._evaluate(p, scope, line) for p in predicate.operands)
            return all(results) if predicate.op == "and" else any(results)
        raise TypeError(f"Unknown predicate: {predicate!r}")

    @staticmethod
    def _lookup(ref: Ref, scope: ChainMap, line: int) -> Any:
        if ref.name not in scope:
            raise UnresolvedPlaceholderError(ref.path, line)
        value = scope[ref.name]
        if ref.attribute is None:
            return value
        if isinstance(value, Mapping):
            if ref.attribute not in value:
                raise UnresolvedPlaceholderError(ref.path, line)
            return value[ref.attribute]
        if not hasattr(value, ref.attribute):
            raise UnresolvedPlaceholderError(ref.path, line)
        return getattr(value, ref.attribute)


def format_value(value: Any) -> str:
    """Text form of a context value as it appears in generated files."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)
