"""Parsed template representation.

A ``ParsedTemplate`` is a tuple of nodes.  Each node is one of four frozen
dataclasses (``Literal``, ``Substitution``, ``Conditional``, ``Repeat``) and
each conditional predicate is one of ``Flag``, ``Compare``, ``Not`` or
``Junction``.  Branch and loop bodies are themselves complete node tuples, so
the renderer and the validator are plain structural recursions over the tree.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Optional, Union


@dataclass(frozen=True)
class Ref:
    """A reference to a context name, optionally an attribute of it."""

    name: str
    attribute: Optional[str] = None

    @property
    def path(self) -> str:
        if self.attribute is None:
            return self.name
        return f"{self.name}.{self.attribute}"


# -- Predicates -------------------------------------------------------------


@dataclass(frozen=True)
class Flag:
    """True when the referenced value is truthy."""

    ref: Ref


@dataclass(frozen=True)
class Compare:
    """``ref == v``, ``ref != v`` or ``ref in (v1, v2, ...)``."""

    ref: Ref
    op: str
    values: tuple[str, ...]


@dataclass(frozen=True)
class Not:
    operand: "Predicate"


@dataclass(frozen=True)
class Junction:
    """``and`` / ``or`` over two or more operands."""

    op: str
    operands: tuple["Predicate", ...]


Predicate = Union[Flag, Compare, Not, Junction]


# -- Nodes ------------------------------------------------------------------


@dataclass(frozen=True)
class Literal:
    text: str


@dataclass(frozen=True)
class Substitution:
    ref: Ref
    filters: tuple[str, ...] = ()
    line: int = 0


@dataclass(frozen=True)
class Conditional:
    predicate: Predicate
    then: tuple["Node", ...]
    otherwise: tuple["Node", ...] = ()
    line: int = 0


@dataclass(frozen=True)
class Repeat:
    variable: str
    source: Ref
    body: tuple["Node", ...]
    line: int = 0


Node = Union[Literal, Substitution, Conditional, Repeat]


@dataclass(frozen=True)
class ParsedTemplate:
    """Ordered node sequence produced by the parser."""

    nodes: tuple[Node, ...]
    identifier: Optional[str] = None

    def walk(self) -> Iterator[Node]:
        """Yield every node, depth first, in document order."""
        yield from _walk(self.nodes)


def _walk(nodes: tuple[Node, ...]) -> Iterator[Node]:
    for node in nodes:
        yield node
        if isinstance(node, Conditional):
            yield from _walk(node.then)
            yield from _walk(node.otherwise)
        elif isinstance(node, Repeat):
            yield from _walk(node.body)


def predicate_refs(predicate: Predicate) -> Iterator[Ref]:
    """Yield every reference a predicate reads."""
    if isinstance(predicate, (Flag, Compare)):
        yield predicate.ref
    elif isinstance(predicate, Not):
        yield from predicate_refs(predicate.operand)
    elif isinstance(predicate, Junction):
        for operand in predicate.operands:
            yield from predicate_refs(operand)
