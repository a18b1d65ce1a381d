"""Template parser.

Compiles raw template text into a ``ParsedTemplate``.  Lexing and block
matching are delegated to Jinja2 (``Environment.parse``), configured exactly
as the scaffolder's renderer has always been (``trim_blocks``,
``lstrip_blocks``, ``keep_trailing_newline``).  The resulting Jinja2 AST is
then translated into the engine's own node tree, accepting only the directive
subset the engine renders:

* ``{{ name }}`` / ``{{ item.attr }}`` with optional ``| filter`` chains,
* ``{% if %}`` / ``{% elif %}`` / ``{% else %}`` / ``{% endif %}``,
* ``{% for item in collection %}`` / ``{% endfor %}``.

Anything else raises ``TemplateSyntaxError`` with the offending line.
"""

from __future__ import annotations

from typing import Optional

from jinja2 import Environment, nodes as jinja_nodes
from jinja2.exceptions import TemplateSyntaxError as JinjaSyntaxError

from .errors import TemplateSyntaxError
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

_COMPARE_OPS: dict[str, str] = {"eq": "==", "ne": "!=", "in": "in"}


def create_environment() -> Environment:
    """Return the Jinja2 environment whose lexer the parser uses."""
    return Environment(
        autoescape=False,
        keep_trailing_newline=True,
        trim_blocks=True,
        lstrip_blocks=True,
    )


class TemplateParser:
    """Single-pass compiler from template text to ``ParsedTemplate``.

    Stateless apart from the Jinja2 environment, so one instance can be
    shared by every generation request.
    """

    def __init__(self, env: Environment | None = None) -> None:
        self.env = env or create_environment()

    def parse(self, raw_text: str, identifier: Optional[str] = None) -> ParsedTemplate:
        try:
            tree = self.env.parse(raw_text)
        except JinjaSyntaxError as exc:
            raise TemplateSyntaxError(exc.message or str(exc), exc.lineno, identifier) from exc
        translator = _Translator(identifier)
        return ParsedTemplate(nodes=translator.block(tree.body), identifier=identifier)


def parse(raw_text: str, identifier: Optional[str] = None) -> ParsedTemplate:
    """Parse *raw_text* with a default ``TemplateParser``."""
    return TemplateParser().parse(raw_text, identifier)


# ---------------------------------------------------------------------------
# Jinja2 AST -> engine node tree
# ---------------------------------------------------------------------------


class _Translator:
    def __init__(self, identifier: Optional[str]) -> None:
        self.identifier = identifier

    def fail(self, message: str, node: jinja_nodes.Node) -> TemplateSyntaxError:
        return TemplateSyntaxError(message, getattr(node, "lineno", None), self.identifier)

    # -- Statements --------------------------------------------------------

    def block(self, body: list[jinja_nodes.Node]) -> tuple[Node, ...]:
        result: list[Node] = []
        for statement in body:
            if isinstance(statement, jinja_nodes.Output):
                for item in statement.nodes:
                    self._append(result, self.output_item(item))
            elif isinstance(statement, jinja_nodes.If):
                result.append(self.conditional(statement))
            elif isinstance(statement, jinja_nodes.For):
                result.append(self.repeat(statement))
            else:
                raise self.fail(
                    f"Unsupported directive '{type(statement).__name__.lower()}'", statement
                )
        return tuple(result)

    @staticmethod
    def _append(result: list[Node], node: Node) -> None:
        # Adjacent literals are merged so equal text always yields equal trees.
        if isinstance(node, Literal) and result and isinstance(result[-1], Literal):
            result[-1] = Literal(result[-1].text + node.text)
        elif not (isinstance(node, Literal) and not node.text):
            result.append(node)

    def output_item(self, item: jinja_nodes.Node) -> Node:
        if isinstance(item, jinja_nodes.TemplateData):
            return Literal(item.data)
        filters: list[str] = []
        expr = item
        while isinstance(expr, jinja_nodes.Filter):
            if expr.args or expr.kwargs or expr.dyn_args or expr.dyn_kwargs:
                raise self.fail(f"Filter '{expr.name}' does not take arguments", expr)
            filters.append(expr.name)
            expr = expr.node
        return Substitution(
            ref=self.ref(expr),
            filters=tuple(reversed(filters)),
            line=item.lineno,
        )

    def conditional(self, node: jinja_nodes.If) -> Conditional:
        otherwise = self.block(node.else_)
        for branch in reversed(node.elif_):
            otherwise = (
                Conditional(
                    predicate=self.predicate(branch.test),
                    then=self.block(branch.body),
                    otherwise=otherwise,
                    line=branch.lineno,
                ),
            )
        return Conditional(
            predicate=self.predicate(node.test),
            then=self.block(node.body),
            otherwise=otherwise,
            line=node.lineno,
        )

    def repeat(self, node: jinja_nodes.For) -> Repeat:
        if node.else_ or node.test is not None or node.recursive:
            raise self.fail("Loop 'else', filters and recursion are not supported", node)
        if not isinstance(node.target, jinja_nodes.Name):
            raise self.fail("Loop target must be a single name", node)
        return Repeat(
            variable=node.target.name,
            source=self.ref(node.iter),
            body=self.block(node.body),
            line=node.lineno,
        )

    # -- Expressions -------------------------------------------------------

    def ref(self, expr: jinja_nodes.Node) -> Ref:
        if isinstance(expr, jinja_nodes.Name):
            return Ref(expr.name)
        if isinstance(expr, jinja_nodes.Getattr) and isinstance(expr.node, jinja_nodes.Name):
            return Ref(expr.node.name, expr.attr)
        raise self.fail(
            f"Expected a name or name.attribute, got '{type(expr).__name__.lower()}'", expr
        )

    def predicate(self, expr: jinja_nodes.Node) -> Predicate:
        if isinstance(expr, jinja_nodes.Not):
            return Not(self.predicate(expr.node))
        if isinstance(expr, (jinja_nodes.And, jinja_nodes.Or)):
            op = "and" if isinstance(expr, jinja_nodes.And) else "or"
            operands: list[Predicate] = []
            for side in (expr.left, expr.right):
                sub = self.predicate(side)
                # Flatten ``a and b and c`` into one junction.
                if isinstance(sub, Junction) and sub.op == op:
                    operands.extend(sub.operands)
                else:
                    operands.append(sub)
            return Junction(op, tuple(operands))
        if isinstance(expr, jinja_nodes.Compare):
            return self.compare(expr)
        return Flag(self.ref(expr))

    def compare(self, expr: jinja_nodes.Compare) -> Compare:
        if len(expr.ops) != 1:
            raise self.fail("Chained comparisons are not supported", expr)
        operand = expr.ops[0]
        op = _COMPARE_OPS.get(operand.op)
        if op is None:
            raise self.fail(f"Unsupported comparison operator '{operand.op}'", expr)
        if op == "in":
            if not isinstance(operand.expr, (jinja_nodes.List, jinja_nodes.Tuple)):
                raise self.fail("'in' expects a literal list of strings", expr)
            values = tuple(self.constant(item) for item in operand.expr.items)
        else:
            values = (self.constant(operand.expr),)
        return Compare(self.ref(expr.expr), op, values)

    def constant(self, expr: jinja_nodes.Node) -> str:
        if isinstance(expr, jinja_nodes.Const) and isinstance(expr.value, str):
            return expr.value
        raise self.fail("Comparisons must be against string literals", expr)
