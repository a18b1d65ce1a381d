"""Tests for the template parser (src.scaffolder.parser).

Covers:
- Literal text, substitutions and filter chains
- if / elif / else translation into nested conditionals
- for loops
- Predicate forms: flags, ==, !=, in, not, and/or flattening
- Block whitespace handling (trim_blocks / lstrip_blocks)
- Parse purity
- Rejection of unsupported directives with line numbers
- Every built-in template parses
"""

from __future__ import annotations

import pytest

from src.scaffolder.errors import TemplateSyntaxError
from src.scaffolder.nodes import (
    Compare,
    Conditional,
    Flag,
    Junction,
    Literal,
    Not,
    ParsedTemplate,
    Ref,
    Repeat,
    Substitution,
)
from src.scaffolder.parser import TemplateParser, parse
from src.scaffolder.sources import BUILTIN_SOURCES

pytestmark = pytest.mark.unit


@pytest.fixture
def parser() -> TemplateParser:
    return TemplateParser()


# ---------------------------------------------------------------------------
# Text and substitutions
# ---------------------------------------------------------------------------


class TestSubstitutions:
    def test_plain_text_is_single_literal(self, parser: TemplateParser):
        result = parser.parse("just text\nand more\n")
        assert result.nodes == (Literal("just text\nand more\n"),)

    def test_empty_template(self, parser: TemplateParser):
        assert parser.parse("").nodes == ()

    def test_simple_substitution(self, parser: TemplateParser):
        result = parser.parse("Hello {{ name }}!")
        assert result.nodes == (
            Literal("Hello "),
            Substitution(Ref("name"), (), 1),
            Literal("!"),
        )

    def test_attribute_substitution(self, parser: TemplateParser):
        result = parser.parse("{{ module.name }}")
        assert result.nodes == (Substitution(Ref("module", "name"), (), 1),)
        assert result.nodes[0].ref.path == "module.name"

    def test_filter_chain_in_application_order(self, parser: TemplateParser):
        result = parser.parse("{{ name | snake_case | upper }}")
        assert result.nodes[0].filters == ("snake_case", "upper")

    def test_substitution_line_number(self, parser: TemplateParser):
        result = parser.parse("line one\nline two\n{{ name }}\n")
        subs = [n for n in result.walk() if isinstance(n, Substitution)]
        assert subs[0].line == 3

    def test_identifier_recorded(self, parser: TemplateParser):
        assert parser.parse("x", identifier="readme").identifier == "readme"

    def test_module_level_parse(self):
        assert parse("{{ name }}").nodes == (Substitution(Ref("name"), (), 1),)


# ---------------------------------------------------------------------------
# Conditionals and loops
# ---------------------------------------------------------------------------


class TestBlocks:
    def test_block_lines_are_trimmed(self, parser: TemplateParser):
        result = parser.parse("{% if include_docker %}\nA\n{% endif %}\nB\n")
        assert result.nodes == (
            Conditional(Flag(Ref("include_docker")), (Literal("A\n"),), (), 1),
            Literal("B\n"),
        )

    def test_indented_block_tags_are_stripped(self, parser: TemplateParser):
        result = parser.parse("    {% if x %}\n    A\n    {% endif %}\n")
        assert result.nodes[0].then == (Literal("    A\n"),)

    def test_if_else(self, parser: TemplateParser):
        result = parser.parse("{% if x %}A{% else %}B{% endif %}")
        node = result.nodes[0]
        assert isinstance(node, Conditional)
        assert node.then == (Literal("A"),)
        assert node.otherwise == (Literal("B"),)

    def test_elif_nests_in_else_branch(self, parser: TemplateParser):
        result = parser.parse("{% if a %}A{% elif b %}B{% else %}C{% endif %}")
        outer = result.nodes[0]
        assert outer.predicate == Flag(Ref("a"))
        assert len(outer.otherwise) == 1
        inner = outer.otherwise[0]
        assert isinstance(inner, Conditional)
        assert inner.predicate == Flag(Ref("b"))
        assert inner.then == (Literal("B"),)
        assert inner.otherwise == (Literal("C"),)

    def test_for_loop(self, parser: TemplateParser):
        result = parser.parse("{% for module in modules %}{{ module.name }},{% endfor %}")
        node = result.nodes[0]
        assert isinstance(node, Repeat)
        assert node.variable == "module"
        assert node.source == Ref("modules")
        assert node.body == (Substitution(Ref("module", "name"), (), 1), Literal(","))

    def test_nested_blocks(self, parser: TemplateParser):
        text = (
            "{% for module in modules %}\n"
            "{% if module.is_sample %}\n"
            "{{ module.name }}\n"
            "{% endif %}\n"
            "{% endfor %}\n"
        )
        result = parser.parse(text)
        loop = result.nodes[0]
        assert isinstance(loop, Repeat)
        assert isinstance(loop.body[0], Conditional)
        assert loop.body[0].predicate == Flag(Ref("module", "is_sample"))
        kinds = [type(n).__name__ for n in result.walk()]
        assert kinds == ["Repeat", "Conditional", "Substitution", "Literal"]


class TestPredicates:
    def test_equality(self, parser: TemplateParser):
        node = parser.parse('{% if database == "PostgreSQL" %}x{% endif %}').nodes[0]
        assert node.predicate == Compare(Ref("database"), "==", ("PostgreSQL",))

    def test_inequality(self, parser: TemplateParser):
        node = parser.parse("{% if database != 'SQLite' %}x{% endif %}").nodes[0]
        assert node.predicate == Compare(Ref("database"), "!=", ("SQLite",))

    def test_membership(self, parser: TemplateParser):
        node = parser.parse('{% if database in ["PostgreSQL", "SqlServer"] %}x{% endif %}').nodes[0]
        assert node.predicate == Compare(Ref("database"), "in", ("PostgreSQL", "SqlServer"))

    def test_not(self, parser: TemplateParser):
        node = parser.parse("{% if not include_docker %}x{% endif %}").nodes[0]
        assert node.predicate == Not(Flag(Ref("include_docker")))

    def test_and_chain_is_flattened(self, parser: TemplateParser):
        node = parser.parse("{% if a and b and c %}x{% endif %}").nodes[0]
        assert node.predicate == Junction(
            "and", (Flag(Ref("a")), Flag(Ref("b")), Flag(Ref("c")))
        )

    def test_mixed_junctions_stay_nested(self, parser: TemplateParser):
        node = parser.parse("{% if a or b and c %}x{% endif %}").nodes[0]
        assert node.predicate == Junction(
            "or", (Flag(Ref("a")), Junction("and", (Flag(Ref("b")), Flag(Ref("c")))))
        )


# ---------------------------------------------------------------------------
# Purity
# ---------------------------------------------------------------------------


class TestPurity:
    def test_same_text_gives_equal_trees(self, parser: TemplateParser):
        text = "{% for m in modules %}{{ m.name | lower }}\n{% endfor %}"
        assert parser.parse(text) == parser.parse(text)
        assert parser.parse(text) == TemplateParser().parse(text)

    def test_result_is_hashable_and_frozen(self, parser: TemplateParser):
        result = parser.parse("{{ name }}")
        hash(result)
        with pytest.raises(AttributeError):
            result.nodes = ()  # type: ignore[misc]


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class TestSyntaxErrors:
    def test_unclosed_block(self, parser: TemplateParser):
        with pytest.raises(TemplateSyntaxError) as exc_info:
            parser.parse("A\n{% if x %}\nB\n", identifier="readme")
        assert exc_info.value.identifier == "readme"
        assert exc_info.value.line is not None
        assert str(exc_info.value).startswith("readme:")

    def test_else_outside_conditional(self, parser: TemplateParser):
        with pytest.raises(TemplateSyntaxError) as exc_info:
            parser.parse("A\n{% else %}\nB\n", identifier="readme")
        assert exc_info.value.identifier == "readme"
        assert exc_info.value.line == 2
        assert "else" in exc_info.value.message

    @pytest.mark.parametrize("text", ["A\n{{ }}\n", "A\n{% %}\n"])
    def test_empty_directive(self, parser: TemplateParser, text: str):
        with pytest.raises(TemplateSyntaxError) as exc_info:
            parser.parse(text, identifier="readme")
        assert exc_info.value.identifier == "readme"
        assert exc_info.value.line == 2
        assert str(exc_info.value).startswith("readme:2:")

    def test_unsupported_statement_reports_line(self, parser: TemplateParser):
        with pytest.raises(TemplateSyntaxError) as exc_info:
            parser.parse("A\n{% set x = 1 %}\n")
        assert exc_info.value.line == 2
        assert "Unsupported directive" in exc_info.value.message

    def test_filter_arguments_rejected(self, parser: TemplateParser):
        with pytest.raises(TemplateSyntaxError, match="does not take arguments"):
            parser.parse("{{ name | default('x') }}")

    def test_constant_output_rejected(self, parser: TemplateParser):
        with pytest.raises(TemplateSyntaxError):
            parser.parse('{{ "literal" }}')

    def test_deep_attribute_rejected(self, parser: TemplateParser):
        with pytest.raises(TemplateSyntaxError):
            parser.parse("{{ a.b.c }}")

    def test_subscript_rejected(self, parser: TemplateParser):
        with pytest.raises(TemplateSyntaxError):
            parser.parse("{{ modules[0] }}")

    def test_tuple_loop_target_rejected(self, parser: TemplateParser):
        with pytest.raises(TemplateSyntaxError, match="single name"):
            parser.parse("{% for a, b in pairs %}x{% endfor %}")

    def test_loop_else_rejected(self, parser: TemplateParser):
        with pytest.raises(TemplateSyntaxError):
            parser.parse("{% for m in modules %}x{% else %}y{% endfor %}")

    def test_numeric_comparison_rejected(self, parser: TemplateParser):
        with pytest.raises(TemplateSyntaxError, match="string literals"):
            parser.parse("{% if port == 8080 %}x{% endif %}")

    def test_chained_comparison_rejected(self, parser: TemplateParser):
        with pytest.raises(TemplateSyntaxError, match="Chained"):
            parser.parse('{% if "a" == b == "c" %}x{% endif %}')

    def test_unsupported_operator_rejected(self, parser: TemplateParser):
        with pytest.raises(TemplateSyntaxError, match="operator"):
            parser.parse('{% if name > "a" %}x{% endif %}')


# ---------------------------------------------------------------------------
# Built-in templates
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "source",
    BUILTIN_SOURCES,
    ids=lambda s: "-".join(
        part for part in (
            s.identifier.value,
            s.architecture.value if s.architecture else "",
            s.database.value if s.database else "",
        ) if part
    ),
)
def test_builtin_template_parses(parser: TemplateParser, source):
    result = parser.parse(source.text, source.identifier.value)
    assert isinstance(result, ParsedTemplate)
    assert result.nodes
