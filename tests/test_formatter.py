"""Tests for the klo formatter (AST pretty-printer)."""

from __future__ import annotations

from klo.ast_nodes import BinaryExpr, Identifier, NumberLit, PrintStmt, Program, StringLit
from klo.formatter import KloFormatter
from tests.helpers import parse_program


def _roundtrip(source: str) -> str:
    """Parse source and format back to text."""
    return KloFormatter().format(parse_program(source))


class TestFormatterBasic:
    def test_empty(self):
        assert _roundtrip("") == ""

    def test_canonical_source_unchanged(self):
        source = (
            'name = "klo"\n'
            "print \"hello\", name\n"
            "for i in range(3):\n"
            "    if i == 1:\n"
            "        print i\n"
            "    else:\n"
            "        print 0\n"
            "n = 0\n"
            "while n < 2:\n"
            "    n = n + 1\n"
            "print\n"
        )
        assert _roundtrip(source) == source

    def test_normalizes_spacing(self):
        assert _roundtrip("x=1+2*3\nprint   x ,x\n") == "x = 1 + 2 * 3\nprint x, x\n"

    def test_normalizes_indentation(self):
        source = "if x:\n  print 1\n  print 2\n"
        assert _roundtrip(source) == "if x:\n    print 1\n    print 2\n"

    def test_inline_block_expanded(self):
        assert _roundtrip("if x: print 1\n") == "if x:\n    print 1\n"

    def test_blank_lines_and_comments_dropped(self):
        assert _roundtrip("# hi\nx = 1\n\n\ny = 2\n") == "x = 1\ny = 2\n"

    def test_expression_statement(self):
        assert _roundtrip("x + 1\n") == "x + 1\n"

    def test_single_quotes_become_double(self):
        assert _roundtrip("print 'hi'\n") == 'print "hi"\n'

    def test_string_with_double_quote_keeps_single(self):
        assert _roundtrip("print 'say \"hi\"'\n") == "print 'say \"hi\"'\n"


class TestFormatterParens:
    def test_redundant_parens_removed(self):
        assert _roundtrip("x = (1 + 2) + 3\n") == "x = 1 + 2 + 3\n"

    def test_required_parens_kept(self):
        assert _roundtrip("x = (1 + 2) * 3\n") == "x = (1 + 2) * 3\n"

    def test_right_nested_same_precedence_kept(self):
        assert _roundtrip("x = 1 - (2 - 3)\n") == "x = 1 - (2 - 3)\n"

    def test_comparison_operands(self):
        assert _roundtrip("if (a + 1) < (b * 2):\n    print a\n") == (
            "if a + 1 < b * 2:\n    print a\n"
        )

    def test_range(self):
        assert _roundtrip("for i in range((n)):\n    print i\n") == (
            "for i in range(n):\n    print i\n"
        )


class TestFormatterAst:
    def test_hand_built_program(self):
        program = Program((
            PrintStmt((StringLit("a"), BinaryExpr(Identifier("x"), "*", NumberLit("2")))),
        ))
        assert KloFormatter().format(program) == 'print "a", x * 2\n'

    def test_format_is_stable(self):
        source = "x=(1+2)*3\nif x>3: print x\n"
        once = _roundtrip(source)
        assert _roundtrip(once) == once
