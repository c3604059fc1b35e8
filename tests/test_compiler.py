"""End-to-end tests for the lex, parse and generate pipeline."""

from __future__ import annotations

import pytest

import klo
from klo.ast_nodes import Program
from klo.compiler import parse_source, transpile
from klo.errors import LexError, ParseError


class TestTranspile:
    def test_exactly_one_package_and_main(self):
        sources = [
            "",
            "print\n",
            "x = 1\n",
            "for i in range(3):\n    if i == 1:\n        print i\n",
            'name = "klo"\nprint "hi " + name\n',
        ]
        for source in sources:
            go = transpile(source)
            assert go.count("package main") == 1, source
            assert go.count("func main() {") == 1, source

    def test_print_arity(self):
        assert "fmt.Println()" in transpile("print\n")
        assert "fmt.Println(1, 2, 3)" in transpile("print 1, 2, 3\n")

    def test_precedence(self):
        assert "fmt.Println((5 + (3 * 2)))" in transpile("print 5 + 3 * 2\n")

    def test_concatenation_rules(self):
        assert 'fmt.Sprintf("%v%v", "a", "b")' in transpile('print "a" + "b"\n')
        assert 'fmt.Sprintf("%v%v", "a", x)' in transpile('x = 1\nprint "a" + x\n')
        go = transpile("x = 1\ny = 2\nprint x + y\n")
        assert "(x + y)" in go
        assert "Sprintf" not in go

    def test_block_statements_kept_in_order(self):
        go = transpile("if 1 < 2:\n    print 'a'\n    print 'b'\n    print 'c'\n")
        a, b, c = go.index('"a"'), go.index('"b"'), go.index('"c"')
        assert a < b < c

    def test_for_range_loop(self):
        go = transpile("for i in range(5):\n    print i\n")
        assert "for i := 0; i < 5; i++ {" in go

    def test_full_program(self):
        source = (
            "# countdown\n"
            "n = 3\n"
            "while n > 0:\n"
            "    print 'n is', n\n"
            "    n = n - 1\n"
            "print 'liftoff'\n"
        )
        assert transpile(source) == (
            "package main\n"
            "\n"
            "import (\n"
            '\t"fmt"\n'
            ")\n"
            "\n"
            "func main() {\n"
            "\tn := 3\n"
            "\tfor (n > 0) {\n"
            '\t\tfmt.Println("n is", n)\n'
            "\t\tn = (n - 1)\n"
            "\t}\n"
            '\tfmt.Println("liftoff")\n'
            "}\n"
        )

    def test_package_exports(self):
        assert klo.transpile is transpile
        assert isinstance(klo.__version__, str)


class TestParseSource:
    def test_returns_program(self):
        assert isinstance(parse_source("x = 1\n"), Program)

    def test_deterministic(self):
        source = "x = 1\nfor i in range(x):\n    print i + x\n"
        assert parse_source(source) == parse_source(source)


class TestPipelineErrors:
    def test_unterminated_string(self):
        with pytest.raises(LexError) as exc_info:
            transpile('print "abc')
        assert "unterminated string" in exc_info.value.message

    def test_missing_expression(self):
        with pytest.raises(ParseError) as exc_info:
            transpile("x = ")
        assert "expected expression" in exc_info.value.message

    def test_first_error_stops(self):
        with pytest.raises(LexError):
            transpile("x = \nprint 'oops")

    def test_filename_in_error(self):
        with pytest.raises(ParseError) as exc_info:
            transpile("if x\n", "demo.klo")
        assert str(exc_info.value).startswith("demo.klo:1:5: ")
