"""Shared test helpers for the klo compiler test suite."""

from __future__ import annotations

from klo.ast_nodes import Program
from klo.go_emitter import GoEmitter
from klo.lexer import Lexer
from klo.parser import Parser


def parse_program(source: str) -> Program:
    """Lex and parse source, return the Program."""
    tokens = Lexer(source, "<test>").lex()
    return Parser(tokens, "<test>").parse()


def emit(source: str) -> str:
    """Lex, parse and emit source, return the Go program text."""
    return GoEmitter(parse_program(source)).emit()


def main_body(source: str) -> list[str]:
    """Lines inside ``func main() { ... }``, with their tab indentation."""
    lines = emit(source).splitlines()
    start = lines.index("func main() {")
    assert lines[-1] == "}", lines
    return lines[start + 1:-1]
