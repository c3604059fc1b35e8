"""The klo pipeline on a single source string: lex, parse, generate."""

from __future__ import annotations

import logging

from klo.ast_nodes import Program
from klo.go_emitter import generate
from klo.lexer import tokenize
from klo.parser import parse

logger = logging.getLogger(__name__)


def parse_source(source: str, filename: str = "<stdin>") -> Program:
    """Lex and parse *source*. Raises LexError or ParseError."""
    tokens = tokenize(source, filename)
    return parse(tokens, filename)


def transpile(source: str, filename: str = "<stdin>") -> str:
    """Translate klo *source* into a complete Go program.

    Raises LexError or ParseError (both CompileError) on the first error.
    """
    logger.debug("transpiling %s (%d chars)", filename, len(source))
    program = parse_source(source, filename)
    go_code = generate(program)
    logger.debug("generated %d bytes of Go for %s", len(go_code), filename)
    return go_code
