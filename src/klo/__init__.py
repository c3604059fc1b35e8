"""klo: a minimalist Python-like language that transpiles to Go."""

__version__ = "0.1.0"

from klo.compiler import parse_source, transpile  # noqa: E402
from klo.errors import CompileError, LexError, ParseError  # noqa: E402
from klo.go_emitter import generate  # noqa: E402
from klo.lexer import tokenize  # noqa: E402
from klo.parser import parse  # noqa: E402

__all__ = [
    "CompileError",
    "LexError",
    "ParseError",
    "__version__",
    "generate",
    "parse",
    "parse_source",
    "tokenize",
    "transpile",
]
