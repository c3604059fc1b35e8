"""Pygments lexer for the klo language."""

from pygments.lexer import RegexLexer, words
from pygments.token import (
    Comment,
    Keyword,
    Name,
    Number,
    Operator,
    Punctuation,
    String,
    Text,
)


class KloLexer(RegexLexer):
    """Pygments lexer for klo, the Python-like language that compiles to Go."""

    name = "klo"
    aliases = ["klo"]
    filenames = ["*.klo"]
    mimetypes = ["text/x-klo"]

    tokens = {
        "root": [
            # Whitespace
            (r"\s+", Text),
            # Line comments (# ...)
            (r"#.*$", Comment.Single),
            # Strings end at the first matching quote; backslashes do not escape it
            (r'"', String.Double, "dqstring"),
            (r"'", String.Single, "sqstring"),
            # Numbers
            (r"[0-9][0-9.]*", Number),
            # Reserved but unsupported
            (words(("def", "return"), prefix=r"\b", suffix=r"\b"), Keyword.Reserved),
            # Core keywords
            (
                words(
                    ("print", "if", "else", "for", "in", "while"),
                    prefix=r"\b",
                    suffix=r"\b",
                ),
                Keyword,
            ),
            # range(...) is the only builtin
            (r"\brange(?=\s*\()", Name.Builtin),
            # Operators (multi-char before single-char)
            (r"==|!=|<=|>=", Operator),
            (r"[+\-*/%<>=]", Operator),
            # Identifiers
            (r"[A-Za-z_][A-Za-z0-9_]*", Name),
            # Punctuation
            (r"[()\[\],:.]", Punctuation),
        ],
        "dqstring": [
            (r"\\[abfnrtv\\']", String.Escape),
            (r'[^"\\]+', String.Double),
            (r"\\", String.Double),
            (r'"', String.Double, "#pop"),
        ],
        "sqstring": [
            (r'\\[abfnrtv\\"]', String.Escape),
            (r"[^'\\]+", String.Single),
            (r"\\", String.Single),
            (r"'", String.Single, "#pop"),
        ],
    }
