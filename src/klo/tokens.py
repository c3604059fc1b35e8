"""Token kinds and token representation for the klo lexer."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from klo.source import Span


class TokenKind(Enum):
    # Structure
    EOF = auto()
    NEWLINE = auto()
    INDENT = auto()
    DEDENT = auto()

    # Literals
    IDENTIFIER = auto()
    STRING = auto()
    NUMBER = auto()

    # Keywords
    PRINT = auto()
    IF = auto()
    ELSE = auto()
    DEF = auto()
    FOR = auto()
    IN = auto()
    WHILE = auto()
    RETURN = auto()

    # Operators
    ASSIGN = auto()
    PLUS = auto()
    MINUS = auto()
    STAR = auto()
    SLASH = auto()
    PERCENT = auto()
    EQUAL = auto()
    NOT_EQUAL = auto()
    LESS = auto()
    LESS_EQUAL = auto()
    GREATER = auto()
    GREATER_EQUAL = auto()

    # Punctuation
    LPAREN = auto()
    RPAREN = auto()
    LBRACKET = auto()
    RBRACKET = auto()
    COMMA = auto()
    COLON = auto()
    DOT = auto()


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    value: str
    span: Span

    @property
    def line(self) -> int:
        return self.span.start_line

    @property
    def column(self) -> int:
        return self.span.start_col


# `range` is not a keyword: the parser recognises `range(` on a plain identifier.
KEYWORDS: dict[str, TokenKind] = {
    "print": TokenKind.PRINT,
    "if": TokenKind.IF,
    "else": TokenKind.ELSE,
    "def": TokenKind.DEF,
    "for": TokenKind.FOR,
    "in": TokenKind.IN,
    "while": TokenKind.WHILE,
    "return": TokenKind.RETURN,
}

SINGLE_CHAR_TOKENS: dict[str, TokenKind] = {
    "=": TokenKind.ASSIGN,
    "+": TokenKind.PLUS,
    "-": TokenKind.MINUS,
    "*": TokenKind.STAR,
    "/": TokenKind.SLASH,
    "%": TokenKind.PERCENT,
    "<": TokenKind.LESS,
    ">": TokenKind.GREATER,
    "(": TokenKind.LPAREN,
    ")": TokenKind.RPAREN,
    "[": TokenKind.LBRACKET,
    "]": TokenKind.RBRACKET,
    ",": TokenKind.COMMA,
    ":": TokenKind.COLON,
    ".": TokenKind.DOT,
}

TWO_CHAR_TOKENS: dict[str, TokenKind] = {
    "==": TokenKind.EQUAL,
    "!=": TokenKind.NOT_EQUAL,
    "<=": TokenKind.LESS_EQUAL,
    ">=": TokenKind.GREATER_EQUAL,
}

OPENING_BRACKETS: frozenset[TokenKind] = frozenset({
    TokenKind.LPAREN,
    TokenKind.LBRACKET,
})

CLOSING_BRACKETS: frozenset[TokenKind] = frozenset({
    TokenKind.RPAREN,
    TokenKind.RBRACKET,
})
