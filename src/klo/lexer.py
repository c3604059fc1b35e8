"""Lexer for the klo scripting language.

Produces a flat token list from source text. Line breaks are tokens of their
own, and leading whitespace is turned into Python-style INDENT/DEDENT tokens
so that the parser can find the end of every indented block.
"""

from __future__ import annotations

import logging

from klo.errors import LexError
from klo.source import Span
from klo.tokens import (
    CLOSING_BRACKETS,
    KEYWORDS,
    OPENING_BRACKETS,
    SINGLE_CHAR_TOKENS,
    TWO_CHAR_TOKENS,
    Token,
    TokenKind,
)

logger = logging.getLogger(__name__)

TAB_SIZE = 8


def _is_digit(ch: str) -> bool:
    return "0" <= ch <= "9"


class Lexer:
    """Tokenizes klo source code. One instance per source text."""

    def __init__(self, source: str, filename: str = "<stdin>") -> None:
        self.source = source
        self.filename = filename
        self.pos = 0
        self.line = 1
        self.col = 1
        self.indent_stack: list[int] = [0]
        self.bracket_depth = 0
        self.tokens: list[Token] = []
        self._at_line_start = True

    def lex(self) -> list[Token]:
        """Tokenize the entire source and return the token list.

        Raises LexError on the first character that cannot be tokenized.
        """
        while self.pos < len(self.source):
            if self._at_line_start and self.bracket_depth == 0:
                self._handle_indentation()
            self._at_line_start = False
            self._skip_spaces()
            if self.pos >= len(self.source):
                break
            ch = self.source[self.pos]
            if ch in "\r\n":
                self._handle_newline()
            elif ch == "#":
                self._skip_comment()
            elif ch in "\"'":
                self._lex_string()
            elif _is_digit(ch):
                self._lex_number()
            elif ch.isalpha() or ch == "_":
                self._lex_identifier()
            else:
                self._lex_operator_or_punct()

        # Close every block still open at end of input
        while len(self.indent_stack) > 1:
            self.indent_stack.pop()
            self._emit(TokenKind.DEDENT, "", self.line, self.col)

        self._emit(TokenKind.EOF, "", self.line, self.col)
        logger.debug("lexed %d tokens from %s", len(self.tokens), self.filename)
        return self.tokens

    # ── Helpers ───────────────────────────────────────────────────

    def _peek(self, offset: int = 0) -> str:
        idx = self.pos + offset
        if idx < len(self.source):
            return self.source[idx]
        return "\0"

    def _advance(self) -> str:
        ch = self.source[self.pos]
        self.pos += 1
        if ch == "\n" or (ch == "\r" and self._peek() != "\n"):
            self.line += 1
            self.col = 1
        else:
            self.col += 1
        return ch

    def _emit(self, kind: TokenKind, value: str, start_line: int, start_col: int) -> Token:
        end_col = self.col - 1 if self.col > 1 else 1
        span = Span(self.filename, start_line, start_col, self.line, end_col)
        tok = Token(kind, value, span)
        self.tokens.append(tok)
        return tok

    def _error(self, message: str, line: int, col: int) -> LexError:
        return LexError(message, Span.point(self.filename, line, col))

    def _skip_spaces(self) -> None:
        """Skip spaces and tabs (but not line breaks)."""
        while self.pos < len(self.source) and self.source[self.pos] in " \t":
            self._advance()

    # ── Indentation ──────────────────────────────────────────────

    def _handle_indentation(self) -> None:
        """Measure the leading whitespace of a line and emit INDENT/DEDENT."""
        width = 0
        while self.pos < len(self.source) and self.source[self.pos] in " \t":
            if self.source[self.pos] == "\t":
                width = (width // TAB_SIZE + 1) * TAB_SIZE
            else:
                width += 1
            self._advance()

        # Blank and comment-only lines do not open or close blocks
        if self.pos >= len(self.source) or self.source[self.pos] in "\r\n#":
            return

        current = self.indent_stack[-1]
        if width > current:
            self.indent_stack.append(width)
            self._emit(TokenKind.INDENT, "", self.line, 1)
        elif width < current:
            while len(self.indent_stack) > 1 and self.indent_stack[-1] > width:
                self.indent_stack.pop()
                self._emit(TokenKind.DEDENT, "", self.line, 1)
            if self.indent_stack[-1] != width:
                raise self._error(
                    f"inconsistent indentation: expected {self.indent_stack[-1]}"
                    f" columns, got {width}",
                    self.line, self.col,
                )

    # ── Line breaks and comments ─────────────────────────────────

    def _handle_newline(self) -> None:
        start_line = self.line
        start_col = self.col
        if self.source[self.pos] == "\r" and self._peek(1) == "\n":
            self._advance()
        self._advance()
        if self.bracket_depth > 0:
            return
        self._at_line_start = True
        self._emit(TokenKind.NEWLINE, "\n", start_line, start_col)

    def _skip_comment(self) -> None:
        while self.pos < len(self.source) and self.source[self.pos] not in "\r\n":
            self._advance()

    # ── Literals ─────────────────────────────────────────────────

    def _lex_string(self) -> None:
        start_line = self.line
        start_col = self.col
        quote = self._advance()
        text = []
        while self.pos < len(self.source) and self.source[self.pos] != quote:
            text.append(self._advance())
        if self.pos >= len(self.source):
            raise self._error("unterminated string", start_line, start_col)
        self._advance()  # closing quote
        self._emit(TokenKind.STRING, "".join(text), start_line, start_col)

    def _lex_number(self) -> None:
        start_line = self.line
        start_col = self.col
        text = []
        # Dots are accepted anywhere; `1.2.3` is passed through as written
        while self.pos < len(self.source) and (
            _is_digit(self.source[self.pos]) or self.source[self.pos] == "."
        ):
            text.append(self._advance())
        self._emit(TokenKind.NUMBER, "".join(text), start_line, start_col)

    def _lex_identifier(self) -> None:
        start_line = self.line
        start_col = self.col
        text = []
        while self.pos < len(self.source) and (
            self.source[self.pos].isalnum() or self.source[self.pos] == "_"
        ):
            text.append(self._advance())
        word = "".join(text)
        self._emit(KEYWORDS.get(word, TokenKind.IDENTIFIER), word, start_line, start_col)

    # ── Operators and punctuation ────────────────────────────────

    def _lex_operator_or_punct(self) -> None:
        start_line = self.line
        start_col = self.col
        ch = self.source[self.pos]

        two = self.source[self.pos:self.pos + 2]
        if two in TWO_CHAR_TOKENS:
            self._advance()
            self._advance()
            self._emit(TWO_CHAR_TOKENS[two], two, start_line, start_col)
            return

        kind = SINGLE_CHAR_TOKENS.get(ch)
        if kind is None:
            raise self._error(f"unexpected character {ch!r}", start_line, start_col)

        self._advance()
        if kind in OPENING_BRACKETS:
            self.bracket_depth += 1
        elif kind in CLOSING_BRACKETS:
            self.bracket_depth = max(0, self.bracket_depth - 1)
        self._emit(kind, ch, start_line, start_col)


def tokenize(source: str, filename: str = "<stdin>") -> list[Token]:
    """Tokenize *source*; raises LexError on the first bad character."""
    return Lexer(source, filename).lex()
