"""Parser for the klo scripting language.

Recursive descent over the token list with a single token of lookahead.
Binary expressions are parsed by precedence climbing over a table of
operator levels; every level is left-associative.
"""

from __future__ import annotations

import logging

from klo.ast_nodes import (
    AssignStmt,
    BinaryExpr,
    Expr,
    ExprStmt,
    ForStmt,
    Identifier,
    IfStmt,
    NumberLit,
    PrintStmt,
    Program,
    RangeExpr,
    Stmt,
    StringLit,
    WhileStmt,
)
from klo.errors import ParseError
from klo.source import Span
from klo.tokens import Token, TokenKind

logger = logging.getLogger(__name__)

# Loosest to tightest
_BINARY_LEVELS: list[frozenset[TokenKind]] = [
    frozenset({
        TokenKind.EQUAL, TokenKind.NOT_EQUAL,
        TokenKind.LESS, TokenKind.LESS_EQUAL,
        TokenKind.GREATER, TokenKind.GREATER_EQUAL,
    }),
    frozenset({TokenKind.PLUS, TokenKind.MINUS}),
    frozenset({TokenKind.STAR, TokenKind.SLASH, TokenKind.PERCENT}),
]

_STATEMENT_END = frozenset({TokenKind.NEWLINE, TokenKind.DEDENT, TokenKind.EOF})

_RESERVED = frozenset({TokenKind.DEF, TokenKind.RETURN})

RANGE = "range"


class Parser:
    """Parses a list of tokens into a klo Program. One instance per token list."""

    def __init__(self, tokens: list[Token], filename: str = "<stdin>") -> None:
        self.tokens = tokens
        self.pos = 0
        self.filename = filename
        self._last: Token | None = None

    # ── Token access ─────────────────────────────────────────────

    def _current(self) -> Token:
        if self.pos < len(self.tokens):
            return self.tokens[self.pos]
        return self.tokens[-1]  # EOF

    def _peek(self, offset: int = 0) -> Token:
        idx = self.pos + offset
        if idx < len(self.tokens):
            return self.tokens[idx]
        return self.tokens[-1]

    def _at(self, kind: TokenKind) -> bool:
        return self._current().kind == kind

    def _at_any(self, kinds: frozenset[TokenKind]) -> bool:
        return self._current().kind in kinds

    def _advance(self) -> Token:
        tok = self._current()
        if self.pos < len(self.tokens) - 1:
            self.pos += 1
        self._last = tok
        return tok

    def _expect(self, kind: TokenKind, message: str) -> Token:
        if self._at(kind):
            return self._advance()
        tok = self._current()
        raise self._error(f"{message}, got {tok.kind.name} ({tok.value!r})", tok)

    def _skip_newlines(self) -> None:
        while self._at(TokenKind.NEWLINE):
            self._advance()

    def _error(self, message: str, tok: Token) -> ParseError:
        return ParseError(message, tok.span)

    def _span(self, start: Span) -> Span:
        """Span from *start* to the end of the last consumed token."""
        end = self._last.span if self._last is not None else start
        return Span(
            self.filename,
            start.start_line, start.start_col,
            end.end_line, end.end_col,
        )

    # ── Top level ────────────────────────────────────────────────

    def parse(self) -> Program:
        """Parse the entire token stream into a Program.

        Raises ParseError on the first token that does not fit the grammar.
        """
        statements: list[Stmt] = []
        self._skip_newlines()
        while not self._at(TokenKind.EOF):
            statements.append(self._parse_statement())
            self._skip_newlines()

        end = self._current().span
        span = Span(self.filename, 1, 1, end.end_line, end.end_col)
        logger.debug("parsed %d top-level statements from %s", len(statements), self.filename)
        return Program(statements=tuple(statements), span=span)

    # ── Statements ───────────────────────────────────────────────

    def _parse_statement(self) -> Stmt:
        tok = self._current()
        if tok.kind == TokenKind.IF:
            return self._parse_if()
        if tok.kind == TokenKind.FOR:
            return self._parse_for()
        if tok.kind == TokenKind.WHILE:
            return self._parse_while()
        return self._parse_simple_statement()

    def _parse_simple_statement(self) -> Stmt:
        """Parse a one-line statement and the line break that ends it."""
        tok = self._current()
        if tok.kind == TokenKind.INDENT:
            raise self._error("unexpected indent", tok)
        if tok.kind in _RESERVED:
            raise self._error(f"'{tok.value}' is reserved but not supported", tok)

        if tok.kind == TokenKind.PRINT:
            stmt: Stmt = self._parse_print()
        elif tok.kind == TokenKind.IDENTIFIER and self._peek(1).kind == TokenKind.ASSIGN:
            stmt = self._parse_assignment()
        else:
            start = tok.span
            expr = self._parse_expression()
            stmt = ExprStmt(expr, self._span(start))

        self._end_statement()
        return stmt

    def _end_statement(self) -> None:
        tok = self._current()
        if tok.kind == TokenKind.NEWLINE:
            self._advance()
        elif tok.kind not in _STATEMENT_END:
            raise self._error(
                f"expected end of statement, got {tok.kind.name} ({tok.value!r})", tok,
            )

    def _parse_print(self) -> PrintStmt:
        start = self._advance().span  # 'print'
        args: list[Expr] = []
        if not self._at_any(_STATEMENT_END):
            args.append(self._parse_expression())
            while self._at(TokenKind.COMMA):
                self._advance()
                args.append(self._parse_expression())
        return PrintStmt(tuple(args), self._span(start))

    def _parse_assignment(self) -> AssignStmt:
        name_tok = self._advance()
        self._expect(TokenKind.ASSIGN, "expected '='")
        value = self._parse_expression()
        return AssignStmt(name_tok.value, value, self._span(name_tok.span))

    def _parse_if(self) -> IfStmt:
        start = self._advance().span  # 'if'
        condition = self._parse_expression()
        self._expect(TokenKind.COLON, "expected ':' after if condition")
        body = self._parse_block()

        else_body: tuple[Stmt, ...] | None = None
        if self._at(TokenKind.ELSE):
            self._advance()
            self._expect(TokenKind.COLON, "expected ':' after else")
            else_body = self._parse_block()

        return IfStmt(condition, body, else_body, self._span(start))

    def _parse_for(self) -> ForStmt:
        start = self._advance().span  # 'for'
        var_tok = self._expect(TokenKind.IDENTIFIER, "expected loop variable after 'for'")
        self._expect(TokenKind.IN, "expected 'in' after loop variable")
        iterable = self._parse_expression()
        self._expect(TokenKind.COLON, "expected ':' after for expression")
        body = self._parse_block()
        return ForStmt(var_tok.value, iterable, body, self._span(start))

    def _parse_while(self) -> WhileStmt:
        start = self._advance().span  # 'while'
        condition = self._parse_expression()
        self._expect(TokenKind.COLON, "expected ':' after while condition")
        body = self._parse_block()
        return WhileStmt(condition, body, self._span(start))

    def _parse_block(self) -> tuple[Stmt, ...]:
        """Parse the body that follows a ':'.

        Either a single simple statement on the same line, or every statement
        of the indented block that starts on the next line, up to its DEDENT.
        """
        if not self._at(TokenKind.NEWLINE):
            if self._at(TokenKind.EOF):
                raise self._error("expected an indented block", self._current())
            return (self._parse_simple_statement(),)

        self._skip_newlines()
        if not self._at(TokenKind.INDENT):
            raise self._error("expected an indented block", self._current())
        self._advance()  # INDENT

        stmts: list[Stmt] = []
        while True:
            self._skip_newlines()
            if self._at(TokenKind.DEDENT) or self._at(TokenKind.EOF):
                break
            stmts.append(self._parse_statement())

        if self._at(TokenKind.DEDENT):
            self._advance()
        return tuple(stmts)

    # ── Expressions ──────────────────────────────────────────────

    def _parse_expression(self) -> Expr:
        return self._parse_binary(0)

    def _parse_binary(self, level: int) -> Expr:
        if level == len(_BINARY_LEVELS):
            return self._parse_primary()

        operators = _BINARY_LEVELS[level]
        left = self._parse_binary(level + 1)
        while self._at_any(operators):
            op_tok = self._advance()
            right = self._parse_binary(level + 1)
            start = left.span or op_tok.span
            left = BinaryExpr(left, op_tok.value, right, self._span(start))
        return left

    def _parse_primary(self) -> Expr:
        tok = self._current()

        if tok.kind == TokenKind.NUMBER:
            self._advance()
            return NumberLit(tok.value, tok.span)

        if tok.kind == TokenKind.STRING:
            self._advance()
            return StringLit(tok.value, tok.span)

        if tok.kind == TokenKind.IDENTIFIER:
            self._advance()
            if tok.value == RANGE and self._at(TokenKind.LPAREN):
                self._advance()
                end = self._parse_expression()
                self._expect(TokenKind.RPAREN, "expected ')' after range argument")
                return RangeExpr(end, self._span(tok.span))
            return Identifier(tok.value, tok.span)

        if tok.kind == TokenKind.LPAREN:
            self._advance()
            expr = self._parse_expression()
            self._expect(TokenKind.RPAREN, "expected ')' after expression")
            return expr

        raise self._error(
            f"unexpected token {tok.kind.name} ({tok.value!r}), expected expression", tok,
        )


def parse(tokens: list[Token], filename: str = "<stdin>") -> Program:
    """Parse *tokens* into a Program; raises ParseError on the first error."""
    return Parser(tokens, filename).parse()
