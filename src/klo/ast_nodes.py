"""AST node definitions for the klo language.

Nodes are frozen dataclasses whose child sequences are tuples, so a tree
cannot change once the parser has built it. The ``span`` field records where
a node came from but takes no part in equality, so two parses of the same
text compare equal.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union

from klo.source import Span


# ── Expressions ──────────────────────────────────────────────────


@dataclass(frozen=True)
class Identifier:
    name: str
    span: Span | None = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class StringLit:
    value: str
    span: Span | None = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class NumberLit:
    value: str
    span: Span | None = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class BinaryExpr:
    left: Expr
    op: str
    right: Expr
    span: Span | None = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class RangeExpr:
    """``range(end)``: counts from 0 up to, not including, *end*."""

    end: Expr
    span: Span | None = field(default=None, compare=False, repr=False)


Expr = Union[Identifier, StringLit, NumberLit, BinaryExpr, RangeExpr]


# ── Statements ───────────────────────────────────────────────────


@dataclass(frozen=True)
class PrintStmt:
    args: tuple[Expr, ...]
    span: Span | None = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class AssignStmt:
    name: str
    value: Expr
    span: Span | None = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class IfStmt:
    condition: Expr
    body: tuple[Stmt, ...]
    else_body: tuple[Stmt, ...] | None = None
    span: Span | None = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class ForStmt:
    var: str
    iterable: Expr
    body: tuple[Stmt, ...]
    span: Span | None = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class WhileStmt:
    condition: Expr
    body: tuple[Stmt, ...]
    span: Span | None = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class ExprStmt:
    expr: Expr
    span: Span | None = field(default=None, compare=False, repr=False)


Stmt = Union[PrintStmt, AssignStmt, IfStmt, ForStmt, WhileStmt, ExprStmt]


# ── Program ──────────────────────────────────────────────────────


@dataclass(frozen=True)
class Program:
    statements: tuple[Stmt, ...]
    span: Span | None = field(default=None, compare=False, repr=False)
