"""AST-walking pretty-printer for klo source code.

Produces canonical formatting for .klo files: four-space indentation, one
statement per line, single spaces around binary operators and only the
parentheses precedence requires. Uses the same isinstance dispatch as
go_emitter.py.

Limitation: ``#`` comments are discarded by the lexer, so formatting a file
drops them.
"""

from __future__ import annotations

from klo.ast_nodes import (
    AssignStmt,
    BinaryExpr,
    ExprStmt,
    ForStmt,
    Identifier,
    IfStmt,
    NumberLit,
    PrintStmt,
    Program,
    RangeExpr,
    StringLit,
    WhileStmt,
)

# Operator precedence table (higher binds tighter)
_PRECEDENCE: dict[str, int] = {
    "==": 1, "!=": 1, "<": 1, ">": 1, "<=": 1, ">=": 1,
    "+": 2, "-": 2,
    "*": 3, "/": 3, "%": 3,
}

INDENT = "    "


class KloFormatter:
    """Format a parsed klo Program back to canonical source text."""

    def format(self, program: Program) -> str:
        lines: list[str] = []
        for stmt in program.statements:
            lines.extend(self._format_stmt(stmt))
        return "\n".join(lines) + "\n" if lines else ""

    # ── Statements ─────────────────────────────────────────────

    def _format_stmt(self, stmt: object) -> list[str]:
        if isinstance(stmt, PrintStmt):
            if not stmt.args:
                return ["print"]
            return ["print " + ", ".join(self._format_expr(a) for a in stmt.args)]
        if isinstance(stmt, AssignStmt):
            return [f"{stmt.name} = {self._format_expr(stmt.value)}"]
        if isinstance(stmt, ExprStmt):
            return [self._format_expr(stmt.expr)]
        if isinstance(stmt, IfStmt):
            lines = [f"if {self._format_expr(stmt.condition)}:"]
            lines.extend(self._format_block(stmt.body))
            if stmt.else_body:
                lines.append("else:")
                lines.extend(self._format_block(stmt.else_body))
            return lines
        if isinstance(stmt, ForStmt):
            lines = [f"for {stmt.var} in {self._format_expr(stmt.iterable)}:"]
            lines.extend(self._format_block(stmt.body))
            return lines
        if isinstance(stmt, WhileStmt):
            lines = [f"while {self._format_expr(stmt.condition)}:"]
            lines.extend(self._format_block(stmt.body))
            return lines
        return []

    def _format_block(self, stmts: tuple) -> list[str]:
        lines: list[str] = []
        for stmt in stmts:
            lines.extend(INDENT + line for line in self._format_stmt(stmt))
        return lines

    # ── Expressions ────────────────────────────────────────────

    def _format_expr(self, expr: object, parent_prec: int = 0) -> str:
        if isinstance(expr, NumberLit):
            return expr.value
        if isinstance(expr, StringLit):
            quote = "'" if '"' in expr.value else '"'
            return f"{quote}{expr.value}{quote}"
        if isinstance(expr, Identifier):
            return expr.name
        if isinstance(expr, RangeExpr):
            return f"range({self._format_expr(expr.end)})"
        if isinstance(expr, BinaryExpr):
            return self._format_binary(expr, parent_prec)
        return ""

    def _format_binary(self, expr: BinaryExpr, parent_prec: int) -> str:
        prec = _PRECEDENCE.get(expr.op, 0)
        left = self._format_expr(expr.left, prec)
        right = self._format_expr(expr.right, prec + 1)
        result = f"{left} {expr.op} {right}"
        if prec < parent_prec:
            return f"({result})"
        return result
