"""Generate Go source code from a parsed klo Program."""

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
from klo.scope import ScopeStack

logger = logging.getLogger(__name__)

# Single-character escapes Go accepts inside an interpreted string literal
_SIMPLE_ESCAPES = frozenset("abfnrtv\\\"")
# Numeric escapes: introducer -> number of hex digits that must follow
_HEX_ESCAPES = {"x": 2, "u": 4, "U": 8}
_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")
_OCTAL_DIGITS = frozenset("01234567")


def _escape_length(text: str, i: int) -> int:
    """Length of the well-formed Go escape starting at the backslash
    ``text[i]``, or 0 when Go would reject it."""
    nxt = text[i + 1:i + 2]
    if not nxt:
        return 0
    if nxt in _SIMPLE_ESCAPES:
        return 2
    if nxt in _HEX_ESCAPES:
        width = _HEX_ESCAPES[nxt]
        digits = text[i + 2:i + 2 + width]
        if len(digits) != width or not _HEX_DIGITS.issuperset(digits):
            return 0
        if nxt != "x":
            code = int(digits, 16)
            # \u and \U must name a valid Unicode code point
            if code > 0x10FFFF or 0xD800 <= code <= 0xDFFF:
                return 0
        return 2 + width
    if nxt in _OCTAL_DIGITS:
        digits = text[i + 1:i + 4]
        if len(digits) == 3 and _OCTAL_DIGITS.issuperset(digits) and int(digits, 8) <= 0o377:
            return 4
    return 0


def go_string_literal(text: str) -> str:
    """Quote raw klo string text as a Go interpreted string literal.

    Well-formed Go escapes pass through unchanged. Bare quotes, line breaks
    and any backslash that would start a malformed escape are escaped.
    """
    out: list[str] = []
    i = 0
    while i < len(text):
        ch = text[i]
        if ch == "\\":
            length = _escape_length(text, i)
            if length:
                out.append(text[i:i + length])
                i += length
                continue
            if text[i + 1:i + 2] == "'":
                out.append("'")
                i += 2
                continue
            out.append("\\\\")
        elif ch == '"':
            out.append('\\"')
        elif ch == "\n":
            out.append("\\n")
        elif ch == "\r":
            out.append("\\r")
        else:
            out.append(ch)
        i += 1
    return '"' + "".join(out) + '"'


class GoEmitter:
    """Emit a Go ``package main`` program from a klo Program.

    Emission never fails: node shapes the emitter does not know are written
    out as comments so the problem is visible in the generated file.
    """

    def __init__(self, program: Program) -> None:
        self._program = program
        self._out: list[str] = []
        self._indent = 0
        self._scopes = ScopeStack()
        self._uses_fmt = False

    # ── Public API ─────────────────────────────────────────────

    def emit(self) -> str:
        """Generate the complete Go source for the program."""
        self._line("package main")
        self._line("")
        self._line("import (")
        self._indent += 1
        self._line('"fmt"')
        self._indent -= 1
        self._line(")")
        self._line("")
        guard_pos = len(self._out)

        self._line("func main() {")
        self._indent += 1
        self._emit_block_body(self._program.statements)
        self._indent -= 1
        self._line("}")

        if not self._uses_fmt:
            # Go rejects unused imports
            self._out[guard_pos:guard_pos] = ["var _ = fmt.Println", ""]

        logger.debug("emitted %d lines of Go", len(self._out))
        return "\n".join(self._out) + "\n"

    # ── Output helpers ─────────────────────────────────────────

    def _line(self, text: str) -> None:
        if text:
            self._out.append("\t" * self._indent + text)
        else:
            self._out.append("")

    def _emit_block_body(self, stmts: tuple[Stmt, ...]) -> None:
        """Emit statements, then keep every variable the block never read alive."""
        for stmt in stmts:
            self._emit_stmt(stmt)
        for name in self._scopes.current.unused():
            self._line(f"_ = {name}")

    def _emit_nested_block(self, stmts: tuple[Stmt, ...]) -> None:
        self._indent += 1
        self._scopes.push()
        self._emit_block_body(stmts)
        self._scopes.pop()
        self._indent -= 1

    # ── Statements ─────────────────────────────────────────────

    def _emit_stmt(self, stmt: Stmt) -> None:
        if isinstance(stmt, PrintStmt):
            self._emit_print(stmt)
        elif isinstance(stmt, AssignStmt):
            self._emit_assignment(stmt)
        elif isinstance(stmt, IfStmt):
            self._emit_if(stmt)
        elif isinstance(stmt, ForStmt):
            self._emit_for(stmt)
        elif isinstance(stmt, WhileStmt):
            self._emit_while(stmt)
        elif isinstance(stmt, ExprStmt):
            self._line(f"_ = {self._emit_expr(stmt.expr)}")
        else:
            self._line(f"// unknown statement: {type(stmt).__name__}")

    def _emit_print(self, ps: PrintStmt) -> None:
        self._uses_fmt = True
        args = ", ".join(self._emit_expr(a) for a in ps.args)
        self._line(f"fmt.Println({args})")

    def _emit_assignment(self, assign: AssignStmt) -> None:
        val = self._emit_expr(assign.value)
        if self._scopes.is_declared(assign.name):
            self._line(f"{assign.name} = {val}")
        else:
            self._scopes.declare(assign.name)
            self._line(f"{assign.name} := {val}")

    def _emit_if(self, stmt: IfStmt) -> None:
        cond = self._emit_expr(stmt.condition)
        self._line(f"if {cond} {{")
        self._emit_nested_block(stmt.body)
        if stmt.else_body:
            self._line("} else {")
            self._emit_nested_block(stmt.else_body)
        self._line("}")

    def _emit_for(self, stmt: ForStmt) -> None:
        if not isinstance(stmt.iterable, RangeExpr):
            self._line(
                f"// unsupported iteration over {type(stmt.iterable).__name__}"
            )
            return

        end = self._emit_expr(stmt.iterable.end)
        var = stmt.var
        self._line(f"for {var} := 0; {var} < {end}; {var}++ {{")
        self._indent += 1
        self._scopes.push()
        # The loop condition reads the counter
        self._scopes.declare(var).used = True
        self._emit_block_body(stmt.body)
        self._scopes.pop()
        self._indent -= 1
        self._line("}")

    def _emit_while(self, stmt: WhileStmt) -> None:
        cond = self._emit_expr(stmt.condition)
        self._line(f"for {cond} {{")
        self._emit_nested_block(stmt.body)
        self._line("}")

    # ── Expressions ────────────────────────────────────────────

    def _emit_expr(self, expr: Expr) -> str:
        if isinstance(expr, Identifier):
            self._scopes.mark_used(expr.name)
            return expr.name

        if isinstance(expr, NumberLit):
            return expr.value

        if isinstance(expr, StringLit):
            return go_string_literal(expr.value)

        if isinstance(expr, BinaryExpr):
            return self._emit_binary(expr)

        if isinstance(expr, RangeExpr):
            # Only meaningful as a for-loop iterable; elsewhere it is its bound
            return self._emit_expr(expr.end)

        return f"/* unknown expression: {type(expr).__name__} */"

    def _emit_binary(self, expr: BinaryExpr) -> str:
        left = self._emit_expr(expr.left)
        right = self._emit_expr(expr.right)
        if _is_concatenation(expr):
            self._uses_fmt = True
            return f'fmt.Sprintf("%v%v", {left}, {right})'
        return f"({left} {expr.op} {right})"


def _is_concatenation(expr: BinaryExpr) -> bool:
    """A ``+`` with a string literal directly on either side.

    Only immediate literals count: ``"a" + 1 + 2`` concatenates the first
    pair and adds ``2`` natively.
    """
    return expr.op == "+" and (
        isinstance(expr.left, StringLit) or isinstance(expr.right, StringLit)
    )


def generate(program: Program) -> str:
    """Generate Go source text for *program*."""
    return GoEmitter(program).emit()
