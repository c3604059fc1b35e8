"""Declaration scopes for the Go emitter.

Go refuses ``x := ...`` when ``x`` already exists in the same block and
refuses locals that are never read. The emitter mirrors Go's block structure
with a stack of scopes so it can pick between ``:=`` and ``=`` and keep
unused variables alive.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class Symbol:
    name: str
    used: bool = False


class Scope:
    """A single Go block."""

    def __init__(self, parent: Scope | None = None) -> None:
        self.parent = parent
        self._symbols: dict[str, Symbol] = {}

    def define(self, name: str) -> Symbol:
        """Declare *name* in this scope. Returns the existing symbol on redefinition."""
        existing = self._symbols.get(name)
        if existing is not None:
            return existing
        sym = Symbol(name)
        self._symbols[name] = sym
        return sym

    def lookup(self, name: str) -> Symbol | None:
        """Look up a name in this scope and all parent scopes."""
        sym = self._symbols.get(name)
        if sym is not None:
            return sym
        if self.parent is not None:
            return self.parent.lookup(name)
        return None

    def unused(self) -> list[str]:
        """Names declared here and never read, in declaration order."""
        return [s.name for s in self._symbols.values() if not s.used]


class ScopeStack:
    """The chain of open Go blocks, innermost last."""

    def __init__(self) -> None:
        self._stack: list[Scope] = [Scope()]

    @property
    def current(self) -> Scope:
        return self._stack[-1]

    def push(self) -> Scope:
        scope = Scope(parent=self.current)
        self._stack.append(scope)
        return scope

    def pop(self) -> Scope:
        if len(self._stack) == 1:
            raise RuntimeError("cannot pop the function scope")
        return self._stack.pop()

    def is_declared(self, name: str) -> bool:
        return self.current.lookup(name) is not None

    def declare(self, name: str) -> Symbol:
        return self.current.define(name)

    def mark_used(self, name: str) -> None:
        sym = self.current.lookup(name)
        if sym is not None:
            sym.used = True
