"""klo Language Server: pygls-based LSP for .klo files.

Provides diagnostics, hover, completion, go-to-definition, document symbols
and formatting via stdio transport.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from lsprotocol import types as lsp
from pygls.lsp.server import LanguageServer

from klo import __version__
from klo.ast_nodes import AssignStmt, ForStmt, IfStmt, Program, WhileStmt
from klo.errors import CompileError, Severity
from klo.formatter import KloFormatter
from klo.lexer import Lexer
from klo.parser import Parser
from klo.source import Span
from klo.tokens import KEYWORDS, Token

# ── Conversion helpers ────────────────────────────────────────────

_SEVERITY_MAP = {
    Severity.ERROR: lsp.DiagnosticSeverity.Error,
}

_KEYWORD_COMPLETIONS = sorted(KEYWORDS.keys())

_BUILTINS = ["range"]

_KEYWORD_DOCS = {
    "print": "`print a, b, ...` writes its arguments separated by spaces "
             "and ends the line (`fmt.Println`).",
    "if": "`if cond:` runs the indented block when `cond` holds.",
    "else": "`else:` block taken when the preceding `if` condition fails.",
    "for": "`for i in range(n):` counts `i` from 0 up to `n - 1`.",
    "in": "Separates the loop variable from `range(...)` in a `for` loop.",
    "while": "`while cond:` repeats the indented block while `cond` holds.",
    "def": "Reserved; function definitions are not supported.",
    "return": "Reserved; function definitions are not supported.",
    "range": "`range(n)` yields 0 .. n-1; only valid as a `for` iterable.",
}


def span_to_range(span: Span | None) -> lsp.Range:
    """Convert a 1-indexed klo Span to a 0-indexed LSP Range."""
    if span is None:
        return lsp.Range(start=lsp.Position(0, 0), end=lsp.Position(0, 0))
    return lsp.Range(
        start=lsp.Position(line=span.start_line - 1, character=span.start_col - 1),
        end=lsp.Position(line=span.end_line - 1, character=span.end_col),
    )


def collect_bindings(program: Program) -> dict[str, list[object]]:
    """Map each assigned name and loop variable to its binding statements, in order."""
    bindings: dict[str, list[object]] = {}

    def walk(stmts: tuple) -> None:
        for stmt in stmts:
            if isinstance(stmt, AssignStmt):
                bindings.setdefault(stmt.name, []).append(stmt)
            elif isinstance(stmt, ForStmt):
                bindings.setdefault(stmt.var, []).append(stmt)
                walk(stmt.body)
            elif isinstance(stmt, WhileStmt):
                walk(stmt.body)
            elif isinstance(stmt, IfStmt):
                walk(stmt.body)
                walk(stmt.else_body or ())

    walk(program.statements)
    return bindings


# ── Per-document state ────────────────────────────────────────────


@dataclass
class DocumentState:
    """Cached analysis results for a single open document."""

    source: str = ""
    tokens: list[Token] = field(default_factory=list)
    program: Program | None = None
    bindings: dict[str, list[object]] = field(default_factory=dict)
    diagnostics: list[lsp.Diagnostic] = field(default_factory=list)


# ── Server ────────────────────────────────────────────────────────

server = LanguageServer(
    "klo-lsp", __version__,
    text_document_sync_kind=lsp.TextDocumentSyncKind.Full,
)
_state: dict[str, DocumentState] = {}


def _compile_diag(d: object) -> lsp.Diagnostic:
    """Convert a klo Diagnostic to an LSP Diagnostic."""
    span_range = lsp.Range(start=lsp.Position(0, 0), end=lsp.Position(0, 0))
    if getattr(d, "labels", None):
        span_range = span_to_range(d.labels[0].span)  # type: ignore[union-attr]
    sev = _SEVERITY_MAP.get(getattr(d, "severity", None), lsp.DiagnosticSeverity.Error)
    code = getattr(d, "code", "E000")
    msg = getattr(d, "message", str(d))
    return lsp.Diagnostic(
        range=span_range, severity=sev, source="klo",
        code=code, message=f"[{code}] {msg}",
    )


def _analyze(uri: str, source: str) -> DocumentState:
    """Run Lexer and Parser, cache results, return state."""
    ds = DocumentState(source=source)
    try:
        ds.tokens = Lexer(source, uri).lex()
        ds.program = Parser(ds.tokens, uri).parse()
        ds.bindings = collect_bindings(ds.program)
    except CompileError as e:
        ds.diagnostics = [_compile_diag(d) for d in e.diagnostics]
    _state[uri] = ds
    return ds


def _get_word_at(source: str, line: int, character: int) -> str:
    """Extract the word at the given 0-indexed position."""
    lines = source.splitlines()
    if line < 0 or line >= len(lines):
        return ""
    text = lines[line]
    if character < 0 or character >= len(text):
        # Cursor may sit right after the word
        if 0 < character <= len(text):
            character -= 1
        else:
            return ""

    start = character
    while start > 0 and (text[start - 1].isalnum() or text[start - 1] == "_"):
        start -= 1
    end = character
    while end < len(text) and (text[end].isalnum() or text[end] == "_"):
        end += 1

    return text[start:end]


def _binding_span(stmt: object) -> Span | None:
    return getattr(stmt, "span", None)


# ── LSP Feature Handlers ─────────────────────────────────────────


@server.feature(lsp.TEXT_DOCUMENT_DID_OPEN)
def did_open(params: lsp.DidOpenTextDocumentParams) -> None:
    uri = params.text_document.uri
    ds = _analyze(uri, params.text_document.text)
    server.text_document_publish_diagnostics(lsp.PublishDiagnosticsParams(
        uri=uri,
        diagnostics=ds.diagnostics,
    ))


@server.feature(lsp.TEXT_DOCUMENT_DID_CHANGE)
def did_change(params: lsp.DidChangeTextDocumentParams) -> None:
    uri = params.text_document.uri
    # Full sync: take last content change
    source = params.content_changes[-1].text if params.content_changes else ""
    ds = _analyze(uri, source)
    server.text_document_publish_diagnostics(lsp.PublishDiagnosticsParams(
        uri=uri,
        diagnostics=ds.diagnostics,
    ))


@server.feature(lsp.TEXT_DOCUMENT_DID_CLOSE)
def did_close(params: lsp.DidCloseTextDocumentParams) -> None:
    _state.pop(params.text_document.uri, None)


def hover_text(ds: DocumentState, word: str) -> str | None:
    """Markdown hover content for *word*, or None."""
    if word in _KEYWORD_DOCS:
        return f"**keyword** `{word}`\n\n{_KEYWORD_DOCS[word]}"
    stmts = ds.bindings.get(word)
    if stmts:
        first = _binding_span(stmts[0])
        kind = "loop variable" if isinstance(stmts[0], ForStmt) else "variable"
        where = f" (first bound on line {first.start_line})" if first else ""
        return f"**{kind}** `{word}`{where}"
    return None


@server.feature(lsp.TEXT_DOCUMENT_HOVER)
def hover(params: lsp.HoverParams) -> lsp.Hover | None:
    ds = _state.get(params.text_document.uri)
    if ds is None:
        return None

    word = _get_word_at(ds.source, params.position.line, params.position.character)
    content = hover_text(ds, word) if word else None
    if content is None:
        return None
    return lsp.Hover(contents=lsp.MarkupContent(
        kind=lsp.MarkupKind.Markdown,
        value=content,
    ))


def completion_items(ds: DocumentState | None) -> list[lsp.CompletionItem]:
    items: list[lsp.CompletionItem] = []

    for kw in _KEYWORD_COMPLETIONS:
        items.append(lsp.CompletionItem(
            label=kw,
            kind=lsp.CompletionItemKind.Keyword,
        ))

    for name in _BUILTINS:
        items.append(lsp.CompletionItem(
            label=name,
            kind=lsp.CompletionItemKind.Function,
            insert_text=f"{name}()",
            insert_text_format=lsp.InsertTextFormat.PlainText,
        ))

    if ds is not None:
        for name in sorted(ds.bindings):
            items.append(lsp.CompletionItem(
                label=name,
                kind=lsp.CompletionItemKind.Variable,
            ))

    # Deduplicate by label
    seen: set[str] = set()
    unique: list[lsp.CompletionItem] = []
    for item in items:
        if item.label not in seen:
            seen.add(item.label)
            unique.append(item)
    return unique


@server.feature(lsp.TEXT_DOCUMENT_COMPLETION)
def completion(params: lsp.CompletionParams) -> lsp.CompletionList:
    ds = _state.get(params.text_document.uri)
    return lsp.CompletionList(is_incomplete=False, items=completion_items(ds))


@server.feature(lsp.TEXT_DOCUMENT_DEFINITION)
def definition(params: lsp.DefinitionParams) -> lsp.Location | None:
    uri = params.text_document.uri
    ds = _state.get(uri)
    if ds is None:
        return None

    word = _get_word_at(ds.source, params.position.line, params.position.character)
    stmts = ds.bindings.get(word)
    if not stmts:
        return None
    span = _binding_span(stmts[0])
    if span is None:
        return None
    return lsp.Location(uri=uri, range=span_to_range(span))


def document_symbols(ds: DocumentState) -> list[lsp.DocumentSymbol]:
    """One symbol per bound name, located at its first binding."""
    symbols: list[lsp.DocumentSymbol] = []
    for name, stmts in ds.bindings.items():
        span = _binding_span(stmts[0])
        if isinstance(stmts[0], ForStmt):
            detail = "loop variable"
        else:
            detail = f"assigned {len(stmts)}x" if len(stmts) > 1 else None
        symbols.append(lsp.DocumentSymbol(
            name=name,
            kind=lsp.SymbolKind.Variable,
            detail=detail,
            range=span_to_range(span),
            selection_range=span_to_range(span),
        ))
    return symbols


@server.feature(lsp.TEXT_DOCUMENT_DOCUMENT_SYMBOL)
def document_symbol(params: lsp.DocumentSymbolParams) -> list[lsp.DocumentSymbol]:
    ds = _state.get(params.text_document.uri)
    if ds is None:
        return []
    return document_symbols(ds)


def format_edits(ds: DocumentState) -> list[lsp.TextEdit] | None:
    if ds.program is None:
        return None

    formatted = KloFormatter().format(ds.program)
    if formatted == ds.source:
        return None

    # Replace entire document
    lines = ds.source.splitlines()
    end_line = len(lines)
    end_char = len(lines[-1]) if lines else 0

    return [lsp.TextEdit(
        range=lsp.Range(
            start=lsp.Position(0, 0),
            end=lsp.Position(end_line, end_char),
        ),
        new_text=formatted,
    )]


@server.feature(lsp.TEXT_DOCUMENT_FORMATTING)
def formatting(params: lsp.DocumentFormattingParams) -> list[lsp.TextEdit] | None:
    ds = _state.get(params.text_document.uri)
    if ds is None:
        return None
    return format_edits(ds)


# ── Entry point ──────────────────────────────────────────────────


def main() -> None:
    """Start the klo language server on stdio."""
    server.start_io()
