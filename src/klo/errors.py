"""Compile errors and Rust-style diagnostic rendering."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from klo.source import SourceFile, Span


class Severity(Enum):
    ERROR = "error"


# ANSI color codes
_RED = "\033[1;31m"
_BOLD = "\033[1m"
_BLUE = "\033[1;34m"
_RESET = "\033[0m"

LEX_ERROR = "E100"
PARSE_ERROR = "E200"


@dataclass(frozen=True)
class DiagnosticLabel:
    """Points to a specific source location."""

    span: Span
    message: str


@dataclass
class Diagnostic:
    """A single diagnostic message with the source locations it points at."""

    severity: Severity
    code: str
    message: str
    labels: list[DiagnosticLabel] = field(default_factory=list)

    @property
    def span(self) -> Span | None:
        return self.labels[0].span if self.labels else None


class DiagnosticRenderer:
    """Renders diagnostics Rust-style: a header, the location, then the
    offending source line with carets under the span.

    Text registered with :meth:`add_source` wins over the file on disk, so
    stdin and unsaved editor buffers render with their source too.
    """

    def __init__(self, *, color: bool = True) -> None:
        self.color = color
        self._sources: dict[str, SourceFile | None] = {}

    def add_source(self, filename: str, text: str) -> None:
        self._sources[filename] = SourceFile(filename, text)

    def _source(self, filename: str) -> SourceFile | None:
        if filename not in self._sources:
            path = Path(filename)
            try:
                self._sources[filename] = SourceFile.load(path) if path.is_file() else None
            except OSError:
                self._sources[filename] = None
        return self._sources[filename]

    def _paint(self, style: str, text: str) -> str:
        return f"{style}{text}{_RESET}" if self.color else text

    def _gutter(self, line_no: int | None = None) -> str:
        return "  " + self._paint(_BLUE, f"{line_no:>4} |" if line_no else "   |")

    def render(self, diag: Diagnostic) -> str:
        # error[E100]: message
        lines = [
            self._paint(_RED, f"{diag.severity.value}[{diag.code}]")
            + self._paint(_BOLD, f": {diag.message}")
        ]
        for label in diag.labels:
            lines.extend(self._render_label(label))
        return "\n".join(lines)

    def _render_label(self, label: DiagnosticLabel) -> list[str]:
        span = label.span
        out = [f"  {self._paint(_BLUE, '-->')} {span}", self._gutter()]

        source = self._source(span.file)
        if source is not None and 1 <= span.start_line <= len(source.lines):
            # Multi-line spans are underlined to the end of their first line
            width = len(source.span_text(span).split("\n")[0]) or 1
            padding = " " * (span.start_col - 1)
            out.append(f"{self._gutter(span.start_line)} {source.line_at(span.start_line)}")
            out.append(f"{self._gutter()} {padding}{self._paint(_RED, '^' * width)}")

        if label.message:
            out.append(f"{self._gutter()}   {self._paint(_RED, label.message)}")
        return out


class CompileError(Exception):
    """Compilation error carrying one or more diagnostics."""

    def __init__(self, diagnostics: list[Diagnostic]) -> None:
        self.diagnostics = diagnostics
        messages = [d.message for d in diagnostics]
        super().__init__(f"{len(diagnostics)} error(s): {'; '.join(messages)}")


class _PositionedError(CompileError):
    code = ""

    def __init__(self, message: str, span: Span) -> None:
        diag = Diagnostic(
            severity=Severity.ERROR,
            code=self.code,
            message=message,
            labels=[DiagnosticLabel(span=span, message="")],
        )
        super().__init__([diag])
        self.message = message
        self.span = span

    @property
    def line(self) -> int:
        return self.span.start_line

    @property
    def column(self) -> int:
        return self.span.start_col

    def __str__(self) -> str:
        return f"{self.span}: {self.message}"


class LexError(_PositionedError):
    """Raised by the lexer on the first character it cannot tokenize."""

    code = LEX_ERROR


class ParseError(_PositionedError):
    """Raised by the parser on the first token that breaks the grammar."""

    code = PARSE_ERROR
