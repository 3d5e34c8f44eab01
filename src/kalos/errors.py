"""Parse errors, furthest-failure tracking and Rust-style diagnostic rendering."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from kalos.source import Position, Span


class Severity(Enum):
    ERROR = "error"


# ANSI color codes
_COLORS = {
    Severity.ERROR: "\033[1;31m",  # bold red
}
_BOLD = "\033[1m"
_BLUE = "\033[1;34m"
_RESET = "\033[0m"

LEX_ERROR = "E100"
SYNTAX_ERROR = "E200"


@dataclass(frozen=True)
class DiagnosticLabel:
    """Points to a specific source location."""

    span: Span
    message: str


@dataclass
class Diagnostic:
    """A single diagnostic message with optional labels and notes."""

    severity: Severity
    code: str
    message: str
    labels: list[DiagnosticLabel] = field(default_factory=list)
    notes: list[str] = field(default_factory=list)


class DiagnosticRenderer:
    """Renders diagnostics in Rust-style format with colors."""

    def __init__(self, *, color: bool = True) -> None:
        self.color = color
        self._file_cache: dict[str, list[str]] = {}

    def _c(self, code: str) -> str:
        return code if self.color else ""

    def add_source(self, filename: str, text: str) -> None:
        """Register in-memory source text so labels can quote it."""
        self._file_cache[filename] = text.splitlines()

    def _get_source_line(self, filename: str, line_num: int) -> str | None:
        """Load and cache source file, return the 1-indexed line."""
        if filename not in self._file_cache:
            try:
                path = Path(filename)
                if path.is_file():
                    text = path.read_text(encoding="utf-8")
                    self._file_cache[filename] = text.splitlines()
                else:
                    self._file_cache[filename] = []
            except OSError:
                self._file_cache[filename] = []
        lines = self._file_cache[filename]
        if 1 <= line_num <= len(lines):
            return lines[line_num - 1]
        return None

    def render(self, diag: Diagnostic) -> str:
        lines: list[str] = []
        sev = diag.severity
        color = _COLORS[sev]

        # Header: error[E200]: message
        lines.append(
            f"{self._c(color)}{sev.value}[{diag.code}]{self._c(_RESET)}"
            f"{self._c(_BOLD)}: {diag.message}{self._c(_RESET)}"
        )

        for label in diag.labels:
            span = label.span
            loc = f"{span.file}:{span.start_line}:{span.start_col}"
            lines.append(
                f"  {self._c(_BLUE)}-->{self._c(_RESET)} {loc}"
            )
            gutter = f"{span.start_line:>4}"
            lines.append(f"  {self._c(_BLUE)}   |{self._c(_RESET)}")

            source_line = self._get_source_line(span.file, span.start_line)
            if source_line is not None:
                lines.append(
                    f"  {self._c(_BLUE)}{gutter} |{self._c(_RESET)} {source_line}"
                )

            if span.start_line == span.end_line:
                caret_len = max(1, span.end_col - span.start_col + 1)
                padding = " " * (span.start_col - 1)
                carets = "^" * caret_len
                lines.append(
                    f"  {self._c(_BLUE)}   |{self._c(_RESET)} "
                    f"{padding}{self._c(color)}{carets}{self._c(_RESET)}"
                )

            if label.message:
                lines.append(
                    f"  {self._c(_BLUE)}   |{self._c(_RESET)}   "
                    f"{self._c(color)}{label.message}{self._c(_RESET)}"
                )

        for note in diag.notes:
            lines.append(f"  {self._c(_BLUE)}={self._c(_RESET)} note: {note}")

        return "\n".join(lines)


class CompileError(Exception):
    """Error carrying one or more diagnostics."""

    def __init__(self, diagnostics: list[Diagnostic]) -> None:
        self.diagnostics = diagnostics
        messages = [d.message for d in diagnostics]
        super().__init__(f"{len(diagnostics)} error(s): {'; '.join(messages)}")


class ParseError(CompileError):
    """The single error a failed parse reports.

    ``position`` is where the failure happened, ``expected`` the labels of
    the token kinds that would have been accepted there (empty for lexical
    errors).
    """

    code = SYNTAX_ERROR

    def __init__(
        self,
        message: str,
        span: Span,
        expected: frozenset[str] = frozenset(),
        label: str = "",
    ) -> None:
        self.message = message
        self.span = span
        self.expected = expected
        notes = []
        if len(expected) > 1:
            notes.append(f"expected one of {', '.join(sorted(expected))}")
        diag = Diagnostic(
            severity=Severity.ERROR,
            code=self.code,
            message=message,
            labels=[DiagnosticLabel(span=span, message=label)],
            notes=notes,
        )
        super().__init__([diag])

    @property
    def position(self) -> Position:
        return self.span.start

    def __str__(self) -> str:
        return f"{self.span}: {self.message}"


class LexError(ParseError):
    """Unrecognized character or unterminated comment."""

    code = LEX_ERROR


class ParseSyntaxError(ParseError):
    """No alternative of a required production matched."""

    code = SYNTAX_ERROR


def describe_expected(labels: frozenset[str] | set[str]) -> str:
    """Join expected-token labels into a readable phrase."""
    ordered = sorted(labels)
    if not ordered:
        return "nothing"
    if len(ordered) == 1:
        return ordered[0]
    if len(ordered) == 2:
        return f"{ordered[0]} or {ordered[1]}"
    return "one of " + ", ".join(ordered)


class FurthestFailure:
    """Tracks the deepest token index any failed match reached.

    A failure further along the input replaces what was recorded; a failure
    at the same index adds its label to the expected set.
    """

    def __init__(self) -> None:
        self.index = -1
        self.expected: set[str] = set()

    def record(self, index: int, label: str) -> None:
        if index > self.index:
            self.index = index
            self.expected = {label}
        elif index == self.index:
            self.expected.add(label)
