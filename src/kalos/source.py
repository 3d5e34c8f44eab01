"""Source positions and span tracking for diagnostics."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class Position:
    """A single point in source text."""

    offset: int
    line: int
    column: int

    def __str__(self) -> str:
        return f"{self.line}:{self.column}"


@dataclass(frozen=True)
class Span:
    """A range within a source file (end column inclusive)."""

    file: str
    start_line: int
    start_col: int
    end_line: int
    end_col: int
    start_offset: int = 0
    end_offset: int = 0

    @property
    def start(self) -> Position:
        return Position(self.start_offset, self.start_line, self.start_col)

    def to(self, other: Span) -> Span:
        """Join this span with a later one."""
        return Span(
            self.file,
            self.start_line, self.start_col,
            other.end_line, other.end_col,
            self.start_offset, other.end_offset,
        )

    def __str__(self) -> str:
        return f"{self.file}:{self.start_line}:{self.start_col}"


class SourceFile:
    """A loaded source file."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self.content = path.read_text(encoding="utf-8")

    def span_text(self, span: Span) -> str:
        """Extract the text covered by a span."""
        return self.content[span.start_offset:span.end_offset]
