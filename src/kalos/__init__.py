"""Kalos: a parser for a small C-like language."""

from __future__ import annotations

from kalos.errors import LexError, ParseError, ParseSyntaxError
from kalos.parser import parse, parse_expr

__version__ = "0.1.0"

__all__ = [
    "LexError",
    "ParseError",
    "ParseSyntaxError",
    "__version__",
    "parse",
    "parse_expr",
]
