"""Token kinds and token representation for the Kalos lexer."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from kalos.source import Span


class TokenKind(Enum):
    # Keywords
    DEF = "def"
    EXTERN = "extern"
    VAR = "var"
    RETURN = "return"
    IF = "if"
    ELSE = "else"
    WHILE = "while"

    # Type keywords
    AUTO = "auto"
    INT = "int"
    BOOL = "bool"

    # Literals
    INTEGER_LIT = "integer"

    # Operators
    POWER = "**"
    STAR = "*"
    SLASH = "/"
    PERCENT = "%"
    PLUS = "+"
    MINUS = "-"
    LESS_EQUAL = "<="
    GREATER_EQUAL = ">="
    EQUAL = "=="
    NOT_EQUAL = "!="
    LESS = "<"
    GREATER = ">"
    ASSIGN = "="
    ARROW = "->"
    ELLIPSIS = "..."

    # Punctuation
    LPAREN = "("
    RPAREN = ")"
    LBRACE = "{"
    RBRACE = "}"
    COMMA = ","
    SEMICOLON = ";"
    COLON = ":"

    # Identifiers
    IDENTIFIER = "identifier"

    # Special
    EOF = "end of input"

    @property
    def label(self) -> str:
        """Human-readable name used in diagnostics."""
        if self in _NAMED_KINDS:
            return self.value
        return f'"{self.value}"'


_NAMED_KINDS = frozenset({
    TokenKind.INTEGER_LIT,
    TokenKind.IDENTIFIER,
    TokenKind.EOF,
})


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    value: str
    span: Span


KEYWORDS: dict[str, TokenKind] = {
    "def": TokenKind.DEF,
    "extern": TokenKind.EXTERN,
    "var": TokenKind.VAR,
    "return": TokenKind.RETURN,
    "if": TokenKind.IF,
    "else": TokenKind.ELSE,
    "while": TokenKind.WHILE,
    "auto": TokenKind.AUTO,
    "int": TokenKind.INT,
    "bool": TokenKind.BOOL,
}

# Longest spellings first so matching is greedy.
OPERATORS: tuple[tuple[str, TokenKind], ...] = (
    ("...", TokenKind.ELLIPSIS),
    ("**", TokenKind.POWER),
    ("<=", TokenKind.LESS_EQUAL),
    (">=", TokenKind.GREATER_EQUAL),
    ("==", TokenKind.EQUAL),
    ("!=", TokenKind.NOT_EQUAL),
    ("->", TokenKind.ARROW),
    ("*", TokenKind.STAR),
    ("/", TokenKind.SLASH),
    ("%", TokenKind.PERCENT),
    ("+", TokenKind.PLUS),
    ("-", TokenKind.MINUS),
    ("<", TokenKind.LESS),
    (">", TokenKind.GREATER),
    ("=", TokenKind.ASSIGN),
    ("(", TokenKind.LPAREN),
    (")", TokenKind.RPAREN),
    ("{", TokenKind.LBRACE),
    ("}", TokenKind.RBRACE),
    (",", TokenKind.COMMA),
    (";", TokenKind.SEMICOLON),
    (":", TokenKind.COLON),
)

BINARY_OPERATORS: frozenset[TokenKind] = frozenset({
    TokenKind.POWER,
    TokenKind.STAR,
    TokenKind.SLASH,
    TokenKind.PERCENT,
    TokenKind.PLUS,
    TokenKind.MINUS,
    TokenKind.LESS_EQUAL,
    TokenKind.GREATER_EQUAL,
    TokenKind.EQUAL,
    TokenKind.NOT_EQUAL,
    TokenKind.LESS,
    TokenKind.GREATER,
})
