"""Lexer for the Kalos language.

Produces a list of positioned tokens from source text. Whitespace and
``/* ... */`` comments are skipped between tokens and never appear inside
one.
"""

from __future__ import annotations

from kalos.errors import LexError
from kalos.source import Span
from kalos.tokens import KEYWORDS, OPERATORS, Token, TokenKind

_WHITESPACE = frozenset(" \t\r\n")


def _is_letter(ch: str) -> bool:
    return ch.isascii() and ch.isalpha()


def _is_digit(ch: str) -> bool:
    return "0" <= ch <= "9"


class Lexer:
    """Tokenizes Kalos source code."""

    def __init__(self, source: str, filename: str = "<input>") -> None:
        self.source = source
        self.filename = filename
        self.pos = 0
        self.line = 1
        self.col = 1
        self.tokens: list[Token] = []

    def lex(self) -> list[Token]:
        """Tokenize the entire source and return the token list."""
        while True:
            tok = self.next_token()
            self.tokens.append(tok)
            if tok.kind == TokenKind.EOF:
                return self.tokens

    def next_token(self) -> Token:
        """Skip trivia, then scan one token starting at the cursor."""
        self._skip_trivia()
        start = (self.pos, self.line, self.col)
        if self.pos >= len(self.source):
            span = Span(self.filename, self.line, self.col, self.line, self.col,
                        self.pos, self.pos)
            return Token(TokenKind.EOF, "", span)

        ch = self.source[self.pos]
        if _is_letter(ch):
            return self._lex_identifier(start)
        if _is_digit(ch):
            return self._lex_integer(start)
        for text, kind in OPERATORS:
            if self.source.startswith(text, self.pos):
                self._advance(len(text))
                return self._make(kind, text, start)

        raise LexError(
            f"unexpected character {ch!r}",
            self._point(*start),
            label="not valid here",
        )

    # ── Helpers ───────────────────────────────────────────────────

    def _peek(self, offset: int = 0) -> str:
        idx = self.pos + offset
        if idx < len(self.source):
            return self.source[idx]
        return '\0'

    def _advance(self, count: int = 1) -> None:
        for _ in range(count):
            ch = self.source[self.pos]
            self.pos += 1
            if ch == '\n':
                self.line += 1
                self.col = 1
            else:
                self.col += 1

    def _make(self, kind: TokenKind, value: str, start: tuple[int, int, int]) -> Token:
        offset, line, col = start
        end_col = self.col - 1 if self.col > 1 else 1
        span = Span(self.filename, line, col, self.line, end_col, offset, self.pos)
        return Token(kind, value, span)

    def _point(self, offset: int, line: int, col: int) -> Span:
        return Span(self.filename, line, col, line, col, offset, offset + 1)

    # ── Trivia ───────────────────────────────────────────────────

    def _skip_trivia(self) -> None:
        while self.pos < len(self.source):
            ch = self.source[self.pos]
            if ch in _WHITESPACE:
                self._advance()
            elif ch == '/' and self._peek(1) == '*':
                self._skip_block_comment()
            else:
                return

    def _skip_block_comment(self) -> None:
        start = self._point(self.pos, self.line, self.col)
        self._advance(2)  # /*
        end = self.source.find("*/", self.pos)
        if end < 0:
            raise LexError("unterminated comment", start, label="comment starts here")
        self._advance(end + 2 - self.pos)

    # ── Words and numbers ────────────────────────────────────────

    def _lex_identifier(self, start: tuple[int, int, int]) -> Token:
        begin = self.pos
        while self.pos < len(self.source):
            ch = self.source[self.pos]
            if not (_is_letter(ch) or _is_digit(ch) or ch == '_'):
                break
            self._advance()
        text = self.source[begin:self.pos]
        kind = KEYWORDS.get(text, TokenKind.IDENTIFIER)
        return self._make(kind, text, start)

    def _lex_integer(self, start: tuple[int, int, int]) -> Token:
        begin = self.pos
        while self.pos < len(self.source) and _is_digit(self.source[self.pos]):
            self._advance()
        return self._make(TokenKind.INTEGER_LIT, self.source[begin:self.pos], start)
