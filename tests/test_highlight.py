"""Tests for the Pygments lexer."""

from __future__ import annotations

from pygments.lexers import get_lexer_by_name
from pygments.token import Comment, Keyword, Name, Number, Operator, Punctuation

from kalos.highlight import KalosLexer


def tokens(source: str) -> list[tuple[object, str]]:
    """Helper: non-whitespace (token type, text) pairs."""
    return [
        (tok, text) for tok, text in KalosLexer().get_tokens(source)
        if text.strip()
    ]


class TestKalosLexer:
    def test_declaration(self):
        assert tokens("def main() -> int extern;") == [
            (Keyword.Declaration, "def"),
            (Name.Function, "main"),
            (Punctuation, "("),
            (Punctuation, ")"),
            (Operator, "->"),
            (Keyword.Type, "int"),
            (Keyword.Declaration, "extern"),
            (Punctuation, ";"),
        ]

    def test_control_flow_and_numbers(self):
        assert tokens("while (x) return 42;")[:2] == [
            (Keyword, "while"),
            (Punctuation, "("),
        ]
        assert (Number.Integer, "42") in tokens("return 42;")

    def test_keyword_prefix_is_name(self):
        assert tokens("integer") == [(Name, "integer")]

    def test_operators(self):
        ops = [text for tok, text in tokens("a ** b <= c != d ...") if tok is Operator]
        assert ops == ["**", "<=", "!=", "..."]

    def test_comment(self):
        assert tokens("/* a\n b */ x") == [
            (Comment.Multiline, "/* a\n b */"),
            (Name, "x"),
        ]

    def test_registered_alias(self):
        assert get_lexer_by_name("kalos").name == "Kalos"
