"""Tests for the Kalos lexer."""

from __future__ import annotations

import pytest

from kalos.errors import LexError
from kalos.lexer import Lexer
from kalos.source import SourceFile
from kalos.tokens import TokenKind


def lex(source: str) -> list[tuple[TokenKind, str]]:
    """Helper: lex source and return (kind, value) pairs, excluding EOF."""
    tokens = Lexer(source).lex()
    return [(t.kind, t.value) for t in tokens if t.kind != TokenKind.EOF]


def kinds(source: str) -> list[TokenKind]:
    """Helper: lex source and return just the token kinds, excluding EOF."""
    tokens = Lexer(source).lex()
    return [t.kind for t in tokens if t.kind != TokenKind.EOF]


class TestLexerBasic:
    def test_empty_source(self):
        tokens = Lexer("").lex()
        assert len(tokens) == 1
        assert tokens[0].kind == TokenKind.EOF

    def test_whitespace_only(self):
        assert kinds(" \t\r\n  \n") == []

    def test_identifier(self):
        assert lex("hello") == [(TokenKind.IDENTIFIER, "hello")]

    def test_identifier_with_digits_and_underscores(self):
        assert lex("my_var_123") == [(TokenKind.IDENTIFIER, "my_var_123")]

    def test_keywords(self):
        for kw in ["def", "extern", "var", "return", "if", "else",
                   "while", "auto", "int", "bool"]:
            result = lex(kw)
            assert len(result) == 1, f"keyword {kw} should lex to one token"
            assert result[0][0] != TokenKind.IDENTIFIER
            assert result[0][1] == kw

    def test_keyword_prefix_is_identifier(self):
        assert lex("define") == [(TokenKind.IDENTIFIER, "define")]
        assert lex("integer") == [(TokenKind.IDENTIFIER, "integer")]
        assert lex("if_") == [(TokenKind.IDENTIFIER, "if_")]

    def test_keywords_are_case_sensitive(self):
        assert kinds("Def INT") == [TokenKind.IDENTIFIER, TokenKind.IDENTIFIER]


class TestLexerLiterals:
    def test_integer(self):
        assert lex("42") == [(TokenKind.INTEGER_LIT, "42")]

    def test_leading_zeros(self):
        assert lex("007") == [(TokenKind.INTEGER_LIT, "007")]

    def test_integer_then_identifier(self):
        assert lex("12ab") == [
            (TokenKind.INTEGER_LIT, "12"),
            (TokenKind.IDENTIFIER, "ab"),
        ]

    def test_no_sign_in_literal(self):
        assert lex("-5") == [(TokenKind.MINUS, "-"), (TokenKind.INTEGER_LIT, "5")]


class TestLexerOperators:
    def test_power_before_star(self):
        assert kinds("** *") == [TokenKind.POWER, TokenKind.STAR]

    def test_triple_star(self):
        assert kinds("***") == [TokenKind.POWER, TokenKind.STAR]

    def test_comparisons(self):
        assert kinds("<= >= == != < >") == [
            TokenKind.LESS_EQUAL, TokenKind.GREATER_EQUAL,
            TokenKind.EQUAL, TokenKind.NOT_EQUAL,
            TokenKind.LESS, TokenKind.GREATER,
        ]

    def test_assign_vs_equal(self):
        assert kinds("= ==") == [TokenKind.ASSIGN, TokenKind.EQUAL]
        assert kinds("===") == [TokenKind.EQUAL, TokenKind.ASSIGN]

    def test_arrow_before_minus(self):
        assert kinds("->-") == [TokenKind.ARROW, TokenKind.MINUS]

    def test_ellipsis(self):
        assert kinds("...") == [TokenKind.ELLIPSIS]

    def test_punctuation(self):
        assert kinds("(){},;:") == [
            TokenKind.LPAREN, TokenKind.RPAREN,
            TokenKind.LBRACE, TokenKind.RBRACE,
            TokenKind.COMMA, TokenKind.SEMICOLON, TokenKind.COLON,
        ]

    def test_arithmetic(self):
        assert kinds("a+b-c*d/e%f") == [
            TokenKind.IDENTIFIER, TokenKind.PLUS,
            TokenKind.IDENTIFIER, TokenKind.MINUS,
            TokenKind.IDENTIFIER, TokenKind.STAR,
            TokenKind.IDENTIFIER, TokenKind.SLASH,
            TokenKind.IDENTIFIER, TokenKind.PERCENT,
            TokenKind.IDENTIFIER,
        ]


class TestLexerComments:
    def test_comment_skipped(self):
        assert lex("a /* hidden */ b") == [
            (TokenKind.IDENTIFIER, "a"),
            (TokenKind.IDENTIFIER, "b"),
        ]

    def test_multiline_comment(self):
        tokens = Lexer("/* one\ntwo */ x").lex()
        assert tokens[0].kind == TokenKind.IDENTIFIER
        assert tokens[0].span.start_line == 2

    def test_comments_do_not_nest(self):
        # The first */ closes the comment, leaving "c */" behind.
        assert kinds("/* a /* b */ c */") == [
            TokenKind.IDENTIFIER, TokenKind.STAR, TokenKind.SLASH,
        ]

    def test_comment_separates_tokens(self):
        assert lex("ab/**/cd") == [
            (TokenKind.IDENTIFIER, "ab"),
            (TokenKind.IDENTIFIER, "cd"),
        ]

    def test_slash_alone_is_division(self):
        assert kinds("a / b") == [
            TokenKind.IDENTIFIER, TokenKind.SLASH, TokenKind.IDENTIFIER,
        ]

    def test_unterminated_comment(self):
        with pytest.raises(LexError) as exc:
            Lexer("x /* never closed").lex()
        assert exc.value.position.offset == 2
        assert exc.value.position.column == 3
        assert "unterminated comment" in exc.value.message


class TestLexerSpans:
    def test_offsets_lines_columns(self):
        tokens = Lexer("def f\n  (x)").lex()
        lparen = tokens[2]
        assert lparen.kind == TokenKind.LPAREN
        assert lparen.span.start_offset == 8
        assert lparen.span.start_line == 2
        assert lparen.span.start_col == 3

    def test_token_end(self):
        tokens = Lexer("return").lex()
        span = tokens[0].span
        assert (span.start_col, span.end_col) == (1, 6)
        assert (span.start_offset, span.end_offset) == (0, 6)

    def test_eof_position(self):
        tokens = Lexer("a\n").lex()
        eof = tokens[-1]
        assert eof.kind == TokenKind.EOF
        assert eof.span.start_line == 2
        assert eof.span.start_col == 1
        assert eof.span.start_offset == 2

    def test_filename_in_span(self):
        tokens = Lexer("x", "main.kls").lex()
        assert tokens[0].span.file == "main.kls"

    def test_span_text_recovers_token(self, tmp_path):
        path = tmp_path / "main.kls"
        path.write_text("def main() /* c */\n  -> int extern;\n")
        source = SourceFile(path)
        tokens = Lexer(source.content, str(path)).lex()
        assert [source.span_text(t.span) for t in tokens[:-1]] == [
            t.value for t in tokens[:-1]
        ]
        assert source.span_text(tokens[-1].span) == ""


class TestLexerErrors:
    @pytest.mark.parametrize("source", ["@", "#", "!", "x . y", "$x", "_x"])
    def test_unrecognized_character(self, source):
        with pytest.raises(LexError):
            Lexer(source).lex()

    def test_error_position(self):
        with pytest.raises(LexError) as exc:
            Lexer("var x = 1;\nx @ 2;").lex()
        pos = exc.value.position
        assert (pos.line, pos.column, pos.offset) == (2, 3, 13)
        assert exc.value.expected == frozenset()

    def test_non_ascii_letter_rejected(self):
        with pytest.raises(LexError):
            Lexer("café").lex()

    def test_error_code(self):
        with pytest.raises(LexError) as exc:
            Lexer("@").lex()
        assert exc.value.diagnostics[0].code == "E100"
