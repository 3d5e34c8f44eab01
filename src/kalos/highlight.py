"""Pygments lexer for the Kalos language."""

from pygments.lexer import RegexLexer, words
from pygments.token import (
    Comment,
    Keyword,
    Name,
    Number,
    Operator,
    Punctuation,
    Text,
)


class KalosLexer(RegexLexer):
    """Pygments lexer for the Kalos language."""

    name = "Kalos"
    aliases = ["kalos"]
    filenames = ["*.kls"]
    mimetypes = ["text/x-kalos"]

    tokens = {
        "root": [
            # Whitespace
            (r"\s+", Text),
            # Block comments (non-nesting)
            (r"/\*[\s\S]*?\*/", Comment.Multiline),
            # Declaration keywords
            (
                words(("def", "extern", "var"), prefix=r"\b", suffix=r"\b"),
                Keyword.Declaration,
            ),
            # Control flow
            (
                words(("return", "if", "else", "while"), prefix=r"\b", suffix=r"\b"),
                Keyword,
            ),
            # Types
            (
                words(("auto", "int", "bool"), prefix=r"\b", suffix=r"\b"),
                Keyword.Type,
            ),
            # Numbers
            (r"[0-9]+", Number.Integer),
            # Function names directly before a call or signature
            (r"[A-Za-z][A-Za-z0-9_]*(?=\s*\()", Name.Function),
            (r"[A-Za-z][A-Za-z0-9_]*", Name),
            # Operators, longest first
            (r"\.\.\.|\*\*|<=|>=|==|!=|->|[*/%+\-<>=]", Operator),
            (r"[(){},;:]", Punctuation),
        ],
    }
