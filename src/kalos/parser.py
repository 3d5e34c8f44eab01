"""Parser for the Kalos language.

Recursive descent with one method per grammar production. Alternatives are
tried in declaration order by looking at the current token; the first one
that matches commits. Every failed token test is reported to a
``FurthestFailure`` tracker so a failed parse points at the deepest token
the grammar could not accept, together with everything it would have
accepted there.

Expressions are read as the flat sequence ``primary (operator primary)*``
and handed to a ``PrecedenceClimber`` to build the tree.
"""

from __future__ import annotations

from typing import NoReturn

from kalos.ast_nodes import (
    Assign,
    AutoType,
    Block,
    BoolType,
    Call,
    Def,
    Expr,
    ExprStmt,
    Identifier,
    If,
    IntLiteral,
    IntType,
    Param,
    Program,
    Return,
    Stmt,
    TypeExpr,
    VarDecl,
    While,
)
from kalos.errors import FurthestFailure, ParseSyntaxError, describe_expected
from kalos.lexer import Lexer
from kalos.precedence import DEFAULT_OPERATORS, OperatorTable, PrecedenceClimber
from kalos.tokens import BINARY_OPERATORS, Token, TokenKind

_TYPE_NODES: tuple[tuple[TokenKind, type], ...] = (
    (TokenKind.AUTO, AutoType),
    (TokenKind.INT, IntType),
    (TokenKind.BOOL, BoolType),
)

_OPERATOR_LABEL = "operator"


class Parser:
    """Parses a list of tokens into a Kalos ``Program``."""

    def __init__(
        self,
        tokens: list[Token],
        filename: str = "<input>",
        operators: OperatorTable = DEFAULT_OPERATORS,
    ) -> None:
        self.tokens = tokens
        self.pos = 0
        self.filename = filename
        self.operators = operators
        self.climber = PrecedenceClimber(operators)
        self.failure = FurthestFailure()

    # ── Token access ─────────────────────────────────────────────

    def _current(self) -> Token:
        return self.tokens[self.pos]

    def _advance(self) -> Token:
        tok = self._current()
        if self.pos < len(self.tokens) - 1:
            self.pos += 1
        return tok

    def _check(self, kind: TokenKind) -> bool:
        """Test the current token without consuming it; record a miss."""
        if self._current().kind == kind:
            return True
        self.failure.record(self.pos, kind.label)
        return False

    def _accept(self, kind: TokenKind) -> Token | None:
        if self._check(kind):
            return self._advance()
        return None

    def _expect(self, kind: TokenKind) -> Token:
        tok = self._accept(kind)
        if tok is None:
            self._fail()
        return tok

    def _check_operator(self) -> bool:
        tok = self._current()
        if tok.kind in BINARY_OPERATORS and tok.value in self.operators:
            return True
        self.failure.record(self.pos, _OPERATOR_LABEL)
        return False

    def _fail(self) -> NoReturn:
        raise _ParseFailure

    def _syntax_error(self) -> ParseSyntaxError:
        tok = self.tokens[min(self.failure.index, len(self.tokens) - 1)]
        expected = frozenset(self.failure.expected)
        found = _describe_token(tok)
        return ParseSyntaxError(
            f"expected {describe_expected(expected)}, found {found}",
            tok.span,
            expected,
            label=f"unexpected {found}",
        )

    def _too_deep(self) -> ParseSyntaxError:
        return ParseSyntaxError(
            "expression nested too deeply",
            self._current().span,
            label="nesting limit reached here",
        )

    # ── Entry points ─────────────────────────────────────────────

    def parse(self) -> Program:
        """Parse the entire token stream into a Program."""
        try:
            return self._parse_program()
        except _ParseFailure:
            raise self._syntax_error() from None
        except RecursionError:
            raise self._too_deep() from None

    def parse_expression(self) -> Expr:
        """Parse a token stream holding exactly one expression."""
        try:
            expr = self._parse_expr()
            self._expect(TokenKind.EOF)
        except _ParseFailure:
            raise self._syntax_error() from None
        except RecursionError:
            raise self._too_deep() from None
        return expr

    # ── Declarations ─────────────────────────────────────────────

    def _parse_program(self) -> Program:
        start = self._current().span
        defs: list[Def] = []
        while not self._check(TokenKind.EOF):
            defs.append(self._parse_def())
        return Program(tuple(defs), start.to(self._current().span))

    def _parse_def(self) -> Def:
        """def name signature ("extern" ";" | compound_stmt)"""
        start = self._expect(TokenKind.DEF).span
        name_tok = self._expect(TokenKind.IDENTIFIER)
        params, variadic, return_type = self._parse_signature()

        body: Block | None = None
        if self._accept(TokenKind.EXTERN):
            end = self._expect(TokenKind.SEMICOLON).span
        else:
            body = self._parse_compound()
            end = body.span
        return Def(
            name_tok.value, params, return_type, variadic, body,
            start.to(end),
        )

    def _parse_signature(self) -> tuple[tuple[Param, ...], bool, TypeExpr | None]:
        self._expect(TokenKind.LPAREN)
        params: list[Param] = []
        variadic = False
        if self._accept(TokenKind.ELLIPSIS):
            variadic = True
        elif self._check(TokenKind.IDENTIFIER):
            params.append(self._parse_param())
            while self._accept(TokenKind.COMMA):
                if self._accept(TokenKind.ELLIPSIS):
                    variadic = True
                    break
                params.append(self._parse_param())
        self._expect(TokenKind.RPAREN)

        return_type = None
        if self._accept(TokenKind.ARROW):
            return_type = self._parse_type_expr()
        return tuple(params), variadic, return_type

    def _parse_param(self) -> Param:
        name_tok = self._expect(TokenKind.IDENTIFIER)
        self._expect(TokenKind.COLON)
        type_expr = self._parse_type_expr()
        return Param(name_tok.value, type_expr, name_tok.span.to(type_expr.span))

    def _parse_type_expr(self) -> TypeExpr:
        for kind, node in _TYPE_NODES:
            tok = self._accept(kind)
            if tok is not None:
                return node(tok.span)
        self._fail()

    # ── Statements ───────────────────────────────────────────────

    def _parse_stmt(self) -> Stmt:
        if self._check(TokenKind.LBRACE):
            return self._parse_compound()
        if self._check(TokenKind.VAR):
            return self._parse_var_decl()
        if self._check(TokenKind.RETURN):
            return self._parse_return()
        if self._check(TokenKind.IF):
            return self._parse_if()
        if self._check(TokenKind.WHILE):
            return self._parse_while()
        return self._parse_assignment_or_expr_stmt()

    def _parse_compound(self) -> Block:
        start = self._expect(TokenKind.LBRACE).span
        stmts: list[Stmt] = []
        while not self._check(TokenKind.RBRACE):
            stmts.append(self._parse_stmt())
        end = self._advance().span
        return Block(tuple(stmts), start.to(end))

    def _parse_var_decl(self) -> VarDecl:
        start = self._advance().span  # 'var'
        name_tok = self._expect(TokenKind.IDENTIFIER)
        type_expr = None
        if self._accept(TokenKind.COLON):
            type_expr = self._parse_type_expr()
        initializer = None
        if self._accept(TokenKind.ASSIGN):
            initializer = self._parse_expr()
        end = self._expect(TokenKind.SEMICOLON).span
        return VarDecl(name_tok.value, type_expr, initializer, start.to(end))

    def _parse_return(self) -> Return:
        start = self._advance().span  # 'return'
        end = self._accept(TokenKind.SEMICOLON)
        if end is not None:
            return Return(None, start.to(end.span))
        value = self._parse_expr()
        end = self._expect(TokenKind.SEMICOLON)
        return Return(value, start.to(end.span))

    def _parse_if(self) -> If:
        start = self._advance().span  # 'if'
        cond = self._parse_condition()
        then = self._parse_stmt()
        orelse = None
        if self._accept(TokenKind.ELSE):
            orelse = self._parse_stmt()
        end = (orelse or then).span
        return If(cond, then, orelse, start.to(end))

    def _parse_while(self) -> While:
        start = self._advance().span  # 'while'
        cond = self._parse_condition()
        body = self._parse_stmt()
        return While(cond, body, start.to(body.span))

    def _parse_condition(self) -> Expr:
        self._expect(TokenKind.LPAREN)
        cond = self._parse_expr()
        self._expect(TokenKind.RPAREN)
        return cond

    def _parse_assignment_or_expr_stmt(self) -> Stmt:
        # assignment_stmt and expr_stmt both open with an expression; read it
        # once and let the next token pick the alternative.
        target = self._parse_expr()
        if self._accept(TokenKind.ASSIGN):
            value = self._parse_expr()
            end = self._expect(TokenKind.SEMICOLON).span
            return Assign(target, value, target.span.to(end))
        end = self._expect(TokenKind.SEMICOLON).span
        return ExprStmt(target, target.span.to(end))

    # ── Expressions ──────────────────────────────────────────────

    def _parse_expr(self) -> Expr:
        operands = [self._parse_primary()]
        operators: list[Token] = []
        while self._check_operator():
            operators.append(self._advance())
            operands.append(self._parse_primary())
        return self.climber.climb(operands, operators)

    def _parse_primary(self) -> Expr:
        atom = self._parse_atom()
        if self._check(TokenKind.LPAREN):
            return self._parse_call(atom)
        return atom

    def _parse_call(self, callee: Expr) -> Call:
        self._advance()  # (
        args: list[Expr] = []
        if not self._check(TokenKind.RPAREN):
            args.append(self._parse_expr())
            while self._accept(TokenKind.COMMA):
                args.append(self._parse_expr())
        end = self._expect(TokenKind.RPAREN).span
        return Call(callee, tuple(args), callee.span.to(end))

    def _parse_atom(self) -> Expr:
        tok = self._accept(TokenKind.INTEGER_LIT)
        if tok is not None:
            return IntLiteral(int(tok.value), tok.span)
        tok = self._accept(TokenKind.IDENTIFIER)
        if tok is not None:
            return Identifier(tok.value, tok.span)
        if self._accept(TokenKind.LPAREN):
            expr = self._parse_expr()
            self._expect(TokenKind.RPAREN)
            return expr
        self._fail()


def _describe_token(tok: Token) -> str:
    if tok.kind == TokenKind.IDENTIFIER:
        return f'identifier "{tok.value}"'
    if tok.kind == TokenKind.INTEGER_LIT:
        return f"integer {tok.value}"
    return tok.kind.label


class _ParseFailure(Exception):
    """Internal signal that a required token did not match."""


def parse(
    source: str,
    filename: str = "<input>",
    operators: OperatorTable = DEFAULT_OPERATORS,
) -> Program:
    """Lex and parse a whole Kalos program.

    Raises ``LexError`` or ``ParseSyntaxError`` (both ``ParseError``).
    """
    tokens = Lexer(source, filename).lex()
    return Parser(tokens, filename, operators).parse()


def parse_expr(
    source: str,
    filename: str = "<input>",
    operators: OperatorTable = DEFAULT_OPERATORS,
) -> Expr:
    """Lex and parse source consisting of a single expression."""
    tokens = Lexer(source, filename).lex()
    return Parser(tokens, filename, operators).parse_expression()
