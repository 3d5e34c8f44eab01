"""AST node definitions for the Kalos language.

Nodes are frozen and hold their children in tuples. The ``span`` of a node
is excluded from equality and repr, so trees compare structurally.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union

from kalos.source import Span


def _span() -> Any:
    return field(default=None, compare=False, repr=False)


# ── Type expressions ─────────────────────────────────────────────


@dataclass(frozen=True)
class AutoType:
    span: Span | None = _span()

    name = "auto"


@dataclass(frozen=True)
class IntType:
    span: Span | None = _span()

    name = "int"


@dataclass(frozen=True)
class BoolType:
    span: Span | None = _span()

    name = "bool"


TypeExpr = Union[AutoType, IntType, BoolType]


# ── Expressions ──────────────────────────────────────────────────


@dataclass(frozen=True)
class IntLiteral:
    value: int
    span: Span | None = _span()


@dataclass(frozen=True)
class Identifier:
    name: str
    span: Span | None = _span()


@dataclass(frozen=True)
class Call:
    callee: Expr
    args: tuple[Expr, ...] = ()
    span: Span | None = _span()


@dataclass(frozen=True)
class BinaryOp:
    op: str
    left: Expr
    right: Expr
    span: Span | None = _span()


Expr = Union[IntLiteral, Identifier, Call, BinaryOp]


# ── Statements ───────────────────────────────────────────────────


@dataclass(frozen=True)
class Block:
    stmts: tuple[Stmt, ...] = ()
    span: Span | None = _span()


@dataclass(frozen=True)
class VarDecl:
    name: str
    type_expr: TypeExpr | None = None
    initializer: Expr | None = None
    span: Span | None = _span()


@dataclass(frozen=True)
class Assign:
    target: Expr
    value: Expr
    span: Span | None = _span()


@dataclass(frozen=True)
class Return:
    value: Expr | None = None
    span: Span | None = _span()


@dataclass(frozen=True)
class If:
    cond: Expr
    then: Stmt
    orelse: Stmt | None = None
    span: Span | None = _span()


@dataclass(frozen=True)
class While:
    cond: Expr
    body: Stmt
    span: Span | None = _span()


@dataclass(frozen=True)
class ExprStmt:
    expr: Expr
    span: Span | None = _span()


Stmt = Union[Block, VarDecl, Assign, Return, If, While, ExprStmt]


# ── Declarations ─────────────────────────────────────────────────


@dataclass(frozen=True)
class Param:
    name: str
    type_expr: TypeExpr
    span: Span | None = _span()


@dataclass(frozen=True)
class Def:
    """A function definition, or an ``extern`` declaration when body is None."""

    name: str
    params: tuple[Param, ...] = ()
    return_type: TypeExpr | None = None
    is_variadic: bool = False
    body: Block | None = None
    span: Span | None = _span()

    @property
    def is_extern(self) -> bool:
        return self.body is None


@dataclass(frozen=True)
class Program:
    defs: tuple[Def, ...] = ()
    span: Span | None = _span()
