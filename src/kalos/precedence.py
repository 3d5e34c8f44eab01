"""Operator table and precedence climbing for Kalos expressions.

The grammar only yields a flat ``primary (operator primary)*`` sequence.
``PrecedenceClimber`` turns that sequence into a nested tree of
``BinaryOp`` nodes according to an ``OperatorTable``.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass
from enum import Enum

from kalos.ast_nodes import BinaryOp, Expr
from kalos.source import Span
from kalos.tokens import Token


class Assoc(Enum):
    LEFT = "left"
    RIGHT = "right"


@dataclass(frozen=True)
class Operator:
    symbol: str
    precedence: int  # higher binds tighter
    assoc: Assoc = Assoc.LEFT


class OperatorTable(Mapping[str, Operator]):
    """Read-only mapping from operator spelling to its binding rules."""

    def __init__(self, operators: Iterable[Operator]) -> None:
        self._operators: dict[str, Operator] = {}
        assoc_by_level: dict[int, Assoc] = {}
        for op in operators:
            if op.symbol in self._operators:
                raise ValueError(f"operator {op.symbol!r} defined twice")
            # One associativity per level.
            if assoc_by_level.setdefault(op.precedence, op.assoc) is not op.assoc:
                raise ValueError(
                    f"operator {op.symbol!r} mixes associativity at level {op.precedence}"
                )
            self._operators[op.symbol] = op

    def __getitem__(self, symbol: str) -> Operator:
        return self._operators[symbol]

    def __iter__(self) -> Iterator[str]:
        return iter(self._operators)

    def __len__(self) -> int:
        return len(self._operators)

    def precedence(self, symbol: str) -> int:
        return self._operators[symbol].precedence

    def levels(self) -> list[list[str]]:
        """Operator spellings grouped by level, tightest first."""
        by_level: dict[int, list[str]] = {}
        for op in self._operators.values():
            by_level.setdefault(op.precedence, []).append(op.symbol)
        return [by_level[p] for p in sorted(by_level, reverse=True)]


DEFAULT_OPERATORS = OperatorTable([
    Operator("**", 4, Assoc.RIGHT),
    Operator("*", 3),
    Operator("/", 3),
    Operator("%", 3),
    Operator("+", 2),
    Operator("-", 2),
    Operator("<", 1),
    Operator("<=", 1),
    Operator("==", 1),
    Operator(">=", 1),
    Operator(">", 1),
    Operator("!=", 1),
])


class _Cursor:
    """Walks one flat operand/operator sequence."""

    def __init__(self, operands: Sequence[Expr], operators: Sequence[Token]) -> None:
        self.operands = operands
        self.operators = operators
        self.index = 0  # index of the next operator

    def operand(self) -> Expr:
        return self.operands[self.index]

    def peek(self) -> Token | None:
        if self.index < len(self.operators):
            return self.operators[self.index]
        return None


class PrecedenceClimber:
    """Rebuilds ``a op b op c ...`` into a binary tree.

    Operands of an operator are climbed with a bound one above its
    precedence, so recursion depth follows the number of levels rather than
    the length of the input. Left-associative operators fold as they are
    read; a run of right-associative operators on one level is collected
    first and folded from the right.
    """

    def __init__(self, table: OperatorTable = DEFAULT_OPERATORS) -> None:
        self.table = table

    def climb(self, operands: Sequence[Expr], operators: Sequence[Token]) -> Expr:
        if len(operands) != len(operators) + 1:
            raise ValueError(
                f"{len(operands)} operands cannot join {len(operators)} operators"
            )
        return self._climb(_Cursor(operands, operators), 0)

    def _climb(self, cursor: _Cursor, min_prec: int) -> Expr:
        left = cursor.operand()
        while True:
            tok = cursor.peek()
            if tok is None:
                break
            op = self.table[tok.value]
            if op.precedence < min_prec:
                break
            cursor.index += 1
            if op.assoc is Assoc.RIGHT:
                left = self._fold_right(cursor, left, op)
                continue
            right = self._climb(cursor, op.precedence + 1)
            left = BinaryOp(op.symbol, left, right, _join(left, right))
        return left

    def _fold_right(self, cursor: _Cursor, first: Expr, op: Operator) -> Expr:
        operands = [first, self._climb(cursor, op.precedence + 1)]
        symbols = [op.symbol]
        while True:
            tok = cursor.peek()
            if tok is None or self.table.precedence(tok.value) != op.precedence:
                break
            cursor.index += 1
            symbols.append(tok.value)
            operands.append(self._climb(cursor, op.precedence + 1))

        right = operands.pop()
        while symbols:
            left = operands.pop()
            right = BinaryOp(symbols.pop(), left, right, _join(left, right))
        return right


def _join(left: Expr, right: Expr) -> Span | None:
    if left.span is None or right.span is None:
        return None
    return left.span.to(right.span)
