"""AST-walking pretty-printer for Kalos source code.

Produces canonical formatting for .kls files. Walks the parsed AST and
emits source text that parses back to an equal tree.

Limitation: ``/* */`` comments are discarded by the lexer and are not
preserved.
"""

from __future__ import annotations

from kalos.ast_nodes import (
    Assign,
    BinaryOp,
    Block,
    Call,
    Def,
    Expr,
    ExprStmt,
    Identifier,
    If,
    IntLiteral,
    Program,
    Return,
    Stmt,
    VarDecl,
    While,
)
from kalos.precedence import DEFAULT_OPERATORS, Assoc, OperatorTable


class KalosFormatter:
    """Format a parsed Kalos Program back to canonical source text."""

    def __init__(
        self,
        indent_width: int = 4,
        operators: OperatorTable = DEFAULT_OPERATORS,
    ) -> None:
        self.indent_width = indent_width
        self.operators = operators

    # ── Public API ─────────────────────────────────────────────

    def format(self, program: Program) -> str:
        """Format a program to canonical source text."""
        if not program.defs:
            return ""
        return "\n\n".join(self._format_def(d) for d in program.defs) + "\n"

    def format_expr(self, expr: Expr) -> str:
        return self._format_expr(expr)

    # ── Definitions ────────────────────────────────────────────

    def _format_def(self, fd: Def) -> str:
        params = [f"{p.name}: {p.type_expr.name}" for p in fd.params]
        if fd.is_variadic:
            params.append("...")
        sig = f"def {fd.name}({', '.join(params)})"
        if fd.return_type is not None:
            sig += f" -> {fd.return_type.name}"
        if fd.body is None:
            return f"{sig} extern;"
        return f"{sig} {self._format_block(fd.body)}"

    # ── Statements ─────────────────────────────────────────────

    def _format_stmt(self, stmt: Stmt) -> str:
        if isinstance(stmt, Block):
            return self._format_block(stmt)
        if isinstance(stmt, VarDecl):
            text = f"var {stmt.name}"
            if stmt.type_expr is not None:
                text += f": {stmt.type_expr.name}"
            if stmt.initializer is not None:
                text += f" = {self._format_expr(stmt.initializer)}"
            return text + ";"
        if isinstance(stmt, Assign):
            return f"{self._format_expr(stmt.target)} = {self._format_expr(stmt.value)};"
        if isinstance(stmt, Return):
            if stmt.value is None:
                return "return;"
            return f"return {self._format_expr(stmt.value)};"
        if isinstance(stmt, If):
            return self._format_if(stmt)
        if isinstance(stmt, While):
            return f"while ({self._format_expr(stmt.cond)})" + self._format_body(stmt.body)
        if isinstance(stmt, ExprStmt):
            return f"{self._format_expr(stmt.expr)};"
        raise TypeError(f"cannot format {type(stmt).__name__}")

    def _format_block(self, block: Block) -> str:
        if not block.stmts:
            return "{}"
        lines = ["{"]
        for stmt in block.stmts:
            lines.append(self._indent(self._format_stmt(stmt)))
        lines.append("}")
        return "\n".join(lines)

    def _format_if(self, stmt: If) -> str:
        text = f"if ({self._format_expr(stmt.cond)})" + self._format_body(stmt.then)
        if stmt.orelse is None:
            return text
        text += " else" if isinstance(stmt.then, Block) else "\nelse"
        if isinstance(stmt.orelse, If):
            return f"{text} {self._format_if(stmt.orelse)}"
        return text + self._format_body(stmt.orelse)

    def _format_body(self, stmt: Stmt) -> str:
        """Blocks stay on the header line; anything else goes below it."""
        if isinstance(stmt, Block):
            return " " + self._format_block(stmt)
        return "\n" + self._indent(self._format_stmt(stmt))

    # ── Expressions ────────────────────────────────────────────

    def _format_expr(self, expr: Expr) -> str:
        if isinstance(expr, IntLiteral):
            return str(expr.value)
        if isinstance(expr, Identifier):
            return expr.name
        if isinstance(expr, Call):
            return self._format_call(expr)
        if isinstance(expr, BinaryOp):
            return self._format_binary(expr)
        raise TypeError(f"cannot format {type(expr).__name__}")

    def _format_call(self, expr: Call) -> str:
        callee = self._format_expr(expr.callee)
        if not isinstance(expr.callee, (Identifier, IntLiteral)):
            callee = f"({callee})"
        args = ", ".join(self._format_expr(a) for a in expr.args)
        return f"{callee}({args})"

    def _format_binary(self, expr: BinaryOp) -> str:
        # Operands that need no parentheses are expanded in place from an
        # explicit stack, so long operator chains do not recurse.
        parts: list[str] = []
        stack: list[BinaryOp | str] = [expr]
        while stack:
            item = stack.pop()
            if isinstance(item, str):
                parts.append(item)
                continue
            stack.append(self._operand(item.right, item.op, right_side=True))
            stack.append(f" {item.op} ")
            stack.append(self._operand(item.left, item.op, right_side=False))
        return "".join(parts)

    def _operand(self, child: Expr, parent_op: str, *, right_side: bool) -> BinaryOp | str:
        if not isinstance(child, BinaryOp):
            return self._format_expr(child)
        if self._needs_parens(child, parent_op, right_side=right_side):
            return f"({self._format_binary(child)})"
        return child

    def _needs_parens(self, child: BinaryOp, parent_op: str, *, right_side: bool) -> bool:
        parent = self.operators[parent_op]
        prec = self.operators.precedence(child.op)
        if prec < parent.precedence:
            return True
        # At equal precedence only the side the operator groups toward is free.
        return prec == parent.precedence and (parent.assoc is Assoc.LEFT) == right_side

    # ── Helpers ────────────────────────────────────────────────

    def _indent(self, text: str, levels: int = 1) -> str:
        prefix = " " * (self.indent_width * levels)
        return "\n".join(prefix + line if line else line for line in text.splitlines())
