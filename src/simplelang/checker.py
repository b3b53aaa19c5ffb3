"""
Type checker for SimpleLang.

Infers a static type for every expression and reports type mismatches:
- operator operands (arithmetic, comparison, logical)
- assignments against the variable's inferred type
- return values against the declared return type
- call arity and argument types

A variable's type comes from its initializer. Unknown and error types
are compatible with everything, so one mistake is reported once and the
rest of the tree is still checked.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Set

from .ast import (
    AstVisitor, Program, Statement,
    VarDecl, ExpressionStatement, Block, IfStatement, WhileStatement,
    FunctionDecl, ReturnStatement,
    Literal, Variable, BinaryOp, UnaryOp, Call, Assignment,
)
from .analyzer import LITERAL_TYPES, function_type_of
from .tokens import TokenType, SourceSpan, operator_symbol
from .types import (
    Type, FunctionType, ERROR, UNKNOWN, INT, FLOAT, BOOL, STRING, VOID,
    resolve_type_name, is_numeric, is_indeterminate, is_compatible, common_type,
)
from .symbols import SymbolTable, Symbol, SymbolKind
from .errors import Diagnostic, DiagnosticCollector, Stage, semantic_error

logger = logging.getLogger(__name__)

ARITHMETIC_OPS = {TokenType.PLUS, TokenType.MINUS, TokenType.STAR, TokenType.SLASH, TokenType.PERCENT}
ORDERING_OPS = {TokenType.LT, TokenType.GT, TokenType.LE, TokenType.GE}
EQUALITY_OPS = {TokenType.EQ, TokenType.NE}
LOGICAL_OPS = {TokenType.AND, TokenType.OR}


@dataclass
class CheckResult:
    """Result of type checking a program."""
    diagnostics: List[Diagnostic]
    has_errors: bool
    has_warnings: bool


@dataclass
class _FunctionContext:
    name: str
    return_type: Optional[Type]  # None when the declaration omits it


class TypeChecker(AstVisitor):
    """
    Type checker for SimpleLang.

    Statement visits return None; expression visits return the inferred Type.
    """

    def __init__(self, max_errors: int = 20, source: Optional[str] = None):
        self.symbols = SymbolTable()
        self.diagnostics = DiagnosticCollector(max_errors)
        self._lines = source.splitlines() if source is not None else []
        self._functions: List[_FunctionContext] = []
        self._predeclared: Set[int] = set()

    @property
    def has_errors(self) -> bool:
        return self.diagnostics.has_errors

    def check(self, program: Program) -> CheckResult:
        """Type check a complete program."""
        for decl in program.functions:
            self._predeclared.add(id(decl))
            self._declare_function(decl)

        self._check_sequence(program.statements)
        logger.debug("type check: %d error(s)", self.diagnostics.error_count)

        return CheckResult(
            diagnostics=self.diagnostics.diagnostics,
            has_errors=self.diagnostics.has_errors,
            has_warnings=self.diagnostics.has_warnings,
        )

    # =========================================================================
    # Helpers
    # =========================================================================

    def _error(self, code: str, message: str, span: SourceSpan) -> None:
        """Record an error diagnostic."""
        line = span.start.line
        source_line = self._lines[line - 1] if 1 <= line <= len(self._lines) else None
        self.diagnostics.add(semantic_error(code, message, span, Stage.TYPE_CHECKER, source_line))

    def _declare_function(self, decl: FunctionDecl) -> None:
        # Duplicates are the analyzer's to report
        self.symbols.insert(Symbol(
            name=decl.name,
            kind=SymbolKind.FUNCTION,
            type=function_type_of(decl),
            span=decl.span,
            initialized=True,
        ))

    def _check_sequence(self, statements: List[Statement]) -> None:
        for stmt in statements:
            if self.diagnostics.should_stop:
                return
            stmt.accept(self)

    # =========================================================================
    # Statement Checking
    # =========================================================================

    def visit_VarDecl(self, stmt: VarDecl) -> None:
        var_type = UNKNOWN
        if stmt.initializer is not None:
            var_type = stmt.initializer.accept(self)
        self.symbols.insert(Symbol(
            name=stmt.name,
            kind=SymbolKind.VARIABLE,
            type=var_type,
            span=stmt.span,
            initialized=stmt.initializer is not None,
            constant=stmt.constant,
        ))

    def visit_ExpressionStatement(self, stmt: ExpressionStatement) -> None:
        stmt.expression.accept(self)

    def visit_Block(self, block: Block) -> None:
        self.symbols.push_scope("block")
        try:
            self._check_sequence(block.statements)
        finally:
            self.symbols.pop_scope()

    def visit_IfStatement(self, stmt: IfStatement) -> None:
        stmt.condition.accept(self)
        stmt.then_branch.accept(self)
        if stmt.else_branch is not None:
            stmt.else_branch.accept(self)

    def visit_WhileStatement(self, stmt: WhileStatement) -> None:
        stmt.condition.accept(self)
        stmt.body.accept(self)

    def visit_FunctionDecl(self, decl: FunctionDecl) -> None:
        if id(decl) not in self._predeclared:
            self._declare_function(decl)

        self.symbols.push_scope(f"function {decl.name}")
        return_type = resolve_type_name(decl.return_type) if decl.return_type else None
        self._functions.append(_FunctionContext(decl.name, return_type))
        try:
            for param in decl.parameters:
                self.symbols.insert(Symbol(
                    name=param.name,
                    kind=SymbolKind.PARAMETER,
                    type=resolve_type_name(param.type_name),
                    span=param.span,
                    initialized=True,
                ))
            self._check_sequence(decl.body.statements)
        finally:
            self._functions.pop()
            self.symbols.pop_scope()

    def visit_ReturnStatement(self, stmt: ReturnStatement) -> None:
        value_type = stmt.value.accept(self) if stmt.value is not None else None
        if not self._functions:
            return

        func = self._functions[-1]
        declared = func.return_type
        if declared is None:
            return

        if declared == VOID:
            if stmt.value is not None:
                self._error("E206", f"void function '{func.name}' cannot return a value", stmt.span)
            return

        if value_type is None:
            self._error(
                "E205", f"function '{func.name}' must return a value of type '{declared}'", stmt.span
            )
        elif not is_compatible(declared, value_type):
            self._error(
                "E204",
                f"type mismatch: function '{func.name}' returns '{declared}', got '{value_type}'",
                stmt.value.span,
            )

    # =========================================================================
    # Expression Type Inference
    # =========================================================================

    def visit_Literal(self, expr: Literal) -> Type:
        return LITERAL_TYPES.get(expr.literal_type, UNKNOWN)

    def visit_Variable(self, expr: Variable) -> Type:
        symbol = self.symbols.lookup(expr.name)
        if symbol is None:
            return UNKNOWN
        return symbol.type

    def visit_BinaryOp(self, expr: BinaryOp) -> Type:
        """Check a binary operation."""
        left = expr.left.accept(self)
        right = expr.right.accept(self)
        op = expr.operator

        # String concatenation
        if op == TokenType.PLUS and STRING in (left, right):
            return STRING

        if is_indeterminate(left) or is_indeterminate(right):
            if op in ORDERING_OPS or op in EQUALITY_OPS or op in LOGICAL_OPS:
                return BOOL
            return UNKNOWN

        if op in ARITHMETIC_OPS:
            if op == TokenType.PERCENT:
                if left == INT and right == INT:
                    return INT
            elif is_numeric(left) and is_numeric(right):
                # Division always produces a float, as at runtime
                if op == TokenType.SLASH:
                    return FLOAT
                return common_type(left, right)

        elif op in ORDERING_OPS:
            if (is_numeric(left) and is_numeric(right)) or (left == STRING and right == STRING):
                return BOOL

        elif op in EQUALITY_OPS:
            if (is_numeric(left) and is_numeric(right)) or (left == right and left in (STRING, BOOL)):
                return BOOL

        elif op in LOGICAL_OPS:
            if left == BOOL and right == BOOL:
                return BOOL

        self._error(
            "E201",
            f"type mismatch: operator '{operator_symbol(op)}' cannot be applied to "
            f"'{left}' and '{right}'",
            expr.span,
        )
        return ERROR

    def visit_UnaryOp(self, expr: UnaryOp) -> Type:
        """Check a unary operation."""
        operand = expr.operand.accept(self)
        if is_indeterminate(operand):
            return BOOL if expr.operator == TokenType.NOT else operand

        if expr.operator == TokenType.NOT:
            if operand == BOOL:
                return BOOL
        elif is_numeric(operand):
            return operand

        self._error(
            "E202",
            f"type mismatch: operator '{operator_symbol(expr.operator)}' cannot be applied to '{operand}'",
            expr.span,
        )
        return ERROR

    def visit_Assignment(self, expr: Assignment) -> Type:
        value_type = expr.value.accept(self)
        symbol = self.symbols.lookup(expr.name)
        if symbol is None:
            return value_type

        # The first assignment fixes the type of an uninitialized declaration
        if is_indeterminate(symbol.type):
            symbol.type = value_type
            return value_type

        if not is_compatible(symbol.type, value_type):
            self._error(
                "E203",
                f"type mismatch: cannot assign '{value_type}' to '{expr.name}' of type '{symbol.type}'",
                expr.span,
            )
            return ERROR
        return symbol.type

    def visit_Call(self, expr: Call) -> Type:
        """Check a call against the callee's signature."""
        callee_type = expr.callee.accept(self)
        arg_types = [arg.accept(self) for arg in expr.arguments]
        name = expr.callee_name or "expression"

        if is_indeterminate(callee_type):
            return UNKNOWN
        if not isinstance(callee_type, FunctionType):
            self._error("E209", f"'{name}' of type '{callee_type}' is not callable", expr.callee.span)
            return ERROR
        if callee_type.param_types is None:
            return callee_type.return_type

        expected = callee_type.param_types
        if len(arg_types) != len(expected):
            self._error(
                "E207",
                f"'{name}' expects {len(expected)} argument(s), got {len(arg_types)}",
                expr.span,
            )
            return callee_type.return_type

        for index, (param_type, arg_type, arg) in enumerate(zip(expected, arg_types, expr.arguments), 1):
            if not is_compatible(param_type, arg_type):
                self._error(
                    "E208",
                    f"type mismatch: argument {index} of '{name}' expects '{param_type}', got '{arg_type}'",
                    arg.span,
                )
        return callee_type.return_type


def check(program: Program, max_errors: int = 20, source: Optional[str] = None) -> CheckResult:
    """
    Convenience function to type check a program.

    Args:
        program: The parsed program AST
        max_errors: Maximum errors before stopping (default 20)
        source: Optional source text for error excerpts

    Returns:
        CheckResult with diagnostics
    """
    checker = TypeChecker(max_errors=max_errors, source=source)
    return checker.check(program)
