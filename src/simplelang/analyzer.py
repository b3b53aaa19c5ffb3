"""
Semantic analyzer for SimpleLang.

Walks the AST once, after a preliminary pass that pre-declares every
top-level function so forward references resolve, and reports:
- duplicate declarations in one scope
- undefined variables and use before initialization
- assignment to undefined variables or constants
- calls to undefined names or to non-functions
- duplicate parameters and 'return' outside a function
- unreachable statements after 'return' (warning)

Errors never stop the pass; the whole tree is visited unless the
error limit is reached.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Set

from .ast import (
    AstVisitor, Program, Statement, Expression,
    VarDecl, ExpressionStatement, Block, IfStatement, WhileStatement,
    FunctionDecl, ReturnStatement,
    Literal, Variable, BinaryOp, UnaryOp, Call, Assignment,
)
from .tokens import TokenType, SourceSpan
from .types import (
    Type, FunctionType, UNKNOWN, INT, FLOAT, BOOL, STRING,
    resolve_type_name,
)
from .symbols import SymbolTable, Symbol, SymbolKind
from .errors import (
    Diagnostic, DiagnosticCollector, Stage, semantic_error, semantic_warning,
)

logger = logging.getLogger(__name__)

LITERAL_TYPES = {
    TokenType.INT_LITERAL: INT,
    TokenType.FLOAT_LITERAL: FLOAT,
    TokenType.BOOL_LITERAL: BOOL,
    TokenType.STRING_LITERAL: STRING,
}


def function_type_of(decl: FunctionDecl) -> FunctionType:
    """Static type of a declared function."""
    return FunctionType(
        tuple(resolve_type_name(p.type_name) for p in decl.parameters),
        resolve_type_name(decl.return_type),
    )


@dataclass
class AnalysisResult:
    """Result of semantic analysis."""
    diagnostics: List[Diagnostic]
    has_errors: bool
    has_warnings: bool


class SemanticAnalyzer(AstVisitor):
    """Scope and declaration checks over a parsed program."""

    def __init__(self, max_errors: int = 20, source: Optional[str] = None):
        self.symbols = SymbolTable()
        self.diagnostics = DiagnosticCollector(max_errors)
        self._lines = source.splitlines() if source is not None else []
        self._function_depth = 0
        self._predeclared: Set[int] = set()

    @property
    def has_errors(self) -> bool:
        return self.diagnostics.has_errors

    def analyze(self, program: Program) -> AnalysisResult:
        """Analyze a complete program."""
        # First pass: top-level functions, so calls may precede declarations
        for decl in program.functions:
            self._predeclared.add(id(decl))
            self._declare_function(decl)

        self._visit_sequence(program.statements)
        logger.debug("semantic analysis: %d error(s), %d warning(s)",
                     self.diagnostics.error_count, self.diagnostics.warning_count)

        return AnalysisResult(
            diagnostics=self.diagnostics.diagnostics,
            has_errors=self.diagnostics.has_errors,
            has_warnings=self.diagnostics.has_warnings,
        )

    # =========================================================================
    # Helpers
    # =========================================================================

    def _source_line(self, span: SourceSpan) -> Optional[str]:
        line = span.start.line
        if 1 <= line <= len(self._lines):
            return self._lines[line - 1]
        return None

    def _error(self, code: str, message: str, span: SourceSpan) -> None:
        self.diagnostics.add(semantic_error(
            code, message, span, Stage.SEMANTIC_ANALYZER, self._source_line(span)
        ))

    def _warning(self, code: str, message: str, span: SourceSpan) -> None:
        self.diagnostics.add(semantic_warning(
            code, message, span, Stage.SEMANTIC_ANALYZER, self._source_line(span)
        ))

    def _declare_function(self, decl: FunctionDecl) -> None:
        symbol = Symbol(
            name=decl.name,
            kind=SymbolKind.FUNCTION,
            type=function_type_of(decl),
            span=decl.span,
            initialized=True,
        )
        if not self.symbols.insert(symbol):
            self._error("E301", f"'{decl.name}' is already declared in this scope", decl.span)

    def _visit_sequence(self, statements: List[Statement]) -> None:
        """Visit statements in order, warning once about code after 'return'."""
        returned = False
        warned = False
        for stmt in statements:
            if self.diagnostics.should_stop:
                return
            if returned and not warned:
                self._warning("W301", "unreachable code after 'return'", stmt.span)
                warned = True
            stmt.accept(self)
            if isinstance(stmt, ReturnStatement):
                returned = True

    def _static_type(self, expr: Expression) -> Type:
        """The syntactically evident type of an initializer, or UNKNOWN."""
        if isinstance(expr, Literal):
            return LITERAL_TYPES.get(expr.literal_type, UNKNOWN)
        if isinstance(expr, Variable):
            symbol = self.symbols.lookup(expr.name)
            if symbol is not None:
                return symbol.type
        if isinstance(expr, Call) and expr.callee_name is not None:
            symbol = self.symbols.lookup(expr.callee_name)
            if symbol is not None and isinstance(symbol.type, FunctionType):
                return symbol.type.return_type
        return UNKNOWN

    # =========================================================================
    # Statements
    # =========================================================================

    def visit_VarDecl(self, stmt: VarDecl) -> None:
        symbol = Symbol(
            name=stmt.name,
            kind=SymbolKind.VARIABLE,
            type=UNKNOWN,
            span=stmt.span,
            constant=stmt.constant,
        )
        if not self.symbols.insert(symbol):
            self._error("E301", f"'{stmt.name}' is already declared in this scope", stmt.span)

        if stmt.initializer is not None:
            # The name is in scope, but uninitialized, inside its own initializer
            stmt.initializer.accept(self)
            symbol.type = self._static_type(stmt.initializer)
            # Initialized even if the initializer failed, so later reads don't repeat the error
            symbol.initialized = True

    def visit_ExpressionStatement(self, stmt: ExpressionStatement) -> None:
        stmt.expression.accept(self)

    def visit_Block(self, block: Block) -> None:
        self.symbols.push_scope("block")
        try:
            self._visit_sequence(block.statements)
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
        # Declared before the body so the function can call itself
        if id(decl) not in self._predeclared:
            self._declare_function(decl)

        self.symbols.push_scope(f"function {decl.name}")
        self._function_depth += 1
        try:
            for param in decl.parameters:
                symbol = Symbol(
                    name=param.name,
                    kind=SymbolKind.PARAMETER,
                    type=resolve_type_name(param.type_name),
                    span=param.span,
                    initialized=True,
                )
                if not self.symbols.insert(symbol):
                    self._error("E308", f"duplicate parameter '{param.name}'", param.span)

            self._visit_sequence(decl.body.statements)
        finally:
            self._function_depth -= 1
            self.symbols.pop_scope()

    def visit_ReturnStatement(self, stmt: ReturnStatement) -> None:
        if self._function_depth == 0:
            self._error("E309", "'return' outside of a function", stmt.span)
        if stmt.value is not None:
            stmt.value.accept(self)

    # =========================================================================
    # Expressions
    # =========================================================================

    def visit_Literal(self, expr: Literal) -> None:
        pass

    def visit_Variable(self, expr: Variable) -> None:
        symbol = self.symbols.lookup(expr.name)
        if symbol is None:
            self._error("E302", f"undefined variable '{expr.name}'", expr.span)
        elif not symbol.initialized:
            self._error("E303", f"variable '{expr.name}' used before initialization", expr.span)

    def visit_BinaryOp(self, expr: BinaryOp) -> None:
        expr.left.accept(self)
        expr.right.accept(self)

    def visit_UnaryOp(self, expr: UnaryOp) -> None:
        expr.operand.accept(self)

    def visit_Assignment(self, expr: Assignment) -> None:
        expr.value.accept(self)

        symbol = self.symbols.lookup(expr.name)
        if symbol is None:
            self._error("E304", f"cannot assign to undefined variable '{expr.name}'", expr.span)
            return
        if symbol.constant:
            self._error("E305", f"cannot assign to constant '{expr.name}'", expr.span)
            return

        symbol.initialized = True
        if symbol.type == UNKNOWN:
            symbol.type = self._static_type(expr.value)

    def visit_Call(self, expr: Call) -> None:
        name = expr.callee_name
        if name is None:
            expr.callee.accept(self)
        else:
            symbol = self.symbols.lookup(name)
            if symbol is None:
                self._error("E306", f"undefined function '{name}'", expr.callee.span)
            elif not symbol.is_callable and symbol.type != UNKNOWN:
                self._error("E307", f"'{name}' is not a function", expr.callee.span)
            elif not symbol.initialized:
                self._error("E303", f"variable '{name}' used before initialization", expr.callee.span)

        for arg in expr.arguments:
            arg.accept(self)


def analyze(program: Program, max_errors: int = 20, source: Optional[str] = None) -> AnalysisResult:
    """
    Convenience function to analyze a program.

    Args:
        program: The parsed program AST
        max_errors: Maximum errors before stopping (default 20)
        source: Optional source text for error excerpts

    Returns:
        AnalysisResult with diagnostics
    """
    analyzer = SemanticAnalyzer(max_errors=max_errors, source=source)
    return analyzer.analyze(program)
