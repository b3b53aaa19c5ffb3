"""
Tree-walking interpreter for SimpleLang.

Statements produce a Completion: NORMAL, or RETURNING with a value.
Statement sequences stop on RETURNING and hand it outwards until the
enclosing function call consumes it, so a return never leaks into the
caller's statement sequencing.

Runtime failures raise EvaluationError inside expression evaluation.
The failing expression records the diagnostic and yields null, and
evaluation of the enclosing expression and statement continues.
"""

import logging
import sys
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, TextIO

from .values import (
    Value, FunctionValue, EvaluationError,
    int_val, float_val, bool_val, string_val, null_val, function_val, format_value,
)
from .context import Environment, ExecutionContext
from .builtins import BuiltinFunction, get_builtin_registry

from ..ast import (
    AstVisitor, Program, Statement, Expression,
    VarDecl, ExpressionStatement, Block, IfStatement, WhileStatement,
    FunctionDecl, ReturnStatement,
    Literal, Variable, BinaryOp, UnaryOp, Call, Assignment,
)
from ..types import INT, FLOAT, STRING
from ..tokens import TokenType, SourceSpan, operator_symbol
from ..errors import Diagnostic, DiagnosticCollector, ErrorSeverity, Stage
from ..lexer import Lexer
from ..parser import Parser
from ..analyzer import SemanticAnalyzer
from ..checker import TypeChecker

logger = logging.getLogger(__name__)

# Python recursion limit while a program runs
RECURSION_LIMIT = 10000


class Flow(Enum):
    NORMAL = "normal"
    RETURNING = "returning"


@dataclass(frozen=True)
class Completion:
    """How a statement finished."""
    flow: Flow
    value: Optional[Value] = None

    @property
    def returning(self) -> bool:
        return self.flow == Flow.RETURNING


NORMAL = Completion(Flow.NORMAL)


@dataclass
class ExecutionResult:
    """Result of compiling and/or running a program."""
    success: bool
    stage: Optional[Stage] = None   # the stage that failed, if any
    diagnostics: List[Diagnostic] = field(default_factory=list)
    program: Optional[Program] = None

    @property
    def errors(self) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.severity == ErrorSeverity.ERROR]

    @property
    def warnings(self) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.severity == ErrorSeverity.WARNING]


class Interpreter(AstVisitor):
    """
    Tree-walking interpreter.

    Statement visits return a Completion; expression visits return a Value.

    Usage:
        out = io.StringIO()
        result = Interpreter(stdout=out).interpret(program)
    """

    def __init__(self, stdout: Optional[TextIO] = None, stdin: Optional[TextIO] = None,
                 max_errors: int = 20, source: str = ""):
        self.ctx = ExecutionContext(
            stdout=stdout,
            stdin=stdin,
            diagnostics=DiagnosticCollector(max_errors),
            source_lines=source.splitlines(),
        )
        get_builtin_registry().install(self.ctx.globals)

    @property
    def diagnostics(self) -> DiagnosticCollector:
        return self.ctx.diagnostics

    @property
    def has_errors(self) -> bool:
        return self.ctx.has_errors

    def interpret(self, program: Program) -> ExecutionResult:
        """Execute a program's top-level statements in the global environment."""
        # Each SimpleLang call nests several Python frames
        saved_limit = sys.getrecursionlimit()
        sys.setrecursionlimit(max(saved_limit, RECURSION_LIMIT))
        try:
            for stmt in program.statements:
                if self._halted:
                    break
                try:
                    completion = self._execute(stmt)
                except RecursionError:
                    self.ctx.add_error("maximum recursion depth exceeded", stmt.span, "E409")
                    break
                if completion.returning:
                    # A top-level return ends the program
                    break
        finally:
            sys.setrecursionlimit(saved_limit)

        return ExecutionResult(
            success=not self.ctx.has_errors,
            stage=Stage.INTERPRETER if self.ctx.has_errors else None,
            diagnostics=list(self.ctx.diagnostics.diagnostics),
            program=program,
        )

    # =========================================================================
    # Statement Execution
    # =========================================================================

    @property
    def _halted(self) -> bool:
        return self.ctx.diagnostics.should_stop

    def _execute(self, stmt: Statement) -> Completion:
        return stmt.accept(self) or NORMAL

    def _execute_sequence(self, statements: List[Statement]) -> Completion:
        for stmt in statements:
            if self._halted:
                break
            completion = self._execute(stmt)
            if completion.returning:
                return completion
        return NORMAL

    def _recover(self, expr: Expression, error: EvaluationError) -> Value:
        """Record a runtime error raised by expr; the expression evaluates to null."""
        span = error.span or expr.span
        logger.debug("runtime error at %s: %s", span.start, error)
        self.ctx.add_error(str(error), span, error.code)
        return null_val()

    def visit_VarDecl(self, stmt: VarDecl) -> Completion:
        value = stmt.initializer.accept(self) if stmt.initializer is not None else null_val()
        self.ctx.define(stmt.name, value)
        return NORMAL

    def visit_ExpressionStatement(self, stmt: ExpressionStatement) -> Completion:
        stmt.expression.accept(self)
        return NORMAL

    def visit_Block(self, block: Block) -> Completion:
        with self.ctx.new_scope("block"):
            return self._execute_sequence(block.statements)

    def visit_IfStatement(self, stmt: IfStatement) -> Completion:
        if stmt.condition.accept(self).is_truthy():
            return self._execute(stmt.then_branch)
        if stmt.else_branch is not None:
            return self._execute(stmt.else_branch)
        return NORMAL

    def visit_WhileStatement(self, stmt: WhileStatement) -> Completion:
        while not self._halted and stmt.condition.accept(self).is_truthy():
            completion = self._execute(stmt.body)
            if completion.returning:
                return completion
        return NORMAL

    def visit_FunctionDecl(self, stmt: FunctionDecl) -> Completion:
        function = FunctionValue(
            name=stmt.name,
            parameters=stmt.parameters,
            body=stmt.body,
            closure=self.ctx.current,
            declaration=stmt,
        )
        # Bound in the closure environment itself, so the body can recurse
        self.ctx.define(stmt.name, function_val(function))
        return NORMAL

    def visit_ReturnStatement(self, stmt: ReturnStatement) -> Completion:
        value = stmt.value.accept(self) if stmt.value is not None else null_val()
        return Completion(Flow.RETURNING, value)

    # =========================================================================
    # Expression Evaluation
    # =========================================================================

    def visit_Literal(self, expr: Literal) -> Value:
        if expr.literal_type == TokenType.INT_LITERAL:
            return int_val(expr.value)
        if expr.literal_type == TokenType.FLOAT_LITERAL:
            return float_val(expr.value)
        if expr.literal_type == TokenType.BOOL_LITERAL:
            return bool_val(expr.value)
        return string_val(expr.value)

    # Each failing expression below records its own error and yields null,
    # so the enclosing expression keeps evaluating with that null.

    def visit_Variable(self, expr: Variable) -> Value:
        value = self.ctx.lookup(expr.name)
        if value is None:
            return self._recover(
                expr, EvaluationError(f"undefined variable '{expr.name}'", "E401", expr.span)
            )
        return value

    def visit_Assignment(self, expr: Assignment) -> Value:
        value = expr.value.accept(self)
        if not self.ctx.assign(expr.name, value):
            return self._recover(expr, EvaluationError(
                f"cannot assign to undefined variable '{expr.name}'", "E402", expr.span
            ))
        return value

    def visit_UnaryOp(self, expr: UnaryOp) -> Value:
        operand = expr.operand.accept(self)
        if expr.operator == TokenType.NOT:
            return bool_val(not operand.is_truthy())

        if operand.type == INT:
            return int_val(-operand.data)
        if operand.type == FLOAT:
            return float_val(-operand.data)
        return self._recover(expr, EvaluationError(
            f"operator '-' requires a number, got {operand.type}", "E403", expr.span
        ))

    def visit_BinaryOp(self, expr: BinaryOp) -> Value:
        """Evaluate both operands, then apply the operator (no short-circuiting)."""
        left = expr.left.accept(self)
        right = expr.right.accept(self)
        op = expr.operator

        if op == TokenType.AND:
            return bool_val(left.is_truthy() and right.is_truthy())
        if op == TokenType.OR:
            return bool_val(left.is_truthy() or right.is_truthy())
        try:
            if op in (TokenType.EQ, TokenType.NE, TokenType.LT, TokenType.GT, TokenType.LE, TokenType.GE):
                return self._compare(op, left, right, expr.span)
            return self._arithmetic(op, left, right, expr.span)
        except EvaluationError as e:
            return self._recover(expr, e)

    def _arithmetic(self, op: TokenType, left: Value, right: Value, span: SourceSpan) -> Value:
        # Concatenation when either side is a string
        if op == TokenType.PLUS and (left.type == STRING or right.type == STRING):
            return string_val(format_value(left) + format_value(right))

        if not (left.is_numeric and right.is_numeric):
            raise EvaluationError(
                f"operator '{operator_symbol(op)}' cannot be applied to {left.type} and {right.type}",
                "E403", span,
            )

        a, b = left.data, right.data
        if op == TokenType.SLASH:
            if b == 0:
                raise EvaluationError("division by zero", "E404", span)
            try:
                return float_val(a / b)
            except OverflowError:
                raise EvaluationError(
                    "numeric overflow in '/': result too large for a float", "E403", span
                ) from None

        if op == TokenType.PERCENT:
            if left.type != INT or right.type != INT:
                raise EvaluationError(
                    f"operator '%' requires int operands, got {left.type} and {right.type}",
                    "E403", span,
                )
            if b == 0:
                raise EvaluationError("modulo by zero", "E405", span)
            # Truncated remainder: the result takes the sign of the dividend
            remainder = abs(a) % abs(b)
            return int_val(-remainder if a < 0 else remainder)

        if left.type == INT and right.type == INT:
            # Ints are unbounded
            if op == TokenType.PLUS:
                return int_val(a + b)
            if op == TokenType.MINUS:
                return int_val(a - b)
            return int_val(a * b)

        try:
            if op == TokenType.PLUS:
                result = a + b
            elif op == TokenType.MINUS:
                result = a - b
            else:
                result = a * b
        except OverflowError:
            # An int operand too large to convert to float
            raise EvaluationError(
                f"numeric overflow in '{operator_symbol(op)}': int too large for a float", "E403", span
            ) from None
        return float_val(result)

    def _compare(self, op: TokenType, left: Value, right: Value, span: SourceSpan) -> Value:
        symbol = operator_symbol(op)
        if left.is_numeric and right.is_numeric:
            a, b = left.data, right.data
        elif left.type == right.type and (op in (TokenType.EQ, TokenType.NE) or left.type == STRING):
            a, b = left.data, right.data
            if left.is_function:
                # Function values compare by identity
                same = a is b
                return bool_val(same if op == TokenType.EQ else not same)
        else:
            raise EvaluationError(
                f"cannot compare {left.type} and {right.type} with '{symbol}'", "E403", span
            )

        if op == TokenType.EQ:
            return bool_val(a == b)
        if op == TokenType.NE:
            return bool_val(a != b)
        if op == TokenType.LT:
            return bool_val(a < b)
        if op == TokenType.GT:
            return bool_val(a > b)
        if op == TokenType.LE:
            return bool_val(a <= b)
        return bool_val(a >= b)

    def visit_Call(self, expr: Call) -> Value:
        """Call a user function or a builtin."""
        callee = expr.callee.accept(self)
        # Arguments are evaluated in the caller's environment
        args = [arg.accept(self) for arg in expr.arguments]

        if not callee.is_function:
            name = expr.callee_name or "expression"
            return self._recover(expr, EvaluationError(
                f"can only call functions, '{name}' is {callee.type}", "E408", expr.callee.span
            ))

        function = callee.data
        if isinstance(function, BuiltinFunction):
            try:
                return function.invoke(self.ctx, args)
            except EvaluationError as e:
                return self._recover(expr, e)
        if len(args) != function.arity:
            return self._recover(expr, EvaluationError(
                f"{function.name}() expects {function.arity} argument(s) but got {len(args)}",
                "E406", expr.span,
            ))
        return self._call_function(function, args)

    def _call_function(self, function: FunctionValue, args: List[Value]) -> Value:
        # Fresh environment whose parent is the closure, not the caller
        env = Environment(parent=function.closure, name=f"call {function.name}")
        for param, arg in zip(function.parameters, args):
            env.define(param.name, arg)

        logger.debug("call %s with %d argument(s)", function.name, len(args))
        with self.ctx.use_environment(env):
            completion = self._execute_sequence(function.body.statements)

        # The return signal is consumed here
        if completion.returning:
            return completion.value
        return null_val()


# =============================================================================
# Driver
# =============================================================================

def compile_and_run(
    source: str,
    filename: Optional[str] = None,
    *,
    stdout: Optional[TextIO] = None,
    stdin: Optional[TextIO] = None,
    max_errors: int = 20,
    execute: bool = True,
) -> ExecutionResult:
    """
    Run every stage over source code, stopping at the first stage with errors.

        from simplelang import compile_and_run

        result = compile_and_run('let x = 40 + 2; print(x);')
        if not result.success:
            for diag in result.errors:
                print(diag.summary())

    Args:
        source: Program text
        filename: Optional filename for diagnostics
        stdout: Stream for program output (default sys.stdout)
        stdin: Stream for input() (default sys.stdin)
        max_errors: Error limit per stage
        execute: When False, stop after type checking

    Returns:
        ExecutionResult with the failing stage (if any) and its diagnostics.
        Analyzer warnings are included in every result after analysis.
    """
    lexer = Lexer(source, filename)
    parser = Parser(lexer, filename, source, max_errors)
    program = parser.parse()

    if lexer.has_errors:
        return ExecutionResult(False, Stage.LEXER, list(lexer.diagnostics.diagnostics), program)
    if parser.has_errors:
        return ExecutionResult(False, Stage.PARSER, list(parser.diagnostics.diagnostics), program)

    analysis = SemanticAnalyzer(max_errors=max_errors, source=source).analyze(program)
    if analysis.has_errors:
        return ExecutionResult(False, Stage.SEMANTIC_ANALYZER, list(analysis.diagnostics), program)
    warnings = [d for d in analysis.diagnostics if d.severity == ErrorSeverity.WARNING]

    check_result = TypeChecker(max_errors=max_errors, source=source).check(program)
    if check_result.has_errors:
        return ExecutionResult(False, Stage.TYPE_CHECKER, warnings + check_result.diagnostics, program)

    if not execute:
        return ExecutionResult(True, None, warnings, program)

    result = Interpreter(stdout=stdout, stdin=stdin, max_errors=max_errors, source=source).interpret(program)
    result.diagnostics = warnings + result.diagnostics
    return result


def check_source(source: str, filename: Optional[str] = None, max_errors: int = 20) -> ExecutionResult:
    """Run the static stages only."""
    return compile_and_run(source, filename, max_errors=max_errors, execute=False)
