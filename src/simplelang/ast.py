"""
Abstract Syntax Tree (AST) node definitions for SimpleLang.

The AST represents the structure of a parsed program, which is then
analyzed, type-checked and interpreted. Nodes are created by the parser
and not modified afterwards.

There is no dedicated print statement: ``print(...)`` is an ordinary
call to a builtin function.
"""

from dataclasses import dataclass, field
from typing import Optional, List, Union, Any
from abc import ABC
from .tokens import SourceSpan, TokenType


# =============================================================================
# Base Classes
# =============================================================================

@dataclass
class AstNode(ABC):
    """Base class for all AST nodes."""
    span: SourceSpan  # Source location for error reporting

    def accept(self, visitor: "AstVisitor") -> Any:
        """Accept a visitor for traversal."""
        method_name = f"visit_{self.__class__.__name__}"
        method = getattr(visitor, method_name, visitor.generic_visit)
        return method(self)


class AstVisitor(ABC):
    """Base class for AST visitors."""

    def generic_visit(self, node: AstNode) -> Any:
        """Default visit method."""
        raise NotImplementedError(f"No visitor for {node.__class__.__name__}")


# =============================================================================
# Expression Nodes
# =============================================================================

@dataclass
class Expression(AstNode):
    """Base class for all expressions."""
    pass


@dataclass
class Literal(Expression):
    """A literal value (int, float, string, bool)."""
    value: Union[int, float, str, bool]
    literal_type: TokenType  # INT_LITERAL, FLOAT_LITERAL, STRING_LITERAL, BOOL_LITERAL


@dataclass
class Variable(Expression):
    """A reference to a variable or function by name."""
    name: str


@dataclass
class BinaryOp(Expression):
    """A binary operation (e.g., a + b, x && y)."""
    left: Expression
    operator: TokenType
    right: Expression


@dataclass
class UnaryOp(Expression):
    """A unary operation (-x or !x)."""
    operator: TokenType
    operand: Expression


@dataclass
class Call(Expression):
    """A call expression. The callee is any expression, usually a Variable."""
    callee: Expression
    arguments: List[Expression] = field(default_factory=list)

    @property
    def callee_name(self) -> Optional[str]:
        """The called name, when the callee is a plain identifier."""
        if isinstance(self.callee, Variable):
            return self.callee.name
        return None


@dataclass
class Assignment(Expression):
    """Assignment to an existing variable. Right-associative: a = b = 1."""
    name: str
    value: Expression


# =============================================================================
# Statement Nodes
# =============================================================================

@dataclass
class Statement(AstNode):
    """Base class for all statements."""
    pass


@dataclass
class VarDecl(Statement):
    """A variable declaration.

    Syntax:
        let name;
        let name = expr;
        const name = expr;
    """
    name: str
    initializer: Optional[Expression] = None
    constant: bool = False


@dataclass
class ExpressionStatement(Statement):
    """An expression evaluated for its side effects."""
    expression: Expression


@dataclass
class Block(Statement):
    """A sequence of statements with its own scope."""
    statements: List[Statement] = field(default_factory=list)


@dataclass
class IfStatement(Statement):
    """A conditional.

    Syntax:
        if (cond) then
            ...
        else
            ...
        end;

    A branch holding several statements is a Block.
    """
    condition: Expression
    then_branch: Statement
    else_branch: Optional[Statement] = None


@dataclass
class WhileStatement(Statement):
    """A pre-tested loop: while (cond) do ... end;"""
    condition: Expression
    body: Statement


@dataclass
class Parameter(AstNode):
    """A function parameter with its type annotation."""
    name: str
    type_name: str


@dataclass
class FunctionDecl(Statement):
    """A named function.

    Syntax:
        function name(a: int, b: int): int {
            return a + b;
        }

    An omitted return type leaves returns unchecked.
    """
    name: str
    parameters: List[Parameter]
    return_type: Optional[str]
    body: Block


@dataclass
class ReturnStatement(Statement):
    """return; or return expr;"""
    value: Optional[Expression] = None


# =============================================================================
# Program
# =============================================================================

@dataclass
class Program(AstNode):
    """A complete program: the top-level statement list."""
    statements: List[Statement] = field(default_factory=list)

    @property
    def functions(self) -> List[FunctionDecl]:
        return [s for s in self.statements if isinstance(s, FunctionDecl)]


# =============================================================================
# Visitor Helpers
# =============================================================================

class PrintVisitor(AstVisitor):
    """Debug visitor that renders the AST structure as indented lines."""

    def __init__(self, indent: int = 0, lines: Optional[List[str]] = None):
        self.indent = indent
        self.lines = lines if lines is not None else []

    def _emit(self, text: str) -> None:
        self.lines.append("  " * self.indent + text)

    def _child(self) -> "PrintVisitor":
        return PrintVisitor(self.indent + 2, self.lines)

    def generic_visit(self, node: AstNode) -> None:
        self._emit(f"{node.__class__.__name__}")
        for name, value in node.__dict__.items():
            if name == "span":
                continue
            if isinstance(value, AstNode):
                self._emit(f"  {name}:")
                self._child().generic_visit(value)
            elif isinstance(value, list):
                self._emit(f"  {name}: [")
                for item in value:
                    if isinstance(item, AstNode):
                        self._child().generic_visit(item)
                    else:
                        self._emit(f"    {item!r}")
                self._emit("  ]")
            elif isinstance(value, TokenType):
                self._emit(f"  {name}: {value.name}")
            else:
                self._emit(f"  {name}: {value!r}")


def format_ast(node: AstNode) -> str:
    """Render an AST node as an indented tree."""
    visitor = PrintVisitor()
    visitor.generic_visit(node)
    return "\n".join(visitor.lines)


def print_ast(node: AstNode) -> None:
    """Print an AST node for debugging."""
    print(format_ast(node))
