"""
Runtime value wrappers for the interpreter.

Values wrap Python objects with their SimpleLang type: Integer, Float,
Boolean, String, Null or Function.
"""

from dataclasses import dataclass
from typing import Any, List, Optional, TYPE_CHECKING

from ..ast import Parameter, Block, FunctionDecl
from ..types import Type, FunctionType, INT, FLOAT, BOOL, STRING, NULL, FUNCTION
from ..tokens import SourceSpan

if TYPE_CHECKING:
    from .context import Environment


class EvaluationError(Exception):
    """A recoverable runtime failure, recorded as a diagnostic by the interpreter."""

    def __init__(self, message: str, code: str = "E400", span: Optional[SourceSpan] = None):
        self.code = code
        self.span = span
        super().__init__(message)


@dataclass
class Value:
    """
    A runtime value with type information.

    The `data` field holds the Python object (int, float, bool, str,
    None, FunctionValue or BuiltinFunction).
    """
    data: Any
    type: Type

    def __repr__(self) -> str:
        return f"Value({self.data!r}, {self.type})"

    @property
    def is_null(self) -> bool:
        return self.type == NULL

    @property
    def is_numeric(self) -> bool:
        return self.type == INT or self.type == FLOAT

    @property
    def is_function(self) -> bool:
        return isinstance(self.type, FunctionType)

    def is_truthy(self) -> bool:
        """Null, zero, 0.0 and the empty string are false; everything else is true."""
        if self.type == NULL:
            return False
        if self.type == BOOL:
            return bool(self.data)
        if self.type == INT or self.type == FLOAT:
            return self.data != 0
        if self.type == STRING:
            return self.data != ""
        return True


@dataclass(frozen=True, eq=False)
class FunctionValue:
    """A user-defined function bundled with the environment it was declared in."""
    name: str
    parameters: List[Parameter]
    body: Block
    closure: "Environment"
    declaration: FunctionDecl

    @property
    def arity(self) -> int:
        return len(self.parameters)

    def __repr__(self) -> str:
        return f"<function {self.name}>"


# Convenience constructors for primitive values

def int_val(n: int) -> Value:
    """Create an integer value."""
    return Value(int(n), INT)


def float_val(x: float) -> Value:
    """Create a float value."""
    return Value(float(x), FLOAT)


def bool_val(b: bool) -> Value:
    """Create a boolean value."""
    return Value(bool(b), BOOL)


def string_val(s: str) -> Value:
    """Create a string value."""
    return Value(str(s), STRING)


def null_val() -> Value:
    return Value(None, NULL)


def function_val(fn: Any) -> Value:
    """Wrap a FunctionValue or BuiltinFunction."""
    return Value(fn, FUNCTION)


def format_value(value: Value) -> str:
    """Render a value the way print shows it."""
    if value.type == NULL:
        return "null"
    if value.type == BOOL:
        return "true" if value.data else "false"
    if value.type == INT:
        try:
            return str(value.data)
        except ValueError:
            # Past the interpreter's int-to-str digit limit
            raise EvaluationError("int too large to convert to text", "E407") from None
    if value.type == FLOAT:
        return str(value.data)
    if value.type == STRING:
        return value.data
    if isinstance(value.data, FunctionValue):
        return f"<function {value.data.name}>"
    name = getattr(value.data, "name", "?")
    return f"<builtin {name}>"
