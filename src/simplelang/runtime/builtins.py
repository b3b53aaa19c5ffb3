"""
Built-in function registry for the interpreter.

Maps SimpleLang function names to Python implementations. Each
implementation receives the ExecutionContext followed by the argument
Values, validates its own arguments, and raises EvaluationError with a
descriptive message on bad input. The interpreter records that as a
runtime diagnostic; nothing here terminates the program.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, TYPE_CHECKING

from .values import (
    Value, EvaluationError, int_val, float_val, string_val, null_val, function_val,
    format_value,
)
from ..types import INT, FLOAT, BOOL, STRING
from ..symbols import FunctionSignature, builtin_signatures

if TYPE_CHECKING:
    from .context import ExecutionContext, Environment

logger = logging.getLogger(__name__)


@dataclass
class BuiltinFunction:
    """
    A built-in function with its implementation and type signature.
    """
    name: str
    signature: FunctionSignature
    implementation: Callable[..., Value]
    doc: str = ""

    def invoke(self, ctx: "ExecutionContext", args: List[Value]) -> Value:
        """Check the argument count and run the implementation."""
        arity = self.signature.arity
        if arity is not None and len(args) != arity:
            raise EvaluationError(
                f"{self.name}() expects {arity} argument(s) but got {len(args)}", code="E406"
            )
        return self.implementation(ctx, *args)


def _require_string(name: str, value: Value, position: str = "argument") -> str:
    if value.type != STRING:
        raise EvaluationError(f"{name}() {position} must be a string, got {value.type}", code="E407")
    return value.data


def _require_int(name: str, value: Value, position: str) -> int:
    if value.type != INT:
        raise EvaluationError(f"{name}() {position} must be an int, got {value.type}", code="E407")
    return value.data


class BuiltinRegistry:
    """
    Registry of all built-in functions.

    Functions are registered by name and can be looked up for execution.
    """

    def __init__(self):
        self._functions: Dict[str, BuiltinFunction] = {}
        self._signatures = builtin_signatures()
        self._register_all()

    def get_function(self, name: str) -> Optional[BuiltinFunction]:
        """Look up a function by name."""
        return self._functions.get(name)

    def register(self, func: BuiltinFunction) -> None:
        """Register a function."""
        self._functions[func.name] = func

    def names(self) -> List[str]:
        return sorted(self._functions)

    def install(self, env: "Environment") -> None:
        """Bind every builtin into an environment as a function value."""
        for func in self._functions.values():
            env.define(func.name, function_val(func))

    def _add(self, name: str, implementation: Callable[..., Value], doc: str) -> None:
        self.register(BuiltinFunction(name, self._signatures[name], implementation, doc))

    def _register_all(self) -> None:
        """Register all built-in functions."""
        self._register_io_functions()
        self._register_conversion_functions()
        self._register_string_functions()
        logger.debug("registered %d builtin functions", len(self._functions))

    # --- I/O Functions ---

    def _register_io_functions(self) -> None:
        """Register print and input."""

        def _print(ctx, *args: Value) -> Value:
            ctx.write_line(" ".join(format_value(a) for a in args))
            return null_val()

        def _input(ctx, *args: Value) -> Value:
            if len(args) > 1:
                raise EvaluationError(
                    f"input() expects at most 1 argument but got {len(args)}", code="E406"
                )
            if args:
                ctx.write_line(format_value(args[0]))
            line = ctx.read_line()
            return string_val(line if line is not None else "")

        self._add("print", _print, "Write the arguments, space-separated, as one line.")
        self._add("input", _input, "Read one line from standard input, after an optional prompt.")

    # --- Conversion Functions ---

    def _register_conversion_functions(self) -> None:
        """Register toString, toInt and toFloat."""

        def _to_string(ctx, value: Value) -> Value:
            return string_val(format_value(value))

        def _to_int(ctx, value: Value) -> Value:
            if value.type == INT:
                return value
            if value.type == FLOAT:
                try:
                    return int_val(int(value.data))
                except (OverflowError, ValueError):
                    # inf and nan
                    raise EvaluationError(
                        f"toInt() cannot convert {format_value(value)} to int", code="E407"
                    ) from None
            if value.type == BOOL:
                return int_val(1 if value.data else 0)
            if value.type == STRING:
                try:
                    return int_val(int(value.data.strip()))
                except ValueError:
                    raise EvaluationError(
                        f"toInt() cannot convert '{value.data}' to int", code="E407"
                    ) from None
            raise EvaluationError(f"toInt() cannot convert {value.type} to int", code="E407")

        def _to_float(ctx, value: Value) -> Value:
            if value.type == FLOAT:
                return value
            if value.type == INT:
                try:
                    return float_val(float(value.data))
                except OverflowError:
                    raise EvaluationError(
                        "toFloat() cannot convert int: too large for a float", code="E407"
                    ) from None
            if value.type == BOOL:
                return float_val(1.0 if value.data else 0.0)
            if value.type == STRING:
                try:
                    return float_val(float(value.data.strip()))
                except ValueError:
                    raise EvaluationError(
                        f"toFloat() cannot convert '{value.data}' to float", code="E407"
                    ) from None
            raise EvaluationError(f"toFloat() cannot convert {value.type} to float", code="E407")

        self._add("toString", _to_string, "Render any value as text.")
        self._add("toInt", _to_int, "Convert a number, bool or numeric string to int.")
        self._add("toFloat", _to_float, "Convert a number, bool or numeric string to float.")

    # --- String Functions ---

    def _register_string_functions(self) -> None:
        """Register length, substring and concat."""

        def _length(ctx, s: Value) -> Value:
            return int_val(len(_require_string("length", s)))

        def _substring(ctx, s: Value, start: Value, length: Value) -> Value:
            text = _require_string("substring", s, "first argument")
            begin = _require_int("substring", start, "start")
            count = _require_int("substring", length, "length")
            if begin < 0 or begin >= len(text):
                raise EvaluationError(
                    f"substring() start index {begin} out of bounds for length {len(text)}",
                    code="E407",
                )
            # Negative or overlong lengths run to the end of the string
            if count < 0 or begin + count > len(text):
                return string_val(text[begin:])
            return string_val(text[begin:begin + count])

        def _concat(ctx, *args: Value) -> Value:
            return string_val("".join(format_value(a) for a in args))

        self._add("length", _length, "Number of characters in a string.")
        self._add("substring", _substring, "substring(s, start, length)")
        self._add("concat", _concat, "Join the text of all arguments.")


# Global singleton registry
_registry: Optional[BuiltinRegistry] = None


def get_builtin_registry() -> BuiltinRegistry:
    """Get the global built-in function registry."""
    global _registry
    if _registry is None:
        _registry = BuiltinRegistry()
    return _registry


def call_builtin(name: str, args: List[Value], ctx: "ExecutionContext") -> Value:
    """
    Call a built-in function by name.

    Raises EvaluationError if the function is unknown or rejects its arguments.
    """
    func = get_builtin_registry().get_function(name)
    if func is None:
        raise EvaluationError(f"unknown built-in function '{name}'", code="E401")
    return func.invoke(ctx, args)
