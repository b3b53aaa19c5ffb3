"""
SimpleLang Runtime - Tree-walking interpreter.

This module provides:
- Interpreter: Executes a checked Program
- Value: Runtime value wrappers with type metadata
- Environment / ExecutionContext: Lexical environments and I/O streams
- BuiltinRegistry: Built-in function implementations
- compile_and_run: The staged driver
"""

from .values import (
    Value,
    FunctionValue,
    EvaluationError,
    int_val,
    float_val,
    bool_val,
    string_val,
    null_val,
    function_val,
    format_value,
)

from .context import (
    Environment,
    ExecutionContext,
)

from .builtins import (
    BuiltinFunction,
    BuiltinRegistry,
    get_builtin_registry,
    call_builtin,
)

from .interpreter import (
    Interpreter,
    ExecutionResult,
    Completion,
    Flow,
    compile_and_run,
    check_source,
)

__all__ = [
    # Values
    'Value',
    'FunctionValue',
    'EvaluationError',
    'int_val',
    'float_val',
    'bool_val',
    'string_val',
    'null_val',
    'function_val',
    'format_value',
    # Context
    'Environment',
    'ExecutionContext',
    # Builtins
    'BuiltinFunction',
    'BuiltinRegistry',
    'get_builtin_registry',
    'call_builtin',
    # Interpreter
    'Interpreter',
    'ExecutionResult',
    'Completion',
    'Flow',
    'compile_and_run',
    'check_source',
]
