"""
Execution context for the interpreter.

Manages the environment chain, program I/O streams, and collects
runtime diagnostics.
"""

import sys
from dataclasses import dataclass, field
from typing import Dict, List, Optional, TextIO
from contextlib import contextmanager

from .values import Value
from ..errors import DiagnosticCollector, runtime_error
from ..tokens import SourceSpan


@dataclass
class Environment:
    """
    A single environment containing variable bindings.

    Environments form a chain via the `parent` field for lexical scoping.
    A function value keeps its defining environment alive through its
    closure reference.
    """
    values: Dict[str, Value] = field(default_factory=dict)
    parent: Optional["Environment"] = None
    name: str = "anonymous"  # For debugging

    def define(self, name: str, value: Value) -> None:
        """Create a binding in this environment, shadowing any outer one."""
        self.values[name] = value

    def get(self, name: str) -> Optional[Value]:
        """Look up the nearest binding of a name."""
        env = self
        while env is not None:
            if name in env.values:
                return env.values[name]
            env = env.parent
        return None

    def assign(self, name: str, value: Value) -> bool:
        """
        Update the nearest existing binding.

        Returns True if found and updated, False if no binding exists.
        Never creates a new binding.
        """
        env = self
        while env is not None:
            if name in env.values:
                env.values[name] = value
                return True
            env = env.parent
        return False


@dataclass
class ExecutionContext:
    """
    The full execution context for interpreting a program.

    Tracks:
    - The global and current environments
    - Output and input streams used by print/input
    - Diagnostics (runtime errors)
    """
    globals: Environment = field(default_factory=lambda: Environment(name="global"))
    current: Optional[Environment] = None

    stdout: Optional[TextIO] = None
    stdin: Optional[TextIO] = None

    diagnostics: DiagnosticCollector = field(default_factory=DiagnosticCollector)

    # Source tracking for error messages
    source_lines: List[str] = field(default_factory=list)

    def __post_init__(self):
        if self.current is None:
            self.current = self.globals

    def define(self, name: str, value: Value) -> None:
        """Define a new variable in the current environment."""
        self.current.define(name, value)

    def lookup(self, name: str) -> Optional[Value]:
        return self.current.get(name)

    def assign(self, name: str, value: Value) -> bool:
        return self.current.assign(name, value)

    @contextmanager
    def new_scope(self, name: str = "block"):
        """
        Context manager to run statements in a nested environment.

        Usage:
            with ctx.new_scope("block"):
                ctx.define("x", int_val(0))
        """
        with self.use_environment(Environment(parent=self.current, name=name)) as env:
            yield env

    @contextmanager
    def use_environment(self, env: Environment):
        """Temporarily make ``env`` the current environment."""
        old = self.current
        self.current = env
        try:
            yield env
        finally:
            self.current = old

    def add_error(self, message: str, span: SourceSpan, code: str = "E400") -> None:
        """Add a runtime error diagnostic."""
        self.diagnostics.add(runtime_error(code, message, span, self._get_source_line(span.start.line)))

    def _get_source_line(self, line_num: int) -> Optional[str]:
        """Get a source line for error messages."""
        if 1 <= line_num <= len(self.source_lines):
            return self.source_lines[line_num - 1]
        return None

    @property
    def has_errors(self) -> bool:
        return self.diagnostics.has_errors

    def write_line(self, text: str) -> None:
        """Write one line of program output."""
        out = self.stdout if self.stdout is not None else sys.stdout
        out.write(text + "\n")

    def read_line(self) -> Optional[str]:
        """Read one line of program input without its newline; None at EOF."""
        source = self.stdin if self.stdin is not None else sys.stdin
        line = source.readline()
        if line == "":
            return None
        return line.rstrip("\r\n")
