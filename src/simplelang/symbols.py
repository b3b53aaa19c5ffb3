"""
Symbol table management for SimpleLang.

Provides scoped symbol tables for tracking variable, parameter and
function declarations. The semantic analyzer and the type checker each
own a separate SymbolTable.
"""

from dataclasses import dataclass, field
from typing import Optional, Dict, List, Tuple
from enum import Enum, auto

from .types import Type, FunctionType, UNKNOWN, INT, FLOAT, STRING, VOID
from .tokens import SourceSpan


class SymbolKind(Enum):
    """The kind of symbol being tracked."""
    VARIABLE = auto()
    FUNCTION = auto()
    PARAMETER = auto()


@dataclass
class Symbol:
    """A symbol in the symbol table."""
    name: str
    kind: SymbolKind
    type: Type
    level: int = 0                      # Scope level that owns the symbol
    span: Optional[SourceSpan] = None   # Where it was declared
    initialized: bool = False
    constant: bool = False

    @property
    def is_callable(self) -> bool:
        return self.kind == SymbolKind.FUNCTION or isinstance(self.type, FunctionType)


@dataclass
class FunctionSignature:
    """Type signature for a built-in function."""
    name: str
    params: List[Tuple[str, Type]]      # (name, type); UNKNOWN accepts any value
    return_type: Type
    is_variadic: bool = False           # Accepts any number of arguments of any type

    @property
    def arity(self) -> Optional[int]:
        return None if self.is_variadic else len(self.params)

    def as_type(self) -> FunctionType:
        if self.is_variadic:
            return FunctionType(None, self.return_type)
        return FunctionType(tuple(t for _, t in self.params), self.return_type)


def builtin_signatures() -> Dict[str, FunctionSignature]:
    """Signatures of the native functions available to every program."""
    signatures = [
        FunctionSignature("print", [], VOID, is_variadic=True),
        FunctionSignature("input", [], STRING, is_variadic=True),
        FunctionSignature("toString", [("value", UNKNOWN)], STRING),
        FunctionSignature("toInt", [("value", UNKNOWN)], INT),
        FunctionSignature("toFloat", [("value", UNKNOWN)], FLOAT),
        FunctionSignature("length", [("s", STRING)], INT),
        FunctionSignature("substring", [("s", STRING), ("start", INT), ("length", INT)], STRING),
        FunctionSignature("concat", [], STRING, is_variadic=True),
    ]
    return {sig.name: sig for sig in signatures}


@dataclass
class Scope:
    """A single scope in the scope chain."""
    symbols: Dict[str, Symbol] = field(default_factory=dict)
    parent: Optional["Scope"] = None
    level: int = 0
    name: str = ""  # For debugging: "global", "function fact", "block"

    def insert(self, symbol: Symbol) -> bool:
        """Declare a symbol here. Returns False if the name is already taken in this scope."""
        if symbol.name in self.symbols:
            return False
        self.symbols[symbol.name] = symbol
        return True

    def lookup_local(self, name: str) -> Optional[Symbol]:
        """Look up a symbol in this scope only."""
        return self.symbols.get(name)

    def lookup(self, name: str) -> Optional[Symbol]:
        """Look up a symbol in this scope or any parent scope."""
        scope = self
        while scope is not None:
            symbol = scope.symbols.get(name)
            if symbol is not None:
                return symbol
            scope = scope.parent
        return None


class SymbolTable:
    """
    Manages scopes and symbol declarations.

    Provides:
    - Nested scope management (push/pop)
    - Symbol declaration and lookup along the scope chain
    - Built-in functions pre-declared in the global scope
    """

    def __init__(self):
        self._global_scope = Scope(name="global", level=0)
        self._current_scope = self._global_scope
        self._builtins = builtin_signatures()

        for sig in self._builtins.values():
            self._global_scope.insert(Symbol(
                name=sig.name,
                kind=SymbolKind.FUNCTION,
                type=sig.as_type(),
                level=0,
                initialized=True,
                constant=True,
            ))

    @property
    def level(self) -> int:
        """Nesting level of the current scope (0 is global)."""
        return self._current_scope.level

    @property
    def current_scope(self) -> Scope:
        return self._current_scope

    def push_scope(self, name: str = "") -> None:
        """Push a new scope onto the stack."""
        self._current_scope = Scope(
            parent=self._current_scope,
            level=self._current_scope.level + 1,
            name=name,
        )

    def pop_scope(self) -> None:
        """Pop the current scope."""
        if self._current_scope.parent is not None:
            self._current_scope = self._current_scope.parent

    def insert(self, symbol: Symbol) -> bool:
        """
        Declare a symbol in the current scope.

        Returns True if successful, False if already declared in the current scope.
        """
        symbol.level = self._current_scope.level
        return self._current_scope.insert(symbol)

    def lookup(self, name: str) -> Optional[Symbol]:
        """Look up a symbol in the current scope chain."""
        return self._current_scope.lookup(name)

    def lookup_local(self, name: str) -> Optional[Symbol]:
        """Look up a symbol in the current scope only."""
        return self._current_scope.lookup_local(name)

    def lookup_builtin(self, name: str) -> Optional[FunctionSignature]:
        """Look up a built-in function signature."""
        return self._builtins.get(name)

    def is_builtin(self, name: str) -> bool:
        return name in self._builtins

    def current_scope_name(self) -> str:
        """Get the name of the current scope (for debugging)."""
        return self._current_scope.name
