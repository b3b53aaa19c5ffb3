"""
Static type definitions for SimpleLang.

Primitive types: int, float, bool, string, void.
Function values have the single annotation type ``function``; a
FunctionType may also carry a full signature for declared functions.
UnknownType and ErrorType are compatible with everything so that one
mistake does not cascade into many diagnostics.
"""

from dataclasses import dataclass
from typing import Optional, Dict, Tuple
from abc import ABC, abstractmethod


# =============================================================================
# Type Classes
# =============================================================================

@dataclass(frozen=True)
class Type(ABC):
    """Base class for all static types."""

    @property
    @abstractmethod
    def name(self) -> str:
        """The type name for display/errors."""
        pass

    def is_assignable_from(self, other: "Type") -> bool:
        """Check if this type can accept a value of the other type."""
        return self == other

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class PrimitiveType(Type):
    """A primitive type (int, float, bool, string, void)."""
    _name: str

    @property
    def name(self) -> str:
        return self._name

    def is_assignable_from(self, other: "Type") -> bool:
        if self == other:
            return True
        # int and float widen into each other
        if isinstance(other, PrimitiveType) and {self._name, other._name} == {"int", "float"}:
            return True
        return False


@dataclass(frozen=True)
class FunctionType(Type):
    """A function type. ``param_types`` is None when the signature is unknown."""
    param_types: Optional[Tuple[Type, ...]]
    return_type: Type

    @property
    def name(self) -> str:
        return "function"

    @property
    def signature(self) -> str:
        if self.param_types is None:
            return f"function(...) -> {self.return_type.name}"
        params = ", ".join(t.name for t in self.param_types)
        return f"function({params}) -> {self.return_type.name}"

    def is_assignable_from(self, other: "Type") -> bool:
        return isinstance(other, FunctionType)


@dataclass(frozen=True)
class NullType(Type):
    """The runtime type of null (a void call's result)."""

    @property
    def name(self) -> str:
        return "null"


@dataclass(frozen=True)
class UnknownType(Type):
    """A placeholder for unannotated or not-yet-inferred types."""

    @property
    def name(self) -> str:
        return "<unknown>"

    def is_assignable_from(self, other: "Type") -> bool:
        # Unknown accepts anything
        return True


@dataclass(frozen=True)
class ErrorType(Type):
    """A type representing a type error (prevents cascading errors)."""

    @property
    def name(self) -> str:
        return "<error>"

    def is_assignable_from(self, other: "Type") -> bool:
        return True


# =============================================================================
# Built-in Type Instances
# =============================================================================

INT = PrimitiveType("int")
FLOAT = PrimitiveType("float")
BOOL = PrimitiveType("bool")
STRING = PrimitiveType("string")
VOID = PrimitiveType("void")
NULL = NullType()
UNKNOWN = UnknownType()
ERROR = ErrorType()
FUNCTION = FunctionType(None, UNKNOWN)  # the bare 'function' annotation


# Map type names to type instances
BUILTIN_TYPES: Dict[str, Type] = {
    "int": INT,
    "float": FLOAT,
    "bool": BOOL,
    "string": STRING,
    "void": VOID,
    "function": FUNCTION,
}


def resolve_type_name(name: Optional[str]) -> Type:
    """Look up a type annotation by name. Unknown or missing names give UNKNOWN."""
    if name is None:
        return UNKNOWN
    return BUILTIN_TYPES.get(name, UNKNOWN)


# =============================================================================
# Type Compatibility Helpers
# =============================================================================

def is_numeric(t: Type) -> bool:
    """Check if type is numeric (int or float)."""
    return isinstance(t, PrimitiveType) and t.name in ("int", "float")


def is_indeterminate(t: Type) -> bool:
    """Unknown and error types silence further checks."""
    return isinstance(t, (UnknownType, ErrorType))


def is_compatible(target: Type, value: Type) -> bool:
    """Check whether a value of type ``value`` may flow into ``target``."""
    if is_indeterminate(target) or is_indeterminate(value):
        return True
    return target.is_assignable_from(value)


def common_type(t1: Type, t2: Type) -> Optional[Type]:
    """
    Find the common type that both t1 and t2 can be assigned to.

    Returns None if no common type exists.
    """
    if t1 == t2:
        return t1
    if is_numeric(t1) and is_numeric(t2):
        return FLOAT
    if is_indeterminate(t1):
        return t2
    if is_indeterminate(t2):
        return t1
    if isinstance(t1, FunctionType) and isinstance(t2, FunctionType):
        return FUNCTION
    return None
