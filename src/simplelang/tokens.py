"""
Token types for the SimpleLang lexer.

Error code ranges:
- E0xx: Lexer errors
- E1xx: Parser errors
- E2xx: Type errors
- E3xx: Semantic errors
- E4xx: Runtime errors
"""

from enum import Enum, auto
from dataclasses import dataclass
from typing import Any, Optional


class TokenType(Enum):
    """All token types recognized by the lexer."""

    # --- Literals ---
    INT_LITERAL = auto()        # 42
    FLOAT_LITERAL = auto()      # 3.14
    STRING_LITERAL = auto()     # "hello"
    BOOL_LITERAL = auto()       # true, false

    # --- Identifiers ---
    IDENTIFIER = auto()         # user-defined names, also print/input

    # --- Keywords ---
    LET = auto()                # let
    CONST = auto()              # const
    IF = auto()                 # if
    THEN = auto()               # then
    ELSE = auto()               # else
    END = auto()                # end
    WHILE = auto()              # while
    DO = auto()                 # do
    FUNCTION = auto()           # function (also usable as a type name)
    RETURN = auto()             # return

    # --- Type keywords ---
    TYPE_INT = auto()           # int
    TYPE_FLOAT = auto()         # float
    TYPE_BOOL = auto()          # bool
    TYPE_STRING = auto()        # string
    TYPE_VOID = auto()          # void

    # --- Arithmetic operators ---
    PLUS = auto()               # +
    MINUS = auto()              # -
    STAR = auto()               # *
    SLASH = auto()              # /
    PERCENT = auto()            # %

    # --- Comparison operators ---
    LT = auto()                 # <
    GT = auto()                 # >
    LE = auto()                 # <=
    GE = auto()                 # >=
    EQ = auto()                 # ==
    NE = auto()                 # !=

    # --- Logical operators ---
    AND = auto()                # &&
    OR = auto()                 # ||
    NOT = auto()                # !

    # --- Assignment ---
    ASSIGN = auto()             # =

    # --- Delimiters ---
    LPAREN = auto()             # (
    RPAREN = auto()             # )
    LBRACE = auto()             # {
    RBRACE = auto()             # }
    COLON = auto()              # :
    SEMICOLON = auto()          # ;
    COMMA = auto()              # ,

    # --- Special ---
    EOF = auto()                # end of file
    ERROR = auto()              # lexical error, value holds the message


@dataclass(frozen=True)
class SourceLocation:
    """Represents a position in source code."""
    line: int           # 1-indexed line number
    column: int         # 1-indexed column number
    offset: int         # 0-indexed character offset from start
    filename: Optional[str] = None

    def __str__(self) -> str:
        if self.filename:
            return f"{self.filename}:{self.line}:{self.column}"
        return f"{self.line}:{self.column}"


@dataclass(frozen=True)
class SourceSpan:
    """Represents a range in source code."""
    start: SourceLocation
    end: SourceLocation

    def __str__(self) -> str:
        if self.start.filename:
            return f"{self.start.filename}:{self.start.line}:{self.start.column}-{self.end.line}:{self.end.column}"
        return f"{self.start.line}:{self.start.column}-{self.end.line}:{self.end.column}"


@dataclass(frozen=True)
class Token:
    """A single token from the lexer."""
    type: TokenType
    value: Any              # literal value, identifier name, or error message
    lexeme: str             # the original source text
    span: SourceSpan

    @property
    def line(self) -> int:
        return self.span.start.line

    @property
    def column(self) -> int:
        return self.span.start.column

    def __str__(self) -> str:
        if self.type in (TokenType.INT_LITERAL, TokenType.FLOAT_LITERAL,
                         TokenType.STRING_LITERAL, TokenType.BOOL_LITERAL,
                         TokenType.IDENTIFIER, TokenType.ERROR):
            return f"{self.type.name}({self.value!r})"
        return self.type.name


# Keyword mapping - maps string to token type
KEYWORDS: dict[str, TokenType] = {
    "let": TokenType.LET,
    "const": TokenType.CONST,
    "if": TokenType.IF,
    "then": TokenType.THEN,
    "else": TokenType.ELSE,
    "end": TokenType.END,
    "while": TokenType.WHILE,
    "do": TokenType.DO,
    "function": TokenType.FUNCTION,
    "return": TokenType.RETURN,

    # Boolean literals
    "true": TokenType.BOOL_LITERAL,
    "false": TokenType.BOOL_LITERAL,

    # Types
    "int": TokenType.TYPE_INT,
    "float": TokenType.TYPE_FLOAT,
    "bool": TokenType.TYPE_BOOL,
    "string": TokenType.TYPE_STRING,
    "void": TokenType.TYPE_VOID,
}


# Source spelling of each operator and delimiter, for messages
OPERATOR_SYMBOLS: dict[TokenType, str] = {
    TokenType.PLUS: "+",
    TokenType.MINUS: "-",
    TokenType.STAR: "*",
    TokenType.SLASH: "/",
    TokenType.PERCENT: "%",
    TokenType.LT: "<",
    TokenType.GT: ">",
    TokenType.LE: "<=",
    TokenType.GE: ">=",
    TokenType.EQ: "==",
    TokenType.NE: "!=",
    TokenType.AND: "&&",
    TokenType.OR: "||",
    TokenType.NOT: "!",
    TokenType.ASSIGN: "=",
    TokenType.LPAREN: "(",
    TokenType.RPAREN: ")",
    TokenType.LBRACE: "{",
    TokenType.RBRACE: "}",
    TokenType.COLON: ":",
    TokenType.SEMICOLON: ";",
    TokenType.COMMA: ",",
}


# Tokens that begin a statement; used by the parser to resynchronize
STATEMENT_KEYWORDS: frozenset = frozenset({
    TokenType.LET,
    TokenType.CONST,
    TokenType.IF,
    TokenType.WHILE,
    TokenType.FUNCTION,
    TokenType.RETURN,
})


def is_type_token(token_type: TokenType) -> bool:
    """Check if a token type can name a type in an annotation."""
    return token_type.name.startswith("TYPE_") or token_type == TokenType.FUNCTION


def operator_symbol(token_type: TokenType) -> str:
    """Return the source spelling of an operator token."""
    return OPERATOR_SYMBOLS.get(token_type, token_type.name.lower())
