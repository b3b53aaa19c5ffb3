"""
Diagnostics and exceptions shared by every compiler stage.

Error code ranges:
- E0xx: Lexer errors
- E1xx: Parser errors
- E2xx: Type errors
- E3xx: Semantic errors
- E4xx: Runtime errors
- Wxxx: Warnings
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, List
from .tokens import SourceSpan


class ErrorSeverity(Enum):
    """Severity levels for diagnostics."""
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class DiagnosticKind(Enum):
    """Broad category of a diagnostic."""
    LEXICAL = "lexical"
    SYNTAX = "syntax"
    SEMANTIC = "semantic"
    RUNTIME = "runtime"


class Stage(Enum):
    """Compiler stage that produced a diagnostic."""
    LEXER = "Lexer"
    PARSER = "Parser"
    SEMANTIC_ANALYZER = "SemanticAnalyzer"
    TYPE_CHECKER = "TypeChecker"
    INTERPRETER = "Interpreter"


@dataclass
class Diagnostic:
    """A single diagnostic message (error, warning, etc.)."""
    code: str                       # E001, E101, etc.
    message: str                    # Human-readable message
    severity: ErrorSeverity
    span: SourceSpan
    kind: DiagnosticKind
    stage: Stage
    source_line: Optional[str] = None   # The actual line of source code
    hints: List[str] = field(default_factory=list)

    @property
    def line(self) -> int:
        return self.span.start.line

    @property
    def column(self) -> int:
        return self.span.start.column

    @property
    def is_error(self) -> bool:
        return self.severity == ErrorSeverity.ERROR

    def format(self, show_source: bool = True) -> str:
        """Format the diagnostic for display."""
        parts = []

        # Header: location: kind severity[code]: message
        loc = f"{self.span.start}"
        parts.append(f"{loc}: {self.kind.value} {self.severity.value}[{self.code}]: {self.message}")

        # Source line with caret
        if show_source and self.source_line is not None:
            parts.append("  |")
            line_num = str(self.span.start.line)
            parts.append(f"{line_num:>3} | {self.source_line}")

            col = self.span.start.column
            if self.span.start.line == self.span.end.line:
                end_col = self.span.end.column
            else:
                end_col = len(self.source_line) + 1
            underline_len = max(1, end_col - col)
            parts.append(f"    | {' ' * (col - 1)}{'^' * underline_len}")

        for hint in self.hints:
            parts.append(f"    = hint: {hint}")

        return "\n".join(parts)

    def summary(self) -> str:
        """One-line form: ``[Syntax Error] (Parser) message at line L:C``."""
        label = f"{self.kind.value.capitalize()} {self.severity.value.capitalize()}"
        return f"[{label}] ({self.stage.value}) {self.message} at line {self.line}:{self.column}"

    def to_json(self) -> dict:
        """Convert to JSON-serializable dict for tooling integration."""
        return {
            "code": self.code,
            "message": self.message,
            "severity": self.severity.value,
            "kind": self.kind.value,
            "stage": self.stage.value,
            "range": {
                "start": {
                    "line": self.span.start.line,
                    "column": self.span.start.column,
                    "offset": self.span.start.offset,
                },
                "end": {
                    "line": self.span.end.line,
                    "column": self.span.end.column,
                    "offset": self.span.end.offset,
                },
            },
            "hints": self.hints,
        }


class SimpleLangError(Exception):
    """Base exception carrying a diagnostic."""

    def __init__(self, diagnostic: Diagnostic):
        self.diagnostic = diagnostic
        super().__init__(diagnostic.message)

    def __str__(self) -> str:
        return self.diagnostic.format()


class ParserError(SimpleLangError):
    """Error during parsing (E1xx). Caught by the parser's recovery."""
    pass


# --- Lexer error codes ---

def lexical_error(code: str, message: str, span: SourceSpan,
                  source_line: str = None, hints: List[str] = None) -> Diagnostic:
    """Build a lexical error diagnostic."""
    return Diagnostic(
        code=code,
        message=message,
        severity=ErrorSeverity.ERROR,
        span=span,
        kind=DiagnosticKind.LEXICAL,
        stage=Stage.LEXER,
        source_line=source_line,
        hints=list(hints or []),
    )


def error_unexpected_character(char: str, span: SourceSpan, source_line: str = None) -> Diagnostic:
    """E001: Unexpected character."""
    hints = []
    if char in ("&", "|"):
        hints.append(f"did you mean '{char * 2}'?")
    return lexical_error("E001", f"unexpected character '{char}'", span, source_line, hints)


def error_unterminated_string(span: SourceSpan, source_line: str = None) -> Diagnostic:
    """E002: Unterminated string literal."""
    return lexical_error(
        "E002", "unterminated string literal", span, source_line,
        ["string literals must be closed with a double quote"],
    )


def error_invalid_escape_sequence(seq: str, span: SourceSpan, source_line: str = None) -> Diagnostic:
    """E003: Invalid escape sequence in string."""
    return lexical_error(
        "E003", f"invalid escape sequence '\\{seq}'", span, source_line,
        ["valid escape sequences: \\n, \\t, \\r, \\\", \\\\, \\0"],
    )


# --- Parser error codes ---

def syntax_error(code: str, message: str, span: SourceSpan,
                 source_line: str = None) -> Diagnostic:
    """Build a syntax error diagnostic without raising."""
    return Diagnostic(
        code=code,
        message=message,
        severity=ErrorSeverity.ERROR,
        span=span,
        kind=DiagnosticKind.SYNTAX,
        stage=Stage.PARSER,
        source_line=source_line,
    )


def error_unexpected_token(expected: str, found: str, span: SourceSpan,
                           source_line: str = None) -> ParserError:
    """E101: Unexpected token."""
    return ParserError(syntax_error("E101", f"expected {expected}, found {found}", span, source_line))


def error_unexpected_eof(expected: str, span: SourceSpan, source_line: str = None) -> ParserError:
    """E102: Unexpected end of file."""
    return ParserError(syntax_error("E102", f"unexpected end of file, expected {expected}", span, source_line))


# --- Semantic, type and runtime diagnostics ---

def semantic_error(code: str, message: str, span: SourceSpan, stage: Stage,
                   source_line: str = None) -> Diagnostic:
    """Build an error from the analyzer or the type checker."""
    return Diagnostic(
        code=code,
        message=message,
        severity=ErrorSeverity.ERROR,
        span=span,
        kind=DiagnosticKind.SEMANTIC,
        stage=stage,
        source_line=source_line,
    )


def semantic_warning(code: str, message: str, span: SourceSpan, stage: Stage,
                     source_line: str = None) -> Diagnostic:
    return Diagnostic(
        code=code,
        message=message,
        severity=ErrorSeverity.WARNING,
        span=span,
        kind=DiagnosticKind.SEMANTIC,
        stage=stage,
        source_line=source_line,
    )


def runtime_error(code: str, message: str, span: SourceSpan,
                  source_line: str = None) -> Diagnostic:
    return Diagnostic(
        code=code,
        message=message,
        severity=ErrorSeverity.ERROR,
        span=span,
        kind=DiagnosticKind.RUNTIME,
        stage=Stage.INTERPRETER,
        source_line=source_line,
    )


class DiagnosticCollector:
    """Collects diagnostics during compilation."""

    def __init__(self, max_errors: int = 20):
        self.diagnostics: List[Diagnostic] = []
        self.max_errors = max_errors
        self._error_count = 0

    def __len__(self) -> int:
        return len(self.diagnostics)

    def __iter__(self):
        return iter(self.diagnostics)

    def add(self, diagnostic: Diagnostic) -> None:
        """Add a diagnostic."""
        self.diagnostics.append(diagnostic)
        if diagnostic.severity == ErrorSeverity.ERROR:
            self._error_count += 1

    def add_error(self, error: SimpleLangError) -> None:
        """Add an error exception as a diagnostic."""
        self.add(error.diagnostic)

    def extend(self, diagnostics) -> None:
        for diagnostic in diagnostics:
            self.add(diagnostic)

    @property
    def errors(self) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.severity == ErrorSeverity.ERROR]

    @property
    def warnings(self) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.severity == ErrorSeverity.WARNING]

    @property
    def error_count(self) -> int:
        return self._error_count

    @property
    def warning_count(self) -> int:
        return sum(1 for d in self.diagnostics if d.severity == ErrorSeverity.WARNING)

    @property
    def has_errors(self) -> bool:
        return self._error_count > 0

    @property
    def has_warnings(self) -> bool:
        return self.warning_count > 0

    @property
    def should_stop(self) -> bool:
        """Check if we've hit the max error limit."""
        return self._error_count >= self.max_errors

    def format_all(self, show_source: bool = True, include_warnings: bool = True) -> str:
        """Format all diagnostics for display."""
        shown = [d for d in self.diagnostics
                 if include_warnings or d.severity != ErrorSeverity.WARNING]
        parts = [d.format(show_source) for d in shown]
        if self._error_count > 0:
            parts.append(f"{self._error_count} error(s), {self.warning_count} warning(s)")
        elif include_warnings and self.warning_count > 0:
            parts.append(f"{self.warning_count} warning(s)")
        return "\n\n".join(parts)

    def to_json(self) -> dict:
        """Convert all diagnostics to JSON format."""
        return {
            "diagnostics": [d.to_json() for d in self.diagnostics],
            "error_count": self._error_count,
            "warning_count": self.warning_count,
        }
