"""
Tests for diagnostics and the diagnostic collector.
"""

import pytest
from simplelang import (
    Diagnostic, DiagnosticCollector, DiagnosticKind, ErrorSeverity, Stage,
    SourceLocation, SourceSpan,
)
from simplelang.errors import (
    error_unexpected_character, error_unexpected_token, semantic_error,
    semantic_warning, runtime_error,
)


def span(line, start_col, end_col):
    return SourceSpan(
        SourceLocation(line, start_col, 0),
        SourceLocation(line, end_col, 0),
    )


class TestDiagnostic:
    """Test diagnostic formatting."""

    def test_format_with_caret(self):
        """The source line is shown with the span underlined."""
        diag = semantic_error("E302", "undefined variable 'y'", span(1, 7, 8),
                              Stage.SEMANTIC_ANALYZER, "print(y);")
        text = diag.format()
        lines = text.splitlines()
        assert lines[0] == "1:7: semantic error[E302]: undefined variable 'y'"
        assert lines[2] == "  1 | print(y);"
        assert lines[3] == "    |       ^"

    def test_format_without_source(self):
        """show_source=False prints only the header."""
        diag = runtime_error("E404", "division by zero", span(3, 7, 12), "print(1 / 0);")
        assert diag.format(show_source=False) == "3:7: runtime error[E404]: division by zero"

    def test_hints(self):
        """Hints follow the excerpt."""
        diag = error_unexpected_character("&", span(1, 3, 4), "a & b")
        assert diag.format().splitlines()[-1] == "    = hint: did you mean '&&'?"

    def test_summary(self):
        """The one-line form names kind, stage and position."""
        diag = semantic_warning("W301", "unreachable code after 'return'", span(4, 5, 13),
                                Stage.SEMANTIC_ANALYZER)
        assert diag.summary() == (
            "[Semantic Warning] (SemanticAnalyzer) unreachable code after 'return' at line 4:5"
        )

    def test_properties(self):
        """Position and severity shortcuts."""
        diag = runtime_error("E401", "undefined variable 'q'", span(2, 9, 10))
        assert diag.line == 2
        assert diag.column == 9
        assert diag.is_error
        assert diag.kind == DiagnosticKind.RUNTIME
        assert diag.stage == Stage.INTERPRETER

    def test_parser_error_carries_diagnostic(self):
        """ParserError wraps a syntax diagnostic."""
        error = error_unexpected_token("';'", "'let'", span(1, 11, 14))
        assert error.diagnostic.code == "E101"
        assert error.diagnostic.message == "expected ';', found 'let'"
        assert error.diagnostic.kind == DiagnosticKind.SYNTAX

    def test_to_json(self):
        """Diagnostics serialize to plain data."""
        data = runtime_error("E404", "division by zero", span(3, 7, 12)).to_json()
        assert data["code"] == "E404"
        assert data["severity"] == "error"
        assert data["stage"] == "Interpreter"
        assert data["range"]["start"]["line"] == 3


class TestDiagnosticCollector:
    """Test collection and error limits."""

    def test_counts(self):
        """Errors and warnings are counted separately."""
        collector = DiagnosticCollector()
        collector.add(runtime_error("E404", "division by zero", span(1, 1, 2)))
        collector.add(semantic_warning("W301", "unreachable", span(2, 1, 2), Stage.SEMANTIC_ANALYZER))
        assert len(collector) == 2
        assert collector.error_count == 1
        assert collector.warning_count == 1
        assert collector.has_errors and collector.has_warnings
        assert [d.code for d in collector.errors] == ["E404"]
        assert [d.code for d in collector.warnings] == ["W301"]

    def test_should_stop(self):
        """should_stop trips at max_errors."""
        collector = DiagnosticCollector(max_errors=2)
        collector.add(runtime_error("E404", "a", span(1, 1, 2)))
        assert not collector.should_stop
        collector.add(runtime_error("E404", "b", span(2, 1, 2)))
        assert collector.should_stop

    def test_warnings_do_not_count_toward_limit(self):
        """Only errors count toward max_errors."""
        collector = DiagnosticCollector(max_errors=1)
        collector.add(semantic_warning("W301", "w", span(1, 1, 2), Stage.SEMANTIC_ANALYZER))
        assert not collector.should_stop

    def test_format_all(self):
        """format_all ends with a count line and can omit warnings."""
        collector = DiagnosticCollector()
        collector.add(runtime_error("E404", "division by zero", span(1, 1, 2)))
        collector.add(semantic_warning("W301", "unreachable", span(2, 1, 2), Stage.SEMANTIC_ANALYZER))
        text = collector.format_all()
        assert text.endswith("1 error(s), 1 warning(s)")
        assert "W301" not in collector.format_all(include_warnings=False)

    def test_to_json(self):
        """The collector serializes its diagnostics and counts."""
        collector = DiagnosticCollector()
        collector.add(runtime_error("E404", "division by zero", span(1, 1, 2)))
        data = collector.to_json()
        assert data["error_count"] == 1
        assert len(data["diagnostics"]) == 1
