"""
Tests for the command-line front end.
"""

import io
import textwrap

import pytest
import yaml

from simplelang.__main__ import main, REPL_BANNER
from simplelang.config import get_config


@pytest.fixture(autouse=True)
def fresh_config():
    get_config().reset()
    yield
    get_config().reset()


@pytest.fixture
def write_program(tmp_path):
    def _write(source, name="prog.sl"):
        path = tmp_path / name
        path.write_text(textwrap.dedent(source))
        return str(path)
    return _write


class TestRunCommand:
    """Test 'run'."""

    def test_run_success(self, write_program, capsys):
        """A valid program prints its output and exits 0."""
        path = write_program("let x = 10; let y = 20; let z = (x + y) * 3 - 15 / 5; print(z);")
        assert main(["run", path]) == 0
        captured = capsys.readouterr()
        assert captured.out == "87.0\n"
        assert captured.err == ""

    def test_run_missing_file(self, tmp_path, capsys):
        """A missing file is reported on stderr."""
        missing = tmp_path / "nope.sl"
        assert main(["run", str(missing)]) == 1
        assert f"Error: File not found: {missing}" in capsys.readouterr().err

    def test_run_syntax_errors(self, write_program, capsys):
        """Syntax errors are printed under a stage header."""
        path = write_program("let = 5; let y = ;")
        assert main(["run", path]) == 1
        err = capsys.readouterr().err
        assert "Parser errors:" in err
        assert err.count("[E101]") == 2
        assert "^" in err

    def test_run_runtime_error(self, write_program, capsys):
        """Runtime errors are reported after the program finishes."""
        path = write_program("""
            print(1 / 0);
            print("after");
        """)
        assert main(["run", path]) == 1
        captured = capsys.readouterr()
        assert captured.out == "null\nafter\n"
        assert "Interpreter errors:" in captured.err
        assert "division by zero" in captured.err

    def test_run_type_error(self, write_program, capsys):
        """Type errors stop before execution."""
        path = write_program("print(1); print(true + 1);")
        assert main(["run", path]) == 1
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "TypeChecker errors:" in captured.err

    def test_warnings_shown(self, write_program, capsys):
        """Warnings are printed by default."""
        path = write_program("""
            function f(): int {
                return 1;
                print(2);
            }
            print(f());
        """)
        assert main(["run", path]) == 0
        captured = capsys.readouterr()
        assert captured.out == "1\n"
        assert "W301" in captured.err

    def test_warnings_disabled_by_config(self, write_program, tmp_path, capsys):
        """The warnings setting hides warnings."""
        config_path = tmp_path / "settings.yaml"
        config_path.write_text("warnings: false\n")
        path = write_program("""
            function f(): int {
                return 1;
                print(2);
            }
            print(f());
        """)
        assert main(["--config", str(config_path), "run", path]) == 0
        assert capsys.readouterr().err == ""

    def test_max_errors_option(self, write_program, capsys):
        """--max-errors limits how many errors a stage reports."""
        path = write_program("let = 1; let = 2; let = 3;")
        assert main(["--max-errors", "1", "run", path]) == 1
        assert capsys.readouterr().err.count("[E101]") == 1

    def test_max_errors_from_config(self, write_program, tmp_path, capsys):
        """max-errors can come from the config file."""
        config_path = tmp_path / "settings.yaml"
        config_path.write_text("max-errors: 2\n")
        path = write_program("let = 1; let = 2; let = 3;")
        assert main(["--config", str(config_path), "run", path]) == 1
        assert capsys.readouterr().err.count("[E101]") == 2

    def test_invalid_config_file(self, write_program, tmp_path, capsys):
        """A config file that is not a mapping is an error."""
        config_path = tmp_path / "settings.yaml"
        config_path.write_text("- just\n- a list\n")
        path = write_program("print(1);")
        assert main(["--config", str(config_path), "run", path]) == 1
        assert "Error:" in capsys.readouterr().err


class TestInspectionCommands:
    """Test 'check', 'tokens', 'ast' and 'config'."""

    def test_check_ok(self, write_program, capsys):
        """check reports OK without running the program."""
        path = write_program("let x = 1; print(x);")
        assert main(["check", path]) == 0
        assert capsys.readouterr().out == "OK: prog.sl - 2 statement(s), no errors\n"

    def test_check_errors(self, write_program, capsys):
        """check exits 1 on semantic errors."""
        path = write_program("print(y);")
        assert main(["check", path]) == 1
        err = capsys.readouterr().err
        assert "SemanticAnalyzer errors:" in err
        assert "undefined variable 'y'" in err

    def test_tokens(self, write_program, capsys):
        """tokens prints one token per line."""
        path = write_program("let x = 42;")
        assert main(["tokens", path]) == 0
        lines = capsys.readouterr().out.splitlines()
        assert len(lines) == 6
        assert "LET 'let'" in lines[0]
        assert "INT_LITERAL(42)" in lines[3]
        assert "EOF" in lines[-1]

    def test_tokens_lexical_error(self, write_program, capsys):
        """Lexical errors are listed after the tokens."""
        path = write_program("let @;")
        assert main(["tokens", path]) == 1
        captured = capsys.readouterr()
        assert "ERROR" in captured.out
        assert "Lexer errors:" in captured.err

    def test_ast(self, write_program, capsys):
        """ast prints the syntax tree."""
        path = write_program("let x = 1 + 2;")
        assert main(["ast", path]) == 0
        out = capsys.readouterr().out
        assert out.startswith("Program")
        assert "BinaryOp" in out

    def test_ast_syntax_error(self, write_program, capsys):
        """ast exits 1 when parsing fails."""
        path = write_program("let = 1;")
        assert main(["ast", path]) == 1
        assert "Parser errors:" in capsys.readouterr().err

    def test_config_show(self, capsys):
        """config prints the effective settings."""
        assert main(["config"]) == 0
        out = capsys.readouterr().out
        assert "max_errors = 10" in out
        assert "encoding = utf-8" in out

    def test_config_save(self, tmp_path, capsys):
        """config --save writes YAML."""
        target = tmp_path / "saved.yaml"
        assert main(["config", "--save", str(target)]) == 0
        data = yaml.safe_load(target.read_text())
        assert data["max_errors"] == 10
        assert data["warnings"] is True


class TestRepl:
    """Test the interactive loop."""

    def test_repl_runs_lines(self, monkeypatch, capsys):
        """Each line runs as its own program."""
        monkeypatch.setattr("sys.stdin", io.StringIO("print(1 + 1);\nprint(\"hi\");\nexit\n"))
        assert main(["repl"]) == 0
        out = capsys.readouterr().out
        assert out.startswith(REPL_BANNER)
        assert "2\n" in out
        assert "hi\n" in out

    def test_repl_is_default(self, monkeypatch, capsys):
        """With no command the REPL starts and ends at EOF."""
        monkeypatch.setattr("sys.stdin", io.StringIO(""))
        assert main([]) == 0
        assert REPL_BANNER in capsys.readouterr().out

    def test_repl_lines_are_independent(self, monkeypatch, capsys):
        """Declarations do not carry over between lines."""
        monkeypatch.setattr("sys.stdin", io.StringIO("let x = 1;\nprint(x);\nquit\n"))
        assert main(["repl"]) == 0
        assert "undefined variable 'x'" in capsys.readouterr().err

    def test_repl_reports_errors(self, monkeypatch, capsys):
        """Errors are printed and the loop continues."""
        monkeypatch.setattr("sys.stdin", io.StringIO("print(true + 1);\nprint(3);\n"))
        assert main(["repl"]) == 0
        captured = capsys.readouterr()
        assert "type mismatch" in captured.err
        assert "3\n" in captured.out
