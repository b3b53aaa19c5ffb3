"""
Tests for the built-in function registry.
"""

import io

import pytest
from simplelang.runtime import (
    Environment, ExecutionContext, EvaluationError,
    get_builtin_registry, call_builtin,
    int_val, float_val, bool_val, string_val, null_val,
)
from simplelang.types import INT, FLOAT, STRING


@pytest.fixture
def ctx():
    return ExecutionContext(stdout=io.StringIO(), stdin=io.StringIO(""))


def call(ctx, name, *args):
    return call_builtin(name, list(args), ctx)


class TestRegistry:
    """Test registry lookup and installation."""

    def test_all_builtins_registered(self):
        """Every native function is available."""
        names = get_builtin_registry().names()
        assert names == sorted([
            "print", "input", "toString", "toInt", "toFloat", "length", "substring", "concat",
        ])

    def test_singleton(self):
        """The registry is created once."""
        assert get_builtin_registry() is get_builtin_registry()

    def test_install(self):
        """install binds builtins as function values."""
        env = Environment(name="global")
        get_builtin_registry().install(env)
        value = env.get("length")
        assert value.is_function
        assert value.data.name == "length"

    def test_unknown_builtin(self, ctx):
        """Calling an unregistered name raises."""
        with pytest.raises(EvaluationError):
            call(ctx, "nosuch")

    def test_arity_checked(self, ctx):
        """Fixed-arity builtins reject the wrong argument count."""
        with pytest.raises(EvaluationError) as exc:
            call(ctx, "length")
        assert exc.value.code == "E406"
        assert str(exc.value) == "length() expects 1 argument(s) but got 0"


class TestIOFunctions:
    """Test print and input."""

    def test_print(self, ctx):
        """print writes one space-separated line and returns null."""
        result = call(ctx, "print", int_val(1), string_val("a"), bool_val(False))
        assert result.is_null
        assert ctx.stdout.getvalue() == "1 a false\n"

    def test_print_no_arguments(self, ctx):
        """print() writes an empty line."""
        call(ctx, "print")
        assert ctx.stdout.getvalue() == "\n"

    def test_input(self):
        """input reads one line without its newline."""
        ctx = ExecutionContext(stdout=io.StringIO(), stdin=io.StringIO("Alice\nBob\n"))
        assert call(ctx, "input").data == "Alice"
        assert call(ctx, "input").data == "Bob"

    def test_input_prompt(self):
        """The prompt is written before reading."""
        ctx = ExecutionContext(stdout=io.StringIO(), stdin=io.StringIO("42\n"))
        value = call(ctx, "input", string_val("Number?"))
        assert value.data == "42"
        assert ctx.stdout.getvalue() == "Number?\n"

    def test_input_eof(self, ctx):
        """At end of input the result is the empty string."""
        assert call(ctx, "input").data == ""

    def test_input_too_many_arguments(self, ctx):
        """input takes at most one argument."""
        with pytest.raises(EvaluationError) as exc:
            call(ctx, "input", string_val("a"), string_val("b"))
        assert exc.value.code == "E406"


class TestConversionFunctions:
    """Test toString, toInt and toFloat."""

    def test_to_string(self, ctx):
        """toString uses the print rendering."""
        assert call(ctx, "toString", float_val(3.0)).data == "3.0"
        assert call(ctx, "toString", bool_val(True)).data == "true"
        assert call(ctx, "toString", null_val()).data == "null"

    def test_to_int(self, ctx):
        """toInt truncates floats and parses strings."""
        assert call(ctx, "toInt", float_val(3.9)).data == 3
        assert call(ctx, "toInt", float_val(-3.9)).data == -3
        assert call(ctx, "toInt", bool_val(True)).data == 1
        assert call(ctx, "toInt", string_val(" 42 ")).data == 42
        assert call(ctx, "toInt", int_val(7)).type == INT

    def test_to_int_bad_string(self, ctx):
        """A non-numeric string is an error, not a crash."""
        with pytest.raises(EvaluationError) as exc:
            call(ctx, "toInt", string_val("abc"))
        assert exc.value.code == "E407"

    def test_to_int_null(self, ctx):
        """null has no integer value."""
        with pytest.raises(EvaluationError):
            call(ctx, "toInt", null_val())

    def test_to_int_non_finite(self, ctx):
        """inf and nan have no integer value."""
        for x in (float("inf"), float("-inf"), float("nan")):
            with pytest.raises(EvaluationError) as exc:
                call(ctx, "toInt", float_val(x))
            assert exc.value.code == "E407"

    def test_to_float_huge_int(self, ctx):
        """An int beyond float range is an error."""
        with pytest.raises(EvaluationError) as exc:
            call(ctx, "toFloat", int_val(10 ** 400))
        assert exc.value.code == "E407"

    def test_to_float(self, ctx):
        """toFloat widens ints and parses strings."""
        assert call(ctx, "toFloat", int_val(2)).data == 2.0
        assert call(ctx, "toFloat", int_val(2)).type == FLOAT
        assert call(ctx, "toFloat", string_val("2.5")).data == 2.5
        assert call(ctx, "toFloat", bool_val(False)).data == 0.0

    def test_to_float_bad_string(self, ctx):
        """A non-numeric string is an error."""
        with pytest.raises(EvaluationError):
            call(ctx, "toFloat", string_val("two"))


class TestStringFunctions:
    """Test length, substring and concat."""

    def test_length(self, ctx):
        """length counts characters."""
        assert call(ctx, "length", string_val("hello")).data == 5
        assert call(ctx, "length", string_val("")).data == 0

    def test_length_requires_string(self, ctx):
        """length of a number is an error."""
        with pytest.raises(EvaluationError) as exc:
            call(ctx, "length", int_val(5))
        assert exc.value.code == "E407"

    def test_substring(self, ctx):
        """substring(s, start, length)."""
        assert call(ctx, "substring", string_val("hello"), int_val(1), int_val(3)).data == "ell"

    def test_substring_clamps_length(self, ctx):
        """Overlong and negative lengths run to the end."""
        assert call(ctx, "substring", string_val("hello"), int_val(3), int_val(10)).data == "lo"
        assert call(ctx, "substring", string_val("hello"), int_val(2), int_val(-1)).data == "llo"

    def test_substring_start_out_of_bounds(self, ctx):
        """A start outside the string is an error."""
        with pytest.raises(EvaluationError):
            call(ctx, "substring", string_val("hello"), int_val(5), int_val(1))
        with pytest.raises(EvaluationError):
            call(ctx, "substring", string_val("hello"), int_val(-1), int_val(1))

    def test_substring_argument_types(self, ctx):
        """substring needs (string, int, int)."""
        with pytest.raises(EvaluationError):
            call(ctx, "substring", string_val("hello"), float_val(1.0), int_val(1))

    def test_concat(self, ctx):
        """concat joins the text of its arguments."""
        value = call(ctx, "concat", string_val("a"), int_val(1), bool_val(True))
        assert value.data == "a1true"
        assert value.type == STRING
        assert call(ctx, "concat").data == ""
