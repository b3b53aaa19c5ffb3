"""
Unit tests for the SimpleLang lexer.
"""

import pytest
from simplelang import tokenize, Lexer, TokenType


def types_of(source):
    return [t.type for t in tokenize(source)]


class TestLexerBasics:
    """Test basic lexer functionality."""

    def test_empty_source(self):
        """Empty source produces only EOF."""
        tokens = tokenize("")
        assert len(tokens) == 1
        assert tokens[0].type == TokenType.EOF

    def test_whitespace_only(self):
        """Whitespace and newlines produce only EOF."""
        assert types_of("   \t \n\r\n  ") == [TokenType.EOF]

    def test_simple_let_statement(self):
        """Basic let statement tokenization."""
        assert types_of("let x = 42;") == [
            TokenType.LET,
            TokenType.IDENTIFIER,
            TokenType.ASSIGN,
            TokenType.INT_LITERAL,
            TokenType.SEMICOLON,
            TokenType.EOF,
        ]

    def test_identifier_value(self):
        """Identifier token has correct value."""
        tokens = tokenize("foo_bar123")
        assert tokens[0].type == TokenType.IDENTIFIER
        assert tokens[0].value == "foo_bar123"

    def test_leading_underscore_identifier(self):
        """Identifiers may start with an underscore."""
        tokens = tokenize("_tmp")
        assert tokens[0].type == TokenType.IDENTIFIER
        assert tokens[0].value == "_tmp"

    def test_position_tracking(self):
        """Token positions are tracked correctly."""
        tokens = tokenize("let x = 5;")
        assert tokens[0].line == 1
        assert tokens[0].column == 1
        assert tokens[1].column == 5

    def test_multiline_position_tracking(self):
        """Position tracking across multiple lines."""
        tokens = tokenize("let x = 5;\nlet y = 10;")
        let_tokens = [t for t in tokens if t.type == TokenType.LET]
        assert let_tokens[0].line == 1
        assert let_tokens[1].line == 2
        assert let_tokens[1].column == 1

    def test_lexeme_is_source_text(self):
        """Lexemes preserve the original spelling."""
        tokens = tokenize("3.50 >= x")
        assert tokens[0].lexeme == "3.50"
        assert tokens[1].lexeme == ">="

    def test_eof_repeats(self):
        """next_token keeps returning EOF once the input is exhausted."""
        lexer = Lexer("x")
        assert lexer.next_token().type == TokenType.IDENTIFIER
        assert lexer.next_token().type == TokenType.EOF
        assert lexer.next_token().type == TokenType.EOF

    def test_filename_in_location(self):
        """The filename is carried into token locations."""
        tokens = tokenize("x", filename="main.sl")
        assert str(tokens[0].span.start) == "main.sl:1:1"


class TestKeywords:
    """Test keyword recognition."""

    def test_statement_keywords(self):
        """Control keywords are recognized."""
        assert types_of("let const if then else end while do function return")[:-1] == [
            TokenType.LET,
            TokenType.CONST,
            TokenType.IF,
            TokenType.THEN,
            TokenType.ELSE,
            TokenType.END,
            TokenType.WHILE,
            TokenType.DO,
            TokenType.FUNCTION,
            TokenType.RETURN,
        ]

    def test_type_keywords(self):
        """Type names are keywords."""
        assert types_of("int float bool string void")[:-1] == [
            TokenType.TYPE_INT,
            TokenType.TYPE_FLOAT,
            TokenType.TYPE_BOOL,
            TokenType.TYPE_STRING,
            TokenType.TYPE_VOID,
        ]

    def test_boolean_literals(self):
        """true and false are boolean literals with Python values."""
        tokens = tokenize("true false")
        assert tokens[0].type == TokenType.BOOL_LITERAL
        assert tokens[0].value is True
        assert tokens[1].value is False

    def test_keyword_prefix_is_identifier(self):
        """A keyword followed by identifier characters is an identifier."""
        tokens = tokenize("letter iffy")
        assert tokens[0].type == TokenType.IDENTIFIER
        assert tokens[1].type == TokenType.IDENTIFIER


class TestLiterals:
    """Test numeric and string literals."""

    def test_integer(self):
        """Integer literal value."""
        tokens = tokenize("42")
        assert tokens[0].type == TokenType.INT_LITERAL
        assert tokens[0].value == 42

    def test_float(self):
        """Float literal value."""
        tokens = tokenize("3.14")
        assert tokens[0].type == TokenType.FLOAT_LITERAL
        assert tokens[0].value == pytest.approx(3.14)

    def test_dot_without_fraction(self):
        """A dot not followed by a digit does not continue the number."""
        tokens = tokenize("1.")
        assert tokens[0].type == TokenType.INT_LITERAL
        assert tokens[1].type == TokenType.ERROR

    def test_string(self):
        """String literal value excludes the quotes."""
        tokens = tokenize('"hello world"')
        assert tokens[0].type == TokenType.STRING_LITERAL
        assert tokens[0].value == "hello world"
        assert tokens[0].lexeme == '"hello world"'

    def test_string_escapes(self):
        """Escape sequences are decoded."""
        tokens = tokenize(r'"a\nb\t\"q\"\\"')
        assert tokens[0].value == 'a\nb\t"q"\\'

    def test_multiline_string(self):
        """Strings may span lines."""
        tokens = tokenize('"one\ntwo" x')
        assert tokens[0].value == "one\ntwo"
        assert tokens[1].line == 2

    def test_token_str(self):
        """Tokens render as TYPE(value)."""
        tokens = tokenize("42 ;")
        assert str(tokens[0]) == "INT_LITERAL(42)"
        assert str(tokens[1]) == "SEMICOLON"


class TestOperators:
    """Test operator tokenization."""

    def test_single_char_operators(self):
        """Arithmetic and delimiter tokens."""
        assert types_of("+ - * / % ( ) { } : ; , !")[:-1] == [
            TokenType.PLUS,
            TokenType.MINUS,
            TokenType.STAR,
            TokenType.SLASH,
            TokenType.PERCENT,
            TokenType.LPAREN,
            TokenType.RPAREN,
            TokenType.LBRACE,
            TokenType.RBRACE,
            TokenType.COLON,
            TokenType.SEMICOLON,
            TokenType.COMMA,
            TokenType.NOT,
        ]

    def test_two_char_operators(self):
        """Two-character operators take precedence over their prefixes."""
        assert types_of("== != <= >= && || < > =")[:-1] == [
            TokenType.EQ,
            TokenType.NE,
            TokenType.LE,
            TokenType.GE,
            TokenType.AND,
            TokenType.OR,
            TokenType.LT,
            TokenType.GT,
            TokenType.ASSIGN,
        ]

    def test_operators_without_spaces(self):
        """Operators need no surrounding whitespace."""
        assert types_of("a<=b")[:-1] == [TokenType.IDENTIFIER, TokenType.LE, TokenType.IDENTIFIER]


class TestComments:
    """Test comment handling."""

    def test_line_comment(self):
        """Comments run to the end of the line."""
        tokens = tokenize("# a comment\nlet")
        assert tokens[0].type == TokenType.LET
        assert tokens[0].line == 2

    def test_trailing_comment(self):
        """A comment after code is ignored."""
        assert types_of("x; # trailing")[:-1] == [TokenType.IDENTIFIER, TokenType.SEMICOLON]


class TestLexerErrors:
    """Test lexical error reporting."""

    def test_unexpected_character(self):
        """An unknown character yields an ERROR token and scanning continues."""
        lexer = Lexer("let @ x")
        tokens = lexer.tokenize()
        assert [t.type for t in tokens] == [
            TokenType.LET, TokenType.ERROR, TokenType.IDENTIFIER, TokenType.EOF,
        ]
        assert tokens[1].value == "unexpected character '@'"
        assert tokens[1].column == 5
        assert lexer.diagnostics.errors[0].code == "E001"

    def test_single_ampersand_hint(self):
        """A lone '&' suggests '&&'."""
        lexer = Lexer("a & b")
        lexer.tokenize()
        diag = lexer.diagnostics.errors[0]
        assert diag.code == "E001"
        assert "did you mean '&&'?" in diag.hints

    def test_unterminated_string(self):
        """An unclosed string is an E002 error token."""
        lexer = Lexer('let s = "abc')
        tokens = lexer.tokenize()
        assert tokens[3].type == TokenType.ERROR
        assert tokens[-1].type == TokenType.EOF
        assert lexer.diagnostics.errors[0].code == "E002"

    def test_invalid_escape(self):
        """An unknown escape is an E003 error and the string is still consumed."""
        lexer = Lexer(r'"a\qb" x')
        tokens = lexer.tokenize()
        assert tokens[0].type == TokenType.ERROR
        assert tokens[1].type == TokenType.IDENTIFIER
        assert lexer.diagnostics.errors[0].code == "E003"

    def test_multiple_errors_collected(self):
        """Every bad character is reported."""
        lexer = Lexer("@ $ ?")
        lexer.tokenize()
        assert lexer.diagnostics.error_count == 3
        assert lexer.has_errors

    def test_error_has_source_line(self):
        """Lexical diagnostics carry the offending line."""
        lexer = Lexer("ok;\nbad $;")
        lexer.tokenize()
        diag = lexer.diagnostics.errors[0]
        assert diag.line == 2
        assert diag.source_line == "bad $;"
