"""
Lexer for SimpleLang.

Converts source text into a stream of tokens for the parser.
Supports:
- Single-line comments (#)
- Double-quoted string literals with escape sequences (may span lines)
- Integer and float literals
- Keywords, type names and boolean literals
- One- and two-character operators

The lexer never raises. Malformed input produces an ERROR token whose
value is the message, and the matching diagnostic is recorded in
``lexer.diagnostics``.
"""

from typing import List, Optional, Iterator
from .tokens import Token, TokenType, SourceLocation, SourceSpan, KEYWORDS
from .errors import (
    Diagnostic,
    DiagnosticCollector,
    error_unexpected_character,
    error_unterminated_string,
    error_invalid_escape_sequence,
)


ESCAPE_CHARS = {
    'n': '\n',
    't': '\t',
    'r': '\r',
    '"': '"',
    '\\': '\\',
    '0': '\0',
}

TWO_CHAR_TOKENS = {
    '==': TokenType.EQ,
    '!=': TokenType.NE,
    '<=': TokenType.LE,
    '>=': TokenType.GE,
    '&&': TokenType.AND,
    '||': TokenType.OR,
}

SINGLE_CHAR_TOKENS = {
    '+': TokenType.PLUS,
    '-': TokenType.MINUS,
    '*': TokenType.STAR,
    '/': TokenType.SLASH,
    '%': TokenType.PERCENT,
    '<': TokenType.LT,
    '>': TokenType.GT,
    '!': TokenType.NOT,
    '=': TokenType.ASSIGN,
    '(': TokenType.LPAREN,
    ')': TokenType.RPAREN,
    '{': TokenType.LBRACE,
    '}': TokenType.RBRACE,
    ':': TokenType.COLON,
    ';': TokenType.SEMICOLON,
    ',': TokenType.COMMA,
}


def _is_digit(ch: str) -> bool:
    return '0' <= ch <= '9'


class Lexer:
    """
    Tokenizer for SimpleLang.

    Usage:
        lexer = Lexer(source_code)
        tokens = lexer.tokenize()

    Or pull one token at a time (the parser does this):
        lexer = Lexer(source_code)
        token = lexer.next_token()
    """

    def __init__(self, source: str, filename: Optional[str] = None, max_errors: int = 1000):
        self.source = source
        self.filename = filename
        self.pos = 0            # Current position in source
        self.line = 1           # Current line (1-indexed)
        self.column = 1         # Current column (1-indexed)
        self._lines: Optional[List[str]] = None  # Cached line list
        self.diagnostics = DiagnosticCollector(max_errors)

    @property
    def lines(self) -> List[str]:
        """Lazy-load line list for error reporting."""
        if self._lines is None:
            self._lines = self.source.splitlines()
        return self._lines

    @property
    def has_errors(self) -> bool:
        return self.diagnostics.has_errors

    def get_source_line(self, line_num: int) -> Optional[str]:
        """Get a specific line of source (1-indexed)."""
        if 1 <= line_num <= len(self.lines):
            return self.lines[line_num - 1]
        return None

    def _location(self) -> SourceLocation:
        """Get current source location."""
        return SourceLocation(self.line, self.column, self.pos, self.filename)

    def _span(self, start: SourceLocation) -> SourceSpan:
        """Create a span from start to current position."""
        return SourceSpan(start, self._location())

    def _peek(self, offset: int = 0) -> str:
        """Look at character at current position + offset without consuming."""
        idx = self.pos + offset
        if idx >= len(self.source):
            return '\0'
        return self.source[idx]

    def _advance(self) -> str:
        """Consume and return current character."""
        if self.pos >= len(self.source):
            return '\0'
        ch = self.source[self.pos]
        self.pos += 1
        if ch == '\n':
            self.line += 1
            self.column = 1
        else:
            self.column += 1
        return ch

    def _is_at_end(self) -> bool:
        """Check if we've reached end of source."""
        return self.pos >= len(self.source)

    def _skip_whitespace_and_comments(self) -> None:
        """Skip whitespace, newlines and ``#`` comments."""
        while not self._is_at_end():
            ch = self._peek()
            if ch in ' \t\r\n':
                self._advance()
            elif ch == '#':
                while not self._is_at_end() and self._peek() != '\n':
                    self._advance()
            else:
                break

    def _make_token(self, token_type: TokenType, value, start: SourceLocation,
                    lexeme: Optional[str] = None) -> Token:
        """Create a token."""
        span = self._span(start)
        if lexeme is None:
            lexeme = self.source[start.offset:self.pos]
        return Token(token_type, value, lexeme, span)

    def _error_token(self, diagnostic: Diagnostic, start: SourceLocation) -> Token:
        """Record a lexical error and return the ERROR token describing it."""
        self.diagnostics.add(diagnostic)
        return self._make_token(TokenType.ERROR, diagnostic.message, start)

    def _scan_string(self) -> Token:
        """Scan a double-quoted string literal."""
        start = self._location()
        self._advance()  # consume opening quote

        chars = []
        bad_escape: Optional[Diagnostic] = None
        while not self._is_at_end() and self._peek() != '"':
            ch = self._advance()
            if ch != '\\':
                chars.append(ch)
                continue

            esc_start = self._location()
            if self._is_at_end():
                break
            esc = self._advance()
            if esc in ESCAPE_CHARS:
                chars.append(ESCAPE_CHARS[esc])
            elif bad_escape is None:
                bad_escape = error_invalid_escape_sequence(
                    esc, self._span(esc_start), self.get_source_line(esc_start.line)
                )

        if self._is_at_end():
            return self._error_token(
                error_unterminated_string(self._span(start), self.get_source_line(start.line)),
                start,
            )

        self._advance()  # consume closing quote
        if bad_escape is not None:
            return self._error_token(bad_escape, start)
        return self._make_token(TokenType.STRING_LITERAL, ''.join(chars), start)

    def _scan_number(self) -> Token:
        """Scan a numeric literal (int or float)."""
        start = self._location()
        while _is_digit(self._peek()):
            self._advance()

        # A '.' only continues the number when a digit follows it
        if self._peek() == '.' and _is_digit(self._peek(1)):
            self._advance()
            while _is_digit(self._peek()):
                self._advance()
            lexeme = self.source[start.offset:self.pos]
            return self._make_token(TokenType.FLOAT_LITERAL, float(lexeme), start, lexeme)

        lexeme = self.source[start.offset:self.pos]
        return self._make_token(TokenType.INT_LITERAL, int(lexeme), start, lexeme)

    def _scan_identifier_or_keyword(self) -> Token:
        """Scan an identifier or keyword."""
        start = self._location()

        while self._peek().isalnum() or self._peek() == '_':
            self._advance()

        lexeme = self.source[start.offset:self.pos]

        if lexeme in KEYWORDS:
            token_type = KEYWORDS[lexeme]
            if token_type == TokenType.BOOL_LITERAL:
                value = lexeme == 'true'
            else:
                value = lexeme
            return self._make_token(token_type, value, start, lexeme)

        return self._make_token(TokenType.IDENTIFIER, lexeme, start, lexeme)

    def next_token(self) -> Token:
        """Scan and return the next token. Returns EOF repeatedly at the end."""
        self._skip_whitespace_and_comments()

        start = self._location()
        if self._is_at_end():
            return self._make_token(TokenType.EOF, None, start, "")

        ch = self._peek()

        if ch == '"':
            return self._scan_string()

        if _is_digit(ch):
            return self._scan_number()

        if ch.isalpha() or ch == '_':
            return self._scan_identifier_or_keyword()

        # Two-character operators take precedence
        pair = ch + self._peek(1)
        if pair in TWO_CHAR_TOKENS:
            self._advance()
            self._advance()
            return self._make_token(TWO_CHAR_TOKENS[pair], pair, start)

        self._advance()
        if ch in SINGLE_CHAR_TOKENS:
            return self._make_token(SINGLE_CHAR_TOKENS[ch], ch, start)

        return self._error_token(
            error_unexpected_character(ch, self._span(start), self.get_source_line(start.line)),
            start,
        )

    def tokenize(self) -> List[Token]:
        """Tokenize the entire source, returning a list of tokens."""
        tokens = []
        while True:
            token = self.next_token()
            tokens.append(token)
            if token.type == TokenType.EOF:
                break
        return tokens

    def __iter__(self) -> Iterator[Token]:
        """Iterate over tokens."""
        while True:
            token = self.next_token()
            yield token
            if token.type == TokenType.EOF:
                break


def tokenize(source: str, filename: Optional[str] = None) -> List[Token]:
    """
    Convenience function to tokenize source code.

    Args:
        source: The source code to tokenize
        filename: Optional filename for error messages

    Returns:
        List of tokens, ending with EOF. Malformed input shows up as
        ERROR tokens rather than exceptions.
    """
    lexer = Lexer(source, filename)
    return lexer.tokenize()
