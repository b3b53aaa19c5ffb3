"""
Recursive descent parser for SimpleLang.

Converts a token stream into an Abstract Syntax Tree (AST). Tokens are
pulled lazily from a Lexer (or any token iterable) into a lookahead
buffer. Syntax errors are recorded in ``parser.diagnostics`` and the
parser resynchronizes at the next statement boundary, so ``parse()``
always returns a Program.
"""

import logging
from typing import List, Optional, Iterable, Iterator, Union
from .tokens import (
    Token, TokenType, SourceSpan, SourceLocation, STATEMENT_KEYWORDS, is_type_token,
)
from .lexer import Lexer
from .ast import (
    # Expressions
    Expression, Literal, Variable, BinaryOp, UnaryOp, Call, Assignment,
    # Statements
    Statement, VarDecl, ExpressionStatement, Block, IfStatement,
    WhileStatement, Parameter, FunctionDecl, ReturnStatement,
    Program,
)
from .errors import (
    ParserError,
    error_unexpected_token,
    error_unexpected_eof,
    syntax_error,
    DiagnosticCollector,
)

logger = logging.getLogger(__name__)

MAX_ARGUMENTS = 255


class Parser:
    """
    Recursive descent parser for SimpleLang.

    Usage:
        parser = Parser(Lexer(source))
        program = parser.parse()
        if parser.has_errors:
            print(parser.diagnostics.format_all())

    Expression precedence, loosest first:
        Lowest:  = (right-associative)
                 ||
                 &&
                 == !=
                 < > <= >=
                 + -
                 * / %
                 unary ! -
        Highest: call
    """

    def __init__(self, tokens: Union[Lexer, Iterable[Token]], filename: Optional[str] = None,
                 source: Optional[str] = None, max_errors: int = 20):
        if isinstance(tokens, Lexer):
            self._stream: Iterator[Token] = iter(tokens.next_token, None)
            filename = filename or tokens.filename
            source = source if source is not None else tokens.source
        else:
            self._stream = iter(tokens)
        self.filename = filename
        self.source = source
        self._lines = source.splitlines() if source is not None else []
        self._buffer: List[Token] = []
        self._exhausted = False
        self.pos = 0
        self._depth = 0  # nesting of blocks and branches, for recovery
        self.diagnostics = DiagnosticCollector(max_errors)

    @property
    def has_errors(self) -> bool:
        return self.diagnostics.has_errors

    def get_source_line(self, line_num: int) -> Optional[str]:
        if 1 <= line_num <= len(self._lines):
            return self._lines[line_num - 1]
        return None

    # =========================================================================
    # Token Navigation
    # =========================================================================

    def _fill(self, idx: int) -> None:
        """Pull tokens until the buffer holds index ``idx`` or EOF."""
        while len(self._buffer) <= idx and not self._exhausted:
            token = next(self._stream, None)
            if token is None:
                # Iterable ran out without an EOF token; synthesize one
                if self._buffer:
                    end = self._buffer[-1].span.end
                else:
                    end = SourceLocation(1, 1, 0, self.filename)
                token = Token(TokenType.EOF, None, "", SourceSpan(end, end))
            if token.type == TokenType.ERROR:
                # The lexer owns these diagnostics
                continue
            self._buffer.append(token)
            if token.type == TokenType.EOF:
                self._exhausted = True

    def _current(self) -> Token:
        """Get current token."""
        return self._peek(0)

    def _peek(self, offset: int = 0) -> Token:
        """Peek at token at current position + offset."""
        idx = self.pos + offset
        self._fill(idx)
        if idx >= len(self._buffer):
            return self._buffer[-1]  # EOF
        return self._buffer[idx]

    def _previous(self) -> Token:
        return self._buffer[max(0, self.pos - 1)]

    def _is_at_end(self) -> bool:
        """Check if at end of tokens."""
        return self._current().type == TokenType.EOF

    def _check(self, token_type: TokenType) -> bool:
        """Check if current token is of given type."""
        return self._current().type == token_type

    def _check_any(self, *token_types: TokenType) -> bool:
        """Check if current token is any of given types."""
        return self._current().type in token_types

    def _advance(self) -> Token:
        """Consume and return current token."""
        token = self._current()
        if not self._is_at_end():
            self.pos += 1
        return token

    def _consume(self, token_type: TokenType, expected: str) -> Token:
        """Consume token of expected type, or raise error."""
        if self._check(token_type):
            return self._advance()
        self._error(expected)

    def _match(self, *token_types: TokenType) -> Optional[Token]:
        """Consume token if it matches any of the given types."""
        if self._current().type in token_types:
            return self._advance()
        return None

    def _error(self, expected: str) -> None:
        """Raise a parser error at the current token."""
        token = self._current()
        source_line = self.get_source_line(token.line)
        if token.type == TokenType.EOF:
            raise error_unexpected_eof(expected, token.span, source_line)
        raise error_unexpected_token(expected, f"'{token.lexeme}'", token.span, source_line)

    def _report(self, code: str, message: str, span: SourceSpan) -> None:
        """Record a syntax error without unwinding."""
        self.diagnostics.add(syntax_error(code, message, span, self.get_source_line(span.start.line)))

    def _span_from(self, start: Token) -> SourceSpan:
        """Create a span from start token to the end of the previous token."""
        end_token = self._previous() if self.pos > 0 else start
        return SourceSpan(start.span.start, end_token.span.end)

    # =========================================================================
    # Error Recovery
    # =========================================================================

    def _at_sync_point(self) -> bool:
        if self._check_any(*STATEMENT_KEYWORDS):
            return True
        return self._depth > 0 and self._check_any(TokenType.END, TokenType.ELSE, TokenType.RBRACE)

    def _synchronize(self, start_pos: int) -> None:
        """Discard tokens until a plausible statement boundary."""
        if self.pos == start_pos or not self._at_sync_point():
            self._advance()
        while not self._is_at_end():
            if self._previous().type == TokenType.SEMICOLON:
                return
            if self._at_sync_point():
                return
            self._advance()

    def _parse_statement_or_recover(self) -> Optional[Statement]:
        """Parse one statement; on error record it, resync and return None."""
        start_pos = self.pos
        try:
            return self._parse_statement()
        except ParserError as e:
            self.diagnostics.add_error(e)
            logger.debug("syntax error at %s, resynchronizing: %s",
                         e.diagnostic.span.start, e.diagnostic.message)
            self._synchronize(start_pos)
            return None

    def _parse_statements_until(self, *terminators: TokenType) -> List[Statement]:
        statements = []
        while not self._check_any(*terminators) and not self._is_at_end():
            if self.diagnostics.should_stop:
                break
            stmt = self._parse_statement_or_recover()
            if stmt is not None:
                statements.append(stmt)
        return statements

    # =========================================================================
    # Expression Parsing
    # =========================================================================

    def _parse_expression(self) -> Expression:
        """Parse an expression."""
        return self._parse_assignment()

    def _parse_assignment(self) -> Expression:
        """Parse assignment (right-associative): name = expr."""
        expr = self._parse_logic_or()

        if self._check(TokenType.ASSIGN):
            equals = self._advance()
            value = self._parse_assignment()
            if isinstance(expr, Variable):
                return Assignment(
                    span=SourceSpan(expr.span.start, value.span.end),
                    name=expr.name,
                    value=value,
                )
            self._report("E104", "invalid assignment target", equals.span)
        return expr

    def _parse_binary_level(self, operand, *operators: TokenType) -> Expression:
        """Parse a left-associative binary level."""
        left = operand()
        while self._check_any(*operators):
            op = self._advance().type
            right = operand()
            left = BinaryOp(
                span=SourceSpan(left.span.start, right.span.end),
                left=left,
                operator=op,
                right=right,
            )
        return left

    def _parse_logic_or(self) -> Expression:
        return self._parse_binary_level(self._parse_logic_and, TokenType.OR)

    def _parse_logic_and(self) -> Expression:
        return self._parse_binary_level(self._parse_equality, TokenType.AND)

    def _parse_equality(self) -> Expression:
        return self._parse_binary_level(self._parse_relational, TokenType.EQ, TokenType.NE)

    def _parse_relational(self) -> Expression:
        return self._parse_binary_level(
            self._parse_additive, TokenType.LT, TokenType.GT, TokenType.LE, TokenType.GE
        )

    def _parse_additive(self) -> Expression:
        return self._parse_binary_level(self._parse_multiplicative, TokenType.PLUS, TokenType.MINUS)

    def _parse_multiplicative(self) -> Expression:
        return self._parse_binary_level(
            self._parse_unary, TokenType.STAR, TokenType.SLASH, TokenType.PERCENT
        )

    def _parse_unary(self) -> Expression:
        """Parse unary expression (! or -)."""
        if self._check_any(TokenType.NOT, TokenType.MINUS):
            start = self._advance()
            operand = self._parse_unary()
            return UnaryOp(
                span=SourceSpan(start.span.start, operand.span.end),
                operator=start.type,
                operand=operand,
            )
        return self._parse_call()

    def _parse_call(self) -> Expression:
        """Parse a primary followed by any number of call suffixes."""
        expr = self._parse_primary()
        while self._match(TokenType.LPAREN):
            arguments = []
            if not self._check(TokenType.RPAREN):
                arguments.append(self._parse_expression())
                while self._match(TokenType.COMMA):
                    arguments.append(self._parse_expression())
            close = self._consume(TokenType.RPAREN, "')' after arguments")
            if len(arguments) > MAX_ARGUMENTS:
                self._report("E105", f"cannot have more than {MAX_ARGUMENTS} arguments", close.span)
            expr = Call(
                span=SourceSpan(expr.span.start, close.span.end),
                callee=expr,
                arguments=arguments,
            )
        return expr

    def _parse_primary(self) -> Expression:
        """Parse a primary expression."""
        token = self._current()

        if self._check_any(TokenType.INT_LITERAL, TokenType.FLOAT_LITERAL,
                           TokenType.STRING_LITERAL, TokenType.BOOL_LITERAL):
            self._advance()
            return Literal(span=token.span, value=token.value, literal_type=token.type)

        if self._match(TokenType.IDENTIFIER):
            return Variable(span=token.span, name=token.value)

        if self._match(TokenType.LPAREN):
            expr = self._parse_expression()
            self._consume(TokenType.RPAREN, "')' after expression")
            return expr

        self._error("expression")

    # =========================================================================
    # Statement Parsing
    # =========================================================================

    def _parse_statement(self) -> Statement:
        """Parse a statement."""
        if self._check(TokenType.LET):
            return self._parse_var_decl()
        if self._check(TokenType.CONST):
            return self._parse_var_decl(constant=True)
        if self._check(TokenType.IF):
            return self._parse_if_statement()
        if self._check(TokenType.WHILE):
            return self._parse_while_statement()
        if self._check(TokenType.FUNCTION):
            return self._parse_function_decl()
        if self._check(TokenType.RETURN):
            return self._parse_return_statement()
        if self._check(TokenType.LBRACE):
            return self._parse_block()
        return self._parse_expression_statement()

    def _parse_var_decl(self, constant: bool = False) -> VarDecl:
        """Parse 'let name [= expr];' or 'const name = expr;'."""
        start = self._advance()  # consume 'let' / 'const'
        name = self._consume(TokenType.IDENTIFIER, "variable name").value

        initializer = None
        if constant:
            self._consume(TokenType.ASSIGN, "'=' after constant name")
            initializer = self._parse_expression()
        elif self._match(TokenType.ASSIGN):
            initializer = self._parse_expression()

        self._consume(TokenType.SEMICOLON, "';' after variable declaration")
        return VarDecl(
            span=self._span_from(start),
            name=name,
            initializer=initializer,
            constant=constant,
        )

    def _parse_branch(self, *terminators: TokenType) -> Statement:
        """Parse the body of an if/while up to one of the terminators."""
        start = self._current()
        self._depth += 1
        try:
            statements = self._parse_statements_until(*terminators)
        finally:
            self._depth -= 1
        if len(statements) == 1:
            return statements[0]
        if not statements:
            return Block(span=SourceSpan(start.span.start, start.span.start), statements=[])
        return Block(
            span=SourceSpan(statements[0].span.start, statements[-1].span.end),
            statements=statements,
        )

    def _parse_if_statement(self) -> IfStatement:
        """Parse 'if (cond) then ... [else ...] end;'."""
        start = self._advance()  # consume 'if'
        self._consume(TokenType.LPAREN, "'(' after 'if'")
        condition = self._parse_expression()
        self._consume(TokenType.RPAREN, "')' after condition")
        self._consume(TokenType.THEN, "'then' after condition")

        then_branch = self._parse_branch(TokenType.ELSE, TokenType.END)
        else_branch = None
        if self._match(TokenType.ELSE):
            else_branch = self._parse_branch(TokenType.END)

        self._consume(TokenType.END, "'end' after if statement")
        self._consume(TokenType.SEMICOLON, "';' after 'end'")
        return IfStatement(
            span=self._span_from(start),
            condition=condition,
            then_branch=then_branch,
            else_branch=else_branch,
        )

    def _parse_while_statement(self) -> WhileStatement:
        """Parse 'while (cond) do ... end;'."""
        start = self._advance()  # consume 'while'
        self._consume(TokenType.LPAREN, "'(' after 'while'")
        condition = self._parse_expression()
        self._consume(TokenType.RPAREN, "')' after condition")
        self._consume(TokenType.DO, "'do' after condition")

        body = self._parse_branch(TokenType.END)

        self._consume(TokenType.END, "'end' after while body")
        self._consume(TokenType.SEMICOLON, "';' after 'end'")
        return WhileStatement(span=self._span_from(start), condition=condition, body=body)

    def _parse_return_statement(self) -> ReturnStatement:
        """Parse 'return [expr];'."""
        start = self._advance()  # consume 'return'
        value = None
        if not self._check(TokenType.SEMICOLON):
            value = self._parse_expression()
        self._consume(TokenType.SEMICOLON, "';' after return value")
        return ReturnStatement(span=self._span_from(start), value=value)

    def _parse_block(self) -> Block:
        """Parse a brace-delimited block."""
        start = self._consume(TokenType.LBRACE, "'{'")
        self._depth += 1
        try:
            statements = self._parse_statements_until(TokenType.RBRACE)
        finally:
            self._depth -= 1
        self._consume(TokenType.RBRACE, "'}' after block")
        return Block(span=self._span_from(start), statements=statements)

    def _parse_expression_statement(self) -> ExpressionStatement:
        start = self._current()
        expr = self._parse_expression()
        self._consume(TokenType.SEMICOLON, "';' after expression")
        return ExpressionStatement(span=self._span_from(start), expression=expr)

    # =========================================================================
    # Declaration Parsing
    # =========================================================================

    def _parse_type_name(self) -> str:
        """Parse a type annotation: int, float, bool, string, void or function."""
        if is_type_token(self._current().type):
            return self._advance().lexeme
        self._error("type name")

    def _parse_parameter(self) -> Parameter:
        """Parse 'name: type'."""
        start = self._consume(TokenType.IDENTIFIER, "parameter name")
        self._consume(TokenType.COLON, "':' after parameter name")
        type_name = self._parse_type_name()
        return Parameter(span=self._span_from(start), name=start.value, type_name=type_name)

    def _parse_function_decl(self) -> FunctionDecl:
        """Parse 'function name(params) [: type] { body }'."""
        start = self._advance()  # consume 'function'
        name = self._consume(TokenType.IDENTIFIER, "function name").value
        self._consume(TokenType.LPAREN, "'(' after function name")

        parameters = []
        if not self._check(TokenType.RPAREN):
            parameters.append(self._parse_parameter())
            while self._match(TokenType.COMMA):
                parameters.append(self._parse_parameter())
        close = self._consume(TokenType.RPAREN, "')' after parameters")
        if len(parameters) > MAX_ARGUMENTS:
            self._report("E105", f"cannot have more than {MAX_ARGUMENTS} parameters", close.span)

        return_type = None
        if self._match(TokenType.COLON):
            return_type = self._parse_type_name()

        body = self._parse_block()
        return FunctionDecl(
            span=self._span_from(start),
            name=name,
            parameters=parameters,
            return_type=return_type,
            body=body,
        )

    # =========================================================================
    # Program
    # =========================================================================

    def parse(self) -> Program:
        """Parse a complete program. Never raises; check ``has_errors``."""
        start = self._current()
        statements = self._parse_statements_until(TokenType.EOF)
        end = self._current()
        return Program(span=SourceSpan(start.span.start, end.span.end), statements=statements)


def parse(tokens: Union[Lexer, Iterable[Token]], filename: Optional[str] = None,
          source: Optional[str] = None, max_errors: int = 20) -> Program:
    """
    Convenience function to parse tokens into a program.

    Args:
        tokens: A Lexer, or any iterable of tokens
        filename: Optional filename for error messages
        source: Optional original source code for error excerpts
        max_errors: Stop recording after this many syntax errors

    Returns:
        Parsed Program AST. Syntax errors are not raised; construct a
        Parser directly to inspect its diagnostics.
    """
    parser = Parser(tokens, filename, source, max_errors)
    return parser.parse()
