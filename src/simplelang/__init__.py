"""
SimpleLang: a small imperative language and its tree-walking interpreter.

This module provides:
- Lexer: Tokenizes source code
- Parser: Builds the AST, recovering from syntax errors
- Semantic analyzer: Scope and declaration checks
- Type checker: Static type inference and mismatch reporting
- Interpreter: Executes programs, with closures and recursion

Usage:
    from simplelang import tokenize, parse, analyze, check, compile_and_run

    # Token stream
    tokens = tokenize('let x = 42;')

    # Or run every stage over a program
    source = '''
    function square(n: int): int {
        return n * n;
    }
    print(square(7));
    '''
    result = compile_and_run(source)
    if not result.success:
        for diag in result.errors:
            print(diag.summary())
"""

from .tokens import (
    Token,
    TokenType,
    SourceLocation,
    SourceSpan,
    KEYWORDS,
    is_type_token,
)

from .lexer import (
    Lexer,
    tokenize,
)

from .parser import (
    Parser,
    parse,
)

from .ast import (
    # Base
    AstNode,
    AstVisitor,
    # Expressions
    Expression,
    Literal,
    Variable,
    BinaryOp,
    UnaryOp,
    Call,
    Assignment,
    # Statements
    Statement,
    VarDecl,
    ExpressionStatement,
    Block,
    IfStatement,
    WhileStatement,
    Parameter,
    FunctionDecl,
    ReturnStatement,
    # Top level
    Program,
    format_ast,
    print_ast,
)

from .types import (
    Type,
    PrimitiveType,
    FunctionType,
    INT,
    FLOAT,
    BOOL,
    STRING,
    VOID,
    NULL,
    UNKNOWN,
    ERROR,
    FUNCTION,
)

from .symbols import (
    Symbol,
    SymbolKind,
    Scope,
    SymbolTable,
    FunctionSignature,
)

from .analyzer import (
    SemanticAnalyzer,
    AnalysisResult,
    analyze,
)

from .checker import (
    TypeChecker,
    CheckResult,
    check,
)

from .errors import (
    Diagnostic,
    DiagnosticCollector,
    DiagnosticKind,
    ErrorSeverity,
    Stage,
    SimpleLangError,
    ParserError,
)

from .config import (
    Config,
    ConfigError,
    get_config,
    load_config,
)

from .runtime import (
    Interpreter,
    ExecutionResult,
    Value,
    EvaluationError,
    compile_and_run,
    check_source,
)

__version__ = "0.1.0"

__all__ = [
    # Tokens
    'Token',
    'TokenType',
    'SourceLocation',
    'SourceSpan',
    'KEYWORDS',
    'is_type_token',
    # Lexer / parser
    'Lexer',
    'tokenize',
    'Parser',
    'parse',
    # AST
    'AstNode',
    'AstVisitor',
    'Expression',
    'Literal',
    'Variable',
    'BinaryOp',
    'UnaryOp',
    'Call',
    'Assignment',
    'Statement',
    'VarDecl',
    'ExpressionStatement',
    'Block',
    'IfStatement',
    'WhileStatement',
    'Parameter',
    'FunctionDecl',
    'ReturnStatement',
    'Program',
    'format_ast',
    'print_ast',
    # Types
    'Type',
    'PrimitiveType',
    'FunctionType',
    'INT',
    'FLOAT',
    'BOOL',
    'STRING',
    'VOID',
    'NULL',
    'UNKNOWN',
    'ERROR',
    'FUNCTION',
    # Symbols
    'Symbol',
    'SymbolKind',
    'Scope',
    'SymbolTable',
    'FunctionSignature',
    # Analysis
    'SemanticAnalyzer',
    'AnalysisResult',
    'analyze',
    'TypeChecker',
    'CheckResult',
    'check',
    # Errors
    'Diagnostic',
    'DiagnosticCollector',
    'DiagnosticKind',
    'ErrorSeverity',
    'Stage',
    'SimpleLangError',
    'ParserError',
    # Config
    'Config',
    'ConfigError',
    'get_config',
    'load_config',
    # Runtime
    'Interpreter',
    'ExecutionResult',
    'Value',
    'EvaluationError',
    'compile_and_run',
    'check_source',
]
