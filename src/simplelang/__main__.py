#!/usr/bin/env python3
"""
CLI for the SimpleLang interpreter.

Usage:
    python -m simplelang run FILE.sl
    python -m simplelang check FILE.sl
    python -m simplelang tokens FILE.sl
    python -m simplelang ast FILE.sl
    python -m simplelang config [--save FILE]
    python -m simplelang [repl]

Global options:
    --config FILE     Load settings from a YAML file
    -v, --verbose     Debug logging
    --max-errors N    Stop each stage after N errors

Examples:
    # Check syntax and types without running
    python -m simplelang check examples/fib.sl

    # Run with settings from a file
    python -m simplelang --config simplelang.yaml run examples/fib.sl
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .config import Config, ConfigError, get_config
from .errors import Diagnostic, ErrorSeverity
from .lexer import Lexer
from .parser import Parser
from .ast import format_ast
from .tokens import TokenType
from .runtime import compile_and_run

REPL_BANNER = "SimpleLang REPL (type 'exit' to quit)"
REPL_PROMPT = "> "


def read_source(args, config: Config) -> Optional[str]:
    """Read the source file named on the command line, or None if it is missing."""
    source_path = Path(args.file)
    if not source_path.exists():
        print(f"Error: File not found: {source_path}", file=sys.stderr)
        return None
    return source_path.read_text(encoding=config.get("encoding", "utf-8"))


def print_diagnostics(diagnostics: List[Diagnostic], config: Config, header: Optional[str] = None) -> None:
    """Print diagnostics to stderr, honouring the show_source and warnings settings."""
    show_source = config.get_bool("show_source", True)
    show_warnings = config.get_bool("warnings", True)

    warnings = [d for d in diagnostics if d.severity == ErrorSeverity.WARNING]
    errors = [d for d in diagnostics if d.severity == ErrorSeverity.ERROR]

    if show_warnings:
        for diag in warnings:
            print(diag.format(show_source), file=sys.stderr)
    if errors:
        if header:
            print(header, file=sys.stderr)
        for diag in errors:
            print(diag.format(show_source), file=sys.stderr)


def cmd_run(args, config: Config) -> int:
    """Execute a source file."""
    source = read_source(args, config)
    if source is None:
        return 1

    result = compile_and_run(source, args.file, max_errors=args.max_errors)
    header = f"{result.stage.value} errors:" if result.stage is not None else None
    print_diagnostics(result.diagnostics, config, header)
    return 0 if result.success else 1


def cmd_check(args, config: Config) -> int:
    """Run the static stages over a source file."""
    source = read_source(args, config)
    if source is None:
        return 1

    result = compile_and_run(source, args.file, max_errors=args.max_errors, execute=False)
    if not result.success:
        print_diagnostics(result.diagnostics, config, f"{result.stage.value} errors:")
        return 1

    print_diagnostics(result.diagnostics, config)
    count = len(result.program.statements) if result.program is not None else 0
    print(f"OK: {Path(args.file).name} - {count} statement(s), no errors")
    return 0


def cmd_tokens(args, config: Config) -> int:
    """Print the token stream, one token per line."""
    source = read_source(args, config)
    if source is None:
        return 1

    lexer = Lexer(source, args.file)
    for token in lexer:
        print(f"{token.line:>4}:{token.column:<4} {token} {token.lexeme!r}")
        if token.type == TokenType.EOF:
            break

    if lexer.has_errors:
        print_diagnostics(lexer.diagnostics.diagnostics, config, "Lexer errors:")
        return 1
    return 0


def cmd_ast(args, config: Config) -> int:
    """Print the syntax tree."""
    source = read_source(args, config)
    if source is None:
        return 1

    lexer = Lexer(source, args.file)
    parser = Parser(lexer, max_errors=args.max_errors)
    program = parser.parse()

    if lexer.has_errors or parser.has_errors:
        stage = "Lexer" if lexer.has_errors else "Parser"
        diagnostics = lexer.diagnostics.diagnostics if lexer.has_errors else parser.diagnostics.diagnostics
        print_diagnostics(diagnostics, config, f"{stage} errors:")
        return 1

    print(format_ast(program))
    return 0


def cmd_config(args, config: Config) -> int:
    """Show the effective settings or save them to YAML."""
    if args.save:
        config.save(args.save)
        print(f"Settings written to: {args.save}")
        return 0

    for key, value in config.items():
        print(f"{key} = {value}")
    return 0


def cmd_repl(args, config: Config) -> int:
    """Read-eval-print loop. Each line runs as an independent program."""
    print(REPL_BANNER)
    while True:
        print(REPL_PROMPT, end="", flush=True)
        line = sys.stdin.readline()
        if line == "":
            print()
            break

        line = line.strip()
        if line in ("exit", "quit"):
            break
        if not line:
            continue

        result = compile_and_run(line, "<repl>", max_errors=args.max_errors)
        print_diagnostics(result.diagnostics, config)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='python -m simplelang',
        description='SimpleLang interpreter',
    )
    parser.add_argument('--config', metavar='FILE', help='Load settings from a YAML file')
    parser.add_argument('-v', '--verbose', action='store_true', help='Enable debug logging')
    parser.add_argument('--max-errors', type=int, metavar='N',
                        help='Maximum errors reported per stage')

    subparsers = parser.add_subparsers(dest='action')

    run_parser = subparsers.add_parser('run', help='Run a source file')
    run_parser.add_argument('file', help='SimpleLang source file')

    check_parser = subparsers.add_parser('check', help='Check a source file for errors')
    check_parser.add_argument('file', help='SimpleLang source file')

    tokens_parser = subparsers.add_parser('tokens', help='Print the token stream')
    tokens_parser.add_argument('file', help='SimpleLang source file')

    ast_parser = subparsers.add_parser('ast', help='Print the syntax tree')
    ast_parser.add_argument('file', help='SimpleLang source file')

    config_parser = subparsers.add_parser('config', help='Show or save the settings')
    config_parser.add_argument('--save', metavar='FILE', help='Write the settings to a YAML file')

    subparsers.add_parser('repl', help='Start the interactive interpreter')

    return parser


COMMANDS = {
    'run': cmd_run,
    'check': cmd_check,
    'tokens': cmd_tokens,
    'ast': cmd_ast,
    'config': cmd_config,
    'repl': cmd_repl,
}


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    config = get_config()
    if args.config:
        try:
            config.load(args.config)
        except ConfigError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1

    verbose = args.verbose or config.get_bool("debug")
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING)

    if args.max_errors is None:
        args.max_errors = config.get_int("max_errors", 10)

    return COMMANDS[args.action or 'repl'](args, config)


if __name__ == '__main__':
    sys.exit(main())
