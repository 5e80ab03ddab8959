#!/usr/bin/env python3
"""
CLI for the Monkey interpreter.

Usage:
    python -m monkey [repl]
    python -m monkey run FILE
    python -m monkey check FILE [--json]
    python -m monkey tokens FILE
    python -m monkey ast FILE

FILE may be '-' to read from standard input.

Examples:
    # Start an interactive session
    python -m monkey

    # Evaluate a script and print its value
    python -m monkey run examples/closures.monkey

    # Report syntax errors and warnings without running
    python -m monkey check examples/closures.monkey
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional

from .settings import Settings

logger = logging.getLogger(__name__)


def read_source(file: str) -> Optional[str]:
    """Read a source file, or standard input for '-'."""
    if file == "-":
        return sys.stdin.read()

    source_path = Path(file)
    if not source_path.exists():
        print(f"Error: File not found: {source_path}", file=sys.stderr)
        return None
    return source_path.read_text()


def source_name(file: str) -> str:
    return "<stdin>" if file == "-" else file


def cmd_repl(args, settings: Settings) -> int:
    """Start the interactive shell."""
    from .repl import Shell
    from .runtime import Interpreter

    Shell(Interpreter(settings)).cmdloop()
    return 0


def cmd_run(args, settings: Settings) -> int:
    """Evaluate a file and print the resulting value."""
    from .runtime import Interpreter

    source = read_source(args.file)
    if source is None:
        return 1

    result = Interpreter(settings).evaluate(source, filename=source_name(args.file))
    for warning in result.warnings:
        print(warning.format(color=settings.color), file=sys.stderr)

    if not result.success:
        print(result.format_error(color=settings.color), file=sys.stderr)
        return 1

    if result.output:
        print(result.output)
    return 0


def cmd_check(args, settings: Settings) -> int:
    """Check a file for lexer and parser errors."""
    from .parser import parse
    from .errors import DiagnosticCollector

    source = read_source(args.file)
    if source is None:
        return 1

    program = parse(
        source, source_name(args.file),
        max_depth=settings.max_depth,
        max_errors=settings.max_errors,
    )

    diagnostics = DiagnosticCollector(max_errors=settings.max_errors)
    for error in program.errors:
        diagnostics.add_error(error)
    for warning in program.warnings:
        diagnostics.add(warning)

    if args.json:
        print(json.dumps(diagnostics.to_json(), indent=2))
    elif diagnostics.diagnostics:
        print(diagnostics.format_all(color=settings.color))
    else:
        print(f"OK: {source_name(args.file)} ({len(program.statements)} statement(s))")

    return 1 if diagnostics.has_errors else 0


def cmd_tokens(args, settings: Settings) -> int:
    """Print the token stream of a file."""
    from .lexer import Lexer
    from .errors import LexerError

    source = read_source(args.file)
    if source is None:
        return 1

    try:
        for token in Lexer(source, source_name(args.file)):
            print(f"{token.span.start}\t{token}")
    except LexerError as e:
        print(e.diagnostic.format(color=settings.color), file=sys.stderr)
        return 1
    return 0


def cmd_ast(args, settings: Settings) -> int:
    """Print the syntax tree of a file."""
    from .parser import parse
    from .ast import format_ast

    source = read_source(args.file)
    if source is None:
        return 1

    program = parse(
        source, source_name(args.file),
        max_depth=settings.max_depth,
        max_errors=settings.max_errors,
    )
    print(format_ast(program))

    for error in program.errors:
        print(error.diagnostic.format(color=settings.color), file=sys.stderr)
    return 1 if program.has_errors else 0


def configure_logging(verbosity: int, settings: Settings) -> None:
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = getattr(logging, settings.log_level, logging.WARNING)
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog='python -m monkey',
        description='Monkey language interpreter',
    )
    parser.add_argument('--max-depth', type=int, metavar='N',
                        help='Maximum function-call depth and expression nesting')
    parser.add_argument('--no-color', action='store_true',
                        help='Disable colored diagnostics')
    parser.add_argument('-v', '--verbose', action='count', default=0,
                        help='Increase logging output (repeat for debug)')

    subparsers = parser.add_subparsers(dest='action')

    # repl command
    subparsers.add_parser('repl', help='Start the interactive shell (default)')

    # run command
    run_parser = subparsers.add_parser('run', help='Evaluate a source file')
    run_parser.add_argument('file', help="Monkey source file ('-' for stdin)")

    # check command
    check_parser = subparsers.add_parser('check', help='Check a source file for errors')
    check_parser.add_argument('file', help="Monkey source file ('-' for stdin)")
    check_parser.add_argument('--json', action='store_true',
                              help='Print diagnostics as JSON')

    # tokens command
    tokens_parser = subparsers.add_parser('tokens', help='Dump the token stream')
    tokens_parser.add_argument('file', help="Monkey source file ('-' for stdin)")

    # ast command
    ast_parser = subparsers.add_parser('ast', help='Dump the syntax tree')
    ast_parser.add_argument('file', help="Monkey source file ('-' for stdin)")

    args = parser.parse_args(argv)

    settings = Settings.from_env()
    if args.max_depth is not None and args.max_depth < 1:
        parser.error("--max-depth must be positive")
    settings = settings.with_overrides(
        max_depth=args.max_depth,
        color=False if args.no_color else None,
    )
    configure_logging(args.verbose, settings)
    logger.debug("settings: %s", settings)

    if args.action in (None, 'repl'):
        return cmd_repl(args, settings)
    elif args.action == 'run':
        return cmd_run(args, settings)
    elif args.action == 'check':
        return cmd_check(args, settings)
    elif args.action == 'tokens':
        return cmd_tokens(args, settings)
    elif args.action == 'ast':
        return cmd_ast(args, settings)
    else:
        parser.print_help()
        return 1


if __name__ == '__main__':
    sys.exit(main())
