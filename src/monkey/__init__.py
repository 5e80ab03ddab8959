"""
Monkey language interpreter.

This module provides:
- Lexer: Tokenizes Monkey source code
- Parser: Builds an AST with a Pratt parser, recovering from errors per statement
- Evaluator / Interpreter: Tree-walking evaluation with lexical closures
- Shell: An interactive read-eval-print loop

Usage:
    from monkey import tokenize, parse, evaluate, Interpreter

    # Simple tokenizing
    tokens = tokenize('let x = 42;')

    # Parse and evaluate a program
    program = parse('let add = fn(a, b) { a + b }; add(1, 2)')
    if program.has_errors:
        for error in program.errors:
            print(error)
    else:
        print(evaluate(program))    # 3

    # Or keep bindings across chunks with a session
    session = Interpreter()
    session.evaluate('let x = 5;')
    result = session.evaluate('x * 2')
    print(result.output)            # 10
"""

from .tokens import (
    Token,
    TokenType,
    SourceLocation,
    SourceSpan,
    KEYWORDS,
)

from .lexer import (
    Lexer,
    tokenize,
)

from .parser import (
    Parser,
    Precedence,
    parse,
)

from .ast import (
    # Base
    AstNode,
    AstVisitor,
    # Expressions
    Expression,
    Identifier,
    Literal,
    PrefixOp,
    InfixOp,
    IfExpr,
    FunctionLiteral,
    CallExpr,
    # Statements
    Statement,
    LetStatement,
    ReturnStatement,
    ExpressionStatement,
    Block,
    Program,
    # Helpers
    format_ast,
    print_ast,
)

from .errors import (
    MonkeyError,
    LexerError,
    ParserError,
    EvalError,
    IdentifierNotFoundError,
    UnsupportedInfixError,
    UnsupportedPrefixError,
    NotCallableError,
    ArityMismatchError,
    DivisionByZeroError,
    IntegerOverflowError,
    RecursionLimitError,
    Diagnostic,
    DiagnosticCollector,
    ErrorSeverity,
)

from .runtime import (
    Value,
    ValueType,
    Environment,
    Evaluator,
    Interpreter,
    ExecutionResult,
    evaluate,
    compile_and_run,
)

from .settings import Settings

__version__ = "0.1.0"

__all__ = [
    # Tokens
    'Token',
    'TokenType',
    'SourceLocation',
    'SourceSpan',
    'KEYWORDS',
    # Lexer
    'Lexer',
    'tokenize',
    # Parser
    'Parser',
    'Precedence',
    'parse',
    # AST
    'AstNode',
    'AstVisitor',
    'Expression',
    'Identifier',
    'Literal',
    'PrefixOp',
    'InfixOp',
    'IfExpr',
    'FunctionLiteral',
    'CallExpr',
    'Statement',
    'LetStatement',
    'ReturnStatement',
    'ExpressionStatement',
    'Block',
    'Program',
    'format_ast',
    'print_ast',
    # Errors
    'MonkeyError',
    'LexerError',
    'ParserError',
    'EvalError',
    'IdentifierNotFoundError',
    'UnsupportedInfixError',
    'UnsupportedPrefixError',
    'NotCallableError',
    'ArityMismatchError',
    'DivisionByZeroError',
    'IntegerOverflowError',
    'RecursionLimitError',
    'Diagnostic',
    'DiagnosticCollector',
    'ErrorSeverity',
    # Runtime
    'Value',
    'ValueType',
    'Environment',
    'Evaluator',
    'Interpreter',
    'ExecutionResult',
    'evaluate',
    'compile_and_run',
    # Settings
    'Settings',
]
