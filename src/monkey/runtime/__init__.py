"""
Monkey Runtime - Tree-walking interpreter with lexical closures.

This module provides:
- Evaluator: Evaluates a parsed Program in an Environment
- Interpreter: A session that keeps global bindings between chunks
- Value: Runtime value wrappers with type tags
- Environment / ExecutionContext: Scope chain and evaluation state
"""

from .values import (
    Value,
    ValueType,
    Function,
    NULL,
    EMPTY,
    TRUE,
    FALSE,
    int_val,
    bool_val,
    string_val,
    return_val,
    function_val,
    unwrap_return,
)

from .environment import (
    Environment,
    ExecutionContext,
)

from .interpreter import (
    Evaluator,
    Interpreter,
    ExecutionResult,
    evaluate,
    compile_and_run,
)

__all__ = [
    # Values
    'Value',
    'ValueType',
    'Function',
    'NULL',
    'EMPTY',
    'TRUE',
    'FALSE',
    'int_val',
    'bool_val',
    'string_val',
    'return_val',
    'function_val',
    'unwrap_return',

    # Environment
    'Environment',
    'ExecutionContext',

    # Interpreter
    'Evaluator',
    'Interpreter',
    'ExecutionResult',
    'evaluate',
    'compile_and_run',
]
