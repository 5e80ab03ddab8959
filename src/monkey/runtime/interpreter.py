"""
Tree-walking interpreter for Monkey.

Evaluates a parsed Program against an Environment. The Evaluator raises
MonkeyError subclasses; the Interpreter wraps lexing, parsing and
evaluation of one source chunk into an ExecutionResult and never raises
for language-level errors.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from .values import (
    Value, ValueType, NULL, EMPTY,
    int_val, bool_val, string_val, return_val, function_val, unwrap_return,
)
from .environment import Environment, ExecutionContext

from ..ast import (
    Program, Statement, LetStatement, ReturnStatement, ExpressionStatement,
    Block, Expression, Identifier, Literal, PrefixOp, InfixOp, IfExpr,
    FunctionLiteral, CallExpr,
)
from ..errors import (
    Diagnostic,
    ErrorSeverity,
    MonkeyError,
    EvalError,
    IdentifierNotFoundError,
    UnsupportedInfixError,
    UnsupportedPrefixError,
    NotCallableError,
    ArityMismatchError,
    DivisionByZeroError,
    IntegerOverflowError,
    RecursionLimitError,
)
from ..lexer import INT64_MAX
from ..parser import parse
from ..settings import DEFAULT_MAX_DEPTH, Settings, stack_headroom
from ..tokens import SourceSpan, TokenType

logger = logging.getLogger(__name__)

INT64_MIN = -INT64_MAX - 1


def _divide(left: int, right: int) -> int:
    """Integer division truncating toward zero."""
    quotient = abs(left) // abs(right)
    return -quotient if (left < 0) != (right < 0) else quotient


_INT_ARITHMETIC: Dict[str, Callable[[int, int], int]] = {
    "+": lambda a, b: a + b,
    "-": lambda a, b: a - b,
    "*": lambda a, b: a * b,
    "/": _divide,
}

_INT_COMPARISON: Dict[str, Callable[[int, int], bool]] = {
    "==": lambda a, b: a == b,
    "!=": lambda a, b: a != b,
    "<": lambda a, b: a < b,
    ">": lambda a, b: a > b,
}


def _checked(result: int, operator: str, span: SourceSpan) -> Value:
    """Wrap an integer result, rejecting values outside the 64-bit range."""
    if not INT64_MIN <= result <= INT64_MAX:
        raise IntegerOverflowError(operator, span)
    return int_val(result)


class Evaluator:
    """
    Tree-walking evaluator.

    Evaluates AST nodes by dispatching to type-specific methods. One
    ExecutionContext is created per evaluate() call; the environment passed
    in is mutated by top-level `let` statements.
    """

    def __init__(self, max_depth: int = DEFAULT_MAX_DEPTH):
        self.max_depth = max_depth

    def evaluate(self, program: Program, env: Environment) -> Value:
        """
        Evaluate a program in `env`.

        A program that failed to parse is not evaluated: its first error is
        raised instead.
        """
        if program.has_errors:
            raise program.errors[0]

        ctx = ExecutionContext(current_scope=env, max_depth=self.max_depth)
        with stack_headroom(self.max_depth):
            result = self._execute_statements(program.statements, ctx)
        return unwrap_return(result)

    # =========================================================================
    # Statements
    # =========================================================================

    def _execute_statements(self, statements: List[Statement], ctx: ExecutionContext) -> Value:
        """Run statements in order, stopping at the first return."""
        result = NULL
        for stmt in statements:
            result = self._execute_statement(stmt, ctx)
            if result.type == ValueType.RETURN:
                break
        return result

    def _execute_statement(self, stmt: Statement, ctx: ExecutionContext) -> Value:
        """Execute a statement."""
        if isinstance(stmt, LetStatement):
            value = self._evaluate(stmt.value, ctx)
            if value.type == ValueType.RETURN:
                return value
            ctx.current_scope.set(stmt.name.name, value)
            return EMPTY
        elif isinstance(stmt, ReturnStatement):
            value = self._evaluate(stmt.value, ctx)
            if value.type == ValueType.RETURN:
                return value
            return return_val(value)
        elif isinstance(stmt, ExpressionStatement):
            return self._evaluate(stmt.expression, ctx)
        else:
            raise TypeError(f"Unknown statement type: {type(stmt).__name__}")

    def _execute_block(self, block: Block, ctx: ExecutionContext) -> Value:
        # Blocks share the enclosing scope; the RETURN wrapper is kept
        return self._execute_statements(block.statements, ctx)

    # =========================================================================
    # Expressions
    # =========================================================================

    def _evaluate(self, expr: Expression, ctx: ExecutionContext) -> Value:
        """Evaluate an expression to produce a Value."""
        if isinstance(expr, Literal):
            return self._eval_literal(expr)
        elif isinstance(expr, Identifier):
            return self._eval_identifier(expr, ctx)
        elif isinstance(expr, InfixOp):
            return self._eval_infix_op(expr, ctx)
        elif isinstance(expr, PrefixOp):
            return self._eval_prefix_op(expr, ctx)
        elif isinstance(expr, IfExpr):
            return self._eval_if_expr(expr, ctx)
        elif isinstance(expr, FunctionLiteral):
            return function_val(expr.parameters, expr.body, ctx.current_scope)
        elif isinstance(expr, CallExpr):
            return self._eval_call(expr, ctx)
        else:
            raise TypeError(f"Unknown expression type: {type(expr).__name__}")

    def _eval_literal(self, lit: Literal) -> Value:
        """Evaluate a literal value."""
        if lit.literal_type == TokenType.INT_LITERAL:
            return int_val(lit.value)
        elif lit.literal_type == TokenType.BOOL_LITERAL:
            return bool_val(lit.value)
        elif lit.literal_type == TokenType.STRING_LITERAL:
            return string_val(lit.value)
        else:
            raise TypeError(f"Unknown literal type: {lit.literal_type}")

    def _eval_identifier(self, ident: Identifier, ctx: ExecutionContext) -> Value:
        """Evaluate an identifier (variable lookup)."""
        value = ctx.current_scope.get(ident.name)
        if value is None:
            raise IdentifierNotFoundError(ident.name, ident.span)
        return value

    def _eval_infix_op(self, op: InfixOp, ctx: ExecutionContext) -> Value:
        """Evaluate a binary operation."""
        left = self._evaluate(op.left, ctx)
        if left.type == ValueType.RETURN:
            return left
        right = self._evaluate(op.right, ctx)
        if right.type == ValueType.RETURN:
            return right
        operator = op.operator

        if left.type == ValueType.INT and right.type == ValueType.INT:
            if operator in _INT_COMPARISON:
                return bool_val(_INT_COMPARISON[operator](left.data, right.data))
            if operator == "/" and right.data == 0:
                raise DivisionByZeroError(op.span)
            return _checked(_INT_ARITHMETIC[operator](left.data, right.data), operator, op.span)

        if left.type == ValueType.BOOL and right.type == ValueType.BOOL:
            if operator == "==":
                return bool_val(left.data == right.data)
            if operator == "!=":
                return bool_val(left.data != right.data)

        if left.type == ValueType.STRING and right.type == ValueType.STRING and operator == "+":
            return string_val(left.data + right.data)

        raise UnsupportedInfixError(operator, left.type_name, right.type_name, op.span)

    def _eval_prefix_op(self, op: PrefixOp, ctx: ExecutionContext) -> Value:
        """Evaluate a unary operation."""
        operand = self._evaluate(op.operand, ctx)
        if operand.type == ValueType.RETURN:
            return operand

        if op.operator == "!" and operand.type == ValueType.BOOL:
            return bool_val(not operand.data)
        if op.operator == "-" and operand.type == ValueType.INT:
            return _checked(-operand.data, "-", op.span)
        if op.operator == "+" and operand.type == ValueType.INT:
            return operand

        raise UnsupportedPrefixError(op.operator, operand.type_name, op.span)

    def _eval_if_expr(self, if_expr: IfExpr, ctx: ExecutionContext) -> Value:
        """Evaluate an if expression; the chosen block's value is the result."""
        condition = self._evaluate(if_expr.condition, ctx)
        if condition.type == ValueType.RETURN:
            return condition
        if condition.is_truthy():
            return self._execute_block(if_expr.consequence, ctx)
        return self._execute_block(if_expr.alternative, ctx)

    def _eval_call(self, call: CallExpr, ctx: ExecutionContext) -> Value:
        """Evaluate a function call."""
        callee = self._evaluate(call.callee, ctx)
        if callee.type == ValueType.RETURN:
            return callee
        if callee.type != ValueType.FUNCTION:
            raise NotCallableError(callee.type_name, call.callee.span)

        args: List[Value] = []
        for arg in call.arguments:
            value = self._evaluate(arg, ctx)
            if value.type == ValueType.RETURN:
                return value
            args.append(value)

        function = callee.data
        if len(args) != function.arity:
            raise ArityMismatchError(function.arity, len(args), call.span)

        call_env = function.env.enclosed("call")
        for param, arg in zip(function.parameters, args):
            call_env.set(param.name, arg)

        # Only calls count toward the depth limit
        with ctx.descend(call.span), ctx.activate(call_env):
            result = self._execute_block(function.body, ctx)
        return unwrap_return(result)


# =============================================================================
# Sessions
# =============================================================================

@dataclass
class ExecutionResult:
    """Result of evaluating one source chunk."""
    success: bool
    value: Optional[Value] = None
    error: Optional[MonkeyError] = None
    diagnostics: List[Diagnostic] = field(default_factory=list)

    @property
    def output(self) -> str:
        """The rendered value ('' for a binding or a failure)."""
        if self.value is None:
            return ""
        return self.value.inspect()

    @property
    def error_message(self) -> Optional[str]:
        if self.error is None:
            return None
        return self.error.message

    @property
    def errors(self) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.severity == ErrorSeverity.ERROR]

    @property
    def warnings(self) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.severity == ErrorSeverity.WARNING]

    def format_error(self, color: bool = False) -> str:
        """Render every error diagnostic, with source excerpts."""
        return "\n".join(d.format(show_source=True, color=color) for d in self.errors)


class Interpreter:
    """
    An interpreter session.

    Owns one global environment, so bindings made by one evaluate() call
    are visible to later calls. Separate Interpreter instances share no
    state.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or Settings()
        self.globals = Environment(name="global")
        self.evaluator = Evaluator(max_depth=self.settings.max_depth)

    def evaluate(self, source: str, filename: Optional[str] = None) -> ExecutionResult:
        """
        Lex, parse and evaluate one chunk of source.

        Args:
            source: Monkey source code
            filename: Optional filename for error messages

        Returns:
            ExecutionResult with the value or the diagnostics
        """
        program = parse(
            source, filename,
            max_depth=self.settings.max_depth,
            max_errors=self.settings.max_errors,
        )
        warnings = list(program.warnings)

        if program.has_errors:
            errors = program.errors
            logger.debug("chunk rejected with %d parse error(s)", len(errors))
            return ExecutionResult(
                success=False,
                error=errors[0],
                diagnostics=[e.diagnostic for e in errors] + warnings,
            )

        logger.debug("evaluating %d statement(s)", len(program.statements))
        try:
            value = self.evaluator.evaluate(program, self.globals)
        except EvalError as e:
            return self._failure(e, source, warnings)
        except RecursionError:
            error = RecursionLimitError(self.settings.max_depth)
            logger.warning("Python stack exhausted before the call depth limit")
            return self._failure(error, source, warnings)

        return ExecutionResult(success=True, value=value, diagnostics=warnings)

    def _failure(self, error: EvalError, source: str,
                 warnings: List[Diagnostic]) -> ExecutionResult:
        diag = error.diagnostic
        if diag.span is not None and diag.source_line is None:
            lines = source.splitlines()
            line_num = diag.span.start.line
            if 1 <= line_num <= len(lines):
                diag.source_line = lines[line_num - 1]
        logger.debug("evaluation failed: %s", error.message)
        return ExecutionResult(success=False, error=error, diagnostics=[diag] + warnings)

    def reset(self) -> None:
        """Drop all global bindings."""
        self.globals = Environment(name="global")


# Convenience functions

def evaluate(program: Program, env: Optional[Environment] = None,
             max_depth: int = DEFAULT_MAX_DEPTH) -> Value:
    """
    Evaluate a parsed program.

    This is a convenience wrapper around Evaluator.evaluate(); a fresh global
    environment is used when none is given.

    Raises:
        MonkeyError: For parse errors stored in the program or evaluation errors
    """
    if env is None:
        env = Environment(name="global")
    return Evaluator(max_depth).evaluate(program, env)


def compile_and_run(source: str, settings: Optional[Settings] = None) -> ExecutionResult:
    """
    High-level API to run Monkey source in one call:

        from monkey import compile_and_run

        result = compile_and_run('''
            let newAdder = fn(x) { fn(y) { x + y } };
            let addTwo = newAdder(2);
            addTwo(2);
        ''')

        if result.success:
            print(result.output)    # 4
        else:
            print(result.format_error())

    Each call uses a fresh Interpreter.
    """
    return Interpreter(settings).evaluate(source)
