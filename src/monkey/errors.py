"""
Monkey exceptions and diagnostics.

Error code ranges:
- E0xx: Lexer errors
- E1xx: Parser errors
- E4xx: Runtime errors
- W0xx: Warnings
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, List

from termcolor import colored

from .tokens import SourceSpan


class ErrorSeverity(Enum):
    """Severity levels for diagnostics."""
    ERROR = "error"
    WARNING = "warning"


_SEVERITY_COLORS = {
    ErrorSeverity.ERROR: "red",
    ErrorSeverity.WARNING: "magenta",
}


@dataclass
class Diagnostic:
    """A single diagnostic message (error or warning)."""
    code: str                       # E001, E101, etc.
    message: str                    # Human-readable message
    severity: ErrorSeverity
    span: Optional[SourceSpan] = None
    source_line: Optional[str] = None   # The actual line of source code
    hints: List[str] = field(default_factory=list)

    def format(self, show_source: bool = True, color: bool = False) -> str:
        """Format the diagnostic for display."""
        parts = []

        # Header: location: severity[code]: message
        label = f"{self.severity.value}[{self.code}]"
        if color:
            label = colored(label, _SEVERITY_COLORS[self.severity], attrs=["bold"])
        if self.span is not None:
            parts.append(f"{self.span.start}: {label}: {self.message}")
        else:
            parts.append(f"{label}: {self.message}")

        # Source line with caret
        if show_source and self.span is not None and self.source_line is not None:
            parts.append("  |")
            line_num = str(self.span.start.line)
            parts.append(f"{line_num:>3} | {self.source_line}")

            col = self.span.start.column
            if self.span.start.line == self.span.end.line:
                end_col = self.span.end.column
            else:
                end_col = len(self.source_line) + 1
            underline = "^" * max(1, end_col - col)
            if color:
                underline = colored(underline, _SEVERITY_COLORS[self.severity], attrs=["bold"])
            parts.append(f"    | {' ' * (col - 1)}{underline}")

        for hint in self.hints:
            parts.append(f"    = hint: {hint}")

        return "\n".join(parts)

    def to_json(self) -> dict:
        """Convert to JSON-serializable dict for tooling integration."""
        data = {
            "code": self.code,
            "message": self.message,
            "severity": self.severity.value,
            "hints": self.hints,
        }
        if self.span is not None:
            data["range"] = {
                "start": {
                    "line": self.span.start.line,
                    "column": self.span.start.column,
                    "offset": self.span.start.offset,
                },
                "end": {
                    "line": self.span.end.line,
                    "column": self.span.end.column,
                    "offset": self.span.end.offset,
                },
            }
        return data


class MonkeyError(Exception):
    """Base exception for language-level errors."""

    def __init__(self, diagnostic: Diagnostic):
        self.diagnostic = diagnostic
        super().__init__(diagnostic.message)

    @property
    def code(self) -> str:
        return self.diagnostic.code

    @property
    def message(self) -> str:
        return self.diagnostic.message

    def __str__(self) -> str:
        return self.diagnostic.format()


class LexerError(MonkeyError):
    """Error during lexical analysis (E0xx)."""
    pass


class ParserError(MonkeyError):
    """Error during parsing (E1xx)."""
    pass


def _error(code: str, message: str, span: Optional[SourceSpan],
           source_line: Optional[str] = None, hints: Optional[List[str]] = None) -> Diagnostic:
    return Diagnostic(
        code=code,
        message=message,
        severity=ErrorSeverity.ERROR,
        span=span,
        source_line=source_line,
        hints=hints or [],
    )


# --- Lexer error codes ---

def error_unexpected_character(char: str, span: SourceSpan, source_line: str = None) -> LexerError:
    """E001: Unexpected character."""
    return LexerError(_error("E001", f"unexpected character '{char}'", span, source_line))


def error_unterminated_string(span: SourceSpan, source_line: str = None) -> LexerError:
    """E002: Unterminated string literal."""
    return LexerError(_error(
        "E002", "unterminated string literal", span, source_line,
        hints=["string literals must be closed with a matching '\"'"],
    ))


def error_integer_out_of_range(text: str, span: SourceSpan, source_line: str = None) -> LexerError:
    """E003: Integer literal does not fit in 64 bits."""
    return LexerError(_error(
        "E003", f"integer literal out of range '{text}'", span, source_line,
        hints=["integers are 64-bit signed: the largest literal is 9223372036854775807"],
    ))


# --- Parser error codes ---

def error_unexpected_token(expected: str, found: str, span: SourceSpan,
                           source_line: str = None) -> ParserError:
    """E101: Unexpected token."""
    return ParserError(_error("E101", f"expected {expected}, found {found}", span, source_line))


def error_unexpected_eof(expected: str, span: SourceSpan) -> ParserError:
    """E102: Unexpected end of input."""
    return ParserError(_error("E102", f"unexpected end of input, expected {expected}", span))


def error_invalid_expression(found: str, span: SourceSpan, source_line: str = None) -> ParserError:
    """E103: No expression can start with this token."""
    return ParserError(_error("E103", f"expected expression, found {found}", span, source_line))


def error_invalid_infix(found: str, closing: str, span: SourceSpan,
                        source_line: str = None) -> ParserError:
    """E104: Token after an expression is neither an operator nor the closing delimiter."""
    return ParserError(_error(
        "E104", f"expected an operator or {closing}, found {found}", span, source_line,
    ))


def error_nesting_too_deep(limit: int, span: SourceSpan, source_line: str = None) -> ParserError:
    """E105: Expression nesting exceeds the parser limit."""
    return ParserError(_error(
        "E105", f"expression nested too deeply (limit {limit})", span, source_line,
    ))


# --- Runtime errors ---

class EvalError(MonkeyError):
    """Error during evaluation (E4xx)."""

    code_value = "E400"

    def __init__(self, message: str, span: Optional[SourceSpan] = None,
                 source_line: Optional[str] = None):
        super().__init__(_error(self.code_value, message, span, source_line))


class IdentifierNotFoundError(EvalError):
    """E401: Name is not bound in any enclosing scope."""
    code_value = "E401"

    def __init__(self, name: str, span: Optional[SourceSpan] = None):
        self.name = name
        super().__init__(f"identifier '{name}' not found", span)


class UnsupportedInfixError(EvalError):
    """E402: Infix operator is not defined for the operand types."""
    code_value = "E402"

    def __init__(self, operator: str, left_type: str, right_type: str,
                 span: Optional[SourceSpan] = None):
        self.operator = operator
        self.left_type = left_type
        self.right_type = right_type
        super().__init__(
            f"infix operator '{operator}' not supported for operands {left_type} and {right_type}",
            span,
        )


class UnsupportedPrefixError(EvalError):
    """E403: Prefix operator is not defined for the operand type."""
    code_value = "E403"

    def __init__(self, operator: str, operand_type: str, span: Optional[SourceSpan] = None):
        self.operator = operator
        self.operand_type = operand_type
        super().__init__(f"prefix operator '{operator}' not supported for {operand_type}", span)


class NotCallableError(EvalError):
    """E404: Call target is not a function."""
    code_value = "E404"

    def __init__(self, type_name: str, span: Optional[SourceSpan] = None):
        self.type_name = type_name
        super().__init__(f"value of type {type_name} is not callable", span)


class ArityMismatchError(EvalError):
    """E405: Wrong number of arguments in a call."""
    code_value = "E405"

    def __init__(self, expected: int, given: int, span: Optional[SourceSpan] = None):
        self.expected = expected
        self.given = given
        super().__init__(
            f"wrong number of arguments: expected {expected}, given {given}", span,
        )


class DivisionByZeroError(EvalError):
    """E406: Integer division by zero."""
    code_value = "E406"

    def __init__(self, span: Optional[SourceSpan] = None):
        super().__init__("division by zero", span)


class IntegerOverflowError(EvalError):
    """E407: Integer result does not fit in 64 bits."""
    code_value = "E407"

    def __init__(self, operator: str, span: Optional[SourceSpan] = None):
        self.operator = operator
        super().__init__(f"integer overflow in '{operator}'", span)


class RecursionLimitError(EvalError):
    """E408: Function calls nested deeper than the configured limit."""
    code_value = "E408"

    def __init__(self, limit: int, span: Optional[SourceSpan] = None):
        self.limit = limit
        super().__init__(f"maximum call depth exceeded (limit {limit})", span)


# --- Warnings ---

def warning_unreachable_code(span: SourceSpan, source_line: str = None) -> Diagnostic:
    """W001: Statement after a return in the same block."""
    return Diagnostic(
        code="W001",
        message="unreachable statement after 'return'",
        severity=ErrorSeverity.WARNING,
        span=span,
        source_line=source_line,
    )


class DiagnosticCollector:
    """Collects diagnostics while parsing and evaluating."""

    def __init__(self, max_errors: int = 20):
        self.diagnostics: List[Diagnostic] = []
        self.max_errors = max_errors
        self._error_count = 0

    def add(self, diagnostic: Diagnostic) -> None:
        """Add a diagnostic."""
        self.diagnostics.append(diagnostic)
        if diagnostic.severity == ErrorSeverity.ERROR:
            self._error_count += 1

    def add_error(self, error: MonkeyError) -> None:
        """Add an error exception as a diagnostic."""
        self.add(error.diagnostic)

    @property
    def error_count(self) -> int:
        return self._error_count

    @property
    def warning_count(self) -> int:
        return sum(1 for d in self.diagnostics if d.severity == ErrorSeverity.WARNING)

    @property
    def has_errors(self) -> bool:
        return self._error_count > 0

    @property
    def should_stop(self) -> bool:
        """Check if we've hit the max error limit."""
        return self._error_count >= self.max_errors

    def format_all(self, show_source: bool = True, color: bool = False) -> str:
        """Format all diagnostics for display."""
        parts = [d.format(show_source, color) for d in self.diagnostics]
        if self._error_count > 0:
            parts.append(f"{self._error_count} error(s), {self.warning_count} warning(s)")
        elif self.warning_count > 0:
            parts.append(f"{self.warning_count} warning(s)")
        return "\n\n".join(parts)

    def to_json(self) -> dict:
        """Convert all diagnostics to JSON format."""
        return {
            "diagnostics": [d.to_json() for d in self.diagnostics],
            "error_count": self._error_count,
            "warning_count": self.warning_count,
        }
