"""
Pratt parser for Monkey.

Converts the lexer's token stream into a Program. Each top-level statement
is parsed independently: a failure is recorded in place of the statement
and the parser resynchronizes at the next statement boundary, so one call
to parse_program() reports every error in a chunk.
"""

import logging
from contextlib import contextmanager
from enum import IntEnum
from typing import Callable, Dict, List, Optional

from .tokens import Token, TokenType, SourceSpan, OPERATOR_SYMBOLS
from .lexer import Lexer
from .settings import DEFAULT_MAX_DEPTH, stack_headroom
from .ast import (
    Expression, Identifier, Literal, PrefixOp, InfixOp, IfExpr,
    FunctionLiteral, CallExpr,
    Statement, LetStatement, ReturnStatement, ExpressionStatement,
    Block, Program,
)
from .errors import (
    LexerError,
    MonkeyError,
    Diagnostic,
    error_unexpected_token,
    error_unexpected_eof,
    error_invalid_expression,
    error_invalid_infix,
    error_nesting_too_deep,
    warning_unreachable_code,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_ERRORS = 20


class Precedence(IntEnum):
    """Binding power of operators (higher = tighter binding)."""
    LOWEST = 1
    EQUALS = 2          # == !=
    LESSGREATER = 3     # < >
    SUM = 4             # + -
    PRODUCT = 5         # * /
    PREFIX = 6          # -x !x +x
    CALL = 7            # f(x)


PRECEDENCES: Dict[TokenType, Precedence] = {
    TokenType.EQ: Precedence.EQUALS,
    TokenType.NE: Precedence.EQUALS,
    TokenType.LT: Precedence.LESSGREATER,
    TokenType.GT: Precedence.LESSGREATER,
    TokenType.PLUS: Precedence.SUM,
    TokenType.MINUS: Precedence.SUM,
    TokenType.STAR: Precedence.PRODUCT,
    TokenType.SLASH: Precedence.PRODUCT,
    TokenType.LPAREN: Precedence.CALL,
}

# Tokens at which error recovery may restart parsing
_STATEMENT_STARTS = (TokenType.LET, TokenType.RETURN)


class Parser:
    """
    Pratt parser over a lazily-read token window.

    Usage:
        parser = Parser(Lexer(source))
        program = parser.parse_program()

    The parser holds two tokens at a time (`current` and `peek`). A lexical
    error met while filling the window is kept in an ILLEGAL token and
    raised only when the parser tries to use that token.
    """

    def __init__(self, lexer: Lexer, max_depth: int = DEFAULT_MAX_DEPTH,
                 max_errors: int = DEFAULT_MAX_ERRORS):
        self.lexer = lexer
        self.max_depth = max_depth
        self.max_errors = max_errors
        self.warnings: List[Diagnostic] = []

        self._depth = 0         # Expression nesting
        self._open_blocks = 0   # '{' consumed but not yet closed

        self.previous: Optional[Token] = None
        self.current = self._read_token()
        self.peek = self._read_token()

        self._prefix_parsers: Dict[TokenType, Callable[[], Expression]] = {
            TokenType.IDENTIFIER: self._parse_identifier,
            TokenType.INT_LITERAL: self._parse_literal,
            TokenType.BOOL_LITERAL: self._parse_literal,
            TokenType.STRING_LITERAL: self._parse_literal,
            TokenType.LPAREN: self._parse_grouped_expr,
            TokenType.PLUS: self._parse_prefix_op,
            TokenType.MINUS: self._parse_prefix_op,
            TokenType.BANG: self._parse_prefix_op,
            TokenType.IF: self._parse_if_expr,
            TokenType.FUNCTION: self._parse_function_literal,
        }
        self._infix_parsers: Dict[TokenType, Callable[[Expression], Expression]] = {
            token_type: self._parse_infix_op for token_type in PRECEDENCES
        }
        self._infix_parsers[TokenType.LPAREN] = self._parse_call_expr

    # =========================================================================
    # Token Navigation
    # =========================================================================

    def _read_token(self) -> Token:
        """Pull the next token from the lexer, folding lexical errors into ILLEGAL."""
        try:
            return self.lexer.next_token()
        except LexerError as e:
            span = e.diagnostic.span
            lexeme = self.lexer.source[span.start.offset:span.end.offset]
            return Token(TokenType.ILLEGAL, e, lexeme, span)

    def _advance(self) -> Token:
        """Consume and return current token."""
        token = self.current
        if token.type != TokenType.EOF:
            self.previous = token
            self.current = self.peek
            self.peek = self._read_token()
        return token

    def _is_at_end(self) -> bool:
        return self.current.type == TokenType.EOF

    def _check(self, token_type: TokenType) -> bool:
        """Check if current token is of given type."""
        return self.current.type == token_type

    def _match(self, token_type: TokenType) -> Optional[Token]:
        """Consume token if it matches."""
        if self._check(token_type):
            return self._advance()
        return None

    def _consume(self, token_type: TokenType, expected: str) -> Token:
        """Consume token of expected type, or raise error."""
        if self._check(token_type):
            return self._advance()
        self._error(expected)

    def _source_line(self, token: Token) -> Optional[str]:
        return self.lexer.get_source_line(token.span.start.line)

    def _error(self, expected: str) -> None:
        """Raise an error for the current token."""
        token = self.current
        if token.type == TokenType.ILLEGAL:
            raise token.value
        if token.type == TokenType.EOF:
            raise error_unexpected_eof(expected, token.span)
        raise error_unexpected_token(expected, token.describe(), token.span,
                                     self._source_line(token))

    def _expect_closing(self, token_type: TokenType, closing: str) -> Token:
        """Consume the delimiter that must follow an expression."""
        if self._check(token_type):
            return self._advance()
        token = self.current
        if token.type in (TokenType.ILLEGAL, TokenType.EOF):
            self._error(closing)
        raise error_invalid_infix(token.describe(), closing, token.span,
                                  self._source_line(token))

    def _span_from(self, start: Token) -> SourceSpan:
        """Create a span from start token to the last consumed token."""
        end = self.previous if self.previous is not None else start
        return SourceSpan(start.span.start, end.span.end)

    @contextmanager
    def _nested(self):
        """Track expression nesting so deep input fails cleanly."""
        self._depth += 1
        try:
            if self._depth > self.max_depth:
                token = self.current
                raise error_nesting_too_deep(self.max_depth, token.span,
                                             self._source_line(token))
            yield
        finally:
            self._depth -= 1

    # =========================================================================
    # Expression Parsing
    # =========================================================================

    def parse_expression(self, precedence: Precedence = Precedence.LOWEST) -> Expression:
        """Parse an expression whose operators bind tighter than `precedence`."""
        with self._nested():
            token = self.current
            prefix = self._prefix_parsers.get(token.type)
            if prefix is None:
                if token.type in (TokenType.ILLEGAL, TokenType.EOF):
                    self._error("expression")
                raise error_invalid_expression(token.describe(), token.span,
                                               self._source_line(token))
            left = prefix()

            while precedence < PRECEDENCES.get(self.current.type, Precedence.LOWEST):
                infix = self._infix_parsers[self.current.type]
                left = infix(left)

            return left

    def _parse_identifier(self) -> Identifier:
        token = self._consume(TokenType.IDENTIFIER, "identifier")
        return Identifier(span=token.span, name=token.value)

    def _parse_literal(self) -> Literal:
        token = self._advance()
        return Literal(span=token.span, value=token.value, literal_type=token.type)

    def _parse_grouped_expr(self) -> Expression:
        """Parse a parenthesized expression; the parentheses leave no node."""
        self._advance()  # (
        expr = self.parse_expression()
        self._expect_closing(TokenType.RPAREN, "')'")
        return expr

    def _parse_prefix_op(self) -> PrefixOp:
        start = self._advance()
        operand = self.parse_expression(Precedence.PREFIX)
        return PrefixOp(
            span=self._span_from(start),
            operator=OPERATOR_SYMBOLS[start.type],
            operand=operand,
        )

    def _parse_infix_op(self, left: Expression) -> InfixOp:
        op_token = self._advance()
        # Same precedence on the right gives left associativity
        right = self.parse_expression(PRECEDENCES[op_token.type])
        return InfixOp(
            span=SourceSpan(left.span.start, right.span.end),
            left=left,
            operator=OPERATOR_SYMBOLS[op_token.type],
            right=right,
        )

    def _parse_call_expr(self, callee: Expression) -> CallExpr:
        self._advance()  # (
        arguments: List[Expression] = []
        if not self._match(TokenType.RPAREN):
            while True:
                arguments.append(self.parse_expression())
                if self._match(TokenType.COMMA):
                    continue
                self._expect_closing(TokenType.RPAREN, "',' or ')'")
                break
        return CallExpr(
            span=SourceSpan(callee.span.start, self.previous.span.end),
            callee=callee,
            arguments=arguments,
        )

    def _parse_if_expr(self) -> IfExpr:
        start = self._advance()  # if
        self._consume(TokenType.LPAREN, "'(' after 'if'")
        condition = self.parse_expression()
        self._expect_closing(TokenType.RPAREN, "')'")
        consequence = self._parse_block()

        if self._match(TokenType.ELSE):
            alternative = self._parse_block()
        else:
            end = self.previous.span.end
            alternative = Block(span=SourceSpan(end, end), statements=[])

        return IfExpr(
            span=self._span_from(start),
            condition=condition,
            consequence=consequence,
            alternative=alternative,
        )

    def _parse_function_literal(self) -> FunctionLiteral:
        start = self._advance()  # fn
        self._consume(TokenType.LPAREN, "'(' after 'fn'")

        parameters: List[Identifier] = []
        if not self._match(TokenType.RPAREN):
            while True:
                token = self._consume(TokenType.IDENTIFIER, "parameter name")
                parameters.append(Identifier(span=token.span, name=token.value))
                if self._match(TokenType.COMMA):
                    continue
                self._consume(TokenType.RPAREN, "',' or ')'")
                break

        body = self._parse_block()
        return FunctionLiteral(
            span=self._span_from(start),
            parameters=parameters,
            body=body,
        )

    # =========================================================================
    # Statement Parsing
    # =========================================================================

    def _parse_statement(self) -> Statement:
        """Parse a statement."""
        if self._check(TokenType.LET):
            return self._parse_let_statement()
        if self._check(TokenType.RETURN):
            return self._parse_return_statement()
        return self._parse_expression_statement()

    def _parse_let_statement(self) -> LetStatement:
        start = self._advance()  # let
        name_token = self._consume(TokenType.IDENTIFIER, "identifier after 'let'")
        self._consume(TokenType.ASSIGN, "'=' after identifier in 'let'")
        value = self.parse_expression()
        self._end_statement()
        return LetStatement(
            span=self._span_from(start),
            name=Identifier(span=name_token.span, name=name_token.value),
            value=value,
        )

    def _parse_return_statement(self) -> ReturnStatement:
        start = self._advance()  # return
        value = self.parse_expression()
        self._end_statement()
        return ReturnStatement(span=self._span_from(start), value=value)

    def _parse_expression_statement(self) -> ExpressionStatement:
        start = self.current
        expression = self.parse_expression()
        self._end_statement()
        return ExpressionStatement(span=self._span_from(start), expression=expression)

    def _end_statement(self) -> None:
        """Consume an optional ';'. A lexical error right after the statement fails it."""
        if self._check(TokenType.ILLEGAL):
            self._error("';'")
        self._match(TokenType.SEMICOLON)

    def _parse_block(self) -> Block:
        """Parse a brace-delimited block."""
        start = self._consume(TokenType.LBRACE, "'{'")
        self._open_blocks += 1
        statements: List[Statement] = []

        while not self._check(TokenType.RBRACE):
            if self._is_at_end():
                raise error_unexpected_eof("'}'", self.current.span)
            statements.append(self._parse_statement())

        self._advance()  # }
        self._open_blocks -= 1
        self._check_unreachable(statements)
        return Block(span=self._span_from(start), statements=statements)

    def _check_unreachable(self, statements: List[Statement]) -> None:
        """Warn about the first statement that follows a return."""
        for stmt, following in zip(statements, statements[1:]):
            if isinstance(stmt, ReturnStatement):
                line = self.lexer.get_source_line(following.span.start.line)
                self.warnings.append(warning_unreachable_code(following.span, line))
                return

    # =========================================================================
    # Error Recovery
    # =========================================================================

    def _synchronize(self) -> None:
        """Skip tokens until the next top-level statement boundary.

        Blocks left open by the failed statement are counted as still open,
        so a ';' inside them does not end recovery.
        """
        depth = self._open_blocks
        skipped = 0
        while not self._is_at_end():
            token_type = self.current.type
            if depth == 0 and token_type in _STATEMENT_STARTS:
                break
            self._advance()
            skipped += 1
            if token_type == TokenType.LBRACE:
                depth += 1
            elif token_type == TokenType.RBRACE:
                depth = max(0, depth - 1)
            elif token_type == TokenType.SEMICOLON and depth == 0:
                break
        self._open_blocks = 0
        self._depth = 0
        logger.debug("resynchronized after skipping %d token(s) at %s",
                     skipped, self.current.span.start)

    # =========================================================================
    # Program Parsing
    # =========================================================================

    def parse_program(self) -> Program:
        """Parse the whole input. Errors are recorded, never raised."""
        start = self.current
        results = []
        error_count = 0

        while not self._is_at_end():
            stmt_start = self.current
            try:
                results.append(self._parse_statement())
                continue
            except MonkeyError as e:
                error = e
            except RecursionError:
                logger.warning("Python stack exhausted before the nesting limit")
                error = error_nesting_too_deep(self.max_depth, stmt_start.span,
                                               self._source_line(stmt_start))

            results.append(error)
            error_count += 1
            logger.debug("statement failed to parse: %s", error.message)
            if error_count >= self.max_errors:
                logger.info("stopping after %d parse errors", error_count)
                break
            if self.current is stmt_start:
                self._advance()
            self._synchronize()

        self._check_unreachable([r for r in results if isinstance(r, Statement)])
        end = self.current.span.end
        return Program(
            span=SourceSpan(start.span.start, end),
            results=results,
            warnings=self.warnings,
        )


def parse(source: str, filename: Optional[str] = None,
          max_depth: int = DEFAULT_MAX_DEPTH,
          max_errors: int = DEFAULT_MAX_ERRORS) -> Program:
    """
    Convenience function to parse source code into a Program.

    Args:
        source: The source code to parse
        filename: Optional filename for error messages
        max_depth: Maximum expression nesting before E105
        max_errors: Number of failed statements after which parsing stops

    Returns:
        Parsed Program; failed statements appear as errors in its results
    """
    parser = Parser(Lexer(source, filename), max_depth=max_depth, max_errors=max_errors)
    with stack_headroom(max_depth):
        return parser.parse_program()
