"""
Lexer for Monkey.

Converts source text into a lazy stream of tokens for the parser.
Supports:
- Identifiers and keywords (ASCII letters and underscore)
- Decimal integer literals (64-bit signed range)
- Double-quoted string literals (no escape sequences, may span lines)
- One- and two-character operators (==, != are matched greedily)
"""

import string
from typing import List, Optional, Iterator

from .tokens import Token, TokenType, SourceLocation, SourceSpan, lookup_identifier
from .errors import (
    error_unexpected_character,
    error_unterminated_string,
    error_integer_out_of_range,
)

INT64_MAX = 2 ** 63 - 1

_IDENTIFIER_CHARS = frozenset(string.ascii_letters + "_")
_DIGITS = frozenset(string.digits)
_WHITESPACE = frozenset(string.whitespace)

_SINGLE_CHAR_TOKENS = {
    '=': TokenType.ASSIGN,
    '+': TokenType.PLUS,
    '-': TokenType.MINUS,
    '*': TokenType.STAR,
    '/': TokenType.SLASH,
    '!': TokenType.BANG,
    '<': TokenType.LT,
    '>': TokenType.GT,
    ',': TokenType.COMMA,
    ';': TokenType.SEMICOLON,
    '(': TokenType.LPAREN,
    ')': TokenType.RPAREN,
    '{': TokenType.LBRACE,
    '}': TokenType.RBRACE,
}


class Lexer:
    """
    Pull-based tokenizer.

    Usage:
        lexer = Lexer(source_code)
        token = lexer.next_token()

    Or for streaming:
        for token in Lexer(source_code):
            process(token)

    Each call to next_token() advances the cursor past one token. Once the
    end of input is reached, EOF is returned on every further call. A
    lexical error raises LexerError after the offending input has been
    consumed, so scanning can resume with the next call.
    """

    def __init__(self, source: str, filename: Optional[str] = None):
        self.source = source
        self.filename = filename
        self.pos = 0            # Current position in source
        self.line = 1           # Current line (1-indexed)
        self.column = 1         # Current column (1-indexed)
        self._lines: Optional[List[str]] = None  # Cached line list

    @property
    def lines(self) -> List[str]:
        """Lazy-load line list for error reporting."""
        if self._lines is None:
            self._lines = self.source.splitlines()
        return self._lines

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

    def _match(self, expected: str) -> bool:
        """Consume character if it matches expected."""
        if not self._is_at_end() and self._peek() == expected:
            self._advance()
            return True
        return False

    def _is_at_end(self) -> bool:
        """Check if we've reached end of source."""
        return self.pos >= len(self.source)

    def _skip_whitespace(self) -> None:
        while not self._is_at_end() and self._peek() in _WHITESPACE:
            self._advance()

    def _make_token(self, token_type: TokenType, value, start: SourceLocation) -> Token:
        """Create a token spanning from start to the cursor."""
        lexeme = self.source[start.offset:self.pos]
        return Token(token_type, value, lexeme, self._span(start))

    def _scan_string(self) -> Token:
        """Scan a string literal; the closing quote ends it unconditionally."""
        start = self._location()
        self._advance()  # consume opening quote

        while not self._is_at_end() and self._peek() != '"':
            self._advance()

        if self._is_at_end():
            raise error_unterminated_string(
                self._span(start),
                self.get_source_line(start.line)
            )

        self._advance()  # consume closing quote
        value = self.source[start.offset + 1:self.pos - 1]
        return self._make_token(TokenType.STRING_LITERAL, value, start)

    def _scan_number(self) -> Token:
        """Scan a decimal integer literal."""
        start = self._location()
        while not self._is_at_end() and self._peek() in _DIGITS:
            self._advance()

        lexeme = self.source[start.offset:self.pos]
        value = int(lexeme)
        if value > INT64_MAX:
            raise error_integer_out_of_range(
                lexeme, self._span(start), self.get_source_line(start.line)
            )
        return self._make_token(TokenType.INT_LITERAL, value, start)

    def _scan_identifier_or_keyword(self) -> Token:
        """Scan an identifier or keyword."""
        start = self._location()
        while not self._is_at_end() and self._peek() in _IDENTIFIER_CHARS:
            self._advance()

        lexeme = self.source[start.offset:self.pos]
        token_type = lookup_identifier(lexeme)
        if token_type == TokenType.BOOL_LITERAL:
            return self._make_token(token_type, lexeme == "true", start)
        return self._make_token(token_type, lexeme, start)

    def next_token(self) -> Token:
        """Scan and return the next token."""
        self._skip_whitespace()

        start = self._location()
        if self._is_at_end():
            return self._make_token(TokenType.EOF, None, start)

        ch = self._peek()

        if ch == '"':
            return self._scan_string()

        if ch in _DIGITS:
            return self._scan_number()

        if ch in _IDENTIFIER_CHARS:
            return self._scan_identifier_or_keyword()

        self._advance()

        # Two-character operators
        if ch == '=' and self._match('='):
            return self._make_token(TokenType.EQ, "==", start)
        if ch == '!' and self._match('='):
            return self._make_token(TokenType.NE, "!=", start)

        if ch in _SINGLE_CHAR_TOKENS:
            return self._make_token(_SINGLE_CHAR_TOKENS[ch], ch, start)

        raise error_unexpected_character(
            ch, self._span(start), self.get_source_line(start.line)
        )

    def tokenize(self) -> List[Token]:
        """Tokenize the entire source, returning a list of tokens."""
        return list(self)

    def __iter__(self) -> Iterator[Token]:
        """Iterate over tokens, ending with EOF."""
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
        List of tokens ending with EOF

    Raises:
        LexerError: If tokenization fails
    """
    lexer = Lexer(source, filename)
    return lexer.tokenize()
