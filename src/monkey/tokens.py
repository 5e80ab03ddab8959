"""
Token types for the Monkey lexer.

Error code ranges used by the diagnostics:
- E0xx: Lexer errors
- E1xx: Parser errors
- E4xx: Runtime errors
- W0xx: Warnings
"""

from enum import Enum, auto
from dataclasses import dataclass
from typing import Any, Optional


class TokenType(Enum):
    """All token types recognized by the lexer."""

    # --- Special ---
    EOF = auto()                # end of input
    ILLEGAL = auto()            # carries a LexerError raised while scanning

    # --- Literals ---
    IDENTIFIER = auto()         # user-defined names
    INT_LITERAL = auto()        # 42
    BOOL_LITERAL = auto()       # true, false
    STRING_LITERAL = auto()     # "hello"

    # --- Operators ---
    ASSIGN = auto()             # =
    PLUS = auto()               # +
    MINUS = auto()              # -
    STAR = auto()               # *
    SLASH = auto()              # /
    BANG = auto()               # !
    LT = auto()                 # <
    GT = auto()                 # >
    EQ = auto()                 # ==
    NE = auto()                 # !=

    # --- Delimiters ---
    COMMA = auto()              # ,
    SEMICOLON = auto()          # ;
    LPAREN = auto()             # (
    RPAREN = auto()             # )
    LBRACE = auto()             # {
    RBRACE = auto()             # }

    # --- Keywords ---
    FUNCTION = auto()           # fn
    LET = auto()                # let
    IF = auto()                 # if
    ELSE = auto()               # else
    RETURN = auto()             # return


@dataclass(frozen=True)
class SourceLocation:
    """Represents a position in source code."""
    line: int           # 1-indexed line number
    column: int         # 1-indexed column number
    offset: int         # 0-indexed character offset from start
    filename: Optional[str] = None

    def __str__(self) -> str:
        if self.filename:
            return f"{self.filename}:{self.line}:{self.column}"
        return f"{self.line}:{self.column}"


@dataclass(frozen=True)
class SourceSpan:
    """Represents a range in source code."""
    start: SourceLocation
    end: SourceLocation

    def __str__(self) -> str:
        if self.start.filename:
            return f"{self.start.filename}:{self.start.line}:{self.start.column}-{self.end.line}:{self.end.column}"
        return f"{self.start.line}:{self.start.column}-{self.end.line}:{self.end.column}"


@dataclass(frozen=True)
class Token:
    """A single token from the lexer."""
    type: TokenType
    value: Any              # int, bool, str, or the LexerError for ILLEGAL
    lexeme: str             # The original source text
    span: SourceSpan        # Location in source

    def __str__(self) -> str:
        if self.type in (TokenType.INT_LITERAL, TokenType.BOOL_LITERAL,
                         TokenType.STRING_LITERAL, TokenType.IDENTIFIER):
            return f"{self.type.name}({self.value!r})"
        return self.type.name

    def describe(self) -> str:
        """Short human-readable description for error messages."""
        if self.type == TokenType.EOF:
            return "end of input"
        if self.type == TokenType.ILLEGAL:
            return f"illegal input {self.lexeme!r}"
        return f"'{self.lexeme}'"


# Keyword mapping - maps string to token type
KEYWORDS: dict[str, TokenType] = {
    "fn": TokenType.FUNCTION,
    "let": TokenType.LET,
    "if": TokenType.IF,
    "else": TokenType.ELSE,
    "return": TokenType.RETURN,
    "true": TokenType.BOOL_LITERAL,
    "false": TokenType.BOOL_LITERAL,
}

# Symbols for the operator tokens, used when building AST nodes
OPERATOR_SYMBOLS: dict[TokenType, str] = {
    TokenType.ASSIGN: "=",
    TokenType.PLUS: "+",
    TokenType.MINUS: "-",
    TokenType.STAR: "*",
    TokenType.SLASH: "/",
    TokenType.BANG: "!",
    TokenType.LT: "<",
    TokenType.GT: ">",
    TokenType.EQ: "==",
    TokenType.NE: "!=",
}


def lookup_identifier(word: str) -> TokenType:
    """Resolve a scanned word to a keyword token type or IDENTIFIER."""
    return KEYWORDS.get(word, TokenType.IDENTIFIER)
