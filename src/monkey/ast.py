"""
Abstract Syntax Tree (AST) node definitions for Monkey.

The AST represents the structure of a parsed program, which the runtime
then evaluates. A Program keeps one entry per top-level statement: either
the parsed Statement or the error that stopped it from parsing.
"""

from dataclasses import dataclass, field
from typing import List, Union, Any
from abc import ABC

from .tokens import SourceSpan, TokenType
from .errors import Diagnostic, MonkeyError


# =============================================================================
# Base Classes
# =============================================================================

@dataclass
class AstNode(ABC):
    """Base class for all AST nodes."""
    span: SourceSpan  # Source location for error reporting

    def accept(self, visitor: "AstVisitor") -> Any:
        """Accept a visitor for traversal."""
        method_name = f"visit_{self.__class__.__name__}"
        method = getattr(visitor, method_name, visitor.generic_visit)
        return method(self)


class AstVisitor(ABC):
    """Base class for AST visitors."""

    def generic_visit(self, node: AstNode) -> Any:
        """Default visit method."""
        raise NotImplementedError(f"No visitor for {node.__class__.__name__}")


# =============================================================================
# Expression Nodes
# =============================================================================

@dataclass
class Expression(AstNode):
    """Base class for all expressions."""
    pass


@dataclass
class Identifier(Expression):
    """A variable or function name reference."""
    name: str

    def __str__(self) -> str:
        return self.name


@dataclass
class Literal(Expression):
    """A literal value (int, string, bool)."""
    value: Union[int, str, bool]
    literal_type: TokenType  # INT_LITERAL, STRING_LITERAL, BOOL_LITERAL

    def __str__(self) -> str:
        if self.literal_type == TokenType.STRING_LITERAL:
            return f'"{self.value}"'
        if self.literal_type == TokenType.BOOL_LITERAL:
            return "true" if self.value else "false"
        return str(self.value)


@dataclass
class PrefixOp(Expression):
    """A prefix operation (e.g., !ok, -n, +n)."""
    operator: str
    operand: Expression

    def __str__(self) -> str:
        return f"({self.operator}{self.operand})"


@dataclass
class InfixOp(Expression):
    """A binary operation (e.g., a + b, x == y)."""
    left: Expression
    operator: str
    right: Expression

    def __str__(self) -> str:
        return f"({self.left} {self.operator} {self.right})"


@dataclass
class IfExpr(Expression):
    """An if-else expression.

    A missing 'else' is stored as an empty alternative block.
    """
    condition: Expression
    consequence: "Block"
    alternative: "Block"

    def __str__(self) -> str:
        text = f"if {self.condition} {self.consequence}"
        if self.alternative.statements:
            text += f" else {self.alternative}"
        return text


@dataclass
class FunctionLiteral(Expression):
    """A function literal (e.g., fn(x, y) { x + y })."""
    parameters: List[Identifier]
    body: "Block"

    def __str__(self) -> str:
        params = ", ".join(str(p) for p in self.parameters)
        return f"fn({params}) {self.body}"


@dataclass
class CallExpr(Expression):
    """A function call (e.g., add(1, 2))."""
    callee: Expression
    arguments: List[Expression]

    def __str__(self) -> str:
        args = ", ".join(str(a) for a in self.arguments)
        return f"{self.callee}({args})"


# =============================================================================
# Statement Nodes
# =============================================================================

@dataclass
class Statement(AstNode):
    """Base class for all statements."""
    pass


@dataclass
class LetStatement(Statement):
    """A binding in the current scope (e.g., let x = 5;)."""
    name: Identifier
    value: Expression

    def __str__(self) -> str:
        return f"let {self.name} = {self.value};"


@dataclass
class ReturnStatement(Statement):
    """A return statement."""
    value: Expression

    def __str__(self) -> str:
        return f"return {self.value};"


@dataclass
class ExpressionStatement(Statement):
    """An expression used as a statement."""
    expression: Expression

    def __str__(self) -> str:
        return str(self.expression)


@dataclass
class Block(AstNode):
    """A brace-delimited sequence of statements."""
    statements: List[Statement] = field(default_factory=list)

    def __str__(self) -> str:
        inner = " ".join(str(s) for s in self.statements)
        return f"{{ {inner} }}" if inner else "{}"


# =============================================================================
# Program
# =============================================================================

StatementResult = Union[Statement, MonkeyError]


@dataclass
class Program(AstNode):
    """A parsed source chunk.

    `results` holds one entry per top-level statement, in source order:
    the Statement itself, or the LexerError/ParserError that aborted it.
    `warnings` holds non-fatal diagnostics found while parsing.
    """
    results: List[StatementResult] = field(default_factory=list)
    warnings: List[Diagnostic] = field(default_factory=list)

    @property
    def statements(self) -> List[Statement]:
        """Successfully parsed statements."""
        return [r for r in self.results if isinstance(r, Statement)]

    @property
    def errors(self) -> List[MonkeyError]:
        """Errors for statements that failed to parse."""
        return [r for r in self.results if isinstance(r, MonkeyError)]

    @property
    def has_errors(self) -> bool:
        return any(isinstance(r, MonkeyError) for r in self.results)

    def __str__(self) -> str:
        return " ".join(str(s) for s in self.statements)


# =============================================================================
# Visitor Helpers
# =============================================================================

class PrintVisitor(AstVisitor):
    """Debug visitor that renders the AST structure as indented lines."""

    def __init__(self, indent: int = 0, lines: List[str] = None):
        self.indent = indent
        self.lines = lines if lines is not None else []

    def _print(self, text: str) -> None:
        self.lines.append("  " * self.indent + text)

    def generic_visit(self, node: AstNode) -> None:
        self._print(f"{node.__class__.__name__}")
        for name, value in node.__dict__.items():
            if name == "span":
                continue
            if isinstance(value, AstNode):
                self._print(f"  {name}:")
                value.accept(PrintVisitor(self.indent + 2, self.lines))
            elif isinstance(value, list):
                self._print(f"  {name}: [")
                for item in value:
                    if isinstance(item, AstNode):
                        item.accept(PrintVisitor(self.indent + 2, self.lines))
                    elif isinstance(item, MonkeyError):
                        self._print(f"    <{type(item).__name__} {item.code}: {item.message}>")
                    else:
                        self._print(f"    {item!r}")
                self._print("  ]")
            else:
                self._print(f"  {name}: {value!r}")


def format_ast(node: AstNode) -> str:
    """Render an AST node as an indented tree."""
    visitor = PrintVisitor()
    node.accept(visitor)
    return "\n".join(visitor.lines)


def print_ast(node: AstNode) -> None:
    """Print an AST node for debugging."""
    print(format_ast(node))
