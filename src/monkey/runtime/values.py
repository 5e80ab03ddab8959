"""
Runtime value wrappers for the Monkey interpreter.

Every value produced by evaluation is a Value: the Python payload in
`data` plus a ValueType tag used for operator dispatch and error messages.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, List, TYPE_CHECKING

from ..ast import Identifier, Block

if TYPE_CHECKING:
    from .environment import Environment


class ValueType(Enum):
    """Runtime type tags."""
    INT = "int"
    BOOL = "bool"
    STRING = "string"
    NULL = "null"
    EMPTY = "empty"         # result of a binding; never printed
    RETURN = "return"       # wraps the value of a return statement
    FUNCTION = "function"


@dataclass(eq=False)
class Function:
    """
    A closure: parameters and body plus the environment that was active
    where the function literal was evaluated.
    """
    parameters: List[Identifier]
    body: Block
    env: "Environment"

    @property
    def arity(self) -> int:
        return len(self.parameters)

    def __repr__(self) -> str:
        return f"<Function {self.signature()}>"

    def signature(self) -> str:
        return "fn(" + ",".join(p.name for p in self.parameters) + ")"


@dataclass(frozen=True)
class Value:
    """
    A runtime value with type information.

    The `data` field holds the Python payload (int, bool, str, Function,
    the wrapped Value of a RETURN, or None).
    """
    data: Any
    type: ValueType

    def __repr__(self) -> str:
        return f"Value({self.data!r}, {self.type.value})"

    def __str__(self) -> str:
        return self.inspect()

    @property
    def type_name(self) -> str:
        """Name used in error messages."""
        return self.type.value

    def is_truthy(self) -> bool:
        """Check if this value is truthy in boolean context.

        NULL and false are falsy. Everything else, including 0 and "",
        is truthy.
        """
        if self.type == ValueType.BOOL:
            return self.data
        if self.type == ValueType.NULL:
            return False
        return True

    def inspect(self) -> str:
        """Render the value the way the REPL prints it."""
        if self.type == ValueType.INT:
            return str(self.data)
        if self.type == ValueType.BOOL:
            return "true" if self.data else "false"
        if self.type == ValueType.STRING:
            return self.data
        if self.type == ValueType.NULL:
            return "NULL"
        if self.type == ValueType.EMPTY:
            return ""
        if self.type == ValueType.FUNCTION:
            return self.data.signature()
        return self.data.inspect()


NULL = Value(None, ValueType.NULL)
EMPTY = Value(None, ValueType.EMPTY)
TRUE = Value(True, ValueType.BOOL)
FALSE = Value(False, ValueType.BOOL)


# Convenience constructors

def int_val(n: int) -> Value:
    """Create an integer value."""
    return Value(int(n), ValueType.INT)


def bool_val(b: bool) -> Value:
    """Create a boolean value."""
    return TRUE if b else FALSE


def string_val(s: str) -> Value:
    """Create a string value."""
    return Value(str(s), ValueType.STRING)


def return_val(value: Value) -> Value:
    """Wrap a value produced by a return statement."""
    return Value(value, ValueType.RETURN)


def function_val(parameters: List[Identifier], body: Block, env: "Environment") -> Value:
    """Create a closure over `env`."""
    return Value(Function(parameters, body, env), ValueType.FUNCTION)


def unwrap_return(value: Value) -> Value:
    """Strip a RETURN wrapper, if any."""
    if value.type == ValueType.RETURN:
        return value.data
    return value
