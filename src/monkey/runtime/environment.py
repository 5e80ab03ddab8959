"""
Environments and execution state for the Monkey interpreter.

Environments form a parent-linked chain for lexical scoping. A closure
keeps a reference to the environment it was created in, so a scope lives
for as long as any function value that captured it.
"""

from dataclasses import dataclass, field
from typing import Dict, Optional
from contextlib import contextmanager

from .values import Value
from ..errors import RecursionLimitError
from ..settings import DEFAULT_MAX_DEPTH
from ..tokens import SourceSpan


@dataclass(eq=False)
class Environment:
    """
    A single scope containing variable bindings.

    Scopes form a chain via the `parent` field for lexical scoping.
    """
    variables: Dict[str, Value] = field(default_factory=dict)
    parent: Optional["Environment"] = None
    name: str = "anonymous"  # For debugging

    def get(self, name: str) -> Optional[Value]:
        """Look up a variable in this scope or parent scopes."""
        env = self
        while env is not None:
            if name in env.variables:
                return env.variables[name]
            env = env.parent
        return None

    def set(self, name: str, value: Value) -> None:
        """Set a variable in this scope (shadowing parent if exists)."""
        self.variables[name] = value

    def contains(self, name: str) -> bool:
        """Check if a variable exists in this scope or parents."""
        return self.get(name) is not None

    def enclosed(self, name: str = "block") -> "Environment":
        """Create a child scope of this one."""
        return Environment(parent=self, name=name)

    def __repr__(self) -> str:
        return f"<Environment {self.name} {sorted(self.variables)}>"


@dataclass
class ExecutionContext:
    """
    Mutable evaluator state: the current scope and the call depth.
    """
    current_scope: Environment = field(default_factory=lambda: Environment(name="global"))
    max_depth: int = DEFAULT_MAX_DEPTH
    depth: int = 0

    @contextmanager
    def activate(self, env: Environment):
        """
        Make `env` the current scope for the duration of the block.

        Usage:
            with ctx.activate(call_env):
                result = evaluate_body()

        The previous scope is restored whether the block succeeds or raises.
        """
        old_scope = self.current_scope
        self.current_scope = env
        try:
            yield env
        finally:
            self.current_scope = old_scope

    @contextmanager
    def descend(self, span: Optional[SourceSpan] = None):
        """Count one level of function-call nesting."""
        self.depth += 1
        try:
            if self.depth > self.max_depth:
                raise RecursionLimitError(self.max_depth, span)
            yield
        finally:
            self.depth -= 1
