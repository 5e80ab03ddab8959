"""
Interpreter settings.

Defaults can be overridden through the environment:

    MONKEY_MAX_DEPTH    maximum call depth and parse nesting (default 500)
    MONKEY_MAX_ERRORS   parse errors reported per chunk (default 20)
    MONKEY_LOG_LEVEL    logging level name for the CLI (default WARNING)
    NO_COLOR            disables colored diagnostics when set
"""

import logging
import os
import sys
from contextlib import contextmanager
from dataclasses import dataclass, replace
from typing import Mapping, Optional

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 500

# Python frames one level of Monkey nesting may occupy, with room to spare
FRAMES_PER_LEVEL = 16
_BASE_FRAMES = 1000
# Ceiling for the raised limit; deeper input fails with a RecursionError
# that callers turn into a language error
MAX_RECURSION_LIMIT = 10000


@dataclass(frozen=True)
class Settings:
    max_depth: int = DEFAULT_MAX_DEPTH
    max_errors: int = 20
    color: bool = True
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from environment variables, ignoring malformed values."""
        if environ is None:
            environ = os.environ
        defaults = cls()
        return cls(
            max_depth=_positive_int(environ, "MONKEY_MAX_DEPTH", defaults.max_depth),
            max_errors=_positive_int(environ, "MONKEY_MAX_ERRORS", defaults.max_errors),
            color="NO_COLOR" not in environ,
            log_level=environ.get("MONKEY_LOG_LEVEL", defaults.log_level).upper(),
        )

    def with_overrides(self, **changes) -> "Settings":
        """Return a copy with the non-None values in `changes` applied."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})


@contextmanager
def stack_headroom(max_depth: int):
    """
    Make room on the Python stack for `max_depth` levels of Monkey nesting.

    Usage:
        with stack_headroom(settings.max_depth):
            value = evaluator.evaluate(program, env)

    The recursion limit is only ever raised, never past
    MAX_RECURSION_LIMIT, and the previous limit is restored on exit.
    """
    previous = sys.getrecursionlimit()
    needed = min(max_depth * FRAMES_PER_LEVEL + _BASE_FRAMES, MAX_RECURSION_LIMIT)
    if needed > previous:
        logger.debug("raising recursion limit from %d to %d", previous, needed)
        sys.setrecursionlimit(needed)
    try:
        yield
    finally:
        sys.setrecursionlimit(previous)


def _positive_int(environ: Mapping[str, str], name: str, default: int) -> int:
    raw = environ.get(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("ignoring %s=%r: not an integer", name, raw)
        return default
    if value < 1:
        logger.warning("ignoring %s=%r: must be positive", name, raw)
        return default
    return value
