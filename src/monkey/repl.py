"""Interactive read-eval-print loop for Monkey. Uses cmd as backend."""

import cmd
import logging

from termcolor import colored

from .runtime import Interpreter
from .settings import Settings

logger = logging.getLogger(__name__)


def needs_more_input(source: str) -> bool:
    """True while a '(' or '{' is unclosed, or a string literal is open."""
    depth = 0
    in_string = False
    for ch in source:
        if in_string:
            if ch == '"':
                in_string = False
        elif ch == '"':
            in_string = True
        elif ch in "({":
            depth += 1
        elif ch in ")}":
            depth -= 1
    return in_string or depth > 0


class Shell(cmd.Cmd):
    """Monkey interpreter shell."""
    intro = "Monkey interpreter :: Python backend\nType 'exit' or press Ctrl-D to leave."
    prompt = ">> "
    secondary_prompt = ".. "  # used for line continuations
    _tmp_prompt = ">> "       # also used for prompt swapping in line continuations

    def __init__(self, interpreter=None, *args, **kwargs):
        super().__init__(*args, **kwargs)

        self.interpreter = interpreter or Interpreter(Settings.from_env())
        self.color = self.interpreter.settings.color

        self._pending = []   # lines of an unfinished chunk

    def default(self, line):
        """Evaluates a line of Monkey source."""
        self._pending.append(line)
        source = "\n".join(self._pending)

        if needs_more_input(source):
            self.prompt = self.secondary_prompt
            return

        self._pending = []
        self.prompt = self._tmp_prompt
        self.run_source(source)

    def run_source(self, source):
        """Evaluates a complete chunk and prints its value or its errors."""
        result = self.interpreter.evaluate(source, filename="<stdin>")
        if result.success:
            if result.output:
                print(result.output, file=self.stdout)
        else:
            print(result.format_error(color=self.color), file=self.stdout)

    def emptyline(self):
        """Do not repeat previous command on empty line."""
        if self._pending:
            self._pending.append("")
        return ""

    def do_help(self, arg):
        """Short intro instead of command docs."""
        print("Monkey is a small language with integers, booleans, strings and\n"
              "first-class functions. Try:\n\n"
              "    let add = fn(a, b) { a + b };\n"
              "    add(1, 2)\n\n"
              "Bindings persist for the whole session. Type 'exit' to leave.",
              file=self.stdout)

    def do_EOF(self, arg):
        """Exits interpreter."""
        print(file=self.stdout)
        return self.do_exit(arg)

    def do_exit(self, arg):
        """Exits interpreter."""
        logger.debug("leaving shell")
        return True

    def cmdloop(self, intro=None):
        try:
            super().cmdloop(intro)
        except KeyboardInterrupt:
            print(colored("\ninterrupted", "yellow") if self.color else "\ninterrupted",
                  file=self.stdout)
