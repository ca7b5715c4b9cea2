"""
Mython REPL
===========
Interactive Read-Eval-Print Loop. Class declarations and global variables
persist between inputs; a line ending in ':' opens a block that is closed
by an empty line.

Usage:
    mython --repl
    python -m mython --repl
"""
import sys
from typing import Callable, TextIO

from .errors import MythonError, MythonRuntimeError
from .interpreter import Interpreter
from .parser import ClassTable, parse_program
from .runtime import Context, to_text

PROMPT = ">>> "
CONTINUATION = "... "

BANNER = """\
Mython interactive interpreter
Type 'help' for commands, 'exit' or Ctrl+D to quit.
"""

HELP_TEXT = """\
Commands:
  help    show this message
  env     list global variables
  clear   forget all classes and variables
  exit    leave the interpreter

Blocks: end a line with ':' and finish the block with an empty line.
"""


class Session:
    """Interpreter state shared by every input of one REPL run."""

    def __init__(self, output: TextIO):
        self.output = output
        self.reset()

    def reset(self):
        self.classes = ClassTable()
        self.interp = Interpreter(Context(self.output))

    def execute(self, source: str):
        program = parse_program(source, self.classes)
        self.interp.run(program)

    def bindings(self) -> list[tuple[str, str]]:
        """Globals with their printed form; printing may run user __str__ methods."""
        try:
            return [(name, to_text(value, self.interp))
                    for name, value in self.interp.globals.items()]
        except RecursionError:
            raise MythonRuntimeError("maximum recursion depth exceeded") from None


def _read_block(first_line: str, read: Callable[[str], str]) -> str:
    lines = [first_line]
    while True:
        try:
            line = read(CONTINUATION)
        except EOFError:
            break
        if not line.strip():
            break
        lines.append(line)
    return "\n".join(lines) + "\n"


def run_repl(read: Callable[[str], str] = input, output: TextIO | None = None) -> int:
    """Run the interactive loop until 'exit' or end of input."""
    output = output if output is not None else sys.stdout
    session = Session(output)
    print(BANNER, file=output)

    while True:
        try:
            line = read(PROMPT)
        except (EOFError, KeyboardInterrupt):
            print(file=output)
            return 0

        command = line.strip().lower()
        if not command:
            continue

        if command in ("exit", "quit"):
            return 0

        if command == "help":
            print(HELP_TEXT, file=output)
            continue

        if command == "env":
            try:
                bindings = session.bindings()
            except MythonError as e:
                print(f"{e.kind}: {e}", file=output)
                continue
            if not bindings:
                print("  (no variables)", file=output)
            for name, text in bindings:
                print(f"  {name} = {text}", file=output)
            continue

        if command == "clear":
            session.reset()
            print("  State cleared.", file=output)
            continue

        source = _read_block(line, read) if line.rstrip().endswith(":") else line + "\n"
        try:
            session.execute(source)
        except MythonError as e:
            print(f"{e.kind}: {e}", file=output)
