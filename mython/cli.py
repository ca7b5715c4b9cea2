"""
Mython Runner
=============
Execute Mython programs from the command line.

Usage:
    mython program.my
    mython < program.my
    mython program.my --tokens
    mython --repl
    python -m mython program.my --debug
"""
import argparse
import logging
import os
import sys
from typing import TextIO

from .errors import MythonError
from .interpreter import Interpreter
from .lexer import Lexer, TokenStream
from .parser import Parser
from .repl import run_repl
from .runtime import Context

logger = logging.getLogger(__name__)


def run_program(source: str, output: TextIO, show_tokens: bool = False) -> int:
    """
    Tokenize, parse and execute a program.

    Args:
        source: Program text
        output: Stream that receives the program's output
        show_tokens: If True, print the token sequence instead of running

    Returns:
        0 on success, 1 on error
    """
    try:
        lexer = Lexer(source)
        tokens = lexer.tokenize()
        logger.debug("Tokenized %d token(s)", len(tokens))

        if show_tokens:
            for token in tokens:
                output.write(f"{token!r}\n")
            return 0

        program = Parser(TokenStream(tokens, lexer.eof_token())).parse()
        logger.debug("Parsed %d top-level statement(s)", len(program.statements))

        Interpreter(Context(output)).run(program)
        logger.debug("Execution complete")
        return 0

    except MythonError as e:
        output.flush()
        print(f"{e.kind}: {e}", file=sys.stderr)
        return 1


def run_file(filepath: str, show_tokens: bool = False) -> int:
    """Execute a Mython source file ('-' reads standard input)."""
    if filepath == "-":
        source = sys.stdin.read()
    elif not os.path.exists(filepath):
        print(f"Error: File not found: {filepath}", file=sys.stderr)
        return 1
    else:
        with open(filepath, "r", encoding="utf-8") as f:
            source = f.read()

    return run_program(source, sys.stdout, show_tokens=show_tokens)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mython",
        description="Run a Mython program.",
    )
    parser.add_argument("file", nargs="?", default="-",
                        help="Program file (default: read standard input)")
    parser.add_argument("--tokens", action="store_true",
                        help="Print the token sequence and exit")
    parser.add_argument("--debug", action="store_true",
                        help="Log interpreter stages to stderr")
    parser.add_argument("--repl", action="store_true",
                        help="Start the interactive interpreter")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    if args.debug:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(levelname)s %(name)s: %(message)s",
            stream=sys.stderr,
        )
    if args.repl:
        return run_repl()
    return run_file(args.file, show_tokens=args.tokens)


if __name__ == "__main__":
    sys.exit(main())
