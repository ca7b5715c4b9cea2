"""
Mython REPL Tests
=================
Scripted sessions against the interactive loop.

Usage:
    python -m pytest tests/test_repl.py -v
"""
import sys
import os
import io
import unittest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from mython.repl import BANNER, run_repl


def scripted(*lines):
    """A read() callable that replays lines, then signals end of input."""
    pending = list(lines)

    def read(prompt):
        if not pending:
            raise EOFError
        return pending.pop(0)

    return read


def session(*lines) -> str:
    out = io.StringIO()
    run_repl(scripted(*lines), out)
    return out.getvalue()[len(BANNER) + 1:]


class TestRepl(unittest.TestCase):

    def test_state_persists_between_lines(self):
        self.assertEqual(session("x = 20", "print x + 1"), "21\n\n")

    def test_block_input(self):
        output = session(
            "class A:",
            "  def f():",
            "    return 'hi'",
            "",
            "a = A()",
            "print a.f()",
            "exit",
        )
        self.assertEqual(output, "hi\n")

    def test_error_does_not_end_session(self):
        output = session("print 1 / 0", "print 'still here'", "exit")
        self.assertEqual(output, "RuntimeError: division by zero at L1:9\nstill here\n")

    def test_env_listing(self):
        output = session("env", "n = 3", "env", "exit")
        self.assertEqual(output, "  (no variables)\n  n = 3\n")

    def test_clear(self):
        output = session("n = 3", "clear", "print n", "exit")
        self.assertIn("State cleared.", output)
        self.assertIn("RuntimeError: Undefined variable: 'n'", output)

    def test_failing_str_in_env_keeps_session(self):
        output = session(
            "class A:",
            "  def __str__():",
            "    return self.missing",
            "",
            "a = A()",
            "env",
            "print 1",
            "exit",
        )
        self.assertIn("RuntimeError: Undefined variable: 'missing'", output)
        self.assertTrue(output.endswith("1\n"))

    def test_help(self):
        self.assertIn("Commands:", session("help", "exit"))

    def test_exit_code(self):
        self.assertEqual(run_repl(scripted("quit"), io.StringIO()), 0)
        self.assertEqual(run_repl(scripted(), io.StringIO()), 0)


if __name__ == "__main__":
    unittest.main(verbosity=2)
