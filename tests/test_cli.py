"""
Mython CLI Tests
================
The `mython` command: files, standard input, token dumps and error reporting.

Usage:
    python -m pytest tests/test_cli.py -v
"""
import sys
import os
import io
import tempfile
import unittest
from unittest import mock

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from mython.cli import build_parser, main, run_program


class TestRunProgram(unittest.TestCase):

    def test_success(self):
        out = io.StringIO()
        self.assertEqual(run_program("print 1 + 1", out), 0)
        self.assertEqual(out.getvalue(), "2\n")

    def test_runtime_error_reported(self):
        out = io.StringIO()
        with mock.patch("sys.stderr", new_callable=io.StringIO) as err:
            code = run_program("print 'ok'\nprint 1 / 0\n", out)
        self.assertEqual(code, 1)
        self.assertEqual(out.getvalue(), "ok\n")
        self.assertTrue(err.getvalue().startswith("RuntimeError: division by zero"))

    def test_parse_error_reported(self):
        with mock.patch("sys.stderr", new_callable=io.StringIO) as err:
            code = run_program("x = foo()", io.StringIO())
        self.assertEqual(code, 1)
        self.assertIn("ParseError: Unknown call to foo()", err.getvalue())

    def test_lexical_error_reported(self):
        with mock.patch("sys.stderr", new_callable=io.StringIO) as err:
            code = run_program("if x:\nprint 1\n", io.StringIO())
        self.assertEqual(code, 1)
        self.assertIn("LexicalError: Expected INDENT", err.getvalue())

    def test_superscript_digit_is_skipped(self):
        out = io.StringIO()
        self.assertEqual(run_program("x = 1²\nprint x\n", out), 0)
        self.assertEqual(out.getvalue(), "1\n")

    def test_deep_nesting_reported(self):
        with mock.patch("sys.stderr", new_callable=io.StringIO) as err:
            code = run_program("print " + "(" * 2000, io.StringIO())
        self.assertEqual(code, 1)
        self.assertIn("ParseError: maximum nesting depth exceeded", err.getvalue())

    def test_show_tokens(self):
        out = io.StringIO()
        self.assertEqual(run_program("x = 1", out, show_tokens=True), 0)
        lines = out.getvalue().splitlines()
        self.assertEqual(len(lines), 3)
        self.assertIn("ID", lines[0])
        self.assertIn("NUMBER", lines[2])


class TestMain(unittest.TestCase):

    def _write_program(self, text: str) -> str:
        handle, path = tempfile.mkstemp(suffix=".my")
        with os.fdopen(handle, "w", encoding="utf-8") as f:
            f.write(text)
        self.addCleanup(os.remove, path)
        return path

    def test_defaults(self):
        args = build_parser().parse_args([])
        self.assertEqual(args.file, "-")
        self.assertFalse(args.tokens)
        self.assertFalse(args.debug)

    def test_runs_file(self):
        path = self._write_program("print 'from file'\n")
        with mock.patch("sys.stdout", new_callable=io.StringIO) as out:
            self.assertEqual(main([path]), 0)
        self.assertEqual(out.getvalue(), "from file\n")

    def test_reads_stdin(self):
        with mock.patch("sys.stdin", io.StringIO("print 6 * 7\n")), \
                mock.patch("sys.stdout", new_callable=io.StringIO) as out:
            self.assertEqual(main([]), 0)
        self.assertEqual(out.getvalue(), "42\n")

    def test_missing_file(self):
        with mock.patch("sys.stderr", new_callable=io.StringIO) as err:
            self.assertEqual(main(["/nonexistent/program.my"]), 1)
        self.assertIn("File not found", err.getvalue())

    def test_error_exit_code(self):
        path = self._write_program("print undefined_name\n")
        with mock.patch("sys.stdout", new_callable=io.StringIO), \
                mock.patch("sys.stderr", new_callable=io.StringIO) as err:
            self.assertEqual(main([path]), 1)
        self.assertIn("RuntimeError: Undefined variable", err.getvalue())

    def test_tokens_flag(self):
        path = self._write_program("print 1\n")
        with mock.patch("sys.stdout", new_callable=io.StringIO) as out:
            self.assertEqual(main([path, "--tokens"]), 0)
        self.assertIn("PRINT", out.getvalue())


if __name__ == "__main__":
    unittest.main(verbosity=2)
