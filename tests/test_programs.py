"""
Mython Program Tests
====================
Whole programs run end to end, including the bundled examples/*.my files.

Usage:
    python -m pytest tests/test_programs.py -v
"""
import sys
import os
import unittest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from mython.interpreter import run_source
from mython.runtime import StringContext

EXAMPLES_DIR = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "examples")


def run(source: str) -> str:
    context = StringContext()
    run_source(source, context)
    return context.getvalue()


class TestReferencePrograms(unittest.TestCase):
    """Reference programs with known output."""

    def test_simple_prints(self):
        source = """
print 57
print 10, 24, -8
print 'hello'
print "world"
print True, False
print
print None
"""
        self.assertEqual(run(source), "57\n10 24 -8\nhello\nworld\nTrue False\n\nNone\n")

    def test_assignments(self):
        source = """
x = 57
print x
x = 'C++ black belt'
print x
y = False
x = y
print x
x = None
print x, y
"""
        self.assertEqual(run(source), "57\nC++ black belt\nFalse\nNone False\n")

    def test_arithmetic(self):
        source = "print 1+2+3+4+5, 1*2*3*4*5, 1-2-3-4-5, 36/4/3, 2*5+10/2"
        self.assertEqual(run(source), "15 120 -13 3 15\n")

    def test_variables_are_pointers(self):
        source = """
class Counter:
  def __init__():
    self.value = 0

  def add():
    self.value = self.value + 1

class Dummy:
  def do_add(counter):
    counter.add()

x = Counter()
y = x

x.add()
y.add()

print x.value

d = Dummy()
d.do_add(x)

print y.value
"""
        self.assertEqual(run(source), "2\n3\n")


class TestExampleFiles(unittest.TestCase):
    """Each examples/*.my file prints what it is documented to print."""

    EXPECTED = {
        "hello.my": "57\n10 24 -8\nhello\nworld\nTrue False\n\nNone\n",
        "counter.my": "2\n3\n",
        "shapes.my": "rect with area 6\nsquare with area 16\nTrue\n",
        "factorial.my": "120 3628800\n",
        "money.my": (
            "5 coins 7 coins 12\n"
            "True False False True True False\n"
            "True True True\n"
            "empty is falsy\n"
        ),
    }

    def test_examples(self):
        for name, expected in self.EXPECTED.items():
            with self.subTest(example=name):
                with open(os.path.join(EXAMPLES_DIR, name), "r", encoding="utf-8") as f:
                    self.assertEqual(run(f.read()), expected)


if __name__ == "__main__":
    unittest.main(verbosity=2)
