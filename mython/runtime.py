"""
Mython Runtime
==============
Value model shared by the parser and the interpreter.

A value handle is an ordinary Python reference: `None` is the empty handle,
anything else is one of Number, String, Bool, Class or ClassInstance.
Handles are compared by identity, so two variables bound to the same
instance observe each other's field mutations.
"""
import itertools
import sys
from dataclasses import dataclass, field
from io import StringIO
from typing import Any, Callable, TextIO

from .errors import MythonRuntimeError


SELF = "self"
INIT_METHOD = "__init__"
STR_METHOD = "__str__"
BOOL_METHOD = "__bool__"
EQ_METHOD = "__eq__"
LT_METHOD = "__lt__"
ADD_METHOD = "__add__"
SUB_METHOD = "__sub__"
MUL_METHOD = "__mul__"
DIV_METHOD = "__div__"


# ─────────────────────────────────────────────────────────────
#  Values
# ─────────────────────────────────────────────────────────────

@dataclass(eq=False, frozen=True)
class Number:
    value: int


@dataclass(eq=False, frozen=True)
class String:
    value: str


@dataclass(eq=False, frozen=True)
class Bool:
    value: bool

    @staticmethod
    def of(flag: bool) -> "Bool":
        """The shared True/False singleton for a Python truth value."""
        return TRUE if flag else FALSE


TRUE = Bool(True)
FALSE = Bool(False)


@dataclass(eq=False)
class Method:
    """A method: dispatch identity is (name, len(params))."""
    name: str
    params: list[str] = field(default_factory=list)
    body: Any = None  # MethodBody node

    @property
    def arity(self) -> int:
        return len(self.params)


@dataclass(eq=False)
class Class:
    """A user class with single inheritance. Parents are owned by the class table."""
    name: str
    methods: dict[str, Method] = field(default_factory=dict)
    parent: "Class | None" = None

    @classmethod
    def build(cls, name: str, methods: list[Method],
              parent: "Class | None" = None) -> "Class":
        return cls(name, {m.name: m for m in methods}, parent)

    def find_method(self, name: str) -> Method | None:
        """Nearest method with this name along the parent chain."""
        klass: Class | None = self
        while klass is not None:
            method = klass.methods.get(name)
            if method is not None:
                return method
            klass = klass.parent
        return None

    def get_method(self, name: str, arity: int) -> Method | None:
        """The method found by name, only if it takes exactly `arity` arguments."""
        method = self.find_method(name)
        if method is not None and method.arity == arity:
            return method
        return None


_instance_ids = itertools.count(1)


class ClassInstance:
    """An object of a user class. Fields are set lazily by assignments."""

    def __init__(self, cls: Class):
        self.cls = cls
        self.fields = Environment()
        self.instance_id = next(_instance_ids)

    def has_method(self, name: str, arity: int) -> bool:
        return self.cls.get_method(name, arity) is not None

    def call(self, name: str, args: list, executor) -> Any:
        """Invoke a method by (name, arity).

        `executor` evaluates the method body; it must provide
        `run_method(method, env)`. Only `self` and the bound parameters are
        visible inside the body.
        """
        method = self.cls.get_method(name, len(args))
        if method is None:
            raise MythonRuntimeError(
                f"Class {self.cls.name} has no method {name}() "
                f"taking {len(args)} argument(s)"
            )
        env = Environment({SELF: self})
        for param, arg in zip(method.params, args):
            env.set(param, arg)
        return executor.run_method(method, env)

    def __repr__(self) -> str:
        return f"<{self.cls.name} object #{self.instance_id}>"


# ─────────────────────────────────────────────────────────────
#  Environments
# ─────────────────────────────────────────────────────────────

class Environment:
    """A name → value mapping for one scope (program, method call or instance fields)."""

    def __init__(self, bindings: dict[str, Any] | None = None):
        self.bindings: dict[str, Any] = dict(bindings or {})

    def get(self, name: str) -> Any:
        if name in self.bindings:
            return self.bindings[name]
        raise MythonRuntimeError(f"Undefined variable: '{name}'")

    def set(self, name: str, value: Any):
        self.bindings[name] = value

    def __contains__(self, name: str) -> bool:
        return name in self.bindings

    def items(self):
        return self.bindings.items()


# ─────────────────────────────────────────────────────────────
#  Output context
# ─────────────────────────────────────────────────────────────

class Context:
    """The output sink `print` writes to."""

    def __init__(self, output: TextIO | None = None):
        self.output = output if output is not None else sys.stdout

    def write(self, text: str):
        self.output.write(text)


class StringContext(Context):
    """A context that collects output in memory."""

    def __init__(self):
        super().__init__(StringIO())

    def getvalue(self) -> str:
        return self.output.getvalue()


# ─────────────────────────────────────────────────────────────
#  Truthiness, printing, comparison
# ─────────────────────────────────────────────────────────────

def is_true(value: Any) -> bool:
    match value:
        case Bool(value=flag):
            return flag
        case Number(value=number):
            return number != 0
        case String(value=text):
            return text != ""
        case _:
            return False


def to_text(value: Any, executor) -> str:
    """The printed form of a value, as `print` and `str()` render it."""
    match value:
        case None:
            return "None"
        case Bool(value=flag):
            return "True" if flag else "False"
        case Number(value=number):
            return str(number)
        case String(value=text):
            return text
        case Class(name=name):
            return f"class {name}"
        case ClassInstance():
            if value.has_method(STR_METHOD, 0):
                return to_text(value.call(STR_METHOD, [], executor), executor)
            return repr(value)
        case _:
            raise MythonRuntimeError(f"Cannot print value {value!r}")


def _compare(lhs: Any, rhs: Any, executor, method_name: str,
             native: Callable[[Any, Any], bool]) -> bool:
    if lhs is None or rhs is None:
        raise MythonRuntimeError("Cannot compare objects: None operand")
    if isinstance(lhs, ClassInstance):
        return is_true(lhs.call(method_name, [rhs], executor))
    for kind in (String, Number, Bool):
        if isinstance(lhs, kind) and isinstance(rhs, kind):
            return native(lhs.value, rhs.value)
    raise MythonRuntimeError(
        f"Cannot compare {type(lhs).__name__} with {type(rhs).__name__}"
    )


def equal(lhs: Any, rhs: Any, executor) -> bool:
    return _compare(lhs, rhs, executor, EQ_METHOD, lambda a, b: a == b)


def less(lhs: Any, rhs: Any, executor) -> bool:
    return _compare(lhs, rhs, executor, LT_METHOD, lambda a, b: a < b)


def not_equal(lhs: Any, rhs: Any, executor) -> bool:
    return not equal(lhs, rhs, executor)


def greater(lhs: Any, rhs: Any, executor) -> bool:
    return not less(lhs, rhs, executor) and not equal(lhs, rhs, executor)


def less_or_equal(lhs: Any, rhs: Any, executor) -> bool:
    return not greater(lhs, rhs, executor)


def greater_or_equal(lhs: Any, rhs: Any, executor) -> bool:
    return not less(lhs, rhs, executor)


COMPARATORS: dict[str, Callable[[Any, Any, Any], bool]] = {
    "==": equal,
    "!=": not_equal,
    "<": less,
    ">": greater,
    "<=": less_or_equal,
    ">=": greater_or_equal,
}
