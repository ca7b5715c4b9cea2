"""
Mython Interpreter
==================
Tree-walking interpreter that executes the AST produced by the Parser.

Every node is evaluated against an Environment and writes through a
Context. Statements produce a Completion: either "completed with value" or
"returning with value". Compound and IfElse stop at the first returning
completion; MethodBody is the only place that absorbs it.
"""
import logging
from dataclasses import dataclass
from typing import Any

from .errors import MythonRuntimeError
from .parser import (
    ASTNode, AndNode, AssignmentNode, BinaryOpNode, ClassDefinitionNode,
    ComparisonNode, CompoundNode, FieldAssignmentNode, IfElseNode, LiteralNode,
    MethodBodyNode, MethodCallNode, NewInstanceNode, NotNode, OrNode, PrintNode,
    ReturnNode, StringifyNode, VariableNode, parse_program,
)
from .runtime import (
    ADD_METHOD, BOOL_METHOD, DIV_METHOD, INIT_METHOD, MUL_METHOD, STR_METHOD,
    SUB_METHOD, COMPARATORS, Bool, ClassInstance, Context, Environment, Method,
    Number, String, is_true, to_text,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Completion:
    """Outcome of executing a statement."""
    value: Any = None
    returning: bool = False


NORMAL = Completion()

OVERLOADS = {
    "+": ADD_METHOD,
    "-": SUB_METHOD,
    "*": MUL_METHOD,
    "/": DIV_METHOD,
}


def _truncating_div(lhs: int, rhs: int) -> int:
    quotient = abs(lhs) // abs(rhs)
    return -quotient if (lhs < 0) != (rhs < 0) else quotient


ARITHMETIC = {
    "+": lambda a, b: a + b,
    "-": lambda a, b: a - b,
    "*": lambda a, b: a * b,
    "/": _truncating_div,
}


class Interpreter:
    """
    Tree-walking interpreter for Mython programs.

    Usage:
        interp = Interpreter(StringContext())
        interp.run(program)
    """

    def __init__(self, context: Context | None = None):
        self.context = context if context is not None else Context()
        self.globals = Environment()

    def run(self, program: ASTNode, env: Environment | None = None) -> Any:
        """Execute a program root. A `return` escaping to top level is an error."""
        env = env if env is not None else self.globals
        try:
            completion = self.execute(program, env)
        except RecursionError:
            raise MythonRuntimeError("maximum recursion depth exceeded") from None
        if completion.returning:
            raise MythonRuntimeError("'return' outside of method")
        return completion.value

    def execute(self, node: ASTNode, env: Environment) -> Completion:
        """Execute a statement node. Expression nodes complete normally."""
        executor = getattr(self, f"_exec_{node.node_type.lower()}", None)
        if executor is not None:
            return executor(node, env)
        return Completion(self.evaluate(node, env))

    def evaluate(self, node: ASTNode, env: Environment) -> Any:
        """Evaluate an expression node to a value (None is the empty value)."""
        evaluator = getattr(self, f"_eval_{node.node_type.lower()}", None)
        if evaluator is None:
            raise MythonRuntimeError(f"Unknown node type: {node.node_type}")
        return evaluator(node, env)

    def run_method(self, method: Method, env: Environment) -> Any:
        """Evaluate a method body in a fresh activation environment."""
        return self.evaluate(method.body, env)

    # ─────────────────────────────────────────────────────────
    #  Control flow
    # ─────────────────────────────────────────────────────────

    def _exec_compound(self, node: CompoundNode, env: Environment) -> Completion:
        for stmt in node.statements:
            completion = self.execute(stmt, env)
            if completion.returning:
                return completion
        return NORMAL

    def _exec_ifelse(self, node: IfElseNode, env: Environment) -> Completion:
        if self._condition(self.evaluate(node.condition, env)):
            return self.execute(node.if_body, env)
        if node.else_body is not None:
            return self.execute(node.else_body, env)
        return NORMAL

    def _exec_return(self, node: ReturnNode, env: Environment) -> Completion:
        return Completion(self.evaluate(node.expression, env), returning=True)

    def _eval_methodbody(self, node: MethodBodyNode, env: Environment) -> Any:
        completion = self.execute(node.body, env)
        return completion.value if completion.returning else None

    # ─────────────────────────────────────────────────────────
    #  Statements with values
    # ─────────────────────────────────────────────────────────

    def _eval_assignment(self, node: AssignmentNode, env: Environment) -> Any:
        value = self.evaluate(node.expression, env)
        env.set(node.name, value)
        return value

    def _eval_fieldassignment(self, node: FieldAssignmentNode, env: Environment) -> Any:
        target = self._eval_variable(node.target, env)
        if not isinstance(target, ClassInstance):
            raise MythonRuntimeError(
                f"Cannot assign field '{node.field_name}': "
                f"'{node.target.dotted}' is not an object at L{node.line}:{node.col}"
            )
        value = self.evaluate(node.expression, env)
        target.fields.set(node.field_name, value)
        return value

    def _eval_print(self, node: PrintNode, env: Environment) -> Any:
        for i, arg in enumerate(node.args):
            if i:
                self.context.write(" ")
            self.context.write(to_text(self.evaluate(arg, env), self))
        self.context.write("\n")
        return None

    def _eval_classdefinition(self, node: ClassDefinitionNode, env: Environment) -> Any:
        logger.debug("Defining class %s", node.cls.name)
        env.set(node.cls.name, node.cls)
        return None

    # ─────────────────────────────────────────────────────────
    #  Names, objects, calls
    # ─────────────────────────────────────────────────────────

    def _eval_literal(self, node: LiteralNode, env: Environment) -> Any:
        return node.value

    def _eval_variable(self, node: VariableNode, env: Environment) -> Any:
        first, *rest = node.names
        if first not in env:
            raise MythonRuntimeError(
                f"Undefined variable: '{first}' at L{node.line}:{node.col}"
            )
        value = env.get(first)
        for name in rest:
            if not isinstance(value, ClassInstance) or name not in value.fields:
                raise MythonRuntimeError(
                    f"Undefined variable: '{name}' in '{node.dotted}' "
                    f"at L{node.line}:{node.col}"
                )
            value = value.fields.get(name)
        return value

    def _eval_methodcall(self, node: MethodCallNode, env: Environment) -> Any:
        target = self.evaluate(node.target, env)
        if not isinstance(target, ClassInstance):
            raise MythonRuntimeError(
                f"Cannot call method {node.method}(): receiver is not an object "
                f"at L{node.line}:{node.col}"
            )
        args = [self.evaluate(arg, env) for arg in node.args]
        return target.call(node.method, args, self)

    def _eval_newinstance(self, node: NewInstanceNode, env: Environment) -> Any:
        instance = ClassInstance(node.cls)
        logger.debug("New %r", instance)
        if instance.has_method(INIT_METHOD, len(node.args)):
            args = [self.evaluate(arg, env) for arg in node.args]
            instance.call(INIT_METHOD, args, self)
        return instance

    def _eval_stringify(self, node: StringifyNode, env: Environment) -> Any:
        value = self.evaluate(node.argument, env)
        if isinstance(value, ClassInstance) and value.has_method(STR_METHOD, 0):
            value = value.call(STR_METHOD, [], self)
        return String(to_text(value, self))

    # ─────────────────────────────────────────────────────────
    #  Operators
    # ─────────────────────────────────────────────────────────

    def _eval_binaryop(self, node: BinaryOpNode, env: Environment) -> Any:
        lhs = self.evaluate(node.left, env)
        rhs = self.evaluate(node.right, env)
        op = node.operator

        match lhs, rhs:
            case Number(value=a), Number(value=b):
                if op == "/" and b == 0:
                    raise MythonRuntimeError(f"division by zero at L{node.line}:{node.col}")
                return Number(ARITHMETIC[op](a, b))
            case String(value=a), String(value=b) if op == "+":
                return String(a + b)
            case ClassInstance(), _:
                return lhs.call(OVERLOADS[op], [rhs], self)

        raise MythonRuntimeError(
            f"Unsupported operand types for {op}: "
            f"{type(lhs).__name__} and {type(rhs).__name__} at L{node.line}:{node.col}"
        )

    def _eval_comparison(self, node: ComparisonNode, env: Environment) -> Any:
        lhs = self.evaluate(node.left, env)
        rhs = self.evaluate(node.right, env)
        return Bool.of(COMPARATORS[node.operator](lhs, rhs, self))

    def _eval_or(self, node: OrNode, env: Environment) -> Any:
        if self._condition(self.evaluate(node.left, env)):
            return Bool.of(True)
        return Bool.of(self._condition(self.evaluate(node.right, env)))

    def _eval_and(self, node: AndNode, env: Environment) -> Any:
        if not self._condition(self.evaluate(node.left, env)):
            return Bool.of(False)
        return Bool.of(self._condition(self.evaluate(node.right, env)))

    def _eval_not(self, node: NotNode, env: Environment) -> Any:
        return Bool.of(not self._condition(self.evaluate(node.operand, env)))

    def _condition(self, value: Any) -> bool:
        """Truthiness for if/and/or/not: instances go through __bool__ when they have one."""
        if isinstance(value, ClassInstance) and value.has_method(BOOL_METHOD, 0):
            value = value.call(BOOL_METHOD, [], self)
        return is_true(value)


def run_source(source: str, context: Context | None = None) -> Interpreter:
    """Parse and run a whole program; returns the interpreter for inspection."""
    program = parse_program(source)
    interp = Interpreter(context)
    interp.run(program)
    return interp
