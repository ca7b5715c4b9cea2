"""
Mython Parser
=============
Recursive-descent parser that builds an executable tree (AST)
from the token stream produced by the Lexer.

Supports:
  - Assignments, field assignments, method calls, print, return
  - if / else suites
  - Class definitions with single inheritance, checked against a class table
  - Expressions: or / and / not, one non-chaining comparison,
    + - * /, unary minus, literals, dotted names, calls, str()

The first grammar violation raises ParseError; there is no recovery.
"""
from dataclasses import dataclass, field
from typing import Any, Iterable

from .errors import ParseError
from .lexer import Token, TokenStream, TokenType
from .runtime import FALSE, TRUE, Class, Method, Number, String


# ─────────────────────────────────────────────────────────────
#  AST Node Types
# ─────────────────────────────────────────────────────────────

@dataclass
class ASTNode:
    """Base class for all AST nodes."""
    node_type: str = ""
    line: int = 0
    col: int = 0


@dataclass
class LiteralNode(ASTNode):
    """A constant: a shared Number, String or Bool value, or None."""
    value: Any = None

    def __post_init__(self):
        self.node_type = "Literal"


@dataclass
class VariableNode(ASTNode):
    """A variable or a dotted field path: circle.center.x."""
    names: list[str] = field(default_factory=list)

    def __post_init__(self):
        self.node_type = "Variable"

    @property
    def dotted(self) -> str:
        return ".".join(self.names)


@dataclass
class AssignmentNode(ASTNode):
    """name = expression."""
    name: str = ""
    expression: ASTNode | None = None

    def __post_init__(self):
        self.node_type = "Assignment"


@dataclass
class FieldAssignmentNode(ASTNode):
    """target.field = expression."""
    target: VariableNode | None = None
    field_name: str = ""
    expression: ASTNode | None = None

    def __post_init__(self):
        self.node_type = "FieldAssignment"


@dataclass
class PrintNode(ASTNode):
    """print expr, expr, ..."""
    args: list[ASTNode] = field(default_factory=list)

    def __post_init__(self):
        self.node_type = "Print"


@dataclass
class MethodCallNode(ASTNode):
    """target.method(args)."""
    target: ASTNode | None = None
    method: str = ""
    args: list[ASTNode] = field(default_factory=list)

    def __post_init__(self):
        self.node_type = "MethodCall"


@dataclass
class NewInstanceNode(ASTNode):
    """ClassName(args). Holds a reference into the class table."""
    cls: Class | None = None
    args: list[ASTNode] = field(default_factory=list)

    def __post_init__(self):
        self.node_type = "NewInstance"


@dataclass
class StringifyNode(ASTNode):
    """str(argument)."""
    argument: ASTNode | None = None

    def __post_init__(self):
        self.node_type = "Stringify"


@dataclass
class BinaryOpNode(ASTNode):
    """Arithmetic: left (+ - * /) right."""
    operator: str = ""
    left: ASTNode | None = None
    right: ASTNode | None = None

    def __post_init__(self):
        self.node_type = "BinaryOp"


@dataclass
class ComparisonNode(ASTNode):
    """left (== != < > <= >=) right."""
    operator: str = ""
    left: ASTNode | None = None
    right: ASTNode | None = None

    def __post_init__(self):
        self.node_type = "Comparison"


@dataclass
class OrNode(ASTNode):
    left: ASTNode | None = None
    right: ASTNode | None = None

    def __post_init__(self):
        self.node_type = "Or"


@dataclass
class AndNode(ASTNode):
    left: ASTNode | None = None
    right: ASTNode | None = None

    def __post_init__(self):
        self.node_type = "And"


@dataclass
class NotNode(ASTNode):
    operand: ASTNode | None = None

    def __post_init__(self):
        self.node_type = "Not"


@dataclass
class CompoundNode(ASTNode):
    """A statement sequence: the program root, a suite, a method body."""
    statements: list[ASTNode] = field(default_factory=list)

    def __post_init__(self):
        self.node_type = "Compound"


@dataclass
class MethodBodyNode(ASTNode):
    """The boundary where a `return` is absorbed."""
    body: ASTNode | None = None

    def __post_init__(self):
        self.node_type = "MethodBody"


@dataclass
class ReturnNode(ASTNode):
    expression: ASTNode | None = None

    def __post_init__(self):
        self.node_type = "Return"


@dataclass
class ClassDefinitionNode(ASTNode):
    """Binds a declared class under its own name."""
    cls: Class | None = None

    def __post_init__(self):
        self.node_type = "ClassDefinition"


@dataclass
class IfElseNode(ASTNode):
    condition: ASTNode | None = None
    if_body: ASTNode | None = None
    else_body: ASTNode | None = None

    def __post_init__(self):
        self.node_type = "IfElse"


# ─────────────────────────────────────────────────────────────
#  Class table
# ─────────────────────────────────────────────────────────────

class ClassTable:
    """Classes declared so far, keyed by name. Names cannot be redeclared."""

    def __init__(self):
        self.classes: dict[str, Class] = {}

    def declare(self, cls: Class) -> Class:
        if cls.name in self.classes:
            raise ParseError(f"Class {cls.name} already exists")
        self.classes[cls.name] = cls
        return cls

    def get(self, name: str) -> Class | None:
        return self.classes.get(name)

    def __contains__(self, name: str) -> bool:
        return name in self.classes


COMPARISON_OPERATORS = {
    TokenType.EQ: "==",
    TokenType.NOT_EQ: "!=",
    TokenType.LESS_OR_EQ: "<=",
    TokenType.GREATER_OR_EQ: ">=",
}

STR_FUNCTION = "str"


# ─────────────────────────────────────────────────────────────
#  Parser
# ─────────────────────────────────────────────────────────────

class Parser:
    """
    Recursive-descent parser for Mython source.

    Usage:
        parser = Parser(TokenStream.from_source(source))
        program = parser.parse()

    The class table is explicit state: pass one in to share declarations
    between parses, or let the parser create its own.
    """

    def __init__(self, tokens: TokenStream | Iterable[Token],
                 classes: ClassTable | None = None):
        if not isinstance(tokens, TokenStream):
            tokens = TokenStream(tokens)
        self.stream = tokens
        self.classes = classes if classes is not None else ClassTable()

    def _current(self) -> Token:
        return self.stream.current_token()

    def _advance(self) -> Token:
        return self.stream.next_token()

    def _at_char(self, char: str) -> bool:
        return self._current().is_char(char)

    def _error(self, message: str) -> ParseError:
        token = self._current()
        return ParseError(f"{message} at L{token.line}:{token.col}")

    # ─────────────────────────────────────────────────────────
    #  Statements
    # ─────────────────────────────────────────────────────────

    def parse(self) -> CompoundNode:
        """Program := (Newline | Statement)*"""
        program = CompoundNode(line=1, col=1)
        while self._current().type != TokenType.EOF:
            if self._current().type == TokenType.NEWLINE:
                self._advance()
                continue
            try:
                program.statements.append(self._parse_statement())
            except RecursionError:
                raise self._error("maximum nesting depth exceeded") from None
        return program

    def _parse_statement(self) -> ASTNode:
        token = self._current()

        if token.type == TokenType.CLASS:
            self._advance()
            return self._parse_class_definition(token)

        if token.type == TokenType.IF:
            return self._parse_condition()

        stmt = self._parse_simple_statement()
        if self._current().type == TokenType.EOF:
            return stmt
        self.stream.expect(TokenType.NEWLINE)
        self._advance()
        return stmt

    def _parse_simple_statement(self) -> ASTNode:
        token = self._current()

        if token.type == TokenType.RETURN:
            self._advance()
            return ReturnNode(expression=self._parse_test(),
                              line=token.line, col=token.col)

        if token.type == TokenType.PRINT:
            self._advance()
            args = []
            if self._current().type not in (TokenType.NEWLINE, TokenType.EOF):
                args = self._parse_test_list()
            return PrintNode(args=args, line=token.line, col=token.col)

        return self._parse_assignment_or_call()

    def _parse_suite(self) -> CompoundNode:
        """Suite := Newline Indent Statement+ Dedent"""
        self.stream.expect(TokenType.NEWLINE)
        token = self._current()
        self.stream.expect_next(TokenType.INDENT)
        self._advance()

        suite = CompoundNode(line=token.line, col=token.col)
        while self._current().type != TokenType.DEDENT:
            if self._current().type == TokenType.EOF:
                raise self._error("Unexpected end of input inside a block")
            suite.statements.append(self._parse_statement())

        self._advance()
        return suite

    def _parse_condition(self) -> IfElseNode:
        """Condition := 'if' Test ':' Suite ['else' ':' Suite]"""
        token = self._current()
        self.stream.expect(TokenType.IF)
        self._advance()

        condition = self._parse_test()
        self.stream.expect(TokenType.CHAR, ":")
        self._advance()
        if_body = self._parse_suite()

        else_body = None
        if self._current().type == TokenType.ELSE:
            self.stream.expect_next(TokenType.CHAR, ":")
            self._advance()
            else_body = self._parse_suite()

        return IfElseNode(condition=condition, if_body=if_body, else_body=else_body,
                          line=token.line, col=token.col)

    # ─────────────────────────────────────────────────────────
    #  Classes and methods
    # ─────────────────────────────────────────────────────────

    def _parse_class_definition(self, class_token: Token) -> ClassDefinitionNode:
        """ClassDef := Id ['(' Id ')'] ':' Newline Indent Methods Dedent"""
        class_name = self.stream.expect(TokenType.ID)
        if class_name in self.classes:
            raise self._error(f"Class {class_name} already exists")
        self._advance()

        parent = None
        if self._at_char("("):
            parent_name = self.stream.expect_next(TokenType.ID)
            parent = self.classes.get(parent_name)
            if parent is None:
                raise self._error(
                    f"Base class {parent_name} not found for class {class_name}"
                )
            self.stream.expect_next(TokenType.CHAR, ")")
            self._advance()

        self.stream.expect(TokenType.CHAR, ":")
        self.stream.expect_next(TokenType.NEWLINE)
        self.stream.expect_next(TokenType.INDENT)
        self.stream.expect_next(TokenType.DEF)
        methods = self._parse_methods()
        self.stream.expect(TokenType.DEDENT)
        self._advance()

        cls = self.classes.declare(Class.build(class_name, methods, parent))
        return ClassDefinitionNode(cls=cls, line=class_token.line, col=class_token.col)

    def _parse_methods(self) -> list[Method]:
        """Methods := ('def' Id '(' [Id (',' Id)*] ')' ':' Suite)*"""
        methods = []
        while self._current().type == TokenType.DEF:
            def_token = self._current()
            name = self.stream.expect_next(TokenType.ID)
            self.stream.expect_next(TokenType.CHAR, "(")

            params = []
            if self._advance().type == TokenType.ID:
                params.append(self.stream.expect(TokenType.ID))
                while self._advance().is_char(","):
                    params.append(self.stream.expect_next(TokenType.ID))

            self.stream.expect(TokenType.CHAR, ")")
            self.stream.expect_next(TokenType.CHAR, ":")
            self._advance()

            body = MethodBodyNode(body=self._parse_suite(),
                                  line=def_token.line, col=def_token.col)
            methods.append(Method(name=name, params=params, body=body))
        return methods

    # ─────────────────────────────────────────────────────────
    #  Assignment and calls
    # ─────────────────────────────────────────────────────────

    def _parse_dotted_ids(self) -> list[str]:
        names = [self.stream.expect(TokenType.ID)]
        while self._advance().is_char("."):
            names.append(self.stream.expect_next(TokenType.ID))
        return names

    def _parse_assignment_or_call(self) -> ASTNode:
        """AssignOrCall := DottedIds ('=' Test | '(' [TestList] ')')"""
        token = self._current()
        if token.type != TokenType.ID:
            raise self._error(f"Unexpected token {token!r}")
        names = self._parse_dotted_ids()

        if self._at_char("="):
            self._advance()
            if len(names) == 1:
                return AssignmentNode(name=names[0], expression=self._parse_test(),
                                      line=token.line, col=token.col)
            target = VariableNode(names=names[:-1], line=token.line, col=token.col)
            return FieldAssignmentNode(target=target, field_name=names[-1],
                                       expression=self._parse_test(),
                                       line=token.line, col=token.col)

        if not self._at_char("("):
            raise self._error(f"Expected '=' or '(' after {'.'.join(names)}")
        return self._parse_call(names, token)

    def _parse_call(self, names: list[str], token: Token) -> ASTNode:
        """Resolve `a.b.c(args)`: method call, new instance, str(), or failure."""
        self.stream.expect(TokenType.CHAR, "(")
        args = []
        if not self._advance().is_char(")"):
            args = self._parse_test_list()
        self.stream.expect(TokenType.CHAR, ")")
        self._advance()

        name = names[-1]
        if len(names) > 1:
            target = VariableNode(names=names[:-1], line=token.line, col=token.col)
            return MethodCallNode(target=target, method=name, args=args,
                                  line=token.line, col=token.col)

        cls = self.classes.get(name)
        if cls is not None:
            return NewInstanceNode(cls=cls, args=args, line=token.line, col=token.col)

        if name == STR_FUNCTION:
            if len(args) != 1:
                raise ParseError(
                    f"Function str takes exactly one argument "
                    f"({len(args)} given) at L{token.line}:{token.col}"
                )
            return StringifyNode(argument=args[0], line=token.line, col=token.col)

        raise ParseError(f"Unknown call to {name}() at L{token.line}:{token.col}")

    # ─────────────────────────────────────────────────────────
    #  Expressions
    # ─────────────────────────────────────────────────────────

    def _parse_test_list(self) -> list[ASTNode]:
        tests = [self._parse_test()]
        while self._at_char(","):
            self._advance()
            tests.append(self._parse_test())
        return tests

    def _parse_test(self) -> ASTNode:
        """Test := AndTest ('or' AndTest)*"""
        result = self._parse_and_test()
        while self._current().type == TokenType.OR:
            token = self._current()
            self._advance()
            result = OrNode(left=result, right=self._parse_and_test(),
                            line=token.line, col=token.col)
        return result

    def _parse_and_test(self) -> ASTNode:
        result = self._parse_not_test()
        while self._current().type == TokenType.AND:
            token = self._current()
            self._advance()
            result = AndNode(left=result, right=self._parse_not_test(),
                             line=token.line, col=token.col)
        return result

    def _parse_not_test(self) -> ASTNode:
        token = self._current()
        if token.type == TokenType.NOT:
            self._advance()
            return NotNode(operand=self._parse_not_test(), line=token.line, col=token.col)
        return self._parse_comparison()

    def _parse_comparison(self) -> ASTNode:
        """Comparison := Expr [op Expr], a single comparator only."""
        left = self._parse_expression()
        token = self._current()

        if token.is_char("<") or token.is_char(">"):
            operator = token.value
        else:
            operator = COMPARISON_OPERATORS.get(token.type)
        if operator is None:
            return left

        self._advance()
        return ComparisonNode(operator=operator, left=left, right=self._parse_expression(),
                              line=token.line, col=token.col)

    def _parse_expression(self) -> ASTNode:
        """Expr := Adder (('+'|'-') Adder)*"""
        result = self._parse_adder()
        while self._at_char("+") or self._at_char("-"):
            token = self._current()
            self._advance()
            result = BinaryOpNode(operator=token.value, left=result,
                                  right=self._parse_adder(),
                                  line=token.line, col=token.col)
        return result

    def _parse_adder(self) -> ASTNode:
        """Adder := Mult (('*'|'/') Mult)*"""
        result = self._parse_mult()
        while self._at_char("*") or self._at_char("/"):
            token = self._current()
            self._advance()
            result = BinaryOpNode(operator=token.value, left=result,
                                  right=self._parse_mult(),
                                  line=token.line, col=token.col)
        return result

    def _parse_mult(self) -> ASTNode:
        token = self._current()

        if token.is_char("("):
            self._advance()
            inner = self._parse_test()
            self.stream.expect(TokenType.CHAR, ")")
            self._advance()
            return inner

        if token.is_char("-"):
            self._advance()
            operand = self._parse_mult()
            minus_one = LiteralNode(value=Number(-1), line=token.line, col=token.col)
            return BinaryOpNode(operator="*", left=operand, right=minus_one,
                                line=token.line, col=token.col)

        match token.type:
            case TokenType.NUMBER:
                self._advance()
                return LiteralNode(value=Number(token.value), line=token.line, col=token.col)
            case TokenType.STRING:
                self._advance()
                return LiteralNode(value=String(token.value), line=token.line, col=token.col)
            case TokenType.TRUE:
                self._advance()
                return LiteralNode(value=TRUE, line=token.line, col=token.col)
            case TokenType.FALSE:
                self._advance()
                return LiteralNode(value=FALSE, line=token.line, col=token.col)
            case TokenType.NONE:
                self._advance()
                return LiteralNode(value=None, line=token.line, col=token.col)
            case TokenType.ID:
                names = self._parse_dotted_ids()
                if self._at_char("("):
                    return self._parse_call(names, token)
                return VariableNode(names=names, line=token.line, col=token.col)

        raise self._error(f"Unexpected token {token!r}")


def parse_program(source: str, classes: ClassTable | None = None) -> CompoundNode:
    """Tokenize and parse source text into the program's root node."""
    return Parser(TokenStream.from_source(source), classes).parse()
