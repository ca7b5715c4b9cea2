"""
Mython Lexer
============
Tokenizes Mython source code into a stream of typed tokens.
Handles indentation (Indent/Dedent), string/number literals, keywords,
operator characters and identifiers, then normalizes blank-line noise.

The cursor (`TokenStream`) is what the parser consumes: a forward-only view
with expect-or-fail accessors that keeps returning EOF once exhausted.
"""
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Iterable, Iterator

from .errors import LexicalError


class TokenType(Enum):
    """All token types in the Mython language."""
    # Valued tokens
    NUMBER        = auto()   # 42
    ID            = auto()   # variable/method/class names
    CHAR          = auto()   # single operator/punctuation character
    STRING        = auto()   # '...' or "..."

    # Keywords
    CLASS         = auto()
    RETURN        = auto()
    IF            = auto()
    ELSE          = auto()
    DEF           = auto()
    PRINT         = auto()
    AND           = auto()
    OR            = auto()
    NOT           = auto()
    NONE          = auto()
    TRUE          = auto()
    FALSE         = auto()

    # Two-character comparison operators
    EQ            = auto()   # ==
    NOT_EQ        = auto()   # !=
    LESS_OR_EQ    = auto()   # <=
    GREATER_OR_EQ = auto()   # >=

    # Layout
    NEWLINE       = auto()
    INDENT        = auto()
    DEDENT        = auto()
    EOF           = auto()


VALUED_TYPES = frozenset({TokenType.NUMBER, TokenType.ID, TokenType.CHAR, TokenType.STRING})
LAYOUT_TYPES = frozenset({TokenType.NEWLINE, TokenType.INDENT, TokenType.DEDENT})


@dataclass(frozen=True)
class Token:
    """A single token. Equality compares kind and payload, never position."""
    type: TokenType
    value: Any = None
    line: int = field(default=0, compare=False)
    col: int = field(default=0, compare=False)

    def is_char(self, char: str) -> bool:
        return self.type == TokenType.CHAR and self.value == char

    @property
    def location(self) -> str:
        return f"L{self.line}:{self.col}"

    def __repr__(self) -> str:
        if self.type in VALUED_TYPES:
            return f"Token({self.type.name}, {self.value!r}, {self.location})"
        return f"Token({self.type.name}, {self.location})"


INDENT_WIDTH = 2

OPERATOR_CHARS = frozenset(":(),.+-*/!><=")

SPECIAL_WORDS = {
    "class": TokenType.CLASS,
    "return": TokenType.RETURN,
    "if": TokenType.IF,
    "else": TokenType.ELSE,
    "def": TokenType.DEF,
    "print": TokenType.PRINT,
    "and": TokenType.AND,
    "or": TokenType.OR,
    "not": TokenType.NOT,
    "None": TokenType.NONE,
    "True": TokenType.TRUE,
    "False": TokenType.FALSE,
    "==": TokenType.EQ,
    "!=": TokenType.NOT_EQ,
    "<=": TokenType.LESS_OR_EQ,
    ">=": TokenType.GREATER_OR_EQ,
}

KEYWORD_TEXT = {token_type: word for word, token_type in SPECIAL_WORDS.items()}


def _is_special_char(ch: str) -> bool:
    return ch.isalpha() or ch in "=><!"


class Lexer:
    """
    Tokenizes Mython source code.

    Usage:
        lexer = Lexer(source_code)
        tokens = lexer.tokenize()

    The whole input is consumed eagerly; `tokenize` returns the optimized
    sequence without a trailing EOF (the cursor supplies EOF on demand).
    """

    def __init__(self, source: str):
        self.source = source
        self.pos = 0
        self.line = 1
        self.col = 1
        self.depth = 0

    def _current(self) -> str | None:
        if self.pos >= len(self.source):
            return None
        return self.source[self.pos]

    def _advance(self) -> str:
        ch = self.source[self.pos]
        self.pos += 1
        if ch == "\n":
            self.line += 1
            self.col = 1
        else:
            self.col += 1
        return ch

    def _read_while(self, predicate) -> str:
        start = self.pos
        while self.pos < len(self.source) and predicate(self.source[self.pos]):
            self._advance()
        return self.source[start:self.pos]

    def _skip_spaces(self):
        """Skip plain spaces only; tabs and other characters are not layout."""
        self._read_while(lambda ch: ch == " ")

    def _token(self, token_type: TokenType, value: Any = None,
               line: int | None = None, col: int | None = None) -> Token:
        return Token(token_type, value,
                     self.line if line is None else line,
                     self.col if col is None else col)

    # ─────────────────────────────────────────────────────────
    #  Public API
    # ─────────────────────────────────────────────────────────

    def tokenize(self) -> list[Token]:
        """Tokenize the entire source into an optimized list of tokens."""
        return optimize(list(self._iter_tokens()))

    def eof_token(self) -> Token:
        return Token(TokenType.EOF, None, self.line, self.col)

    # ─────────────────────────────────────────────────────────
    #  Scanning
    # ─────────────────────────────────────────────────────────

    def _iter_tokens(self) -> Iterator[Token]:
        """Generate raw tokens line by line, before optimization."""
        while self.pos < len(self.source):
            yield from self._indentation()
            line_has_tokens = False
            terminated = False

            while self.pos < len(self.source):
                ch = self._current()

                if ch == "#":
                    self._read_while(lambda c: c != "\n")
                    continue

                if ch == "\n":
                    yield self._token(TokenType.NEWLINE)
                    self._advance()
                    terminated = True
                    break

                token = self._read_token(ch)
                if token is None:
                    # Unknown character: absorbed silently
                    self._advance()
                    continue
                line_has_tokens = True
                yield token
                self._skip_spaces()

            if line_has_tokens and not terminated:
                yield self._token(TokenType.NEWLINE)

        # Close every open block at end of input
        for _ in range(self.depth):
            yield self._token(TokenType.DEDENT)
        self.depth = 0

    def _indentation(self) -> Iterator[Token]:
        """Count leading spaces and emit the Indent/Dedent delta."""
        spaces = len(self._read_while(lambda ch: ch == " "))
        depth = spaces // INDENT_WIDTH
        if depth > self.depth:
            kind = TokenType.INDENT
        else:
            kind = TokenType.DEDENT
        for _ in range(abs(depth - self.depth)):
            yield self._token(kind)
        self.depth = depth

    def _read_token(self, ch: str) -> Token | None:
        """Apply the scanners in priority order; None if nothing matched."""
        if ch in ("'", '"'):
            return self._read_string()

        if ch.isdecimal():
            line, col = self.line, self.col
            digits = self._read_while(str.isdecimal)
            return self._token(TokenType.NUMBER, int(digits), line, col)

        if _is_special_char(ch):
            token = self._read_special_word()
            if token is not None:
                return token

        if ch in OPERATOR_CHARS:
            token = self._token(TokenType.CHAR, ch)
            self._advance()
            return token

        if ch.isalpha() or ch == "_":
            line, col = self.line, self.col
            name = self._read_while(lambda c: c.isalnum() or c == "_")
            return self._token(TokenType.ID, name, line, col)

        return None

    def _read_string(self) -> Token:
        """Read a quoted string verbatim, up to the matching quote (no escapes)."""
        line, col = self.line, self.col
        quote = self._advance()
        value = self._read_while(lambda ch: ch != quote)
        if self.pos < len(self.source):
            self._advance()  # closing quote
        return self._token(TokenType.STRING, value, line, col)

    def _read_special_word(self) -> Token | None:
        """Match a keyword or two-char operator; rewind if the run is not one."""
        start, line, col = self.pos, self.line, self.col
        word = self._read_while(_is_special_char)
        token_type = SPECIAL_WORDS.get(word)
        if token_type is not None:
            return self._token(token_type, None, line, col)
        self.pos, self.line, self.col = start, line, col
        return None


# ─────────────────────────────────────────────────────────────
#  Optimization passes
# ─────────────────────────────────────────────────────────────

def _drop_leading_newlines(tokens: list[Token]) -> list[Token]:
    i = 0
    while i < len(tokens) and tokens[i].type == TokenType.NEWLINE:
        i += 1
    return tokens[i:]


def _drop_trailing_newlines(tokens: list[Token]) -> list[Token]:
    end = len(tokens)
    while end > 0 and tokens[end - 1].type == TokenType.NEWLINE:
        end -= 1
    return tokens[:end]


def _collapse_newlines(tokens: list[Token]) -> list[Token]:
    result: list[Token] = []
    for token in tokens:
        if (token.type == TokenType.NEWLINE and result
                and result[-1].type == TokenType.NEWLINE):
            continue
        result.append(token)
    return result


def _normalize_indentation(tokens: list[Token]) -> list[Token]:
    """Replace each layout span between real tokens by a Newline (if the
    span had one) followed by the net Indent or Dedent count."""
    result: list[Token] = []
    span: list[Token] = []

    def flush():
        newlines = [t for t in span if t.type == TokenType.NEWLINE]
        indents = [t for t in span if t.type == TokenType.INDENT]
        dedents = [t for t in span if t.type == TokenType.DEDENT]
        if newlines:
            result.append(newlines[0])
        if len(indents) > len(dedents):
            result.extend(indents[len(dedents):])
        elif len(dedents) > len(indents):
            result.extend(dedents[len(indents):])
        span.clear()

    for token in tokens:
        if token.type in LAYOUT_TYPES:
            span.append(token)
            continue
        flush()
        result.append(token)
    flush()
    return result


def optimize(tokens: list[Token]) -> list[Token]:
    """Run the optimization passes, in order, over a raw token sequence."""
    tokens = _drop_leading_newlines(tokens)
    tokens = _drop_trailing_newlines(tokens)
    tokens = _collapse_newlines(tokens)
    return _normalize_indentation(tokens)


def tokenize(source: str) -> list[Token]:
    return Lexer(source).tokenize()


# ─────────────────────────────────────────────────────────────
#  Cursor
# ─────────────────────────────────────────────────────────────

_ANY = object()


class TokenStream:
    """
    Position-tracked, forward-only view over a token sequence.

    Usage:
        stream = TokenStream.from_source(source_code)
        stream.expect(TokenType.CLASS)
        name = stream.expect_next(TokenType.ID)
    """

    def __init__(self, tokens: Iterable[Token], eof: Token | None = None):
        self.tokens = list(tokens)
        self.pos = 0
        if eof is None:
            last = self.tokens[-1] if self.tokens else None
            eof = Token(TokenType.EOF, None,
                        last.line if last else 1, last.col if last else 1)
        self.eof = eof

    @classmethod
    def from_source(cls, source: str) -> "TokenStream":
        lexer = Lexer(source)
        tokens = lexer.tokenize()
        return cls(tokens, lexer.eof_token())

    def current_token(self) -> Token:
        """The token under the cursor, or EOF once past the end."""
        if self.pos < len(self.tokens):
            return self.tokens[self.pos]
        return self.eof

    def next_token(self) -> Token:
        """Advance the cursor and return the new current token."""
        if self.pos < len(self.tokens):
            self.pos += 1
        return self.current_token()

    def expect(self, token_type: TokenType, value: Any = _ANY) -> Any:
        """Return the current token's payload if it has the given kind (and value)."""
        token = self.current_token()
        if token.type != token_type:
            raise LexicalError(
                f"Expected {token_type.name}, got {token!r}"
            )
        if value is not _ANY and token.value != value:
            raise LexicalError(
                f"Expected {token_type.name} {value!r}, got {token!r}"
            )
        return token.value

    def expect_next(self, token_type: TokenType, value: Any = _ANY) -> Any:
        """Advance, then `expect`."""
        self.next_token()
        return self.expect(token_type, value)


# ─────────────────────────────────────────────────────────────
#  Rendering
# ─────────────────────────────────────────────────────────────

def _token_text(token: Token) -> str:
    match token.type:
        case TokenType.NUMBER:
            return str(token.value)
        case TokenType.ID | TokenType.CHAR:
            return token.value
        case TokenType.STRING:
            quote = "'" if '"' in token.value else '"'
            return f"{quote}{token.value}{quote}"
        case _:
            return KEYWORD_TEXT[token.type]


def render_tokens(tokens: Iterable[Token]) -> str:
    """Render tokens back to source text that tokenizes to the same sequence."""
    lines: list[str] = []
    words: list[str] = []
    depth = 0
    line_depth = 0

    for token in tokens:
        match token.type:
            case TokenType.NEWLINE:
                lines.append(" " * (INDENT_WIDTH * line_depth) + " ".join(words))
                words = []
            case TokenType.INDENT:
                depth += 1
            case TokenType.DEDENT:
                depth -= 1
            case TokenType.EOF:
                break
            case _:
                if not words:
                    line_depth = depth
                words.append(_token_text(token))

    if words:
        lines.append(" " * (INDENT_WIDTH * line_depth) + " ".join(words))
    return "\n".join(lines) + "\n" if lines else ""
