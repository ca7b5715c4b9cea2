"""
Mython Errors
=============
Exception taxonomy shared by the lexer, parser and interpreter.
None of these are recoverable: they unwind to the single top-level caller.
"""


class MythonError(Exception):
    """Base class for every error raised while running a Mython program."""
    kind = "Error"

    def __str__(self) -> str:
        return self.args[0] if self.args else self.kind


class LexicalError(MythonError):
    """A token cursor check failed (wrong token kind or payload)."""
    kind = "LexicalError"


class ParseError(MythonError):
    """The token sequence does not match the grammar."""
    kind = "ParseError"


class MythonRuntimeError(MythonError):
    """Evaluation failed: bad operands, unknown names or methods."""
    kind = "RuntimeError"
