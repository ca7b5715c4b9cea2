"""
Mython: a small, dynamically-typed, indentation-structured language.
Tokenizer, recursive-descent parser and tree-walking interpreter.
"""
from .errors import MythonError, LexicalError, ParseError, MythonRuntimeError
from .lexer import Lexer, Token, TokenType, TokenStream, render_tokens, tokenize
from .parser import Parser, ClassTable, ASTNode, CompoundNode, parse_program
from .runtime import (
    Number, String, Bool, Class, ClassInstance, Method,
    Environment, Context, StringContext, is_true,
)
from .interpreter import Interpreter, Completion, run_source

__version__ = "0.1.0"
__all__ = [
    "MythonError", "LexicalError", "ParseError", "MythonRuntimeError",
    "Lexer", "Token", "TokenType", "TokenStream", "render_tokens", "tokenize",
    "Parser", "ClassTable", "ASTNode", "CompoundNode", "parse_program",
    "Number", "String", "Bool", "Class", "ClassInstance", "Method",
    "Environment", "Context", "StringContext", "is_true",
    "Interpreter", "Completion", "run_source",
]
