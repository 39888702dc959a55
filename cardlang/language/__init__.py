"""
Language front end - lexer, parser and bind-time validation for .card files.
"""

from .tokens import Token, TokenType
from .lexer import Lexer, tokenize
from .parser import Parser, parse_tokens
from .validation import filter_predicates, validate_program, ValidationResult
from .ast import Program, FunctionDef


def parse(source: str) -> Program:
    """
    Parse .card source text into a Program.

    Raises LexError or ParseError; never returns a partial program.
    """
    return parse_tokens(tokenize(source))


__all__ = [
    "Token",
    "TokenType",
    "Lexer",
    "tokenize",
    "Parser",
    "parse_tokens",
    "parse",
    "validate_program",
    "filter_predicates",
    "ValidationResult",
    "Program",
    "FunctionDef",
]
