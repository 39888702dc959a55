"""
Token types for the .card language.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum


class TokenType(Enum):
    """Every kind of token the lexer can emit."""
    # Declarations / keywords
    NAME = "name"
    DECK = "deck"
    PLAYERS = "players"
    CURRENT_PLAYER = "current_player"
    STACK = "stack"
    DEF = "def"
    RETURN = "return"
    CHECK = "check"
    IF = "if"
    TRUE = "true"
    FALSE = "false"

    # Word operators
    IS = "is"
    NOT = "not"

    # Punctuation
    TRANSFER = ">"
    MINUS = "-"
    COLON = ":"
    LPAREN = "("
    RPAREN = ")"
    LBRACE = "{"
    RBRACE = "}"
    COMMA = ","
    AND = "&"
    OR = "|"

    # Values
    IDENTIFIER = "identifier"
    INTEGER = "integer"
    EOF = "end of input"


KEYWORDS: dict[str, TokenType] = {
    t.value: t
    for t in (
        TokenType.NAME,
        TokenType.DECK,
        TokenType.PLAYERS,
        TokenType.CURRENT_PLAYER,
        TokenType.STACK,
        TokenType.DEF,
        TokenType.RETURN,
        TokenType.CHECK,
        TokenType.IF,
        TokenType.TRUE,
        TokenType.FALSE,
        TokenType.IS,
        TokenType.NOT,
    )
}

PUNCTUATION: dict[str, TokenType] = {
    t.value: t
    for t in (
        TokenType.TRANSFER,
        TokenType.MINUS,
        TokenType.COLON,
        TokenType.LPAREN,
        TokenType.RPAREN,
        TokenType.LBRACE,
        TokenType.RBRACE,
        TokenType.COMMA,
        TokenType.AND,
        TokenType.OR,
    )
}


@dataclass(frozen=True)
class Token:
    """A single lexical token with its 1-based source position."""
    type: TokenType
    value: str
    line: int
    col: int

    def describe(self) -> str:
        """Human-readable form used in parse errors."""
        if self.type == TokenType.EOF:
            return "end of input"
        if self.type in (TokenType.IDENTIFIER, TokenType.INTEGER):
            return f"{self.type.value} '{self.value}'"
        return f"'{self.value}'"
