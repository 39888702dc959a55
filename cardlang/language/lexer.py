"""
Lexer - source text to token stream.

Whitespace and newlines only separate tokens. Comments are written
`.( ... )` and may nest. Every other character must start a keyword,
identifier, integer or punctuation token; anything else is a LexError.
"""

from __future__ import annotations

from ..errors import LexError
from .tokens import Token, TokenType, KEYWORDS, PUNCTUATION


# Identifiers and integers are ASCII only
def _is_digit(ch: str) -> bool:
    return ch.isascii() and ch.isdigit()


def _is_word_start(ch: str) -> bool:
    return (ch.isascii() and ch.isalpha()) or ch == "_"


def _is_word_char(ch: str) -> bool:
    return _is_word_start(ch) or _is_digit(ch)


class Lexer:
    """
    Hand-written single pass lexer.

    Usage:
        tokens = Lexer(source).tokenize()
    """

    def __init__(self, source: str):
        self.source = source
        self.index = 0
        self.line = 1
        self.col = 1

    def tokenize(self) -> list[Token]:
        """Return all tokens, terminated by an EOF token."""
        tokens: list[Token] = []
        while not self._at_end:
            ch = self._peek()
            if ch.isspace():
                self._advance()
            elif ch == ".":
                self._skip_comment()
            elif _is_word_start(ch):
                tokens.append(self._word())
            elif _is_digit(ch):
                tokens.append(self._integer())
            elif ch in PUNCTUATION:
                tokens.append(Token(PUNCTUATION[ch], ch, self.line, self.col))
                self._advance()
            else:
                raise LexError(self.line, self.col, ch)
        tokens.append(Token(TokenType.EOF, "", self.line, self.col))
        return tokens

    @property
    def _at_end(self) -> bool:
        return self.index >= len(self.source)

    def _peek(self, offset: int = 0) -> str:
        pos = self.index + offset
        if pos >= len(self.source):
            return ""
        return self.source[pos]

    def _advance(self) -> str:
        ch = self.source[self.index]
        self.index += 1
        if ch == "\n":
            self.line += 1
            self.col = 1
        else:
            self.col += 1
        return ch

    def _skip_comment(self):
        """Consume `.( ... )`, allowing nested parentheses."""
        line, col = self.line, self.col
        if self._peek(1) != "(":
            raise LexError(line, col, ".", "'.' must open a comment '.('")
        self._advance()
        self._advance()
        depth = 1
        while depth:
            if self._at_end:
                raise LexError(line, col, ".", "unterminated comment")
            ch = self._advance()
            if ch == "(":
                depth += 1
            elif ch == ")":
                depth -= 1

    def _word(self) -> Token:
        line, col = self.line, self.col
        start = self.index
        while not self._at_end and _is_word_char(self._peek()):
            self._advance()
        text = self.source[start:self.index]
        return Token(KEYWORDS.get(text, TokenType.IDENTIFIER), text, line, col)

    def _integer(self) -> Token:
        line, col = self.line, self.col
        start = self.index
        while not self._at_end and _is_digit(self._peek()):
            self._advance()
        if not self._at_end and _is_word_start(self._peek()):
            raise LexError(self.line, self.col, self._peek(), "identifiers cannot start with a digit")
        return Token(TokenType.INTEGER, self.source[start:self.index], line, col)


def tokenize(text: str) -> list[Token]:
    """Convenience wrapper around Lexer."""
    return Lexer(text).tokenize()
