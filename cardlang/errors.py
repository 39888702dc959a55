"""
Error hierarchy for the cardlang front end and runtime.

Two families:
- Program errors (lex, parse, unresolved names, wrong shapes, empty stacks)
  mean the .card program is malformed. They abort parsing or propagate out
  of the engine unchanged.
- ValidationFailure means the submitted move is invalid. The engine turns it
  into a Rejected outcome and the caller may retry.
"""

from __future__ import annotations


class CardlangError(Exception):
    """Base class for every error raised by cardlang."""

    code = "CARDLANG_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class LexError(CardlangError):
    """Unrecognized character in the source text."""

    code = "LEX_ERROR"

    def __init__(self, line: int, col: int, char: str, message: str | None = None):
        self.line = line
        self.col = col
        self.char = char
        detail = message or f"unexpected character {char!r}"
        super().__init__(f"{line}:{col}: {detail}")


class ParseError(CardlangError):
    """Grammar or bind-time violation. No partial program is produced."""

    code = "PARSE_ERROR"

    def __init__(self, line: int, col: int, expected: str, found: str):
        self.line = line
        self.col = col
        self.expected = expected
        self.found = found
        super().__init__(f"{line}:{col}: expected {expected}, found {found}")


class UnresolvedNameError(CardlangError, NameError):
    """Call to, or reference of, a name that is neither defined nor builtin."""

    code = "UNRESOLVED_NAME"

    def __init__(self, name: str):
        super().__init__(f"unresolved name '{name}'")
        # NameError.__init__ resets .name
        self.name = name


class EvaluationTypeError(CardlangError, TypeError):
    """A builtin or operator was applied to a value of the wrong shape."""

    code = "TYPE_ERROR"


class EmptyStackError(CardlangError):
    """A counted transfer asked for more cards than the source holds."""

    code = "EMPTY_STACK"

    def __init__(self, stack: str, requested: int, available: int):
        self.stack = stack
        self.requested = requested
        self.available = available
        super().__init__(
            f"cannot take {requested} card(s) from '{stack}': only {available} left"
        )


class CallDepthError(CardlangError):
    """Function calls nested deeper than the configured limit."""

    code = "CALL_DEPTH"


class SetupError(CardlangError):
    """The setup function rejected the initial state."""

    code = "SETUP_REJECTED"


class ValidationFailure(CardlangError):
    """
    The move is invalid under the game's rules.

    Raised by check(false), by a subset transfer whose selection is not in
    the source, and by the turn engine itself (wrong player, action not
    allowed, game over). Always recoverable.
    """

    code = "INVALID_MOVE"

    def __init__(self, message: str, reason: str = "CHECK_FAILED"):
        super().__init__(message)
        self.reason = reason
