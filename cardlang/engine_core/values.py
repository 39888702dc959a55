"""
Runtime values seen by .card function bodies.

Besides plain ints and bools, bodies handle:
- Card, Rank, Suit
- card sets (tuples of Card)
- StackRef (a live container, dereferenced on read)
- PlayerRef (a player record; fields resolve against the current state)
- Move (the submitted move)
- FunctionRef (a named function passed as a value, e.g. a filter predicate)
- None (the result of a function without return)
"""

from __future__ import annotations
from collections import Counter
from dataclasses import dataclass, field
from typing import Any

from ..errors import EvaluationTypeError
from .action import Move
from .cards import Card, Rank, Suit
from .state import GameState, StackRef


@dataclass(frozen=True)
class PlayerRef:
    """A player record bound as `player` or produced by `players`."""
    id: int


@dataclass(frozen=True)
class FunctionRef:
    """A function named as a value rather than called."""
    name: str


@dataclass
class CallContext:
    """
    Everything an action-function invocation can see besides the state.

    valid_moves is filled in by the valid_moves() builtin while
    player_move runs. changes collects a line per transfer.
    """
    player: PlayerRef | None = None
    move: Move | None = None
    valid_moves: frozenset[str] | None = None
    changes: list[str] = field(default_factory=list)

    def seed(self) -> dict[str, Any]:
        """Initial scope variables for a fresh invocation."""
        variables: dict[str, Any] = {}
        if self.player is not None:
            variables["player"] = self.player
        if self.move is not None:
            variables["move"] = self.move
        return variables


def is_card_set(value: Any) -> bool:
    return isinstance(value, (tuple, list)) and all(isinstance(v, Card) for v in value)


def type_name(value: Any) -> str:
    """Name of a value's shape, for error messages."""
    if value is None:
        return "empty value"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int):
        return "number"
    if is_card_set(value):
        return "card set"
    if isinstance(value, tuple):
        return "list"
    return {
        Card: "card",
        Rank: "rank",
        Suit: "suit",
        StackRef: "stack",
        PlayerRef: "player",
        Move: "move",
        FunctionRef: "function",
    }.get(type(value), type(value).__name__)


def to_bool(value: Any, where: str) -> bool:
    """Booleans only; anything else is a type error."""
    if not isinstance(value, bool):
        raise EvaluationTypeError(f"{where} expects a boolean, got {type_name(value)}")
    return value


def values_equal(left: Any, right: Any, state: GameState) -> bool:
    """
    Value equality for `is` / `is not`.

    Stacks compare by their current contents and card sets as multisets.
    Ranks and players compare against numbers by rank number and player id.
    Booleans never equal numbers.
    """
    if isinstance(left, StackRef):
        left = tuple(state.cards(left))
    if isinstance(right, StackRef):
        right = tuple(state.cards(right))

    if is_card_set(left) and is_card_set(right):
        return Counter(left) == Counter(right)

    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left == right

    if isinstance(left, Rank) and isinstance(right, int):
        return left.number == right
    if isinstance(right, Rank) and isinstance(left, int):
        return right.number == left

    if isinstance(left, PlayerRef) and isinstance(right, int):
        return left.id == right
    if isinstance(right, PlayerRef) and isinstance(left, int):
        return right.id == left

    return left == right
