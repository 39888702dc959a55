"""
Moves and Outcomes.

A Move is what a player submits: which action function to run and the
cards it concerns. An Outcome is what the evaluator or turn engine hands
back: Committed with the new state, or Rejected with the reason.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Union

from ..errors import ValidationFailure
from .cards import Card, parse_cards
from .state import GameState


@dataclass(frozen=True)
class Move:
    """
    A player-submitted action.

    player is the 1-based id of the submitter; cards and target are the
    card sets the action function reads as move:cards and move:target.
    """
    player: int
    action: str
    cards: tuple[Card, ...] = ()
    target: tuple[Card, ...] = ()

    @classmethod
    def of(
        cls,
        player: int,
        action: str,
        cards: list[str] | None = None,
        target: list[str] | None = None,
    ) -> Move:
        """Factory taking card references as strings ('3H', '3 hearts')."""
        return cls(
            player=player,
            action=action,
            cards=parse_cards(cards or []),
            target=parse_cards(target or []),
        )


@dataclass
class Committed:
    """The move (or setup) ran to completion; state is the new GameState."""
    state: GameState
    changes: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return True


@dataclass
class Rejected:
    """The move was invalid; the caller's GameState is untouched."""
    failure: ValidationFailure

    @property
    def success(self) -> bool:
        return False

    @property
    def reason(self) -> str:
        return self.failure.reason

    @property
    def message(self) -> str:
        return self.failure.message


Outcome = Union[Committed, Rejected]
