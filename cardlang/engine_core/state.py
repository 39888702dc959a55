"""
Game State - the deck, stacks and players of one game.

Design principles:
- One owner: the turn engine holds the GameState; the evaluator works on a
  clone and hands back either the clone or nothing.
- Conservation: cards only move between containers, so the deck plus
  every stack always adds up to initial_size.
- Addressable: every container has a StackRef ("deck", "middle", "2:hand").
"""

from __future__ import annotations
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, TYPE_CHECKING
import random

from .cards import Card

if TYPE_CHECKING:
    from ..language.ast import Program

DECK = "deck"


class GamePhase(Enum):
    """High-level game phases."""
    SETUP = "setup"
    PLAYING = "playing"
    GAME_OVER = "game_over"


@dataclass(frozen=True)
class StackRef:
    """
    Address of a card container.

    owner is the 1-based player id for player stacks, None for the deck and
    table stacks.
    """
    name: str
    owner: int | None = None

    def __str__(self) -> str:
        if self.owner is None:
            return self.name
        return f"{self.owner}:{self.name}"

    @classmethod
    def parse(cls, text: str) -> StackRef:
        """Parse 'deck', 'middle' or '2:hand'."""
        text = text.strip()
        if ":" in text:
            owner, name = text.split(":", 1)
            return cls(name=name.strip(), owner=int(owner))
        return cls(name=text)

    @property
    def is_deck(self) -> bool:
        return self.owner is None and self.name == DECK


@dataclass
class Player:
    """A seat at the table and its player-scoped stacks."""
    id: int
    stacks: dict[str, list[Card]] = field(default_factory=dict)

    def copy(self) -> Player:
        return Player(id=self.id, stacks={k: list(v) for k, v in self.stacks.items()})


@dataclass
class GameState:
    """
    Complete game state at a point in time.

    current_player_idx is 0-based; the language sees 1-based player ids
    through current_player_id.
    """
    program: Program
    deck: list[Card] = field(default_factory=list)
    stacks: dict[str, list[Card]] = field(default_factory=dict)
    players: list[Player] = field(default_factory=list)
    current_player_idx: int = 0
    phase: GamePhase = GamePhase.SETUP
    turn_number: int = 0
    winners: list[int] = field(default_factory=list)
    initial_size: int = 0

    # History of committed moves, for replay and test assertions
    move_history: list[Any] = field(default_factory=list)

    # Seeded RNG for shuffle()
    rng: random.Random = field(default_factory=random.Random)

    @property
    def current_player_id(self) -> int:
        return self.current_player_idx + 1

    @property
    def current_player(self) -> Player:
        return self.players[self.current_player_idx]

    @property
    def num_players(self) -> int:
        return len(self.players)

    @property
    def is_over(self) -> bool:
        return self.phase == GamePhase.GAME_OVER

    def get_player(self, player_id: int) -> Player | None:
        """Get player by 1-based id."""
        if 1 <= player_id <= len(self.players):
            return self.players[player_id - 1]
        return None

    def cards(self, ref: StackRef) -> list[Card]:
        """
        The live list backing a container.

        Raises KeyError for an unknown container.
        """
        if ref.owner is None:
            if ref.name == DECK:
                return self.deck
            if ref.name in self.stacks:
                return self.stacks[ref.name]
            raise KeyError(f"Unknown stack '{ref.name}'")

        player = self.get_player(ref.owner)
        if player is None:
            raise KeyError(f"Unknown player {ref.owner}")
        if ref.name not in player.stacks:
            raise KeyError(f"Player {ref.owner} has no stack '{ref.name}'")
        return player.stacks[ref.name]

    def all_refs(self) -> list[StackRef]:
        """Every container in the game, deck first."""
        refs = [StackRef(DECK)]
        refs.extend(StackRef(name) for name in self.stacks)
        for player in self.players:
            refs.extend(StackRef(name, owner=player.id) for name in player.stacks)
        return refs

    def total_cards(self) -> int:
        return sum(len(self.cards(ref)) for ref in self.all_refs())

    def locate(self, card: Card) -> StackRef | None:
        """First container holding an equal card, or None."""
        for ref in self.all_refs():
            if card in self.cards(ref):
                return ref
        return None

    def relocate(self, cards: list[Card], destination: StackRef) -> None:
        """
        Move the given cards, wherever they are, onto destination.

        Cards already in destination stay put. Used to arrange scenarios
        without breaking conservation.
        """
        target = self.cards(destination)
        wanted = Counter(cards) - Counter(target)
        for card, needed in wanted.items():
            for _ in range(needed):
                source = self._find_outside(card, destination)
                if source is None:
                    raise ValueError(f"Card {card} is not in play")
                self.cards(source).remove(card)
                target.append(card)

    def _find_outside(self, card: Card, exclude: StackRef) -> StackRef | None:
        for ref in self.all_refs():
            if ref != exclude and card in self.cards(ref):
                return ref
        return None

    def snapshot(self) -> dict[str, list[str]]:
        """Plain mapping of container name to card strings."""
        return {str(ref): [str(c) for c in self.cards(ref)] for ref in self.all_refs()}

    def clone(self) -> GameState:
        """Independent copy; only the immutable Program is shared."""
        rng = random.Random()
        rng.setstate(self.rng.getstate())
        return GameState(
            program=self.program,
            deck=list(self.deck),
            stacks={k: list(v) for k, v in self.stacks.items()},
            players=[p.copy() for p in self.players],
            current_player_idx=self.current_player_idx,
            phase=self.phase,
            turn_number=self.turn_number,
            winners=list(self.winners),
            initial_size=self.initial_size,
            move_history=list(self.move_history),
            rng=rng,
        )
