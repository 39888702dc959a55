"""
Engine Core - card values, game state and the rule evaluator.

The engine is the runtime that:
1. Holds GameState (deck, stacks, players)
2. Resolves names and builtins for .card function bodies
3. Executes rule functions atomically, returning Committed or Rejected
"""

from .cards import Card, Rank, Suit, standard_deck, parse_cards
from .state import GameState, GamePhase, Player, StackRef
from .action import Move, Committed, Rejected, Outcome
from .values import CallContext, PlayerRef, FunctionRef
from .builtins import BUILTINS, Builtin
from .evaluator import Evaluator

__all__ = [
    "Card",
    "Rank",
    "Suit",
    "standard_deck",
    "parse_cards",
    "GameState",
    "GamePhase",
    "Player",
    "StackRef",
    "Move",
    "Committed",
    "Rejected",
    "Outcome",
    "CallContext",
    "PlayerRef",
    "FunctionRef",
    "BUILTINS",
    "Builtin",
    "Evaluator",
]
