"""
Session Module - turn-by-turn play of a parsed program.

A session is one play-through of a game:
- Created by new_game (or TurnEngine.start)
- Advanced one submitted move at a time
- Ends when end() is called or game_over returns true

Sessions are in-memory only; nothing is persisted.
"""

from .game_loop import TurnEngine, EngineState, new_game, submit_move, RESERVED_FUNCTIONS

__all__ = [
    "TurnEngine",
    "EngineState",
    "new_game",
    "submit_move",
    "RESERVED_FUNCTIONS",
]
