"""
Pytest fixtures for Cardlang tests.
"""

import pytest

from ..config import EngineConfig
from ..engine_core.evaluator import Evaluator
from ..engine_core.state import GameState, StackRef
from ..engine_core.cards import parse_cards
from ..games import load_program
from ..language import parse
from ..language.ast import Program
from ..session import new_game

# Header shared by the small programs the evaluator tests are written in.
# No setup, so the deck stays in canonical order: A♠ 2♠ ... K♦.
HEADER = """
name test_game
deck StandardDeck
players 2
stack middle
stack player:hand
stack player:collection
"""


def build(functions: str = "", header: str = HEADER) -> Program:
    """Parse HEADER plus the given function definitions."""
    return parse(header + functions)


def arrange(state: GameState, layout: dict[str, list[str]]) -> GameState:
    """Move named cards into stacks, e.g. {"1:hand": ["3H"], "middle": ["3S"]}."""
    for ref, cards in layout.items():
        state.relocate(list(parse_cards(cards)), StackRef.parse(ref))
    return state


@pytest.fixture
def scopa_program() -> Program:
    """The bundled simple scopa game."""
    return load_program("simple_scopa")


@pytest.fixture
def scopa_state(scopa_program: Program) -> GameState:
    """Scopa after setup, with a fixed shuffle."""
    return new_game(scopa_program, seed=7)


@pytest.fixture
def race_program() -> Program:
    """The bundled first_to_five game."""
    return load_program("first_to_five")


@pytest.fixture
def config() -> EngineConfig:
    return EngineConfig(seed=1, max_call_depth=16)


@pytest.fixture
def make_game(config: EngineConfig):
    """
    Factory: (functions source) -> (evaluator, state).

    The state comes from new_game, so setup runs if the functions define it.
    """
    def _make(functions: str = "", header: str = HEADER):
        program = build(functions, header)
        return Evaluator(program, config), new_game(program, config=config)
    return _make


def hand(state: GameState, player: int) -> list:
    return state.cards(StackRef("hand", owner=player))
