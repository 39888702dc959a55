"""
Cardlang - a language and interpreter for turn-based card games

A .card program declares a deck, its stacks and players, and the rule
functions that validate and execute moves. The package provides:
- Lexer and parser with bind-time validation
- An atomic evaluator for rule functions
- A turn engine that resolves submitted moves
- A spec-test runner for scripted scenarios
"""

__version__ = "0.1.0"

from .errors import (
    CardlangError,
    LexError,
    ParseError,
    UnresolvedNameError,
    EvaluationTypeError,
    EmptyStackError,
    CallDepthError,
    SetupError,
    ValidationFailure,
)
from .config import EngineConfig
from .language import parse, Program
from .engine_core import Card, Rank, Suit, GameState, StackRef, Move, Committed, Rejected
from .session import TurnEngine, EngineState, new_game, submit_move
from .api import SpecTest, SpecTestReport, render_stack, load_spec_tests, run_spec_tests

__all__ = [
    "__version__",
    "CardlangError",
    "LexError",
    "ParseError",
    "UnresolvedNameError",
    "EvaluationTypeError",
    "EmptyStackError",
    "CallDepthError",
    "SetupError",
    "ValidationFailure",
    "EngineConfig",
    "parse",
    "Program",
    "Card",
    "Rank",
    "Suit",
    "GameState",
    "StackRef",
    "Move",
    "Committed",
    "Rejected",
    "TurnEngine",
    "EngineState",
    "new_game",
    "submit_move",
    "SpecTest",
    "SpecTestReport",
    "render_stack",
    "load_spec_tests",
    "run_spec_tests",
]
