"""
Games module - bundled .card programs.

Each game is a single .card source file shipped as package data:
- simple_scopa: capture cards of equal value from the middle
- first_to_five: draw until someone holds five cards
"""

from __future__ import annotations
from importlib import resources

from ..language import parse
from ..language.ast import Program

GAMES = ("simple_scopa", "first_to_five")


def load_source(name: str) -> str:
    """Source text of a bundled game; raises KeyError for an unknown name."""
    if name not in GAMES:
        raise KeyError(f"Unknown game '{name}' (available: {', '.join(GAMES)})")
    return resources.files(__name__).joinpath(f"{name}.card").read_text(encoding="utf-8")


def load_program(name: str) -> Program:
    """Parse a bundled game."""
    return parse(load_source(name))


__all__ = ["GAMES", "load_source", "load_program"]
