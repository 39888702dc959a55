"""
Pydantic Schemas for spec tests - the contract between test files and the engine.

A spec test is a scripted scenario: start a game (optionally seeded), arrange
cards into known stacks, submit moves, then assert on the resulting state.
Spec tests are usually written as a JSON array and loaded with
load_spec_tests().

Card references are strings ('3H', '10s', '3 hearts', '3♥'); stack
references are 'deck', a table stack name, or '<player id>:<stack>'.

Result Codes:
- committed: the last move was accepted
- rejected: the last move was rejected (see expect_reason)
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from ..engine_core.action import Move
from ..engine_core.cards import Card


# =============================================================================
# Enums
# =============================================================================

class OutcomeKind(str, Enum):
    """What happened to a submitted move."""
    COMMITTED = "committed"
    REJECTED = "rejected"


def _check_cards(values: list[str]) -> list[str]:
    for text in values:
        Card.parse(text)
    return values


# =============================================================================
# Request Models
# =============================================================================

class MoveSpec(BaseModel):
    """A move as written in a spec test."""
    player: int = Field(ge=1, description="1-based id of the submitting player")
    action: str
    cards: list[str] = Field(default_factory=list)
    target: list[str] = Field(default_factory=list)

    @field_validator("cards", "target")
    @classmethod
    def _cards_parse(cls, value: list[str]) -> list[str]:
        return _check_cards(value)

    def to_move(self) -> Move:
        return Move.of(self.player, self.action, cards=self.cards, target=self.target)


class StackExpectation(BaseModel):
    """Either the exact cards (as a multiset) or just the count."""
    cards: Optional[list[str]] = None
    count: Optional[int] = Field(None, ge=0)

    @field_validator("cards")
    @classmethod
    def _cards_parse(cls, value: Optional[list[str]]) -> Optional[list[str]]:
        return value if value is None else _check_cards(value)

    @model_validator(mode="after")
    def _one_of(self) -> "StackExpectation":
        if (self.cards is None) == (self.count is None):
            raise ValueError("give exactly one of 'cards' or 'count'")
        return self


class SpecTest(BaseModel):
    """One scripted scenario."""
    name: str
    seed: Optional[int] = None
    arrange: dict[str, list[str]] = Field(
        default_factory=dict,
        description="stack -> cards moved there before the first move",
    )
    moves: list[MoveSpec] = Field(default_factory=list)
    expect_outcome: Optional[OutcomeKind] = None
    expect_reason: Optional[str] = None
    expect_stacks: dict[str, StackExpectation] = Field(default_factory=dict)
    expect_current_player: Optional[int] = Field(None, ge=1)

    @field_validator("arrange")
    @classmethod
    def _arrange_cards(cls, value: dict[str, list[str]]) -> dict[str, list[str]]:
        for cards in value.values():
            _check_cards(cards)
        return value


# =============================================================================
# Response Models
# =============================================================================

class SpecTestResult(BaseModel):
    """Result of running one spec test."""
    name: str
    passed: bool
    outcomes: list[str] = Field(
        default_factory=list,
        description="per move: 'committed' or 'rejected:<REASON>'",
    )
    failures: list[str] = Field(default_factory=list)


class SpecTestReport(BaseModel):
    """Results of a spec test run."""
    results: list[SpecTestResult] = Field(default_factory=list)

    @property
    def passed(self) -> int:
        return sum(1 for r in self.results if r.passed)

    @property
    def failed(self) -> int:
        return len(self.results) - self.passed

    @property
    def ok(self) -> bool:
        return self.failed == 0
