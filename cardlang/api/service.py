"""
API Service - the embedding surface between host programs and the engine.

The service:
1. Renders stacks for display by a host
2. Loads spec tests from JSON
3. Runs spec tests against a parsed program

This layer holds no game logic; it only calls the turn engine.
"""

from __future__ import annotations
from collections import Counter
from typing import Any, Iterable
import logging

from pydantic import TypeAdapter

from ..config import EngineConfig
from ..errors import CardlangError
from ..engine_core.cards import Card, parse_cards
from ..engine_core.state import GameState, StackRef
from ..language.ast import Program
from ..session import new_game, submit_move
from .schemas import OutcomeKind, SpecTest, SpecTestReport, SpecTestResult

logger = logging.getLogger(__name__)

_SPEC_TEST_LIST = TypeAdapter(list[SpecTest])


def render_stack(state: GameState, ref: StackRef | str) -> tuple[Card, ...]:
    """
    Current contents of a container.

    ref is a StackRef or its string form ('deck', 'middle', '2:hand').
    Raises KeyError for an unknown container.
    """
    if isinstance(ref, str):
        ref = StackRef.parse(ref)
    return tuple(state.cards(ref))


def load_spec_tests(json_text: str | bytes) -> list[SpecTest]:
    """Parse a JSON array of spec tests; raises pydantic.ValidationError."""
    return _SPEC_TEST_LIST.validate_json(json_text)


def run_spec_tests(
    program: Program,
    specs: Iterable[SpecTest | dict[str, Any]],
    config: EngineConfig | None = None,
) -> SpecTestReport:
    """Run every spec test against program and collect the results."""
    report = SpecTestReport()
    for spec in specs:
        if not isinstance(spec, SpecTest):
            spec = SpecTest.model_validate(spec)
        result = run_spec_test(program, spec, config)
        logger.info("spec test %s: %s", spec.name, "passed" if result.passed else "FAILED")
        report.results.append(result)
    return report


def run_spec_test(
    program: Program,
    spec: SpecTest,
    config: EngineConfig | None = None,
) -> SpecTestResult:
    """
    Run one spec test.

    Interpreter errors (type errors, empty stacks, unresolved names) end
    the test as a failure carrying the error code and message.
    """
    failures: list[str] = []
    outcomes: list[str] = []

    try:
        state = new_game(program, seed=spec.seed, config=config)

        for ref, cards in spec.arrange.items():
            try:
                state.relocate(list(parse_cards(cards)), StackRef.parse(ref))
            except (KeyError, ValueError) as e:
                failures.append(f"arrange {ref}: {e}")
        if failures:
            return SpecTestResult(name=spec.name, passed=False, failures=failures)

        last = None
        for move_spec in spec.moves:
            last = submit_move(state, move_spec.to_move(), config)
            if last.success:
                state = last.state
                outcomes.append(OutcomeKind.COMMITTED.value)
            else:
                outcomes.append(f"{OutcomeKind.REJECTED.value}:{last.reason}")

    except CardlangError as e:
        failures.append(f"{e.code}: {e.message}")
        return SpecTestResult(name=spec.name, passed=False, outcomes=outcomes, failures=failures)

    failures.extend(_check_outcome(spec, last))
    failures.extend(_check_stacks(spec, state))

    if spec.expect_current_player is not None and state.current_player_id != spec.expect_current_player:
        failures.append(
            f"current player: expected {spec.expect_current_player}, got {state.current_player_id}"
        )

    if state.total_cards() != state.initial_size:
        failures.append(
            f"conservation: {state.total_cards()} cards in play, expected {state.initial_size}"
        )

    return SpecTestResult(
        name=spec.name, passed=not failures, outcomes=outcomes, failures=failures
    )


def _check_outcome(spec: SpecTest, last) -> list[str]:
    if spec.expect_outcome is None and spec.expect_reason is None:
        return []
    if last is None:
        return ["expected an outcome but no moves were given"]

    failures = []
    actual = OutcomeKind.COMMITTED if last.success else OutcomeKind.REJECTED
    if spec.expect_outcome is not None and actual != spec.expect_outcome:
        detail = "" if last.success else f" ({last.reason}: {last.message})"
        failures.append(f"outcome: expected {spec.expect_outcome.value}, got {actual.value}{detail}")
    if spec.expect_reason is not None:
        reason = None if last.success else last.reason
        if reason != spec.expect_reason:
            failures.append(f"reason: expected {spec.expect_reason}, got {reason}")
    return failures


def _check_stacks(spec: SpecTest, state: GameState) -> list[str]:
    failures = []
    for ref, expected in spec.expect_stacks.items():
        try:
            actual = render_stack(state, ref)
        except (KeyError, ValueError) as e:
            failures.append(f"stack {ref}: {e}")
            continue

        if expected.count is not None and len(actual) != expected.count:
            failures.append(f"stack {ref}: expected {expected.count} card(s), got {len(actual)}")
        if expected.cards is not None and Counter(parse_cards(expected.cards)) != Counter(actual):
            failures.append(
                f"stack {ref}: expected [{', '.join(expected.cards)}], "
                f"got [{', '.join(str(c) for c in actual)}]"
            )
    return failures
