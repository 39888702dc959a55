"""
Builtin Library - functions every .card program can call.

Builtins sit in the same name table as user functions and are called the
same way. A user function of the same name shadows a builtin, except that
a user function with an empty body is treated as a hook declaration and
defers to the builtin.

Functions:
- StandardDeck()               the 52-card deck in canonical order
- filter(source, predicate)    cards for which predicate(card) is true
- count(set)                   cardinality of a card set, stack or list
- cards_in_stack(cards, stack) every card is currently in stack
- get_value(cards)             sum of rank numbers (A=1 ... K=13)
- valid_moves(name, ...)       action names player_move accepts this turn
- shuffle(stack)               shuffle a container with the game's RNG
- end()                        mark the game over
- winner(player)               record a winner
"""

from __future__ import annotations
from collections import Counter
from dataclasses import dataclass
from typing import Any, Callable, TYPE_CHECKING
import logging

from ..errors import EvaluationTypeError
from .cards import Card, standard_deck
from .state import GameState, GamePhase, StackRef
from .values import CallContext, FunctionRef, PlayerRef, is_card_set, type_name

if TYPE_CHECKING:
    from .evaluator import Evaluator

logger = logging.getLogger(__name__)


@dataclass
class BuiltinContext:
    """What a builtin can reach: the evaluator, the working state, the call context."""
    evaluator: Evaluator
    state: GameState
    context: CallContext
    depth: int = 0

    def call(self, name: str, args: list[Any]) -> Any:
        """Call another function by name through the evaluator."""
        return self.evaluator.call(name, args, self.state, self.context, self.depth)


@dataclass(frozen=True)
class Builtin:
    """A named builtin with its accepted argument count."""
    name: str
    fn: Callable[..., Any]
    min_args: int = 0
    max_args: int | None = 0

    def __call__(self, ctx: BuiltinContext, args: list[Any]) -> Any:
        if len(args) < self.min_args or (self.max_args is not None and len(args) > self.max_args):
            if self.max_args is None:
                expected = f"at least {self.min_args}"
            elif self.min_args == self.max_args:
                expected = str(self.min_args)
            else:
                expected = f"{self.min_args} to {self.max_args}"
            raise EvaluationTypeError(
                f"{self.name}() takes {expected} argument(s), got {len(args)}"
            )
        return self.fn(ctx, *args)


def to_cards(value: Any, ctx: BuiltinContext, where: str) -> tuple[Card, ...]:
    """
    Coerce a value to a card set.

    Accepts card sets, single cards, stacks (current contents) and
    references to zero-argument functions such as StandardDeck.
    """
    if is_card_set(value):
        return tuple(value)
    if isinstance(value, Card):
        return (value,)
    if isinstance(value, StackRef):
        return tuple(ctx.state.cards(value))
    if isinstance(value, FunctionRef):
        return to_cards(ctx.call(value.name, []), ctx, where)
    raise EvaluationTypeError(f"{where} expects a card set, got {type_name(value)}")


def _expect_stack(value: Any, where: str) -> StackRef:
    if not isinstance(value, StackRef):
        raise EvaluationTypeError(f"{where} expects a stack, got {type_name(value)}")
    return value


# ============================================================================
# Builtin implementations
# ============================================================================

def _standard_deck(ctx: BuiltinContext) -> tuple[Card, ...]:
    return tuple(standard_deck())


def _filter(ctx: BuiltinContext, source: Any, predicate: Any) -> tuple[Card, ...]:
    if not isinstance(predicate, FunctionRef):
        raise EvaluationTypeError(
            f"filter() expects a predicate function name, got {type_name(predicate)}"
        )
    kept = []
    for card in to_cards(source, ctx, "filter()"):
        result = ctx.call(predicate.name, [card])
        if not isinstance(result, bool):
            raise EvaluationTypeError(
                f"filter() predicate '{predicate.name}' returned {type_name(result)}, not a boolean"
            )
        if result:
            kept.append(card)
    return tuple(kept)


def _count(ctx: BuiltinContext, value: Any) -> int:
    if isinstance(value, tuple):
        return len(value)
    return len(to_cards(value, ctx, "count()"))


def _cards_in_stack(ctx: BuiltinContext, cards: Any, stack: Any) -> bool:
    ref = _expect_stack(stack, "cards_in_stack()")
    wanted = Counter(to_cards(cards, ctx, "cards_in_stack()"))
    return not (wanted - Counter(ctx.state.cards(ref)))


def _get_value(ctx: BuiltinContext, cards: Any) -> int:
    return sum(card.rank.number for card in to_cards(cards, ctx, "get_value()"))


def _valid_moves(ctx: BuiltinContext, *actions: Any) -> None:
    names = []
    for action in actions:
        if not isinstance(action, FunctionRef):
            raise EvaluationTypeError(
                f"valid_moves() expects function names, got {type_name(action)}"
            )
        if ctx.evaluator.program.get_function(action.name) is None:
            raise EvaluationTypeError(
                f"valid_moves() expects user-defined actions, '{action.name}' is a builtin"
            )
        names.append(action.name)
    ctx.context.valid_moves = frozenset(names)


def _shuffle(ctx: BuiltinContext, stack: Any) -> None:
    ref = _expect_stack(stack, "shuffle()")
    ctx.state.rng.shuffle(ctx.state.cards(ref))


def _end(ctx: BuiltinContext) -> None:
    ctx.state.phase = GamePhase.GAME_OVER


def _winner(ctx: BuiltinContext, who: Any) -> None:
    if isinstance(who, PlayerRef):
        player_id = who.id
    elif isinstance(who, int) and not isinstance(who, bool):
        player_id = who
    else:
        raise EvaluationTypeError(f"winner() expects a player, got {type_name(who)}")
    if ctx.state.get_player(player_id) is None:
        raise EvaluationTypeError(f"winner() got unknown player {player_id}")
    if player_id not in ctx.state.winners:
        ctx.state.winners.append(player_id)


BUILTINS: dict[str, Builtin] = {
    b.name: b
    for b in (
        Builtin("StandardDeck", _standard_deck, 0, 0),
        Builtin("filter", _filter, 2, 2),
        Builtin("count", _count, 1, 1),
        Builtin("cards_in_stack", _cards_in_stack, 2, 2),
        Builtin("get_value", _get_value, 1, 1),
        Builtin("valid_moves", _valid_moves, 1, None),
        Builtin("shuffle", _shuffle, 1, 1),
        Builtin("end", _end, 0, 0),
        Builtin("winner", _winner, 1, 1),
    )
}
