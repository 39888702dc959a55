"""
Evaluator - runs .card function bodies against a GameState.

The evaluator is the single point of state mutation for game rules.
Every rule function runs through execute().

Design principles:
- Atomic: execute() works on a clone; (state, function) -> Committed | Rejected
- Recoverable vs fatal: ValidationFailure becomes Rejected, every other
  CardlangError propagates unchanged
- Statements run in source order in a fresh scope per call
"""

from __future__ import annotations
from collections import Counter
from typing import Any
import logging

from ..config import EngineConfig
from ..errors import (
    CallDepthError,
    EmptyStackError,
    EvaluationTypeError,
    UnresolvedNameError,
    ValidationFailure,
)
from ..language import ast
from ..language.ast import FunctionDef, Program
from .action import Committed, Move, Outcome, Rejected
from .builtins import BUILTINS, Builtin, BuiltinContext, to_cards
from .cards import Card, Rank, Suit
from .state import DECK, GameState, StackRef
from .values import CallContext, FunctionRef, PlayerRef, to_bool, type_name, values_equal

logger = logging.getLogger(__name__)

# Rank and suit barewords; number ranks are written as integers
CARD_WORDS: dict[str, Any] = {
    **{rank.value: rank for rank in (Rank.ACE, Rank.JACK, Rank.QUEEN, Rank.KING)},
    **{suit.value: suit for suit in Suit},
}


class _Return(Exception):
    """Unwinds a function body on return(...)."""

    def __init__(self, value: Any):
        super().__init__()
        self.value = value


class Evaluator:
    """
    Usage:
        evaluator = Evaluator(program)
        outcome = evaluator.execute("take", state, CallContext(player, move))
        if outcome.success:
            state = outcome.state
    """

    def __init__(self, program: Program, config: EngineConfig | None = None):
        self.program = program
        self.config = config or EngineConfig()

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def execute(
        self,
        function: str,
        state: GameState,
        context: CallContext | None = None,
        args: list[Any] | None = None,
    ) -> Outcome:
        """
        Run a user function to completion on a copy of state.

        Committed carries the modified copy. Rejected means a check failed
        or a selection was not in its stack; the given state is untouched.
        """
        context = context or CallContext()
        fdef = self.program.get_function(function)
        if fdef is None:
            raise UnresolvedNameError(function)
        if args is None:
            args = self.top_level_args(fdef, context)

        working = state.clone()
        mark = len(context.changes)
        try:
            self.invoke(fdef, args, working, context, depth=1)
        except ValidationFailure as failure:
            logger.debug("%s rejected: %s", function, failure.message)
            return Rejected(failure)
        return Committed(state=working, changes=context.changes[mark:])

    def evaluate_cards(self, expression: ast.Expression, state: GameState) -> tuple[Card, ...]:
        """Evaluate a card-set expression outside any function, e.g. the deck declaration."""
        context = CallContext()
        value = self._eval(expression, {}, state, context, depth=1)
        return to_cards(value, BuiltinContext(self, state, context, 1), "deck declaration")

    def top_level_args(self, fdef: FunctionDef, context: CallContext) -> list[Any]:
        """Bind the first parameters positionally to (player, move)."""
        available = [context.player, context.move]
        if len(fdef.params) > len(available):
            raise EvaluationTypeError(
                f"{fdef.name}() is invoked by the engine and takes at most "
                f"{len(available)} parameters (player, move), got {len(fdef.params)}"
            )
        return available[:len(fdef.params)]

    def resolve_function(self, name: str) -> FunctionDef | Builtin:
        """
        Look up a callable by name.

        User functions shadow builtins, except empty-bodied ones, which
        declare a hook and fall through to the builtin.
        """
        user = self.program.get_function(name)
        if user is not None and not (user.is_hook and name in BUILTINS):
            return user
        if name in BUILTINS:
            return BUILTINS[name]
        raise UnresolvedNameError(name)

    def call(
        self,
        name: str,
        args: list[Any],
        state: GameState,
        context: CallContext,
        depth: int,
    ) -> Any:
        """Call a user function or builtin from inside a body."""
        depth += 1
        if depth > self.config.max_call_depth:
            raise CallDepthError(
                f"call to '{name}' exceeds the maximum depth of {self.config.max_call_depth}"
            )
        target = self.resolve_function(name)
        if isinstance(target, Builtin):
            return target(BuiltinContext(self, state, context, depth), args)
        return self.invoke(target, args, state, context, depth)

    def invoke(
        self,
        fdef: FunctionDef,
        args: list[Any],
        state: GameState,
        context: CallContext,
        depth: int,
    ) -> Any:
        """Run one user function body; returns its return value or None."""
        if len(args) != len(fdef.params):
            raise EvaluationTypeError(
                f"{fdef.name}() takes {len(fdef.params)} argument(s), got {len(args)}"
            )
        scope = context.seed()
        scope.update(zip(fdef.params, args))
        try:
            self._run_block(fdef.body, scope, state, context, depth)
        except _Return as ret:
            return ret.value
        return None

    # ------------------------------------------------------------------
    # Statements
    # ------------------------------------------------------------------

    def _run_block(self, body, scope, state, context, depth):
        for statement in body:
            self._run_statement(statement, scope, state, context, depth)

    def _run_statement(self, node, scope, state, context, depth):
        if isinstance(node, ast.Transfer):
            self._transfer(node, scope, state, context, depth)

        elif isinstance(node, ast.Check):
            value = self._eval(node.condition, scope, state, context, depth)
            if not to_bool(value, "check()"):
                raise ValidationFailure(f"check failed at {node.line}:{node.col}")

        elif isinstance(node, ast.Return):
            value = None
            if node.value is not None:
                value = self._eval(node.value, scope, state, context, depth)
            raise _Return(value)

        elif isinstance(node, ast.If):
            value = self._eval(node.condition, scope, state, context, depth)
            if to_bool(value, "if()"):
                self._run_block(node.body, scope, state, context, depth)

        elif isinstance(node, ast.ExpressionStatement):
            self._eval(node.expression, scope, state, context, depth)

        else:
            raise EvaluationTypeError(f"Unknown statement: {type(node).__name__}")

    def _transfer(self, node: ast.Transfer, scope, state: GameState, context: CallContext, depth):
        source = self._eval(node.source, scope, state, context, depth)
        if not isinstance(source, StackRef):
            raise EvaluationTypeError(f"transfer source must be a stack, got {type_name(source)}")
        destinations = self._destinations(
            self._eval(node.destination, scope, state, context, depth)
        )
        cards = state.cards(source)

        if node.selection is not None:
            if len(destinations) != 1:
                raise EvaluationTypeError("a selected transfer needs a single destination")
            selection = self._eval(node.selection, scope, state, context, depth)
            wanted = to_cards(
                selection, BuiltinContext(self, state, context, depth), "transfer selection"
            )
            missing = Counter(wanted) - Counter(cards)
            if missing:
                raise ValidationFailure(
                    f"{', '.join(str(c) for c in missing.elements())} not in '{source}'",
                    reason="NOT_IN_STACK",
                )
            target = state.cards(destinations[0])
            for card in wanted:
                cards.remove(card)
                target.append(card)
            self._record(context, source, destinations, wanted)
            return

        if node.take_all:
            moved = list(cards)
            del cards[:]
            for i, card in enumerate(moved):
                state.cards(destinations[i % len(destinations)]).append(card)
            self._record(context, source, destinations, moved)
            return

        count = self._eval(node.count, scope, state, context, depth)
        if not isinstance(count, int) or isinstance(count, bool) or count < 0:
            raise EvaluationTypeError(f"transfer count must be a non-negative number, got {count!r}")
        needed = count * len(destinations)
        if len(cards) < needed:
            raise EmptyStackError(str(source), needed, len(cards))

        moved = []
        for _ in range(count):
            for destination in destinations:
                card = cards.pop(0)
                state.cards(destination).append(card)
                moved.append(card)
        self._record(context, source, destinations, moved)

    def _destinations(self, value: Any) -> tuple[StackRef, ...]:
        if isinstance(value, StackRef):
            return (value,)
        if isinstance(value, tuple) and value and all(isinstance(v, StackRef) for v in value):
            return value
        raise EvaluationTypeError(f"transfer destination must be a stack, got {type_name(value)}")

    def _record(self, context: CallContext, source, destinations, moved: list[Card]):
        change = f"{source} > {', '.join(str(d) for d in destinations)}: {len(moved)} card(s)"
        context.changes.append(change)
        logger.debug(change)

    # ------------------------------------------------------------------
    # Expressions
    # ------------------------------------------------------------------

    def _eval(self, node, scope: dict[str, Any], state: GameState, context: CallContext, depth: int) -> Any:
        if isinstance(node, ast.Literal):
            return node.value

        if isinstance(node, ast.Identifier):
            return self._resolve_name(node.name, scope)

        if isinstance(node, ast.Keyword):
            if node.name == "deck":
                return StackRef(DECK)
            if node.name == "players":
                return tuple(PlayerRef(p.id) for p in state.players)
            return state.current_player_id

        if isinstance(node, ast.Attribute):
            target = self._eval(node.target, scope, state, context, depth)
            return self._attribute(target, node.attr)

        if isinstance(node, ast.Call):
            args = [self._eval(arg, scope, state, context, depth) for arg in node.args]
            return self.call(node.name, args, state, context, depth)

        if isinstance(node, ast.Compare):
            left = self._eval(node.left, scope, state, context, depth)
            right = self._eval(node.right, scope, state, context, depth)
            return values_equal(left, right, state) != node.negated

        if isinstance(node, ast.BoolOp):
            left = to_bool(self._eval(node.left, scope, state, context, depth), f"'{node.op}'")
            if node.op == "&" and not left:
                return False
            if node.op == "|" and left:
                return True
            return to_bool(self._eval(node.right, scope, state, context, depth), f"'{node.op}'")

        if isinstance(node, ast.Not):
            return not to_bool(self._eval(node.operand, scope, state, context, depth), "'not'")

        raise EvaluationTypeError(f"Unknown expression: {type(node).__name__}")

    def _resolve_name(self, name: str, scope: dict[str, Any]) -> Any:
        """scope -> table stacks -> functions -> rank / suit barewords."""
        if name in scope:
            return scope[name]
        if name in self.program.stacks:
            return StackRef(name)
        if name in self.program.functions or name in BUILTINS:
            return FunctionRef(name)
        if name in CARD_WORDS:
            return CARD_WORDS[name]
        raise UnresolvedNameError(name)

    def _attribute(self, target: Any, attr: str) -> Any:
        if isinstance(target, PlayerRef):
            if attr == "id":
                return target.id
            if attr in self.program.player_stacks:
                return StackRef(attr, owner=target.id)

        elif isinstance(target, Move):
            if attr == "player":
                return PlayerRef(target.player)
            if attr == "action":
                return FunctionRef(target.action)
            if attr == "cards":
                return target.cards
            if attr == "target":
                return target.target

        elif isinstance(target, Card):
            if attr == "rank":
                return target.rank
            if attr == "suit":
                return target.suit

        elif isinstance(target, tuple) and target and all(isinstance(t, PlayerRef) for t in target):
            if attr in self.program.player_stacks:
                return tuple(StackRef(attr, owner=p.id) for p in target)

        raise EvaluationTypeError(f"{type_name(target)} has no field '{attr}'")
