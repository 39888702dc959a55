"""
Game Loop - drives a .card program turn by turn.

The loop:
1. new_game builds the deck, players and stacks, then runs setup
2. A player submits a Move
3. player_move validates the submitter and declares the allowed actions
4. The named action function runs
5. On commit the turn passes to the next player
6. game_over (or end()) may finish the game
7. Repeat

Each submitted move is resolved completely before the next is accepted.
"""

from __future__ import annotations
from enum import Enum
import logging
import random

from ..config import EngineConfig
from ..errors import SetupError, ValidationFailure
from ..engine_core.action import Committed, Move, Outcome, Rejected
from ..engine_core.evaluator import Evaluator
from ..engine_core.state import GameState, GamePhase, Player
from ..engine_core.values import CallContext, PlayerRef, to_bool
from ..language.ast import Program
from ..language.validation import filter_predicates

logger = logging.getLogger(__name__)

# Functions the engine calls itself; never accepted as move actions
RESERVED_FUNCTIONS = frozenset({"setup", "player_move", "game_over"})


class EngineState(Enum):
    """State of the turn engine."""
    AWAITING_MOVE = "awaiting_move"
    RESOLVING = "resolving"
    ENDED = "ended"


def new_game(
    program: Program,
    seed: int | None = None,
    config: EngineConfig | None = None,
) -> GameState:
    """
    Build the initial GameState and run setup.

    seed falls back to config.seed; with neither, shuffle() is
    nondeterministic. A setup that fails a check raises SetupError.
    """
    config = config or EngineConfig()
    if seed is None:
        seed = config.seed

    state = GameState(program=program, rng=random.Random(seed))
    state.stacks = {name: [] for name in program.stacks}
    state.players = [
        Player(id=i + 1, stacks={name: [] for name in program.player_stacks})
        for i in range(program.players)
    ]
    state.current_player_idx = program.current_player - 1

    evaluator = Evaluator(program, config)
    state.deck = list(evaluator.evaluate_cards(program.deck, state))
    state.initial_size = len(state.deck)

    if program.get_function("setup") is not None:
        outcome = evaluator.execute("setup", state)
        if not outcome.success:
            raise SetupError(f"setup rejected: {outcome.message}")
        state = outcome.state

    if state.phase == GamePhase.SETUP:
        state.phase = GamePhase.PLAYING
    logger.info(
        "New game '%s': %d players, %d cards, player %d to move",
        program.name, state.num_players, state.initial_size, state.current_player_id,
    )
    return state


def submit_move(
    state: GameState,
    move: Move,
    config: EngineConfig | None = None,
) -> Outcome:
    """
    Resolve one move against state.

    Returns Committed with the next state, or Rejected with a reason code
    (GAME_OVER, UNKNOWN_PLAYER, NOT_CURRENT_PLAYER, ACTION_NOT_ALLOWED, or
    whatever the rule functions raised). state itself is never modified.
    """
    program = state.program
    evaluator = Evaluator(program, config)

    if state.is_over:
        return _reject(move, "game is over", "GAME_OVER")
    if state.get_player(move.player) is None:
        return _reject(move, f"no player {move.player}", "UNKNOWN_PLAYER")

    context = CallContext(player=PlayerRef(move.player), move=move)
    working = state

    if program.get_function("player_move") is not None:
        outcome = evaluator.execute("player_move", state, context)
        if not outcome.success:
            logger.info("Move %s rejected by player_move: %s", move.action, outcome.reason)
            return outcome
        working = outcome.state
        allowed = context.valid_moves or frozenset()
    else:
        if move.player != state.current_player_id:
            return _reject(
                move, f"it is player {state.current_player_id}'s turn", "NOT_CURRENT_PLAYER"
            )
        predicates = filter_predicates(program)
        allowed = frozenset(
            name for name, fdef in program.functions.items()
            if name not in RESERVED_FUNCTIONS and name not in predicates and not fdef.is_hook
        )

    if move.action not in allowed:
        return _reject(
            move, f"'{move.action}' is not an allowed action this turn", "ACTION_NOT_ALLOWED"
        )

    outcome = evaluator.execute(move.action, working, context)
    if not outcome.success:
        logger.info("Move %s by player %d rejected: %s", move.action, move.player, outcome.reason)
        return outcome

    next_state = outcome.state
    next_state.current_player_idx = (next_state.current_player_idx + 1) % next_state.num_players
    next_state.turn_number += 1
    next_state.move_history.append(move)

    game_over = program.get_function("game_over")
    if not next_state.is_over and game_over is not None and not game_over.is_hook:
        # next_state is already a private copy, so game_over runs on it directly
        try:
            finished = evaluator.invoke(
                game_over, evaluator.top_level_args(game_over, context), next_state, context, depth=1
            )
        except ValidationFailure as failure:
            logger.info("Move %s rejected by game_over: %s", move.action, failure.reason)
            return Rejected(failure)
        if to_bool(finished, "game_over()"):
            next_state.phase = GamePhase.GAME_OVER

    logger.info(
        "Player %d played %s (turn %d)", move.player, move.action, next_state.turn_number
    )
    if next_state.is_over:
        logger.info("Game over; winners: %s", next_state.winners or "none declared")
    return Committed(state=next_state, changes=outcome.changes)


def _reject(move: Move, message: str, reason: str) -> Rejected:
    logger.info("Move %s by player %d rejected (%s): %s", move.action, move.player, reason, message)
    return Rejected(ValidationFailure(message, reason=reason))


class TurnEngine:
    """
    Stateful wrapper owning the current GameState.

    Usage:
        engine = TurnEngine(program)
        engine.start(seed=7)

        outcome = engine.submit(Move.of(1, "drop", cards=["3H"]))
        if not outcome.success:
            show_error(outcome.reason)

        if engine.engine_state == EngineState.ENDED:
            show_winners(engine.state.winners)
    """

    def __init__(self, program: Program, config: EngineConfig | None = None):
        self.program = program
        self.config = config or EngineConfig()
        self.engine_state = EngineState.AWAITING_MOVE
        self._state: GameState | None = None

    @property
    def state(self) -> GameState:
        if self._state is None:
            raise RuntimeError("Game not started; call start() first")
        return self._state

    def start(self, seed: int | None = None) -> GameState:
        """Create a fresh game, replacing any game in progress."""
        self._state = new_game(self.program, seed=seed, config=self.config)
        self._sync()
        return self._state

    def submit(self, move: Move) -> Outcome:
        """Resolve a move; on commit the engine adopts the new state."""
        state = self.state
        self.engine_state = EngineState.RESOLVING
        try:
            outcome = submit_move(state, move, self.config)
            if outcome.success:
                self._state = outcome.state
        finally:
            self._sync()
        return outcome

    def _sync(self):
        if self._state is not None and self._state.is_over:
            self.engine_state = EngineState.ENDED
        else:
            self.engine_state = EngineState.AWAITING_MOVE
