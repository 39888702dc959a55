"""
Tests for the evaluator.

Tests:
- Transfers (counted, dealt, all, selected)
- Atomic execution
- check / if / return
- Name resolution, comparisons and boolean operators
- Fatal errors
"""

import pytest

from ..config import EngineConfig
from ..errors import (
    CallDepthError,
    EmptyStackError,
    EvaluationTypeError,
    UnresolvedNameError,
)
from ..engine_core.action import Move
from ..engine_core.evaluator import Evaluator
from ..engine_core.state import StackRef
from ..engine_core.values import CallContext, PlayerRef
from ..session import new_game
from .conftest import arrange, build, hand


def cards_of(state, ref):
    return [str(c) for c in state.cards(StackRef.parse(ref))]


def move_context(player=1, cards=(), target=()):
    return CallContext(
        player=PlayerRef(player),
        move=Move.of(player, "f", cards=list(cards), target=list(target)),
    )


class TestTransfers:
    """Tests for `source > destination ...`."""

    def test_counted_transfer_takes_from_the_front(self, make_game):
        evaluator, state = make_game("def f(){ deck > middle 3 }")
        outcome = evaluator.execute("f", state)
        assert outcome.success
        assert cards_of(outcome.state, "middle") == ["A♠", "2♠", "3♠"]
        assert len(outcome.state.deck) == 49

    def test_default_count_is_one(self, make_game):
        evaluator, state = make_game("def f(player){ deck > player:hand }")
        outcome = evaluator.execute("f", state, CallContext(player=PlayerRef(2)))
        assert cards_of(outcome.state, "2:hand") == ["A♠"]
        assert cards_of(outcome.state, "1:hand") == []

    def test_deal_round_robin(self, make_game):
        evaluator, state = make_game("def f(){ deck > players:hand 2 }")
        outcome = evaluator.execute("f", state)
        assert cards_of(outcome.state, "1:hand") == ["A♠", "3♠"]
        assert cards_of(outcome.state, "2:hand") == ["2♠", "4♠"]
        assert len(outcome.state.deck) == 48

    def test_transfer_all(self, make_game):
        evaluator, state = make_game("def f(){ deck > middle end }")
        outcome = evaluator.execute("f", state)
        assert len(outcome.state.cards(StackRef("middle"))) == 52
        assert outcome.state.deck == []

    def test_transfer_all_from_empty_stack(self, make_game):
        evaluator, state = make_game("def f(){ middle > deck end }")
        assert evaluator.execute("f", state).success

    def test_short_stack_is_fatal(self, make_game):
        evaluator, state = make_game("def f(){ deck > middle 2\nmiddle > deck 3 }")
        with pytest.raises(EmptyStackError) as excinfo:
            evaluator.execute("f", state)
        assert (excinfo.value.requested, excinfo.value.available) == (3, 2)
        assert state.cards(StackRef("middle")) == []

    def test_dealing_needs_enough_for_everyone(self, make_game):
        evaluator, state = make_game("def f(){ deck > middle 3\nmiddle > players:hand 2 }")
        with pytest.raises(EmptyStackError) as excinfo:
            evaluator.execute("f", state)
        assert excinfo.value.requested == 4

    def test_selected_transfer(self, make_game):
        evaluator, state = make_game("def f(player, move){ player:hand > middle - move:cards }")
        arrange(state, {"1:hand": ["3H", "4H", "5H"]})
        outcome = evaluator.execute("f", state, move_context(cards=["5H", "3H"]))
        assert outcome.success
        assert cards_of(outcome.state, "1:hand") == ["4♥"]
        assert sorted(cards_of(outcome.state, "middle")) == ["3♥", "5♥"]

    def test_selection_not_in_stack_is_rejected(self, make_game):
        evaluator, state = make_game("def f(player, move){ player:hand > middle - move:cards }")
        arrange(state, {"1:hand": ["3H"]})
        outcome = evaluator.execute("f", state, move_context(cards=["3H", "4H"]))
        assert not outcome.success
        assert outcome.reason == "NOT_IN_STACK"
        assert "4♥" in outcome.message

    def test_transfer_preserves_conservation(self, make_game):
        evaluator, state = make_game(
            "def f(){ deck > players:hand 5\ndeck > middle end\nmiddle > players:collection 3 }"
        )
        outcome = evaluator.execute("f", state)
        assert outcome.state.total_cards() == outcome.state.initial_size == 52

    def test_changes_are_reported(self, make_game):
        evaluator, state = make_game("def f(){ deck > middle 2 }")
        outcome = evaluator.execute("f", state)
        assert outcome.changes == ["deck > middle: 2 card(s)"]

    def test_source_must_be_a_stack(self, make_game):
        evaluator, state = make_game("def f(){ StandardDeck() > middle }")
        with pytest.raises(EvaluationTypeError):
            evaluator.execute("f", state)


class TestAtomicity:
    """A rejected function leaves the caller's state untouched."""

    def test_check_after_transfer_rolls_back(self, make_game):
        evaluator, state = make_game("def f(){ deck > middle 4\ncheck(false) }")
        before = state.snapshot()
        outcome = evaluator.execute("f", state)
        assert not outcome.success
        assert outcome.reason == "CHECK_FAILED"
        assert state.snapshot() == before

    def test_committed_state_is_a_copy(self, make_game):
        evaluator, state = make_game("def f(){ deck > middle 1 }")
        outcome = evaluator.execute("f", state)
        assert outcome.state is not state
        assert len(state.deck) == 52

    def test_fatal_error_leaves_state_untouched(self, make_game):
        evaluator, state = make_game("def f(){ deck > middle 4\nnope() }")
        with pytest.raises(UnresolvedNameError):
            evaluator.execute("f", state)
        assert state.cards(StackRef("middle")) == []


class TestControlFlow:
    """Tests for check, if and return."""

    def test_check_needs_boolean(self, make_game):
        evaluator, state = make_game("def f(){ check(1) }")
        with pytest.raises(EvaluationTypeError):
            evaluator.execute("f", state)

    def test_if_runs_block_when_true(self, make_game):
        evaluator, state = make_game(
            "def f(){ if(count(deck) is 52){ deck > middle 1 }\nif(false){ deck > middle 5 } }"
        )
        outcome = evaluator.execute("f", state)
        assert len(outcome.state.cards(StackRef("middle"))) == 1

    def test_return_value(self, make_game):
        evaluator, state = make_game("def two(){ return(2)\ncheck(false) }\ndef f(){ check(two() is 2) }")
        assert evaluator.execute("f", state).success

    def test_no_return_gives_nothing(self, make_game):
        evaluator, state = make_game("def nothing(){ }\ndef f(){ check(nothing() is 0) }")
        assert not evaluator.execute("f", state).success

    def test_parameters_bind_positionally(self, make_game):
        evaluator, state = make_game(
            "def same(a, b){ return(a is b) }\ndef f(){ check(same(3, 3) & not same(3, 4)) }"
        )
        assert evaluator.execute("f", state).success

    def test_wrong_arity(self, make_game):
        evaluator, state = make_game("def g(a){ return(a) }\ndef f(){ g() }")
        with pytest.raises(EvaluationTypeError):
            evaluator.execute("f", state)

    def test_top_level_takes_at_most_two_parameters(self, make_game):
        evaluator, state = make_game("def f(a, b, c){ }")
        with pytest.raises(EvaluationTypeError):
            evaluator.execute("f", state)

    def test_runaway_recursion(self):
        program = build("def loop(){ loop() }")
        evaluator = Evaluator(program, EngineConfig(max_call_depth=8))
        with pytest.raises(CallDepthError):
            evaluator.execute("loop", new_game(program))

    def test_unknown_entry_point(self, make_game):
        evaluator, state = make_game()
        with pytest.raises(UnresolvedNameError):
            evaluator.execute("take", state)


class TestExpressions:
    """Tests for names, fields and operators."""

    def test_player_fields(self, make_game):
        evaluator, state = make_game("def f(player){ check(player:id is 2 & player:hand is player:collection) }")
        assert evaluator.execute("f", state, CallContext(player=PlayerRef(2))).success

    def test_move_fields(self, make_game):
        evaluator, state = make_game(
            "def f(player, move){ check(move:player is 1 & move:action is f & count(move:target) is 1) }"
        )
        assert evaluator.execute("f", state, move_context(cards=["3H"], target=["4S"])).success

    def test_current_player_keyword(self, make_game):
        evaluator, state = make_game("def f(){ check(current_player is 1) }")
        assert evaluator.execute("f", state).success
        state.current_player_idx = 1
        assert not evaluator.execute("f", state).success

    def test_card_fields_and_barewords(self, make_game):
        evaluator, state = make_game(
            "def f(player, move){ check(move:cards is move:target & get_value(move:cards) is 13) }\n"
            "def g(card){ return(card:rank is K & card:rank is 13 & card:suit is hearts) }"
        )
        assert evaluator.execute("f", state, move_context(cards=["KH"], target=["KH"])).success
        assert evaluator.call("g", [move_context(cards=["KH"]).move.cards[0]], state, CallContext(), 0)

    def test_card_sets_compare_as_multisets(self, make_game):
        evaluator, state = make_game("def f(player, move){ check(move:cards is move:target) }")
        assert evaluator.execute("f", state, move_context(cards=["3H", "4H"], target=["4H", "3H"])).success
        assert not evaluator.execute("f", state, move_context(cards=["3H", "3H"], target=["3H"])).success

    def test_stack_compares_by_contents(self, make_game):
        evaluator, state = make_game("def f(player, move){ check(middle is move:cards) }")
        arrange(state, {"middle": ["3H"]})
        assert evaluator.execute("f", state, move_context(cards=["3H"])).success

    def test_booleans_never_equal_numbers(self, make_game):
        evaluator, state = make_game("def f(){ check(true is not 1 & false is not 0 & true is true) }")
        assert evaluator.execute("f", state).success

    def test_short_circuit(self, make_game):
        evaluator, state = make_game("def f(){ check(true | nope()) }\ndef g(){ check(false & nope()) }")
        assert evaluator.execute("f", state).success
        assert evaluator.execute("g", state).reason == "CHECK_FAILED"

    def test_boolean_operators_need_booleans(self, make_game):
        evaluator, state = make_game("def f(){ check(1 & true) }")
        with pytest.raises(EvaluationTypeError):
            evaluator.execute("f", state)

    def test_unknown_name(self, make_game):
        evaluator, state = make_game("def f(){ check(wibble is 1) }")
        with pytest.raises(UnresolvedNameError):
            evaluator.execute("f", state)

    def test_field_missing_on_runtime_value(self, make_game):
        evaluator, state = make_game("def f(){ check(g(1)) }\ndef g(x){ return(x:id is 1) }")
        with pytest.raises(EvaluationTypeError):
            evaluator.execute("f", state)

    @pytest.mark.parametrize("name", ["a", "d", "h", "king", "heart", "Hearts"])
    def test_loose_card_words_are_unresolved(self, make_game, name):
        evaluator, state = make_game(f"def f(){{ check({name} is {name}) }}")
        with pytest.raises(UnresolvedNameError) as excinfo:
            evaluator.execute("f", state)
        assert excinfo.value.name == name

    def test_locals_shadow_stacks(self, make_game):
        evaluator, state = make_game("def f(){ check(g(3)) }\ndef g(middle){ return(middle is 3) }")
        assert evaluator.execute("f", state).success

    def test_hand_helper_reads_live_stack(self, make_game):
        evaluator, state = make_game("def f(){ deck > players:hand 1 }")
        outcome = evaluator.execute("f", state)
        assert [str(c) for c in hand(outcome.state, 1)] == ["A♠"]
