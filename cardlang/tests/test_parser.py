"""
Tests for the parser and bind-time validation.

Tests:
- Declarations and their defaults
- Statement and expression shapes
- Declare-once rules
- Bind-time validation errors
- The bundled scopa program
"""

import pytest

from ..errors import ParseError
from ..language import parse, validate_program
from ..language import ast
from .conftest import HEADER, build


def body(statements: str):
    """Parse a single function and return its body."""
    return build("def f(player, move){\n" + statements + "\n}").functions["f"].body


class TestDeclarations:
    """Tests for top-level declarations."""

    def test_minimal_program(self):
        program = parse("name tiny deck StandardDeck players 3")
        assert program.name == "tiny"
        assert program.players == 3
        assert program.current_player == 1
        assert program.deck == ast.Identifier("StandardDeck")
        assert program.stacks == ()
        assert program.functions == {}

    def test_stacks_keep_declaration_order(self):
        program = build()
        assert program.stacks == ("middle",)
        assert program.player_stacks == ("hand", "collection")

    def test_current_player(self):
        program = parse("name t deck StandardDeck players 3 current_player 2")
        assert program.current_player == 2

    @pytest.mark.parametrize("missing", ["name", "deck", "players"])
    def test_required_declarations(self, missing):
        parts = {"name": "name t", "deck": "deck StandardDeck", "players": "players 2"}
        del parts[missing]
        with pytest.raises(ParseError) as excinfo:
            parse("\n".join(parts.values()))
        assert f"'{missing}' declaration" in excinfo.value.expected

    def test_duplicate_declaration(self):
        with pytest.raises(ParseError) as excinfo:
            parse("name a name b deck StandardDeck players 2")
        assert "single 'name'" in excinfo.value.expected

    def test_duplicate_stack(self):
        with pytest.raises(ParseError):
            build(header=HEADER + "stack middle\n")

    def test_player_and_table_stack_share_namespace(self):
        with pytest.raises(ParseError):
            build(header=HEADER + "stack hand\n")

    def test_duplicate_function(self):
        with pytest.raises(ParseError) as excinfo:
            build("def f(){ }\ndef f(){ }")
        assert excinfo.value.line == HEADER.count("\n") + 2

    def test_duplicate_parameter(self):
        with pytest.raises(ParseError):
            build("def f(a, a){ }")

    @pytest.mark.parametrize("current", [0, 3])
    def test_current_player_out_of_range(self, current):
        with pytest.raises(ParseError):
            parse(f"name t deck StandardDeck players 2 current_player {current}")

    def test_zero_players(self):
        with pytest.raises(ParseError):
            parse("name t deck StandardDeck players 0")

    def test_error_message_format(self):
        with pytest.raises(ParseError) as excinfo:
            parse("name t\nplayers two")
        error = excinfo.value
        assert (error.line, error.col) == (2, 9)
        assert error.found == "identifier 'two'"
        assert str(error) == "2:9: expected player count, found identifier 'two'"


class TestStatements:
    """Tests for statement shapes."""

    def test_transfer_with_count(self):
        (statement,) = body("deck > middle 4")
        assert statement == ast.Transfer(ast.Keyword("deck"), ast.Identifier("middle"), count=ast.Literal(4))

    def test_transfer_defaults_to_one_card(self):
        (statement,) = body("deck > player:hand")
        assert statement.count == ast.Literal(1)
        assert statement.destination == ast.Attribute(ast.Identifier("player"), "hand")

    def test_transfer_end_moves_everything(self):
        (statement,) = body("player:hand > middle end")
        assert statement.take_all
        assert statement.count is None

    def test_transfer_selection(self):
        (statement,) = body("player:hand > middle - move:cards")
        assert statement.selection == ast.Attribute(ast.Identifier("move"), "cards")

    def test_end_call_after_transfer_is_a_statement(self):
        statements = body("deck > middle\nend()")
        assert statements[0].count == ast.Literal(1)
        assert statements[1] == ast.ExpressionStatement(ast.Call("end"))

    def test_deal_to_every_player(self):
        (statement,) = body("deck > players:hand 3")
        assert statement.destination == ast.Attribute(ast.Keyword("players"), "hand")

    def test_transfer_from_a_literal(self):
        with pytest.raises(ParseError):
            body("3 > middle")

    def test_check_return_and_bare_call(self):
        check, call, ret = body("check(true)\nvalid_moves(f)\nreturn()")
        assert check == ast.Check(ast.Literal(True))
        assert call == ast.ExpressionStatement(ast.Call("valid_moves", (ast.Identifier("f"),)))
        assert ret == ast.Return(None)

    def test_if_block(self):
        (statement,) = body("if(true){ end() }")
        assert statement == ast.If(ast.Literal(True), (ast.ExpressionStatement(ast.Call("end")),))

    def test_unclosed_block(self):
        with pytest.raises(ParseError) as excinfo:
            build("def f(){ check(true)")
        assert excinfo.value.found == "end of input"


class TestExpressions:
    """Tests for operator precedence."""

    def test_is_binds_tighter_than_and(self):
        (statement,) = body("check(move:cards is move:target & not true)")
        assert statement.condition == ast.BoolOp(
            "&",
            ast.Compare(
                ast.Attribute(ast.Identifier("move"), "cards"),
                ast.Attribute(ast.Identifier("move"), "target"),
            ),
            ast.Not(ast.Literal(True)),
        )

    def test_and_binds_tighter_than_or(self):
        (statement,) = body("check(true | false & false)")
        assert statement.condition == ast.BoolOp(
            "|",
            ast.Literal(True),
            ast.BoolOp("&", ast.Literal(False), ast.Literal(False)),
        )

    def test_is_not(self):
        (statement,) = body("check(player:id is not 2)")
        assert statement.condition.negated

    def test_parentheses(self):
        (statement,) = body("check((true | false) & false)")
        assert statement.condition.op == "&"

    def test_chained_attributes(self):
        (statement,) = body("check(move:player:id is 1)")
        assert statement.condition.left == ast.Attribute(
            ast.Attribute(ast.Identifier("move"), "player"), "id"
        )


class TestBindValidation:
    """Tests for checks made once the whole program is known."""

    def test_unknown_field(self):
        with pytest.raises(ParseError) as excinfo:
            body("check(player:score is 1)")
        assert excinfo.value.found == "'score'"

    @pytest.mark.parametrize("expression", [
        "player:rank is 3",
        "move:hand is 1",
        "move:player:suit is hearts",
        "count(player:hand:rank) is 0",
        "count(move:cards:rank) is 0",
    ])
    def test_fields_checked_against_the_record(self, expression):
        with pytest.raises(ParseError):
            body(f"check({expression})")

    def test_context_names_are_typed_without_parameters(self):
        with pytest.raises(ParseError) as excinfo:
            build("def f(){ check(player:suit is hearts) }")
        assert excinfo.value.found == "'suit'"

    def test_actions_bind_player_and_move_by_position(self):
        functions = (
            "def player_move(p, m){ valid_moves(go) }\n"
            "def go(who, what){ check(what:rank is 3) }"
        )
        with pytest.raises(ParseError):
            build(functions)

    def test_helper_parameters_are_not_typed(self):
        program = build(
            "def f(player, move){ check(g(move:cards)) }\n"
            "def g(card){ return(card:rank is 3) }"
        )
        assert "g" in program.functions

    def test_players_needs_player_stack(self):
        with pytest.raises(ParseError):
            body("deck > players:middle 1")

    def test_filter_predicate_must_be_defined(self):
        with pytest.raises(ParseError):
            parse("name t deck filter(StandardDeck, is_red) players 2")

    def test_filter_predicate_must_be_a_name(self):
        with pytest.raises(ParseError):
            build("def keep(card){ return(true) }\ndef f(){ check(count(filter(deck, keep())) is 0) }")

    def test_stack_and_function_names_collide(self):
        with pytest.raises(ParseError):
            build("def middle(){ }")

    def test_warnings_for_missing_entry_points(self):
        result = validate_program(build())
        assert result.valid
        assert len(result.warnings) == 2


class TestScopaProgram:
    """Tests for the bundled simple scopa program."""

    def test_shape(self, scopa_program):
        assert scopa_program.name == "scopa"
        assert scopa_program.players == 2
        assert scopa_program.stacks == ("middle",)
        assert scopa_program.player_stacks == ("hand", "collection")
        assert set(scopa_program.functions) == {
            "setup", "player_move", "take", "drop", "get_value", "not_royal",
        }

    def test_get_value_is_a_hook(self, scopa_program):
        assert scopa_program.functions["get_value"].is_hook
        assert not scopa_program.functions["take"].is_hook
