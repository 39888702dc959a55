"""
Program Validation - bind-time checks run by the parser.

Validates that:
1. current_player names an existing player
2. Stack names do not collide with function names
3. Every `obj:field` names a field of a known record shape; `player` and
   `move` are typed from the engine bindings and checked against their own
   fields
4. Every filter() predicate names a top-level function

Errors are ParseErrors carrying the offending node's position; the parser
raises the first one. Warnings flag programs that parse but cannot be
played as expected.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Iterator

from ..errors import ParseError
from . import ast

PLAYER_FIELDS = frozenset({"id"})
MOVE_FIELDS = frozenset({"player", "action", "cards", "target"})
CARD_FIELDS = frozenset({"rank", "suit"})

PLAYER = "player"
MOVE = "move"
STACK = "stack"
CARDS = "card set"

# Names the engine binds in every invocation, and the positional order of
# parameters for functions it calls itself
CONTEXT_TYPES = {"player": PLAYER, "move": MOVE}
ENTRY_PARAM_TYPES = (PLAYER, MOVE)
MOVE_FIELD_TYPES = {"player": PLAYER, "action": None, "cards": CARDS, "target": CARDS}


@dataclass
class ValidationResult:
    """Result of validation, with errors and warnings."""
    valid: bool
    errors: list[ParseError] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


def validate_program(program: ast.Program) -> ValidationResult:
    """Validate a freshly parsed program."""
    errors: list[ParseError] = []
    warnings: list[str] = []

    if not 1 <= program.current_player <= program.players:
        errors.append(ParseError(
            0, 0, f"current_player between 1 and {program.players}", str(program.current_player)
        ))

    for name in program.stacks + program.player_stacks:
        function = program.functions.get(name)
        if function:
            errors.append(ParseError(
                function.line, function.col,
                f"a function name distinct from stack '{name}'", f"'def {name}'",
            ))

    known_fields = PLAYER_FIELDS | MOVE_FIELDS | CARD_FIELDS | set(program.player_stacks)

    entry_points = _entry_points(program)
    scopes: list[tuple[ast.Expression, dict[str, str]]] = [(program.deck, {})]
    for function in program.functions.values():
        types = _binding_types(function, function.name in entry_points)
        scopes.extend((expression, types) for expression in _function_expressions(function.body))

    for expression, types in scopes:
        for node in _walk(expression):
            if isinstance(node, ast.Attribute):
                errors.extend(_validate_attribute(node, program, known_fields, types))
            elif isinstance(node, ast.Call) and node.name == "filter":
                errors.extend(_validate_filter(node, program))

    if "setup" not in program.functions:
        warnings.append("No setup function defined - nothing is dealt")
    if "player_move" not in program.functions:
        warnings.append("No player_move function defined - turn order enforced by engine only")

    return ValidationResult(valid=not errors, errors=errors, warnings=warnings)


def filter_predicates(program: ast.Program) -> frozenset[str]:
    """Names passed as the predicate of a filter() call anywhere in the program."""
    names = set()
    for expression in _program_expressions(program):
        for node in _walk(expression):
            if (
                isinstance(node, ast.Call) and node.name == "filter"
                and len(node.args) == 2 and isinstance(node.args[1], ast.Identifier)
            ):
                names.add(node.args[1].name)
    return frozenset(names)


def _program_expressions(program: ast.Program) -> Iterator[ast.Expression]:
    yield program.deck
    for function in program.functions.values():
        yield from _function_expressions(function.body)


def _entry_points(program: ast.Program) -> set[str]:
    """
    Functions the engine invokes with (player, move) bound positionally.

    With a player_move, the actions are the names it passes to valid_moves.
    Without one, parameters are only typed where their names say so.
    """
    entry_points = {name for name in ("player_move", "game_over") if name in program.functions}
    player_move = program.functions.get("player_move")
    if player_move is not None:
        for expression in _function_expressions(player_move.body):
            for node in _walk(expression):
                if isinstance(node, ast.Call) and node.name == "valid_moves":
                    entry_points.update(
                        arg.name for arg in node.args if isinstance(arg, ast.Identifier)
                    )
    return entry_points


def _binding_types(function: ast.FunctionDef, entry_point: bool) -> dict[str, str]:
    types = {name: kind for name, kind in CONTEXT_TYPES.items() if name not in function.params}
    for param, kind in zip(function.params, ENTRY_PARAM_TYPES):
        if entry_point or CONTEXT_TYPES.get(param) == kind:
            types[param] = kind
    return types


def _infer(node: ast.Expression, program: ast.Program, types: dict[str, str]) -> str | None:
    """Static record type of an expression, or None when only known at runtime."""
    if isinstance(node, ast.Identifier):
        return types.get(node.name)
    if isinstance(node, ast.Attribute):
        target = _infer(node.target, program, types)
        if target == MOVE:
            return MOVE_FIELD_TYPES.get(node.attr)
        if target == PLAYER and node.attr in program.player_stacks:
            return STACK
    return None


def _record_fields(kind: str, program: ast.Program) -> frozenset[str]:
    if kind == PLAYER:
        return PLAYER_FIELDS | frozenset(program.player_stacks)
    if kind == MOVE:
        return MOVE_FIELDS
    return frozenset()


def _validate_attribute(
    node: ast.Attribute, program: ast.Program, known_fields: set[str], types: dict[str, str]
) -> list[ParseError]:
    if isinstance(node.target, ast.Keyword) and node.target.name == "players":
        if node.attr not in program.player_stacks:
            return [ParseError(
                node.line, node.col, "a player stack after 'players:'", f"'{node.attr}'"
            )]
        return []

    kind = _infer(node.target, program, types)
    if kind is not None:
        fields = _record_fields(kind, program)
        if node.attr in fields:
            return []
        if not fields:
            return [ParseError(node.line, node.col, f"no field access on a {kind}", f"'{node.attr}'")]
        return [ParseError(
            node.line, node.col,
            f"a {kind} field (" + ", ".join(sorted(fields)) + ")",
            f"'{node.attr}'",
        )]

    if node.attr not in known_fields:
        return [ParseError(
            node.line, node.col,
            "a known field (" + ", ".join(sorted(known_fields)) + ")",
            f"'{node.attr}'",
        )]
    return []


def _validate_filter(node: ast.Call, program: ast.Program) -> list[ParseError]:
    # A user-defined filter replaces the builtin and its signature
    if "filter" in program.functions:
        return []

    if len(node.args) != 2:
        return [ParseError(node.line, node.col, "filter(source, predicate)",
                           f"{len(node.args)} argument(s)")]

    predicate = node.args[1]
    if not isinstance(predicate, ast.Identifier) or predicate.name not in program.functions:
        line = getattr(predicate, "line", node.line)
        col = getattr(predicate, "col", node.col)
        found = f"'{predicate.name}'" if isinstance(predicate, ast.Identifier) else "an expression"
        return [ParseError(line, col, "the name of a defined predicate function", found)]
    return []


def _function_expressions(statements: tuple[ast.Statement, ...]) -> Iterator[ast.Expression]:
    for statement in statements:
        if isinstance(statement, ast.Transfer):
            yield statement.source
            yield statement.destination
            if statement.count is not None:
                yield statement.count
            if statement.selection is not None:
                yield statement.selection
        elif isinstance(statement, ast.Check):
            yield statement.condition
        elif isinstance(statement, ast.Return):
            if statement.value is not None:
                yield statement.value
        elif isinstance(statement, ast.If):
            yield statement.condition
            yield from _function_expressions(statement.body)
        elif isinstance(statement, ast.ExpressionStatement):
            yield statement.expression


def _walk(expression: ast.Expression) -> Iterator[ast.Expression]:
    """Yield the expression and every sub-expression, depth first."""
    yield expression
    if isinstance(expression, ast.Attribute):
        yield from _walk(expression.target)
    elif isinstance(expression, ast.Call):
        for arg in expression.args:
            yield from _walk(arg)
    elif isinstance(expression, (ast.Compare, ast.BoolOp)):
        yield from _walk(expression.left)
        yield from _walk(expression.right)
    elif isinstance(expression, ast.Not):
        yield from _walk(expression.operand)
