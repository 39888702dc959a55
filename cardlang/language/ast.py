"""
AST nodes for the .card language.

Nodes are frozen dataclasses. Source positions are carried for error
reporting but excluded from equality so tests can compare shapes.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Union


# ============================================================================
# Expressions
# ============================================================================

@dataclass(frozen=True)
class Literal:
    """Integer or boolean literal."""
    value: int | bool
    line: int = field(default=0, compare=False)
    col: int = field(default=0, compare=False)


@dataclass(frozen=True)
class Identifier:
    """A bare name: variable, stack, function reference, rank or suit."""
    name: str
    line: int = field(default=0, compare=False)
    col: int = field(default=0, compare=False)


@dataclass(frozen=True)
class Keyword:
    """`deck`, `players` or `current_player` used as a value."""
    name: str
    line: int = field(default=0, compare=False)
    col: int = field(default=0, compare=False)


@dataclass(frozen=True)
class Attribute:
    """`target:attr`"""
    target: Expression
    attr: str
    line: int = field(default=0, compare=False)
    col: int = field(default=0, compare=False)


@dataclass(frozen=True)
class Call:
    """`name(args)`"""
    name: str
    args: tuple[Expression, ...] = ()
    line: int = field(default=0, compare=False)
    col: int = field(default=0, compare=False)


@dataclass(frozen=True)
class Compare:
    """`left is right` / `left is not right`"""
    left: Expression
    right: Expression
    negated: bool = False
    line: int = field(default=0, compare=False)
    col: int = field(default=0, compare=False)


@dataclass(frozen=True)
class BoolOp:
    """Short-circuit `&` / `|`."""
    op: str
    left: Expression
    right: Expression
    line: int = field(default=0, compare=False)
    col: int = field(default=0, compare=False)


@dataclass(frozen=True)
class Not:
    operand: Expression
    line: int = field(default=0, compare=False)
    col: int = field(default=0, compare=False)


Expression = Union[Literal, Identifier, Keyword, Attribute, Call, Compare, BoolOp, Not]


# ============================================================================
# Statements
# ============================================================================

@dataclass(frozen=True)
class Transfer:
    """
    `source > destination [N | end | - selection]`

    Exactly one of count / selection / take_all applies; with none given the
    parser stores count=Literal(1).
    """
    source: Expression
    destination: Expression
    count: Expression | None = None
    selection: Expression | None = None
    take_all: bool = False
    line: int = field(default=0, compare=False)
    col: int = field(default=0, compare=False)


@dataclass(frozen=True)
class Check:
    condition: Expression
    line: int = field(default=0, compare=False)
    col: int = field(default=0, compare=False)


@dataclass(frozen=True)
class Return:
    value: Expression | None = None
    line: int = field(default=0, compare=False)
    col: int = field(default=0, compare=False)


@dataclass(frozen=True)
class If:
    condition: Expression
    body: tuple[Statement, ...] = ()
    line: int = field(default=0, compare=False)
    col: int = field(default=0, compare=False)


@dataclass(frozen=True)
class ExpressionStatement:
    """A bare call such as `valid_moves(take, drop)`."""
    expression: Expression
    line: int = field(default=0, compare=False)
    col: int = field(default=0, compare=False)


Statement = Union[Transfer, Check, Return, If, ExpressionStatement]


# ============================================================================
# Program
# ============================================================================

@dataclass(frozen=True)
class FunctionDef:
    """`def name(params){ body }`"""
    name: str
    params: tuple[str, ...] = ()
    body: tuple[Statement, ...] = ()
    line: int = field(default=0, compare=False)
    col: int = field(default=0, compare=False)

    @property
    def is_hook(self) -> bool:
        """An empty body declares an extension point without overriding."""
        return not self.body


@dataclass(frozen=True)
class Program:
    """
    A parsed and validated .card program.

    stacks holds table-scoped stack names; player_stacks the names
    instantiated once per player. Both keep declaration order.
    """
    name: str
    deck: Expression
    players: int
    current_player: int = 1
    stacks: tuple[str, ...] = ()
    player_stacks: tuple[str, ...] = ()
    functions: dict[str, FunctionDef] = field(default_factory=dict)

    def get_function(self, name: str) -> FunctionDef | None:
        return self.functions.get(name)
