"""AST nodes for jq filter expressions.

Nodes are frozen dataclasses and hold tuples rather than lists, so a
parsed tree can be shared between threads and reused across inputs.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union


@dataclass(frozen=True)
class Identity:
    """`.`: the input itself."""


@dataclass(frozen=True)
class Field:
    """`.name`: object lookup on the input."""
    name: str


@dataclass(frozen=True)
class Iterate:
    """`.[]`: every element of an array or value of an object."""


@dataclass(frozen=True)
class Index:
    """`target[index]`.

    The index expression runs against the same input as the target, so
    `.a[.i]` indexes `.a` with `.i` of the original input.
    """
    index: Expr
    target: Expr = Identity()


@dataclass(frozen=True)
class Slice:
    """`target[lower:upper]`; missing bounds are None."""
    lower: Expr | None = None
    upper: Expr | None = None
    target: Expr = Identity()


@dataclass(frozen=True)
class Pipe:
    """`left | right`."""
    left: Expr
    right: Expr


@dataclass(frozen=True)
class Comma:
    """`left, right`."""
    left: Expr
    right: Expr


@dataclass(frozen=True)
class ArrayConstruct:
    """`[expr]`, or `[]` when expr is None."""
    expr: Expr | None = None


@dataclass(frozen=True)
class ObjectConstruct:
    """`{key: value, ...}` with (key expression, value expression) pairs."""
    entries: tuple[tuple[Expr, Expr], ...] = ()


@dataclass(frozen=True)
class Call:
    """A builtin function call: `name` or `name(arg; arg)`."""
    name: str
    args: tuple[Expr, ...] = ()


@dataclass(frozen=True)
class If:
    """`if cond then then (elif c then e)* (else else_)? end`.

    A missing else branch behaves like `.`.
    """
    cond: Expr
    then: Expr
    elifs: tuple[tuple[Expr, Expr], ...] = ()
    else_: Expr | None = None


@dataclass(frozen=True)
class Alternative:
    """`left // right`."""
    left: Expr
    right: Expr


@dataclass(frozen=True)
class BinaryOp:
    op: str  # + - * / % == != < <= > >= and or
    left: Expr
    right: Expr


@dataclass(frozen=True)
class UnaryNot:
    """`not expr`."""
    expr: Expr


@dataclass(frozen=True)
class Negate:
    """Unary minus applied to a non-literal expression."""
    expr: Expr


@dataclass(frozen=True)
class Try:
    """`body?`: stops quietly at the first evaluation error."""
    body: Expr


@dataclass(frozen=True)
class Literal:
    value: Any


Expr = Union[
    Identity,
    Field,
    Iterate,
    Index,
    Slice,
    Pipe,
    Comma,
    ArrayConstruct,
    ObjectConstruct,
    Call,
    If,
    Alternative,
    BinaryOp,
    UnaryNot,
    Negate,
    Try,
    Literal,
]
