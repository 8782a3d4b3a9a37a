"""Tree-walking evaluator for jq filter ASTs.

Every expression is a function from one input value to a stream of
output values. Streams are Python generators, so composing expressions
means threading one generator through another:

    Pipe(l, r)   for each output x of l: every output of r on x
    Comma(l, r)  all outputs of l, then all outputs of r

Nothing here keeps state between calls; a tree can be evaluated from many
threads at once.
"""

from __future__ import annotations

import itertools
import logging
import math
from collections.abc import Iterator
from typing import Any

from jqlite.builtins import BUILTINS
from jqlite.errors import EvaluationError, QueryTypeError, UnknownFunction
from jqlite.nodes import (
    Alternative,
    ArrayConstruct,
    BinaryOp,
    Call,
    Comma,
    Expr,
    Field,
    Identity,
    If,
    Index,
    Iterate,
    Literal,
    Negate,
    ObjectConstruct,
    Pipe,
    Slice,
    Try,
    UnaryNot,
)
from jqlite.operators import apply_operator
from jqlite.value import is_integral, is_number, is_truthy, to_json, type_name

logger = logging.getLogger(__name__)


def evaluate(expr: Expr, value: Any) -> list[Any]:
    """Run `expr` on `value` and collect the whole output stream."""
    return list(iter_evaluate(expr, value))


def iter_evaluate(expr: Expr, value: Any) -> Iterator[Any]:
    """Run `expr` on `value`, yielding outputs as they are produced."""
    if isinstance(expr, Identity):
        return iter((value,))
    elif isinstance(expr, Literal):
        return iter((expr.value,))
    elif isinstance(expr, Field):
        return _eval_field(expr, value)
    elif isinstance(expr, Iterate):
        return _eval_iterate(value)
    elif isinstance(expr, Index):
        return _eval_index(expr, value)
    elif isinstance(expr, Slice):
        return _eval_slice(expr, value)
    elif isinstance(expr, Pipe):
        return _eval_pipe(expr, value)
    elif isinstance(expr, Comma):
        return itertools.chain(iter_evaluate(expr.left, value), iter_evaluate(expr.right, value))
    elif isinstance(expr, ArrayConstruct):
        return _eval_array(expr, value)
    elif isinstance(expr, ObjectConstruct):
        return _eval_object(expr, value)
    elif isinstance(expr, Call):
        return _eval_call(expr, value)
    elif isinstance(expr, If):
        return _eval_if(expr, value)
    elif isinstance(expr, Alternative):
        return _eval_alternative(expr, value)
    elif isinstance(expr, BinaryOp):
        return _eval_binary(expr, value)
    elif isinstance(expr, UnaryNot):
        return (not is_truthy(result) for result in iter_evaluate(expr.expr, value))
    elif isinstance(expr, Negate):
        return _eval_negate(expr, value)
    elif isinstance(expr, Try):
        return _eval_try(expr, value)
    raise TypeError(f"Unknown expression type: {type(expr).__name__}")


# ---- Paths ----


def _eval_field(expr: Field, value: Any) -> Iterator[Any]:
    if isinstance(value, dict):
        yield value.get(expr.name)
    elif value is None:
        yield None
    else:
        raise QueryTypeError(f'cannot index {type_name(value)} with string "{expr.name}"')


def _eval_iterate(value: Any) -> Iterator[Any]:
    if isinstance(value, list):
        yield from value
    elif isinstance(value, dict):
        yield from value.values()
    else:
        raise QueryTypeError(f"cannot iterate over {type_name(value)}")


def _index_value(container: Any, index: Any) -> Any:
    if container is None:
        return None
    if isinstance(container, dict) and isinstance(index, str):
        return container.get(index)
    if isinstance(container, list) and is_number(index):
        if not is_integral(index):
            raise QueryTypeError(f"cannot index array with non-integer number {to_json(index)}")
        position = int(index)
        if position < 0:
            position += len(container)
        if 0 <= position < len(container):
            return container[position]
        return None
    if isinstance(index, str):
        raise QueryTypeError(f'cannot index {type_name(container)} with string "{index}"')
    raise QueryTypeError(f"cannot index {type_name(container)} with {type_name(index)}")


def _eval_index(expr: Index, value: Any) -> Iterator[Any]:
    for container in iter_evaluate(expr.target, value):
        for index in iter_evaluate(expr.index, value):
            yield _index_value(container, index)


def _slice_bound(bound: Any, default: int, length: int, round_up: bool) -> int:
    if bound is None:
        return default
    if not is_number(bound):
        raise QueryTypeError(
            f"start and end indices of a slice must be numbers, got {type_name(bound)}"
        )
    if isinstance(bound, float):
        if math.isnan(bound):
            return 0
        if math.isinf(bound):
            return length if bound > 0 else 0
        return math.ceil(bound) if round_up else math.floor(bound)
    return bound


def _slice_value(container: Any, lower: Any, upper: Any) -> Any:
    if container is None:
        return None
    if not isinstance(container, (list, str)):
        raise QueryTypeError(f"cannot slice {type_name(container)}")
    length = len(container)
    start = _slice_bound(lower, 0, length, round_up=False)
    stop = _slice_bound(upper, length, length, round_up=True)
    # Python slicing already clamps out-of-range bounds and counts negatives from the end
    return container[start:stop]


def _optional(expr: Expr | None, value: Any) -> Iterator[Any]:
    return iter((None,)) if expr is None else iter_evaluate(expr, value)


def _eval_slice(expr: Slice, value: Any) -> Iterator[Any]:
    for container in iter_evaluate(expr.target, value):
        for lower in _optional(expr.lower, value):
            for upper in _optional(expr.upper, value):
                yield _slice_value(container, lower, upper)


# ---- Composition ----


def _eval_pipe(expr: Pipe, value: Any) -> Iterator[Any]:
    for intermediate in iter_evaluate(expr.left, value):
        yield from iter_evaluate(expr.right, intermediate)


def _eval_array(expr: ArrayConstruct, value: Any) -> Iterator[Any]:
    if expr.expr is None:
        yield []
    else:
        yield list(iter_evaluate(expr.expr, value))


def _entry_pairs(key_expr: Expr, value_expr: Expr, value: Any) -> list[tuple[str, Any]]:
    pairs = []
    for key in iter_evaluate(key_expr, value):
        if not isinstance(key, str):
            raise QueryTypeError(f"object keys must be strings, got {type_name(key)}")
        for item in iter_evaluate(value_expr, value):
            pairs.append((key, item))
    return pairs


def _eval_object(expr: ObjectConstruct, value: Any) -> Iterator[Any]:
    streams = [_entry_pairs(key_expr, value_expr, value) for key_expr, value_expr in expr.entries]
    # product() varies the last entry fastest
    for combination in itertools.product(*streams):
        yield dict(combination)


def _eval_if(expr: If, value: Any) -> Iterator[Any]:
    for condition in iter_evaluate(expr.cond, value):
        if is_truthy(condition):
            yield from iter_evaluate(expr.then, value)
        elif expr.elifs:
            (cond, then), *rest = expr.elifs
            yield from _eval_if(If(cond, then, tuple(rest), expr.else_), value)
        elif expr.else_ is not None:
            yield from iter_evaluate(expr.else_, value)
        else:
            yield value


def _eval_alternative(expr: Alternative, value: Any) -> Iterator[Any]:
    truthy = [result for result in iter_evaluate(expr.left, value) if is_truthy(result)]
    if truthy:
        yield from truthy
    else:
        yield from iter_evaluate(expr.right, value)


# ---- Operators ----


def _eval_binary(expr: BinaryOp, value: Any) -> Iterator[Any]:
    for left in iter_evaluate(expr.left, value):
        if expr.op == "and":
            if not is_truthy(left):
                yield False
                continue
            for right in iter_evaluate(expr.right, value):
                yield is_truthy(right)
        elif expr.op == "or":
            if is_truthy(left):
                yield True
                continue
            for right in iter_evaluate(expr.right, value):
                yield is_truthy(right)
        else:
            for right in iter_evaluate(expr.right, value):
                yield apply_operator(expr.op, left, right)


def _eval_negate(expr: Negate, value: Any) -> Iterator[Any]:
    for operand in iter_evaluate(expr.expr, value):
        if not is_number(operand):
            raise QueryTypeError(f"{type_name(operand)} ({to_json(operand)}) cannot be negated")
        yield -operand


def _eval_try(expr: Try, value: Any) -> Iterator[Any]:
    try:
        yield from iter_evaluate(expr.body, value)
    except EvaluationError as e:
        logger.debug("suppressed %s in optional expression: %s", e.kind, e)


# ---- Function calls ----


def _eval_call(expr: Call, value: Any) -> Iterator[Any]:
    function = BUILTINS.get(expr.name)
    if function is None:
        raise UnknownFunction(expr.name)
    function.check_arity(len(expr.args))
    yield from function.func(iter_evaluate, expr.args, value)
