"""Typed semantics of the binary operators on single values.

The evaluator takes care of streams and of `and`/`or`, and calls
apply_operator() once for each (left, right) pair.
"""

from __future__ import annotations

import operator
from typing import Any, Callable

from jqlite.errors import DivisionByZero, QueryTypeError
from jqlite.value import compare, is_number, to_json, type_name, values_equal


def _preview(value: Any) -> str:
    text = to_json(value)
    if len(text) > 11:
        text = text[:10] + "..."
    return f"{type_name(value)} ({text})"


def _mismatch(left: Any, right: Any, verb: str) -> QueryTypeError:
    return QueryTypeError(f"{_preview(left)} and {_preview(right)} cannot be {verb}")


def _arithmetic(func: Callable[[Any, Any], Any], left: Any, right: Any, verb: str) -> Any:
    # Integers beyond float range overflow when mixed with floats or divided
    try:
        return func(left, right)
    except OverflowError as e:
        raise QueryTypeError(f"{_preview(left)} and {_preview(right)} cannot be {verb}: {e}") from e


def add(left: Any, right: Any) -> Any:
    """`+`: numbers, strings, arrays, right-biased object merge; null is neutral."""
    if left is None:
        return right
    if right is None:
        return left
    if is_number(left) and is_number(right):
        return _arithmetic(operator.add, left, right, "added")
    if isinstance(left, str) and isinstance(right, str):
        return left + right
    if isinstance(left, list) and isinstance(right, list):
        return left + right
    if isinstance(left, dict) and isinstance(right, dict):
        return {**left, **right}
    raise _mismatch(left, right, "added")


def subtract(left: Any, right: Any) -> Any:
    """`-`: numbers, or array difference keeping the left order."""
    if is_number(left) and is_number(right):
        return _arithmetic(operator.sub, left, right, "subtracted")
    if isinstance(left, list) and isinstance(right, list):
        return [item for item in left if not any(values_equal(item, other) for other in right)]
    raise _mismatch(left, right, "subtracted")


def multiply(left: Any, right: Any) -> Any:
    if is_number(left) and is_number(right):
        return _arithmetic(operator.mul, left, right, "multiplied")
    raise _mismatch(left, right, "multiplied")


def divide(left: Any, right: Any) -> Any:
    """`/`: an exact quotient of two ints stays an int."""
    if not (is_number(left) and is_number(right)):
        raise _mismatch(left, right, "divided")
    if right == 0:
        raise DivisionByZero(left, "/")
    if isinstance(left, int) and isinstance(right, int) and left % right == 0:
        return left // right
    return _arithmetic(operator.truediv, left, right, "divided")


def modulo(left: Any, right: Any) -> Any:
    """`%`: both operands truncated to integers, sign follows the dividend."""
    if not (is_number(left) and is_number(right)):
        raise _mismatch(left, right, "divided (remainder)")
    try:
        dividend, divisor = int(left), int(right)
    except (OverflowError, ValueError) as e:
        raise QueryTypeError(f"{_preview(left)} and {_preview(right)}: {e}") from e
    if divisor == 0:
        raise DivisionByZero(left, "%")
    remainder = abs(dividend) % abs(divisor)
    return -remainder if dividend < 0 else remainder


_operator_definitions: dict[str, Callable[[Any, Any], Any]] = {
    "+": add,
    "-": subtract,
    "*": multiply,
    "/": divide,
    "%": modulo,
    "==": lambda left, right: compare(left, right) == 0,
    "!=": lambda left, right: compare(left, right) != 0,
    "<": lambda left, right: compare(left, right) < 0,
    "<=": lambda left, right: compare(left, right) <= 0,
    ">": lambda left, right: compare(left, right) > 0,
    ">=": lambda left, right: compare(left, right) >= 0,
}

ARITHMETIC_OPERATORS = frozenset({"+", "-", "*", "/", "%"})
COMPARISON_OPERATORS = frozenset({"==", "!=", "<", "<=", ">", ">="})


def apply_operator(operator: str, left: Any, right: Any) -> Any:
    """Apply an arithmetic or comparison operator to two values."""
    handler = _operator_definitions.get(operator)
    if handler is None:
        raise NotImplementedError(f"Operator {operator} is not currently implemented.")
    return handler(left, right)
