"""The JSON value model shared by the lexer, parser and evaluator.

Values are plain Python objects: None, bool, int, float, str, list and
dict (str keys, insertion order kept). int and float are both "number"
but stay distinct so integral results print without a fraction. Nothing
in jqlite mutates a value once built; operations return new containers.
"""

from __future__ import annotations

import functools
import json
import math
from collections.abc import Mapping
from typing import Any

from jqlite.errors import QueryTypeError

# Rank of each kind in the total order used by comparisons and sorting.
_NULL, _FALSE, _TRUE, _NUMBER, _STRING, _ARRAY, _OBJECT = range(7)

_TYPE_NAMES = {
    _NULL: "null",
    _FALSE: "boolean",
    _TRUE: "boolean",
    _NUMBER: "number",
    _STRING: "string",
    _ARRAY: "array",
    _OBJECT: "object",
}

_MAX_FLOAT = 1.7976931348623157e308


def _rank(value: Any) -> int:
    if value is None:
        return _NULL
    if value is False:
        return _FALSE
    if value is True:
        return _TRUE
    if isinstance(value, (int, float)):
        return _NUMBER
    if isinstance(value, str):
        return _STRING
    if isinstance(value, list):
        return _ARRAY
    if isinstance(value, dict):
        return _OBJECT
    raise QueryTypeError(f"unsupported value of Python type {type(value).__name__}")


def type_name(value: Any) -> str:
    """Return the jq type name of a value ("null", "boolean", ...)."""
    return _TYPE_NAMES[_rank(value)]


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def is_integral(value: Any) -> bool:
    """True for ints and for floats with no fractional part."""
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, float) and math.isfinite(value) and value.is_integer()


def is_truthy(value: Any) -> bool:
    return value is not None and value is not False


def compare(a: Any, b: Any) -> int:
    """Three-way comparison in jq order.

    null < false < true < numbers < strings < arrays < objects. Arrays
    compare element-wise, objects by their sorted key lists first and then
    by the values under those keys.
    """
    rank_a, rank_b = _rank(a), _rank(b)
    if rank_a != rank_b:
        return -1 if rank_a < rank_b else 1
    if rank_a in (_NUMBER, _STRING):
        return (a > b) - (a < b)
    if rank_a == _ARRAY:
        for left, right in zip(a, b):
            result = compare(left, right)
            if result:
                return result
        return (len(a) > len(b)) - (len(a) < len(b))
    if rank_a == _OBJECT:
        keys_a, keys_b = sorted(a), sorted(b)
        result = compare(keys_a, keys_b)
        if result:
            return result
        for key in keys_a:
            result = compare(a[key], b[key])
            if result:
                return result
    return 0


def values_equal(a: Any, b: Any) -> bool:
    return compare(a, b) == 0


sort_key = functools.cmp_to_key(compare)


def from_python(obj: Any) -> Any:
    """Copy a host object into the value model.

    Tuples become lists and mappings become dicts. Anything that has no
    JSON counterpart raises QueryTypeError.
    """
    if obj is None or isinstance(obj, (bool, str)):
        return obj
    if isinstance(obj, int):
        return int(obj)
    if isinstance(obj, float):
        return float(obj)
    if isinstance(obj, (list, tuple)):
        return [from_python(item) for item in obj]
    if isinstance(obj, Mapping):
        result = {}
        for key, item in obj.items():
            if not isinstance(key, str):
                raise QueryTypeError(f"object keys must be strings, got {type(key).__name__}")
            result[key] = from_python(item)
        return result
    raise QueryTypeError(f"unsupported value of Python type {type(obj).__name__}")


def from_json(text: str | bytes) -> Any:
    """Decode a JSON document; integers stay int, decimals become float."""
    return json.loads(text)


def _finite(value: Any) -> Any:
    if isinstance(value, float) and not math.isfinite(value):
        if math.isnan(value):
            return None
        return _MAX_FLOAT if value > 0 else -_MAX_FLOAT
    if isinstance(value, list):
        return [_finite(item) for item in value]
    if isinstance(value, dict):
        return {key: _finite(item) for key, item in value.items()}
    return value


def to_json(value: Any, indent: int | None = None) -> str:
    """Encode a value as JSON text, compact unless an indent is given."""
    separators = (",", ":") if indent is None else None
    return json.dumps(_finite(value), ensure_ascii=False, indent=indent, separators=separators)
