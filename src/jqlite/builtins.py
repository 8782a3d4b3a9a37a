"""The builtin function table.

Every builtin receives the evaluator's stream function, its argument
expressions (unevaluated) and the current input, and returns a stream.
The table is filled once at import time and exposed read-only.
"""

from __future__ import annotations

import functools
import re
from collections.abc import Callable, Iterable, Iterator, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from jqlite.errors import ArityError, QueryTypeError, RegexError
from jqlite.nodes import ArrayConstruct, Expr, Iterate, Pipe
from jqlite.operators import add
from jqlite.value import compare, is_number, is_truthy, sort_key, to_json, type_name

# Type of the stream function handed in by the evaluator
EvalFunc = Callable[[Expr, Any], Iterator[Any]]
BuiltinFunc = Callable[[EvalFunc, tuple[Expr, ...], Any], Iterable[Any]]


@dataclass(frozen=True)
class Builtin:
    """A registered builtin and the argument counts it accepts."""

    name: str
    arities: tuple[int, ...]
    func: BuiltinFunc

    @property
    def expected(self) -> int | tuple[int, ...]:
        return self.arities[0] if len(self.arities) == 1 else self.arities

    def check_arity(self, got: int, position: int | None = None) -> None:
        if got not in self.arities:
            raise ArityError(self.name, self.expected, got, position)


_registry: dict[str, Builtin] = {}

BUILTINS: Mapping[str, Builtin] = MappingProxyType(_registry)


def builtin(name: str, *arities: int) -> Callable[[BuiltinFunc], BuiltinFunc]:
    """Register the decorated function under `name`."""

    def register(func: BuiltinFunc) -> BuiltinFunc:
        _registry[name] = Builtin(name=name, arities=arities, func=func)
        return func

    return register


# ---- Filtering and mapping ----


@builtin("select", 1)
def _select(evaluate: EvalFunc, args: tuple[Expr, ...], value: Any) -> Iterator[Any]:
    for result in evaluate(args[0], value):
        if is_truthy(result):
            yield value


@builtin("map", 1)
def _map(evaluate: EvalFunc, args: tuple[Expr, ...], value: Any) -> Iterator[Any]:
    # map(f) is defined as [.[] | f]
    return evaluate(ArrayConstruct(Pipe(Iterate(), args[0])), value)


# ---- Sorting and grouping ----


def _keyed_sort(
    evaluate: EvalFunc, key_expr: Expr, value: Any, verb: str
) -> list[tuple[list[Any], Any]]:
    if not isinstance(value, list):
        raise QueryTypeError(f"{type_name(value)} cannot be {verb}, as it is not an array")
    keyed = [(list(evaluate(key_expr, item)), item) for item in value]
    # sorted() is stable, so equal keys keep their input order
    return sorted(keyed, key=lambda pair: sort_key(pair[0]))


@builtin("sort_by", 1)
def _sort_by(evaluate: EvalFunc, args: tuple[Expr, ...], value: Any) -> Iterator[Any]:
    yield [item for _, item in _keyed_sort(evaluate, args[0], value, "sorted")]


@builtin("group_by", 1)
def _group_by(evaluate: EvalFunc, args: tuple[Expr, ...], value: Any) -> Iterator[Any]:
    groups: list[list[Any]] = []
    previous: list[Any] | None = None
    for key, item in _keyed_sort(evaluate, args[0], value, "grouped"):
        if previous is None or compare(key, previous) != 0:
            groups.append([])
            previous = key
        groups[-1].append(item)
    yield groups


# ---- Strings ----


def _require_string(value: Any, what: str) -> str:
    if not isinstance(value, str):
        raise QueryTypeError(f"{what} must be a string, got {type_name(value)}")
    return value


@builtin("split", 1)
def _split(evaluate: EvalFunc, args: tuple[Expr, ...], value: Any) -> Iterator[Any]:
    text = _require_string(value, "split input")
    for separator in evaluate(args[0], value):
        separator = _require_string(separator, "split separator")
        if not text:
            yield []
        elif not separator:
            yield list(text)
        else:
            yield text.split(separator)


@builtin("join", 1)
def _join(evaluate: EvalFunc, args: tuple[Expr, ...], value: Any) -> Iterator[Any]:
    if not isinstance(value, list):
        raise QueryTypeError(f"cannot join {type_name(value)}, as it is not an array")
    for separator in evaluate(args[0], value):
        separator = _require_string(separator, "join separator")
        parts = []
        for item in value:
            if item is None:
                parts.append("")
            elif isinstance(item, str):
                parts.append(item)
            elif isinstance(item, bool) or is_number(item):
                parts.append(to_json(item))
            else:
                raise QueryTypeError(f"cannot join with {type_name(item)}")
        yield separator.join(parts)


# ---- Regular expressions ----

# (?<name>...) is the Oniguruma spelling of a named group
_NAMED_GROUP = re.compile(r"\(\?<(?=[A-Za-z_])")

_REGEX_FLAGS = {
    "g": 0,
    "n": 0,
    "i": re.IGNORECASE,
    "x": re.VERBOSE,
    "s": re.DOTALL,
}


def _compile_regex(pattern: str, flags: str) -> re.Pattern[str]:
    re_flags = 0
    for flag in flags:
        if flag not in _REGEX_FLAGS:
            raise RegexError(pattern, f"{flags} is not a valid modifier string")
        re_flags |= _REGEX_FLAGS[flag]
    try:
        return re.compile(_NAMED_GROUP.sub("(?P<", pattern), re_flags)
    except re.error as e:
        raise RegexError(pattern, str(e)) from e


_compile_cached = functools.lru_cache(maxsize=128)(_compile_regex)


def set_regex_cache_size(size: int) -> None:
    """Replace the compiled-pattern cache with one holding `size` entries."""
    global _compile_cached
    _compile_cached = functools.lru_cache(maxsize=size)(_compile_regex)


def _regexes(
    evaluate: EvalFunc, args: tuple[Expr, ...], value: Any
) -> Iterator[tuple[re.Pattern[str], bool]]:
    """Yield (compiled pattern, global flag) for every pattern/flags combination."""
    for pattern in evaluate(args[0], value):
        pattern = _require_string(pattern, "regex pattern")
        flag_values = evaluate(args[1], value) if len(args) > 1 else [None]
        for flags in flag_values:
            if flags is None:
                flags = ""
            flags = _require_string(flags, "regex flags")
            yield _compile_cached(pattern, flags), "g" in flags


@builtin("test", 1, 2)
def _test(evaluate: EvalFunc, args: tuple[Expr, ...], value: Any) -> Iterator[Any]:
    if not isinstance(value, str):
        raise QueryTypeError(f"{type_name(value)} cannot be matched, as it is not a string")
    for regex, _ in _regexes(evaluate, args, value):
        yield regex.search(value) is not None


@builtin("capture", 1, 2)
def _capture(evaluate: EvalFunc, args: tuple[Expr, ...], value: Any) -> Iterator[Any]:
    if not isinstance(value, str):
        raise QueryTypeError(f"{type_name(value)} cannot be matched, as it is not a string")
    for regex, global_search in _regexes(evaluate, args, value):
        names = sorted(regex.groupindex, key=regex.groupindex.__getitem__)
        if global_search:
            matches = list(regex.finditer(value))
        else:
            match = regex.search(value)
            matches = [match] if match is not None else []
        for match in matches:
            yield {name: match.group(name) for name in names}


# ---- Structural introspection ----


@builtin("has", 1)
def _has(evaluate: EvalFunc, args: tuple[Expr, ...], value: Any) -> Iterator[Any]:
    for key in evaluate(args[0], value):
        if isinstance(value, dict) and isinstance(key, str):
            yield key in value
        elif isinstance(value, list) and is_number(key):
            yield 0 <= key < len(value)
        else:
            raise QueryTypeError(
                f"cannot check whether {type_name(value)} has a {type_name(key)} key"
            )


@builtin("keys", 0)
def _keys(evaluate: EvalFunc, args: tuple[Expr, ...], value: Any) -> Iterator[Any]:
    if isinstance(value, dict):
        yield sorted(value)
    elif isinstance(value, list):
        yield list(range(len(value)))
    else:
        raise QueryTypeError(f"{type_name(value)} has no keys")


@builtin("values", 0)
def _values(evaluate: EvalFunc, args: tuple[Expr, ...], value: Any) -> Iterator[Any]:
    # values is select(. != null)
    if value is not None:
        yield value


@builtin("length", 0)
def _length(evaluate: EvalFunc, args: tuple[Expr, ...], value: Any) -> Iterator[Any]:
    if value is None:
        yield 0
    elif isinstance(value, bool):
        raise QueryTypeError(f"boolean ({to_json(value)}) has no length")
    elif is_number(value):
        yield abs(value)
    else:
        yield len(value)


@builtin("type", 0)
def _type(evaluate: EvalFunc, args: tuple[Expr, ...], value: Any) -> Iterator[Any]:
    yield type_name(value)


@builtin("add", 0)
def _add(evaluate: EvalFunc, args: tuple[Expr, ...], value: Any) -> Iterator[Any]:
    if isinstance(value, dict):
        items = list(value.values())
    elif isinstance(value, list):
        items = value
    elif value is None:
        items = []
    else:
        raise QueryTypeError(f"cannot iterate over {type_name(value)}")
    result = None
    for item in items:
        result = add(result, item)
    yield result
