"""Compile-once, evaluate-many entry points."""

from __future__ import annotations

import functools
import logging
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import Any

from jqlite import builtins
from jqlite.config import EngineConfig
from jqlite.errors import QueryError
from jqlite.evaluator import iter_evaluate
from jqlite.nodes import Expr
from jqlite.parsing.query_parser import parse_expression
from jqlite.value import from_json

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompiledQuery:
    """A parsed expression, safe to evaluate from any number of threads."""
    source: str
    expression: Expr

    def evaluate(self, value: Any) -> list[Any]:
        """Run the query on one input value and return every output."""
        return list(self.stream(value))

    def stream(self, value: Any) -> Iterator[Any]:
        """Run the query on one input value, yielding outputs lazily."""
        try:
            yield from iter_evaluate(self.expression, value)
        except QueryError as e:
            logger.debug("evaluation of %r failed: %s", self.source, e)
            raise

    def evaluate_json(self, text: str | bytes) -> list[Any]:
        """Decode a JSON document and run the query on it."""
        return self.evaluate(from_json(text))


def parse(expression: str) -> CompiledQuery:
    """Compile an expression, raising LexError, ParseError or ArityError."""
    logger.debug("compiling %r", expression)
    return CompiledQuery(source=expression, expression=parse_expression(expression))


def is_valid(expression: str) -> bool:
    """True when the expression compiles."""
    try:
        parse(expression)
    except QueryError:
        return False
    return True


def _make_cache(size: int) -> Callable[[str], CompiledQuery]:
    @functools.lru_cache(maxsize=size)
    def compile_cached(expression: str) -> CompiledQuery:
        logger.debug("compile cache miss for %r", expression)
        return parse(expression)

    return compile_cached


_config = EngineConfig()
_compile_cached = _make_cache(_config.cache_size)


def evaluate(expression: str, value: Any) -> list[Any]:
    """Compile (or reuse a cached compile of) an expression and run it on `value`."""
    return _compile_cached(expression).evaluate(value)


def configure(config: EngineConfig) -> None:
    """Apply `config`, replacing the compiled-query and regex caches."""
    global _config, _compile_cached
    _config = config
    _compile_cached = _make_cache(config.cache_size)
    builtins.set_regex_cache_size(config.regex_cache_size)
    logger.debug("configured %s", config)


def current_config() -> EngineConfig:
    return _config
