"""jqlite - A jq-compatible filter language for JSON-like data."""

from jqlite.config import EngineConfig
from jqlite.errors import (
    ArityError,
    CompileError,
    DivisionByZero,
    EvaluationError,
    LexError,
    ParseError,
    QueryError,
    QueryTypeError,
    RegexError,
    UnknownFunction,
)
from jqlite.query import (
    CompiledQuery,
    configure,
    current_config,
    evaluate,
    is_valid,
    parse,
)
from jqlite.value import compare, from_json, from_python, to_json, type_name

__all__ = [
    # Main API
    "parse",
    "evaluate",
    "is_valid",
    "CompiledQuery",
    # Configuration
    "EngineConfig",
    "configure",
    "current_config",
    # Values
    "compare",
    "from_json",
    "from_python",
    "to_json",
    "type_name",
    # Errors
    "QueryError",
    "CompileError",
    "LexError",
    "ParseError",
    "ArityError",
    "UnknownFunction",
    "EvaluationError",
    "QueryTypeError",
    "DivisionByZero",
    "RegexError",
]

__version__ = "0.1.0"
