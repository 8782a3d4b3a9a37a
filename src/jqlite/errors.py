"""Exception hierarchy for jqlite.

All exceptions inherit from QueryError so callers can catch broadly
or narrowly as needed. Compile-time errors carry a source position.
"""

from __future__ import annotations

from typing import Any


def _line_column(source: str, position: int) -> tuple[int, int]:
    line = source.count("\n", 0, position) + 1
    column = position - (source.rfind("\n", 0, position) + 1) + 1
    return line, column


class QueryError(Exception):
    """Base for all jqlite errors."""

    kind = "QueryError"


class CompileError(QueryError):
    """The expression text could not be turned into an AST."""

    def __init__(self, message: str, position: int, source: str | None = None) -> None:
        self.position = position
        self.source = source
        self.line: int | None = None
        self.column: int | None = None
        if source is not None:
            self.line, self.column = _line_column(source, position)
            message = f"{message} (line {self.line}, column {self.column})"
        super().__init__(message)


class LexError(CompileError):
    """Unterminated string, bad escape or illegal character."""

    kind = "LexError"


class ParseError(CompileError):
    """Malformed token sequence."""

    kind = "ParseError"

    def __init__(
        self,
        message: str,
        position: int,
        expected: tuple[str, ...] = (),
        source: str | None = None,
    ) -> None:
        self.expected = expected
        if expected:
            message = f"{message}, expected one of: {', '.join(expected)}"
        super().__init__(message, position, source)


class ArityError(QueryError):
    """A builtin was called with the wrong number of arguments."""

    kind = "ArityError"

    def __init__(
        self,
        name: str,
        expected: int | tuple[int, ...],
        got: int,
        position: int | None = None,
    ) -> None:
        self.name = name
        self.expected = expected
        self.got = got
        self.position = position
        if isinstance(expected, tuple):
            wanted = " or ".join(str(n) for n in expected)
        else:
            wanted = str(expected)
        message = f"{name} takes {wanted} argument(s), got {got}"
        if position is not None:
            message = f"{message} (position {position})"
        super().__init__(message)


class UnknownFunction(QueryError):
    """No builtin is registered under this name."""

    kind = "UnknownFunction"

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"unknown function '{name}'")


class EvaluationError(QueryError):
    """Base for errors raised while running a compiled query."""


class QueryTypeError(EvaluationError):
    """An operation was applied to values of the wrong type."""

    kind = "TypeError"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class DivisionByZero(EvaluationError):
    """Division or modulo by zero."""

    kind = "DivisionByZero"

    def __init__(self, dividend: Any, operator: str = "/") -> None:
        self.dividend = dividend
        self.operator = operator
        verb = "divided" if operator == "/" else "divided (remainder)"
        super().__init__(f"{dividend!r} and 0 cannot be {verb} because the divisor is zero")


class RegexError(EvaluationError):
    """A regular expression or its flags could not be compiled."""

    kind = "RegexError"

    def __init__(self, pattern: str, message: str) -> None:
        self.pattern = pattern
        self.message = message
        super().__init__(f"invalid regular expression {pattern!r}: {message}")
