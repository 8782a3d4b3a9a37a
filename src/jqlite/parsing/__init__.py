"""Lexer and parser for jq filter expressions."""

from jqlite.parsing.query_lexer import QueryLexer, tokenize
from jqlite.parsing.query_parser import QueryParser, parse_expression

__all__ = [
    "QueryLexer",
    "QueryParser",
    "parse_expression",
    "tokenize",
]
