"""Lexer for jq filter expressions."""

from __future__ import annotations

import functools
import json

import ply.lex as lex

from jqlite.errors import LexError


class QueryLexer:
    """Lexer for tokenizing jq filter expressions."""

    # Reserved keywords (case-sensitive)
    reserved = {
        "if": "IF",
        "then": "THEN",
        "elif": "ELIF",
        "else": "ELSE",
        "end": "END",
        "and": "AND",
        "or": "OR",
        "not": "NOT",
        "true": "TRUE",
        "false": "FALSE",
        "null": "NULL",
    }

    # Token list
    tokens = [
        "FIELD",
        "IDENTIFIER",
        "NUMBER",
        "STRING",
        "DOT",
        "PIPE",
        "COMMA",
        "COLON",
        "SEMICOLON",
        "QUESTION",
        "LPAREN",
        "RPAREN",
        "LBRACKET",
        "RBRACKET",
        "LBRACE",
        "RBRACE",
        "ALT",
        "EQ",
        "NEQ",
        "LT",
        "LTE",
        "GT",
        "GTE",
        "PLUS",
        "MINUS",
        "STAR",
        "SLASH",
        "PERCENT",
    ] + list(reserved.values())

    # Simple tokens; PLY sorts string-defined tokens longest-first
    t_DOT = r"\."
    t_PIPE = r"\|"
    t_COMMA = r","
    t_COLON = r":"
    t_SEMICOLON = r";"
    t_QUESTION = r"\?"
    t_LPAREN = r"\("
    t_RPAREN = r"\)"
    t_LBRACKET = r"\["
    t_RBRACKET = r"\]"
    t_LBRACE = r"\{"
    t_RBRACE = r"\}"
    t_ALT = r"//"
    t_EQ = r"=="
    t_NEQ = r"!="
    t_LTE = r"<="
    t_LT = r"<"
    t_GTE = r">="
    t_GT = r">"
    t_PLUS = r"\+"
    t_MINUS = r"-"
    t_STAR = r"\*"
    t_SLASH = r"/"
    t_PERCENT = r"%"

    t_ignore = " \t\r"

    def __init__(self) -> None:
        self.lexer: lex.Lexer = None  # type: ignore

    def t_COMMENT(self, t: lex.LexToken) -> None:
        r"\#[^\n]*"
        pass

    def t_NEWLINE(self, t: lex.LexToken) -> None:
        r"\n+"
        t.lexer.lineno += len(t.value)

    def t_NUMBER(self, t: lex.LexToken) -> lex.LexToken:
        r"(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?"
        if any(c in t.value for c in ".eE"):
            t.value = float(t.value)
        else:
            t.value = int(t.value)
        return t

    def t_STRING(self, t: lex.LexToken) -> lex.LexToken:
        r'"(?:[^"\\]|\\.)*"'
        try:
            decoded = json.loads(t.value, strict=False)
        except json.JSONDecodeError as e:
            raise LexError(
                f"invalid string literal: {e.msg}", t.lexpos + e.pos, t.lexer.lexdata
            ) from e
        t.lexer.lineno += t.value.count("\n")
        t.value = decoded
        return t

    def t_FIELD(self, t: lex.LexToken) -> lex.LexToken:
        r"\.[a-zA-Z_][a-zA-Z0-9_]*"
        # Keywords are valid field names: .end, .if
        t.value = t.value[1:]
        return t

    def t_IDENTIFIER(self, t: lex.LexToken) -> lex.LexToken:
        r"[a-zA-Z_][a-zA-Z0-9_]*"
        t.type = self.reserved.get(t.value, "IDENTIFIER")
        return t

    def t_error(self, t: lex.LexToken) -> None:
        if t.value[0] == '"':
            raise LexError("unterminated string literal", t.lexpos, t.lexer.lexdata)
        raise LexError(f"illegal character {t.value[0]!r}", t.lexpos, t.lexer.lexdata)

    # --- Lexer methods ---

    def build(self, **kwargs) -> None:  # type: ignore
        """Build the lexer."""
        self.lexer = lex.lex(module=self, **kwargs)

    def input(self, data: str) -> None:
        """Set the input string to tokenize."""
        self.lexer.lineno = 1
        self.lexer.input(data)

    def token(self) -> lex.LexToken | None:
        """Return the next token."""
        return self.lexer.token()

    def tokenize(self, data: str) -> list[lex.LexToken]:
        """Tokenize the input and return all tokens."""
        self.input(data)
        tokens = []
        while True:
            tok = self.token()
            if tok is None:
                break
            tokens.append(tok)
        return tokens


# Human-readable spellings used in parse error messages
TOKEN_DESCRIPTIONS: dict[str, str] = {
    "FIELD": "field name",
    "IDENTIFIER": "identifier",
    "NUMBER": "number",
    "STRING": "string",
    "DOT": "'.'",
    "PIPE": "'|'",
    "COMMA": "','",
    "COLON": "':'",
    "SEMICOLON": "';'",
    "QUESTION": "'?'",
    "LPAREN": "'('",
    "RPAREN": "')'",
    "LBRACKET": "'['",
    "RBRACKET": "']'",
    "LBRACE": "'{'",
    "RBRACE": "'}'",
    "ALT": "'//'",
    "EQ": "'=='",
    "NEQ": "'!='",
    "LT": "'<'",
    "LTE": "'<='",
    "GT": "'>'",
    "GTE": "'>='",
    "PLUS": "'+'",
    "MINUS": "'-'",
    "STAR": "'*'",
    "SLASH": "'/'",
    "PERCENT": "'%'",
    "$end": "end of input",
}
TOKEN_DESCRIPTIONS.update({value: repr(key) for key, value in QueryLexer.reserved.items()})


@functools.lru_cache(maxsize=1)
def _base_lexer() -> lex.Lexer:
    lexer = QueryLexer()
    lexer.build(errorlog=lex.NullLogger())
    return lexer.lexer


def tokenize(source: str) -> list[lex.LexToken]:
    """Tokenize an expression with a private copy of the shared lexer."""
    lexer = _base_lexer().clone()
    lexer.lineno = 1
    lexer.input(source)
    return list(iter(lexer.token, None))
