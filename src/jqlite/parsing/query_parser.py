"""Parser for jq filter expressions."""

from __future__ import annotations

import logging
import threading
from typing import Any

import ply.yacc as yacc

from jqlite.builtins import BUILTINS
from jqlite.errors import ParseError
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
from jqlite.parsing.query_lexer import TOKEN_DESCRIPTIONS, QueryLexer
from jqlite.value import is_number

logger = logging.getLogger(__name__)


def _postfix(target: Expr, suffix: Any) -> Expr:
    """Attach a bracket suffix ([], [e], [a:b]) to the term it follows."""
    kind, *operands = suffix
    if kind == "iterate":
        return Iterate() if isinstance(target, Identity) else Pipe(target, Iterate())
    if kind == "index":
        (index,) = operands
        if isinstance(index, Literal) and isinstance(index.value, str):
            field = Field(index.value)
            return field if isinstance(target, Identity) else Pipe(target, field)
        return Index(index, target)
    lower, upper = operands
    return Slice(lower, upper, target)


def _chain(target: Expr, step: Expr) -> Expr:
    return step if isinstance(target, Identity) else Pipe(target, step)


def _end_offset(tokens: list[Any]) -> int:
    """Offset just past the last token."""
    for token in tokens:
        # Only tokens produced by rule functions carry their lexer
        lexer = getattr(token, "lexer", None)
        if lexer is not None and lexer.lexdata:
            return len(lexer.lexdata.rstrip())
    last = tokens[-1]
    return last.lexpos + len(str(last.value))


class QueryParser:
    """Parser for jq filter expressions.

    The grammar is stratified by precedence level (loosest first: pipe,
    comma, //, or, and, comparison, additive, multiplicative, unary,
    postfix, primary), which keeps it free of LALR conflicts without a
    precedence table.
    """

    tokens = QueryLexer.tokens

    def __init__(self) -> None:
        self.lexer = QueryLexer()
        self.lexer.build(errorlog=yacc.NullLogger())
        self.parser: yacc.LRParser = None  # type: ignore
        self._source: str | None = None
        self._end = 0

    # ---- Pipe and comma ----

    def p_query(self, p: yacc.YaccProduction) -> None:
        """query : pipe"""
        p[0] = p[1]

    def p_pipe(self, p: yacc.YaccProduction) -> None:
        """pipe : pipe PIPE comma"""
        p[0] = Pipe(p[1], p[3])

    def p_pipe_comma(self, p: yacc.YaccProduction) -> None:
        """pipe : comma"""
        p[0] = p[1]

    def p_comma(self, p: yacc.YaccProduction) -> None:
        """comma : comma COMMA alternative
                 | alternative"""
        if len(p) == 4:
            p[0] = Comma(p[1], p[3])
        else:
            p[0] = p[1]

    def p_comma_not(self, p: yacc.YaccProduction) -> None:
        """comma : comma COMMA NOT
                 | NOT"""
        # A bare `not` negates its input: `.a | not`, `map(not)`, `[., not]`
        negation = UnaryNot(Identity())
        p[0] = Comma(p[1], negation) if len(p) == 4 else negation

    # ---- Alternative and logic ----

    def p_alternative(self, p: yacc.YaccProduction) -> None:
        """alternative : or_expr ALT alternative
                       | or_expr"""
        if len(p) == 4:
            p[0] = Alternative(p[1], p[3])
        else:
            p[0] = p[1]

    def p_or_expr(self, p: yacc.YaccProduction) -> None:
        """or_expr : or_expr OR and_expr
                   | and_expr"""
        if len(p) == 4:
            p[0] = BinaryOp("or", p[1], p[3])
        else:
            p[0] = p[1]

    def p_and_expr(self, p: yacc.YaccProduction) -> None:
        """and_expr : and_expr AND comparison
                    | comparison"""
        if len(p) == 4:
            p[0] = BinaryOp("and", p[1], p[3])
        else:
            p[0] = p[1]

    # ---- Comparison and arithmetic ----

    def p_comparison(self, p: yacc.YaccProduction) -> None:
        """comparison : additive EQ additive
                      | additive NEQ additive
                      | additive LT additive
                      | additive LTE additive
                      | additive GT additive
                      | additive GTE additive"""
        p[0] = BinaryOp(p[2], p[1], p[3])

    def p_comparison_additive(self, p: yacc.YaccProduction) -> None:
        """comparison : additive"""
        p[0] = p[1]

    def p_additive(self, p: yacc.YaccProduction) -> None:
        """additive : additive PLUS multiplicative
                    | additive MINUS multiplicative
                    | multiplicative"""
        if len(p) == 4:
            p[0] = BinaryOp(p[2], p[1], p[3])
        else:
            p[0] = p[1]

    def p_multiplicative(self, p: yacc.YaccProduction) -> None:
        """multiplicative : multiplicative STAR unary
                          | multiplicative SLASH unary
                          | multiplicative PERCENT unary
                          | unary"""
        if len(p) == 4:
            p[0] = BinaryOp(p[2], p[1], p[3])
        else:
            p[0] = p[1]

    def p_unary_minus(self, p: yacc.YaccProduction) -> None:
        """unary : MINUS unary"""
        operand = p[2]
        if isinstance(operand, Literal) and is_number(operand.value):
            p[0] = Literal(-operand.value)
        else:
            p[0] = Negate(operand)

    def p_unary_not(self, p: yacc.YaccProduction) -> None:
        """unary : NOT unary"""
        p[0] = UnaryNot(p[2])

    def p_unary_postfix(self, p: yacc.YaccProduction) -> None:
        """unary : postfix"""
        p[0] = p[1]

    # ---- Postfix: .name, ."name", [..], ? ----

    def p_postfix_primary(self, p: yacc.YaccProduction) -> None:
        """postfix : primary"""
        p[0] = p[1]

    def p_postfix_field(self, p: yacc.YaccProduction) -> None:
        """postfix : postfix FIELD"""
        p[0] = _chain(p[1], Field(p[2]))

    def p_postfix_quoted_field(self, p: yacc.YaccProduction) -> None:
        """postfix : postfix DOT STRING"""
        p[0] = _chain(p[1], Field(p[3]))

    def p_postfix_bracket(self, p: yacc.YaccProduction) -> None:
        """postfix : postfix bracket_suffix
                   | postfix DOT bracket_suffix"""
        p[0] = _postfix(p[1], p[len(p) - 1])

    def p_postfix_try(self, p: yacc.YaccProduction) -> None:
        """postfix : postfix QUESTION"""
        p[0] = Try(p[1])

    def p_bracket_suffix_iterate(self, p: yacc.YaccProduction) -> None:
        """bracket_suffix : LBRACKET RBRACKET"""
        p[0] = ("iterate",)

    def p_bracket_suffix_index(self, p: yacc.YaccProduction) -> None:
        """bracket_suffix : LBRACKET pipe RBRACKET"""
        p[0] = ("index", p[2])

    def p_bracket_suffix_slice(self, p: yacc.YaccProduction) -> None:
        """bracket_suffix : LBRACKET pipe COLON pipe RBRACKET"""
        p[0] = ("slice", p[2], p[4])

    def p_bracket_suffix_slice_from(self, p: yacc.YaccProduction) -> None:
        """bracket_suffix : LBRACKET pipe COLON RBRACKET"""
        p[0] = ("slice", p[2], None)

    def p_bracket_suffix_slice_to(self, p: yacc.YaccProduction) -> None:
        """bracket_suffix : LBRACKET COLON pipe RBRACKET"""
        p[0] = ("slice", None, p[3])

    # ---- Primary ----

    def p_primary_identity(self, p: yacc.YaccProduction) -> None:
        """primary : DOT"""
        p[0] = Identity()

    def p_primary_field(self, p: yacc.YaccProduction) -> None:
        """primary : FIELD"""
        p[0] = Field(p[1])

    def p_primary_quoted_field(self, p: yacc.YaccProduction) -> None:
        """primary : DOT STRING"""
        p[0] = Field(p[2])

    def p_primary_literal(self, p: yacc.YaccProduction) -> None:
        """primary : NUMBER
                   | STRING"""
        p[0] = Literal(p[1])

    def p_primary_true(self, p: yacc.YaccProduction) -> None:
        """primary : TRUE"""
        p[0] = Literal(True)

    def p_primary_false(self, p: yacc.YaccProduction) -> None:
        """primary : FALSE"""
        p[0] = Literal(False)

    def p_primary_null(self, p: yacc.YaccProduction) -> None:
        """primary : NULL"""
        p[0] = Literal(None)

    def p_primary_paren(self, p: yacc.YaccProduction) -> None:
        """primary : LPAREN pipe RPAREN"""
        p[0] = p[2]

    def p_primary_array(self, p: yacc.YaccProduction) -> None:
        """primary : LBRACKET pipe RBRACKET
                   | LBRACKET RBRACKET"""
        p[0] = ArrayConstruct(p[2] if len(p) == 4 else None)

    def p_primary_object(self, p: yacc.YaccProduction) -> None:
        """primary : LBRACE object_entries RBRACE
                   | LBRACE RBRACE"""
        p[0] = ObjectConstruct(tuple(p[2]) if len(p) == 4 else ())

    def p_primary_call(self, p: yacc.YaccProduction) -> None:
        """primary : IDENTIFIER"""
        self._check_arity(p[1], 0, p.lexpos(1))
        p[0] = Call(p[1])

    def p_primary_call_args(self, p: yacc.YaccProduction) -> None:
        """primary : IDENTIFIER LPAREN call_args RPAREN"""
        self._check_arity(p[1], len(p[3]), p.lexpos(1))
        p[0] = Call(p[1], tuple(p[3]))

    def p_call_args(self, p: yacc.YaccProduction) -> None:
        """call_args : call_args SEMICOLON pipe
                     | pipe"""
        if len(p) == 4:
            p[0] = p[1] + [p[3]]
        else:
            p[0] = [p[1]]

    # ---- if / then / elif / else / end ----

    def p_primary_if(self, p: yacc.YaccProduction) -> None:
        """primary : IF pipe THEN pipe elif_list ELSE pipe END
                   | IF pipe THEN pipe elif_list END"""
        else_branch = p[7] if len(p) == 9 else None
        p[0] = If(p[2], p[4], tuple(p[5]), else_branch)

    def p_elif_list_empty(self, p: yacc.YaccProduction) -> None:
        """elif_list : """
        p[0] = []

    def p_elif_list(self, p: yacc.YaccProduction) -> None:
        """elif_list : elif_list ELIF pipe THEN pipe"""
        p[0] = p[1] + [(p[3], p[5])]

    # ---- Object construction ----

    def p_object_entries(self, p: yacc.YaccProduction) -> None:
        """object_entries : object_entries COMMA object_entry
                          | object_entry"""
        if len(p) == 4:
            p[0] = p[1] + [p[3]]
        else:
            p[0] = [p[1]]

    def p_object_entry(self, p: yacc.YaccProduction) -> None:
        """object_entry : object_key COLON object_value"""
        p[0] = (p[1], p[3])

    def p_object_entry_shorthand(self, p: yacc.YaccProduction) -> None:
        """object_entry : IDENTIFIER
                        | STRING"""
        # {name} is {name: .name}
        p[0] = (Literal(p[1]), Field(p[1]))

    def p_object_key_name(self, p: yacc.YaccProduction) -> None:
        """object_key : IDENTIFIER
                      | STRING
                      | keyword"""
        p[0] = Literal(p[1])

    def p_object_key_expr(self, p: yacc.YaccProduction) -> None:
        """object_key : LPAREN pipe RPAREN"""
        p[0] = p[2]

    def p_keyword(self, p: yacc.YaccProduction) -> None:
        """keyword : IF
                   | THEN
                   | ELIF
                   | ELSE
                   | END
                   | AND
                   | OR
                   | NOT
                   | TRUE
                   | FALSE
                   | NULL"""
        p[0] = p[1]

    def p_object_value(self, p: yacc.YaccProduction) -> None:
        """object_value : object_value PIPE alternative
                        | alternative"""
        if len(p) == 4:
            p[0] = Pipe(p[1], p[3])
        else:
            p[0] = p[1]

    # ---- Errors ----

    def p_error(self, p: yacc.YaccProduction) -> None:
        expected = self._expected_tokens()
        if p is None:
            raise ParseError("unexpected end of input", self._end, expected, self._source)
        raise ParseError(f"syntax error at {p.value!r}", p.lexpos, expected, self._source)

    def _expected_tokens(self) -> tuple[str, ...]:
        """Describe the tokens the LALR table would have accepted."""
        actions = self.parser.action.get(self.parser.state, {})
        return tuple(sorted(TOKEN_DESCRIPTIONS.get(name, name) for name in actions))

    def _check_arity(self, name: str, got: int, position: int) -> None:
        # Unknown names are left for the evaluator to report
        function = BUILTINS.get(name)
        if function is not None:
            function.check_arity(got, position)

    # ---- Parser methods ----

    def build(self, **kwargs: Any) -> None:
        """Build the parser."""
        kwargs.setdefault("debug", False)
        kwargs.setdefault("write_tables", False)
        kwargs.setdefault("errorlog", yacc.NullLogger())
        self.parser = yacc.yacc(module=self, start="query", **kwargs)

    def parse(self, data: str) -> Expr:
        """Parse an expression string into an AST."""
        if self.parser is None:
            self.build()
        self._source = data
        self._end = len(data)
        try:
            result = self.parser.parse(data, lexer=self.lexer.lexer)
        finally:
            self._source = None
        logger.debug("parsed %r into %s", data, type(result).__name__)
        return result

    def parse_tokens(self, tokens: list[Any]) -> Expr:
        """Parse an already tokenized expression."""
        if self.parser is None:
            self.build()
        self._end = _end_offset(tokens) if tokens else 0
        remaining = iter(tokens)
        return self.parser.parse(lexer=self.lexer.lexer, tokenfunc=lambda: next(remaining, None))


# PLY parsers keep their parse stack on the instance, so each thread builds its own
_local = threading.local()


def parse_expression(text: str) -> Expr:
    """Parse an expression with this thread's parser."""
    parser = getattr(_local, "parser", None)
    if parser is None:
        parser = QueryParser()
        parser.build()
        _local.parser = parser
    return parser.parse(text)
