"""Parser for proceed conditions.

Conditions are a small expression language: literals, arithmetic,
numeric and string comparison, and boolean connectives. They are parsed
into a tree and evaluated by `sqlproc.conditions`; nothing in a script is
ever executed as host code.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union

import ply.yacc as yacc

from sqlproc.parsing.condition_lexer import ConditionLexer


@dataclass
class Literal:
    """A constant: number, string, or None for NULL."""

    value: Any


@dataclass
class UnaryOp:
    """A prefix operator: `!`/`not` or negation."""

    op: str  # not, neg
    operand: Expr


@dataclass
class BinaryOp:
    """An infix operator applied to two sub-expressions."""

    op: str
    left: Expr
    right: Expr


Expr = Union[Literal, UnaryOp, BinaryOp]


class ConditionParser:
    """Parser for proceed conditions."""

    tokens = ConditionLexer.tokens

    # Operator precedence: loosest to tightest
    precedence = (
        ("left", "OR", "LOR"),
        ("left", "AND", "LAND"),
        ("right", "NOT"),
        ("nonassoc", "EQ", "NEQ", "LT", "LTE", "GT", "GTE",
         "STR_EQ", "STR_NE", "STR_LT", "STR_LE", "STR_GT", "STR_GE"),
        ("left", "PLUS", "MINUS", "DOT"),
        ("left", "STAR", "SLASH", "PERCENT"),
        ("right", "BANG", "UMINUS"),
    )

    def __init__(self) -> None:
        self.lexer = ConditionLexer()
        self.lexer.build()
        self.parser: yacc.LRParser = None  # type: ignore

    def build(self, **kwargs: Any) -> None:
        """Build the parser."""
        kwargs.setdefault("errorlog", yacc.NullLogger())
        self.parser = yacc.yacc(module=self, start="condition", **kwargs)

    def parse(self, data: str) -> Expr:
        """Parse a condition string."""
        if self.parser is None:
            self.build(debug=False, write_tables=False)
        return self.parser.parse(data, lexer=self.lexer.lexer)

    def p_condition(self, p: yacc.YaccProduction) -> None:
        """condition : expression"""
        p[0] = p[1]

    # ---- Boolean connectives ----

    def p_expression_or(self, p: yacc.YaccProduction) -> None:
        """expression : expression OR expression
                      | expression LOR expression"""
        p[0] = BinaryOp(op="or", left=p[1], right=p[3])

    def p_expression_and(self, p: yacc.YaccProduction) -> None:
        """expression : expression AND expression
                      | expression LAND expression"""
        p[0] = BinaryOp(op="and", left=p[1], right=p[3])

    def p_expression_not(self, p: yacc.YaccProduction) -> None:
        """expression : NOT expression
                      | BANG expression"""
        p[0] = UnaryOp(op="not", operand=p[2])

    # ---- Comparison ----

    def p_expression_compare(self, p: yacc.YaccProduction) -> None:
        """expression : expression EQ expression
                      | expression NEQ expression
                      | expression LT expression
                      | expression LTE expression
                      | expression GT expression
                      | expression GTE expression"""
        p[0] = BinaryOp(op=p[2], left=p[1], right=p[3])

    def p_expression_string_compare(self, p: yacc.YaccProduction) -> None:
        """expression : expression STR_EQ expression
                      | expression STR_NE expression
                      | expression STR_LT expression
                      | expression STR_LE expression
                      | expression STR_GT expression
                      | expression STR_GE expression"""
        p[0] = BinaryOp(op=p[2].lower(), left=p[1], right=p[3])

    # ---- Arithmetic ----

    def p_expression_arith(self, p: yacc.YaccProduction) -> None:
        """expression : expression PLUS expression
                      | expression MINUS expression
                      | expression STAR expression
                      | expression SLASH expression
                      | expression PERCENT expression
                      | expression DOT expression"""
        p[0] = BinaryOp(op=p[2], left=p[1], right=p[3])

    def p_expression_neg(self, p: yacc.YaccProduction) -> None:
        """expression : MINUS expression %prec UMINUS"""
        p[0] = UnaryOp(op="neg", operand=p[2])

    def p_expression_paren(self, p: yacc.YaccProduction) -> None:
        """expression : LPAREN expression RPAREN"""
        p[0] = p[2]

    # ---- Atoms ----

    def p_expression_number(self, p: yacc.YaccProduction) -> None:
        """expression : INTEGER
                      | FLOAT"""
        p[0] = Literal(value=p[1])

    def p_expression_string(self, p: yacc.YaccProduction) -> None:
        """expression : STRING"""
        p[0] = Literal(value=p[1])

    def p_expression_bareword(self, p: yacc.YaccProduction) -> None:
        """expression : WORD"""
        # Unquoted words stand for themselves
        p[0] = Literal(value=p[1])

    def p_expression_null(self, p: yacc.YaccProduction) -> None:
        """expression : NULL"""
        p[0] = Literal(value=None)

    def p_expression_true(self, p: yacc.YaccProduction) -> None:
        """expression : TRUE"""
        p[0] = Literal(value=1)

    def p_expression_false(self, p: yacc.YaccProduction) -> None:
        """expression : FALSE"""
        p[0] = Literal(value=0)

    def p_error(self, p: yacc.YaccProduction) -> None:
        if p:
            raise SyntaxError(f"Syntax error at '{p.value}' (position {p.lexpos})")
        raise SyntaxError("Unexpected end of condition")
