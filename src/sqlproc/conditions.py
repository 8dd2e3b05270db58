"""Evaluation of proceed conditions."""

from __future__ import annotations

import re
from decimal import Decimal
from typing import Any, Sequence

from sqlproc.commands import BlankValue
from sqlproc.parsing.condition_lexer import quote
from sqlproc.parsing.condition_parser import BinaryOp, ConditionParser, Expr, Literal, UnaryOp
from sqlproc.resolver import fill_placeholders

_NUMERIC_PREFIX_RE = re.compile(r"\s*([-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?)")

_parser: ConditionParser | None = None


def _get_parser() -> ConditionParser:
    global _parser
    if _parser is None:
        _parser = ConditionParser()
    return _parser


def to_number(value: Any) -> int | float:
    """Coerce a value to a number the way loose scripting languages do.

    Strings contribute their leading numeric prefix, anything else is 0.
    """
    if value is None:
        return 0
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, Decimal):
        return float(value)
    m = _NUMERIC_PREFIX_RE.match(str(value))
    if not m:
        return 0
    text = m.group(1)
    try:
        return int(text)
    except ValueError:
        return float(text)


def to_string(value: Any) -> str:
    """Coerce a value to its string form (None becomes empty)."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "1" if value else ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def truthy(value: Any) -> bool:
    """None, empty string, "0" and numeric zero are false."""
    if value is None:
        return False
    if isinstance(value, (bool, int, float, Decimal)):
        return value != 0
    text = to_string(value)
    return text not in ("", "0")


def evaluate(expr: Expr) -> Any:
    """Recursively evaluate a condition tree."""
    if isinstance(expr, Literal):
        return expr.value
    if isinstance(expr, UnaryOp):
        operand = evaluate(expr.operand)
        if expr.op == "not":
            return not truthy(operand)
        return -to_number(operand)
    if isinstance(expr, BinaryOp):
        # Connectives short-circuit and yield the deciding operand
        if expr.op == "and":
            left = evaluate(expr.left)
            return evaluate(expr.right) if truthy(left) else left
        if expr.op == "or":
            left = evaluate(expr.left)
            return left if truthy(left) else evaluate(expr.right)
        return _apply_binary(expr.op, evaluate(expr.left), evaluate(expr.right))
    raise RuntimeError(f"Unknown condition node: {type(expr).__name__}")


def _apply_binary(op: str, left: Any, right: Any) -> Any:
    if op == ".":
        return to_string(left) + to_string(right)
    if op in ("eq", "ne", "lt", "le", "gt", "ge"):
        ls, rs = to_string(left), to_string(right)
        return {
            "eq": ls == rs,
            "ne": ls != rs,
            "lt": ls < rs,
            "le": ls <= rs,
            "gt": ls > rs,
            "ge": ls >= rs,
        }[op]
    ln, rn = to_number(left), to_number(right)
    if op == "==":
        return ln == rn
    if op == "!=":
        return ln != rn
    if op == "<":
        return ln < rn
    if op == "<=":
        return ln <= rn
    if op == ">":
        return ln > rn
    if op == ">=":
        return ln >= rn
    if op == "+":
        return ln + rn
    if op == "-":
        return ln - rn
    if op == "*":
        return ln * rn
    if op == "/":
        if rn == 0:
            raise RuntimeError("Division by zero")
        return ln / rn
    if op == "%":
        if rn == 0:
            raise RuntimeError("Modulus by zero")
        return ln % rn
    raise RuntimeError(f"Unknown operator: {op}")


def evaluate_condition(text: str) -> bool:
    """Parse and evaluate a condition; an empty condition is false."""
    if not text.strip():
        return False
    return truthy(evaluate(_get_parser().parse(text)))


def literal(value: Any, blank: BlankValue) -> str:
    """Render a resolved value as a condition literal."""
    if value is None:
        return blank.literal
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, (float, Decimal)):
        return format(value, "f")
    return quote(to_string(value))


def render_condition(statement: str, args: Sequence[Any], blank: BlankValue) -> str:
    """Replace each placeholder, in order, with the literal of its argument."""
    return fill_placeholders(statement, [literal(a, blank) for a in args])
