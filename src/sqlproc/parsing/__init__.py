"""Parsing module for procedure scripts and proceed conditions."""

from sqlproc.parsing.condition_parser import BinaryOp, ConditionParser, Literal, UnaryOp
from sqlproc.parsing.script_parser import ScriptParser, validate_program

__all__ = [
    "BinaryOp",
    "ConditionParser",
    "Literal",
    "ScriptParser",
    "UnaryOp",
    "validate_program",
]
