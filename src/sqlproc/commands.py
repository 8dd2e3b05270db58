"""Command vocabulary for procedure scripts."""

from __future__ import annotations

from enum import Enum


class Command(str, Enum):
    """A command keyword recognised in a script line."""

    EXECUTE = "execute"
    CAPTURE = "capture"
    REPLACE = "replace"
    DECLARE = "declare"
    PROCEED = "proceed"
    IFVALID = "ifvalid"
    VALIDIF = "validif"
    FORWARD = "forward"
    PROCESS = "process"
    STORAGE = "storage"
    INCLUDE = "include"
    SETTING = "setting"
    EXAMINE = "examine"

    @classmethod
    def lookup(cls, keyword: str) -> Command | None:
        """Return the command for a keyword, or None if it is not registered."""
        try:
            return cls(keyword)
        except ValueError:
            return None


# Commands whose statement must be a SELECT
SELECT_REQUIRED: frozenset[Command] = frozenset({
    Command.CAPTURE,
    Command.REPLACE,
    Command.DECLARE,
})

# Commands that still dispatch while the skip gate is closed
REACTIVATION: frozenset[Command] = frozenset({
    Command.PROCEED,
    Command.IFVALID,
    Command.VALIDIF,
})

# Commands the main loop steps over without dispatching
PASSIVE: frozenset[Command] = frozenset({Command.STORAGE})


class Gate(Enum):
    """State of the skip/run gate."""

    RUN = "run"
    SKIP = "skip"


class BlankValue(Enum):
    """Literal standing for an absent value in proceed conditions."""

    EMPTY = "empty"
    NULL = "null"
    ZERO = "zero"

    @property
    def literal(self) -> str:
        """The condition-language literal for this policy."""
        if self is BlankValue.NULL:
            return "NULL"
        if self is BlankValue.ZERO:
            return "0"
        return "''"
