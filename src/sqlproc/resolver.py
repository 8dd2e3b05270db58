"""Placeholder resolution for instruction statements."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Mapping, Sequence

DEFAULT_BIND_MARKER = "?"

# $!name (custom) or $N not followed by a word character (positional)
PLACEHOLDER_RE = re.compile(r"\$!([A-Za-z0-9_\-]+)|\$(\d+)(?!\w)")


@dataclass
class ResolvedStatement:
    """A statement with placeholders rewritten to bind markers.

    `statement` keeps the text as written, for commands that render the
    arguments as literals instead of binding them.
    """

    text: str
    args: list[Any] = field(default_factory=list)
    statement: str = ""


def _lookup(m: re.Match[str], passed: Sequence[Any], custom: Mapping[str, Any]) -> Any:
    name, index = m.group(1), m.group(2)
    if name is not None:
        return custom.get(name)
    i = int(index)
    return passed[i] if i < len(passed) else None


def resolve(
    statement: str,
    passed: Sequence[Any],
    custom: Mapping[str, Any],
    marker: str = DEFAULT_BIND_MARKER,
) -> ResolvedStatement:
    """Rewrite `$!name` and `$N` placeholders to bind markers.

    Arguments are collected in the order the placeholders appear in the
    text. Unknown names and out-of-range indexes resolve to None. With a
    format-style marker (`%s`) the driver interpolates the whole text, so
    literal `%` signs around the placeholders are doubled.
    """
    args: list[Any] = []
    pieces: list[str] = []
    pos = 0
    for m in PLACEHOLDER_RE.finditer(statement):
        pieces.append(statement[pos:m.start()])
        args.append(_lookup(m, passed, custom))
        pos = m.end()
    pieces.append(statement[pos:])
    if args and "%" in marker:
        pieces = [piece.replace("%", "%%") for piece in pieces]
    return ResolvedStatement(text=marker.join(pieces), args=args, statement=statement)


def fill_placeholders(statement: str, literals: Sequence[str]) -> str:
    """Replace placeholders, in order, with pre-rendered literals.

    Placeholders beyond the supplied literals are left in place.
    """
    remaining = iter(literals)

    def substitute(m: re.Match[str]) -> str:
        return next(remaining, m.group(0))

    return PLACEHOLDER_RE.sub(substitute, statement)
