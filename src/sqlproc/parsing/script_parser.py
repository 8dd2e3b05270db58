"""Parser and validator for procedure script text."""

from __future__ import annotations

import logging
import re

from sqlproc.commands import SELECT_REQUIRED, Command
from sqlproc.errors import ValidationError
from sqlproc.program import Instruction, Program

logger = logging.getLogger(__name__)

DEFAULT_MARKER = "!"

_SELECT_RE = re.compile(r"\s*select", re.IGNORECASE)


class ScriptParser:
    """Turns script text into a Program.

    Only lines of the form `<marker> <keyword> <statement>` are commands;
    every other line is free text. Keywords that are not registered
    commands are dropped.
    """

    def __init__(self, marker: str = DEFAULT_MARKER) -> None:
        self.marker = marker
        self._line_re = re.compile(rf"^{re.escape(marker)}\s(\w+)\s(.*)")

    def parse_line(self, line: str, lineno: int | None = None) -> Instruction | None:
        """Parse one line, returning None for inert or unknown lines."""
        m = self._line_re.match(line.rstrip("\r\n"))
        if not m:
            return None
        keyword, statement = m.group(1), m.group(2)
        command = Command.lookup(keyword)
        if command is None:
            logger.debug("Dropping unknown command %r on line %s", keyword, lineno)
            return None
        return Instruction(command=command, statement=statement, line=lineno)

    def parse_program(self, text: str, source: str = "<string>") -> Program:
        """Parse a whole script into a Program (not yet validated)."""
        program = Program(source=source)
        for lineno, line in enumerate(text.splitlines(), start=1):
            instruction = self.parse_line(line, lineno)
            if instruction is not None:
                program.append(instruction)
        return program


def is_select(statement: str) -> bool:
    """Return True if the statement starts with SELECT."""
    return _SELECT_RE.match(statement) is not None


def validate_instruction(instruction: Instruction, index: int, source: str) -> None:
    """Check a single instruction against its command's statement rules."""
    if instruction.command in SELECT_REQUIRED and not is_select(instruction.statement):
        raise ValidationError(
            f"the {instruction.command.value} command can only be used with an SQL select statement",
            source=source,
            index=index,
            command=instruction.command.value,
            line=instruction.line,
            statement=instruction.statement,
        )


def validate_program(program: Program) -> None:
    """Validate every instruction; the first violation rejects the program."""
    for index, instruction in enumerate(program):
        validate_instruction(instruction, index, program.source)
