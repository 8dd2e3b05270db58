"""Parsed program representation."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator

from sqlproc.commands import Command


@dataclass(frozen=True)
class Instruction:
    """One parsed script command.

    Its position in the owning Program is its address.
    """

    command: Command
    statement: str
    line: int | None = None  # 1-based source line, diagnostics only


@dataclass
class Program:
    """Ordered instructions loaded from a single script."""

    source: str
    instructions: list[Instruction] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.instructions)

    def __getitem__(self, index: int) -> Instruction:
        return self.instructions[index]

    def __iter__(self) -> Iterator[Instruction]:
        return iter(self.instructions)

    def get(self, index: int) -> Instruction | None:
        """Return the instruction at an absolute index, or None if out of range."""
        if 0 <= index < len(self.instructions):
            return self.instructions[index]
        return None

    def append(self, instruction: Instruction) -> int:
        """Append an instruction and return its index."""
        self.instructions.append(instruction)
        return len(self.instructions) - 1
