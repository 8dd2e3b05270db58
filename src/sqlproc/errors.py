"""Error types raised while loading or running procedure scripts."""

from __future__ import annotations

import inspect
from dataclasses import dataclass
from typing import Any, Sequence

PREVIEW_LENGTH = 20


@dataclass(frozen=True)
class CallSite:
    """The caller location reported in error messages."""

    file: str
    line: int

    @classmethod
    def here(cls, depth: int = 1) -> CallSite:
        """Describe the frame `depth` levels above this call."""
        frame = inspect.currentframe()
        try:
            for _ in range(depth):
                if frame is None or frame.f_back is None:
                    break
                frame = frame.f_back
            if frame is None:
                return cls(file="<unknown>", line=0)
            return cls(file=frame.f_code.co_filename, line=frame.f_lineno)
        finally:
            del frame

    def __str__(self) -> str:
        return f"{self.file} line {self.line}"


def preview(statement: str | None) -> str:
    """Return the leading characters of a statement for messages."""
    if not statement:
        return ""
    return statement[:PREVIEW_LENGTH]


class ProcedureError(Exception):
    """Base class for all procedure script errors.

    Carries the context of the failing instruction and renders it into a
    single message. Context can be attached while the error unwinds, so
    the innermost instruction that failed is the one reported.
    """

    def __init__(
        self,
        detail: str,
        *,
        source: str | None = None,
        index: int | None = None,
        line: int | None = None,
        command: str | None = None,
        statement: str | None = None,
        parameters: Sequence[Any] = (),
        origin: CallSite | None = None,
    ) -> None:
        self.detail = detail
        self.source = source
        self.index = index
        self.line = line
        self.command = command
        self.statement = statement
        self.parameters = list(parameters)
        self.origin = origin
        super().__init__(detail)

    def attach(
        self,
        *,
        source: str | None = None,
        index: int | None = None,
        line: int | None = None,
        command: str | None = None,
        statement: str | None = None,
        parameters: Sequence[Any] = (),
        origin: CallSite | None = None,
    ) -> None:
        """Fill in context that is still missing; set fields are kept."""
        if self.source is None:
            self.source = source
        if self.index is None:
            self.index = index
        if self.line is None:
            self.line = line
        if self.command is None:
            self.command = command
        if self.statement is None:
            self.statement = statement
        if not self.parameters:
            self.parameters = list(parameters)
        if self.origin is None:
            self.origin = origin

    def __str__(self) -> str:
        return self._format()

    def _format(self) -> str:
        parts = []
        if self.source is not None:
            parts.append(f"{self.source}:")
        if self.index is not None:
            parts.append(f"command #{self.index}")
        if self.line is not None:
            parts.append(f"(line {self.line})")
        if self.command is not None:
            parts.append(f"[{self.command}]")
        if self.statement:
            parts.append(f"statement ({preview(self.statement)}...)")
        if self.parameters:
            parts.append("using " + ", ".join(repr(p) for p in self.parameters))
        if self.origin is not None:
            parts.append(f"at {self.origin}")
        head = " ".join(parts)
        return f"{head}: {self.detail}" if head else self.detail


class SourceLoadError(ProcedureError):
    """The script text could not be retrieved."""


class ValidationError(ProcedureError):
    """A loaded script breaks a command's statement rules."""


class ExecutionError(ProcedureError):
    """An instruction failed while a script was running."""


class DiagnosticAbort(ExecutionError):
    """A script stopped itself with the examine command."""

    @property
    def rendered(self) -> str:
        """The statement as it would have been sent to the database."""
        return self.detail
