"""sqlproc - procedural SQL scripts run outside the database."""

from sqlproc.cache import ResultsetCache
from sqlproc.client import QueryClient, QueryClientError, Resultset, SQLAlchemyClient
from sqlproc.commands import BlankValue, Command, Gate
from sqlproc.errors import (
    CallSite,
    DiagnosticAbort,
    ExecutionError,
    ProcedureError,
    SourceLoadError,
    ValidationError,
)
from sqlproc.interpreter import ExecutionState, Interpreter
from sqlproc.parsing import ScriptParser
from sqlproc.program import Instruction, Program
from sqlproc.source import FileSource, MemorySource, ScriptSource

__all__ = [
    # Main API
    "Interpreter",
    "ExecutionState",
    "ScriptParser",
    "Program",
    "Instruction",
    "Command",
    "Gate",
    "BlankValue",
    "ResultsetCache",
    # Collaborators
    "QueryClient",
    "QueryClientError",
    "Resultset",
    "SQLAlchemyClient",
    "ScriptSource",
    "FileSource",
    "MemorySource",
    # Errors
    "CallSite",
    "ProcedureError",
    "SourceLoadError",
    "ValidationError",
    "ExecutionError",
    "DiagnosticAbort",
]

__version__ = "0.1.0"
