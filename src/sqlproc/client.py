"""Query clients used by the interpreter to talk to a database."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Protocol, Sequence

from sqlalchemy import literal
from sqlalchemy.engine import Connection
from sqlalchemy.exc import CompileError, SQLAlchemyError

logger = logging.getLogger(__name__)

# DB-API paramstyle → positional bind marker
_POSITIONAL_MARKERS = {
    "qmark": "?",
    "format": "%s",
    "pyformat": "%s",
}


@dataclass
class Resultset:
    """Rows returned by one statement."""

    columns: list[str] = field(default_factory=list)
    rows: list[dict[str, Any]] = field(default_factory=list)
    rowcount: int = -1

    @property
    def first(self) -> dict[str, Any] | None:
        return self.rows[0] if self.rows else None

    @property
    def last(self) -> dict[str, Any] | None:
        return self.rows[-1] if self.rows else None


class QueryClientError(Exception):
    """A statement was rejected by the database driver."""


class QueryClient(Protocol):
    """What the interpreter needs from a database connection."""

    @property
    def bind_marker(self) -> str: ...

    def query(self, statement: str, args: Sequence[Any] = ()) -> Resultset: ...

    def quote(self, value: Any) -> str: ...


class SQLAlchemyClient:
    """Runs raw statements on a SQLAlchemy connection.

    Statements are passed to the driver as written, with positional
    arguments, so the bind marker follows the driver's paramstyle.
    """

    def __init__(self, connection: Connection) -> None:
        self.connection = connection

    @property
    def bind_marker(self) -> str:
        paramstyle = getattr(self.connection.dialect, "paramstyle", "qmark")
        return _POSITIONAL_MARKERS.get(paramstyle, "?")

    def query(self, statement: str, args: Sequence[Any] = ()) -> Resultset:
        """Execute a statement and collect its rows."""
        logger.debug("query: %s %r", statement, list(args))
        try:
            if args:
                result = self.connection.exec_driver_sql(statement, tuple(args))
            else:
                result = self.connection.exec_driver_sql(statement)
            if not result.returns_rows:
                return Resultset(rowcount=result.rowcount)
            columns = list(result.keys())
            rows = [dict(row._mapping) for row in result]
        except SQLAlchemyError as e:
            orig = getattr(e, "orig", None)
            raise QueryClientError(str(orig) if orig is not None else str(e)) from e
        return Resultset(columns=columns, rows=rows, rowcount=len(rows))

    def quote(self, value: Any) -> str:
        """Render a value as an SQL literal for this connection's dialect."""
        if value is None:
            return "NULL"
        try:
            compiled = literal(value).compile(
                dialect=self.connection.dialect,
                compile_kwargs={"literal_binds": True},
            )
            return str(compiled)
        except CompileError:
            text = str(value).replace("'", "''")
            return f"'{text}'"
