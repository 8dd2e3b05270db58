"""Command-line runner for procedure scripts."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError

from sqlproc.client import Resultset, SQLAlchemyClient
from sqlproc.errors import ProcedureError
from sqlproc.interpreter import Interpreter
from sqlproc.source import FileSource

logger = logging.getLogger(__name__)

DEFAULT_URL = "sqlite://"


def format_value(value: Any, max_width: int = 40) -> str:
    """Format a value for display."""
    if value is None:
        return "NULL"
    elif isinstance(value, bool):
        return "true" if value else "false"
    elif isinstance(value, float):
        return f"{value:.6g}"
    elif isinstance(value, bytes):
        return f"<{len(value)} bytes>"
    s = str(value)
    if len(s) > max_width:
        return s[:max_width - 3] + "..."
    return s


def print_rows(columns: list[str], rows: list[dict[str, Any]]) -> None:
    """Print rows in a formatted table."""
    if not rows:
        print("(no results)")
        return
    if not columns:
        columns = list(rows[0].keys())

    # Calculate column widths
    col_widths = {col: len(col) for col in columns}
    for row in rows:
        for col in columns:
            col_widths[col] = max(col_widths[col], len(format_value(row.get(col))))

    header = " | ".join(col.ljust(col_widths[col]) for col in columns)
    print(header)
    print("-" * len(header))
    for row in rows:
        print(" | ".join(format_value(row.get(col)).ljust(col_widths[col]) for col in columns))

    print(f"\n({len(rows)} row{'s' if len(rows) != 1 else ''})")


def print_result(result: Resultset | None) -> None:
    """Print the last resultset of a run."""
    if result is None:
        return
    if result.columns:
        print_rows(result.columns, result.rows)
    elif result.rowcount >= 0:
        print(f"({result.rowcount} row{'s' if result.rowcount != 1 else ''} affected)")


def _parse_assignments(pairs: list[str]) -> dict[str, str]:
    custom = {}
    for pair in pairs:
        name, sep, value = pair.partition("=")
        if not sep or not name:
            raise ValueError(f"Expected NAME=VALUE, got {pair!r}")
        custom[name] = value
    return custom


def run_file(
    script: Path,
    url: str = DEFAULT_URL,
    root: Path | None = None,
    args: list[str] | None = None,
    custom: dict[str, str] | None = None,
    show_captures: bool = False,
) -> int:
    """Run a script file in a single transaction. Returns an exit code."""
    root = root if root is not None else script.parent
    try:
        name = str(script.relative_to(root))
    except ValueError:
        name = str(script.resolve())

    try:
        engine = create_engine(url)
    except (SQLAlchemyError, ValueError) as e:
        print(f"Error: cannot create engine for {url}: {e}", file=sys.stderr)
        return 1

    try:
        with engine.begin() as connection:
            interpreter = Interpreter(SQLAlchemyClient(connection), FileSource(root))
            interpreter.load(name)
            result = interpreter.run(args=args or [], custom=custom or {})
            print_result(result)
            if show_captures:
                for i, rows in enumerate(interpreter.captures):
                    print(f"\n-- capture {i}")
                    print_rows([], rows)
    except ProcedureError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except SQLAlchemyError as e:
        print(f"Database error: {e}", file=sys.stderr)
        return 1
    finally:
        engine.dispose()
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    arg_parser = argparse.ArgumentParser(
        description="Run a procedural SQL script against a database"
    )
    arg_parser.add_argument(
        "script",
        type=Path,
        help="Path to the script file",
    )
    arg_parser.add_argument(
        "--url",
        default=os.environ.get("SQLPROC_URL", DEFAULT_URL),
        help="SQLAlchemy database URL (default: $SQLPROC_URL or in-memory SQLite)",
    )
    arg_parser.add_argument(
        "--root",
        type=Path,
        default=None,
        help="Directory included scripts are resolved against (default: the script's directory)",
    )
    arg_parser.add_argument(
        "-a", "--arg",
        action="append",
        default=[],
        dest="args",
        help="Positional parameter ($0, $1, ...); repeat for more",
    )
    arg_parser.add_argument(
        "-s", "--set",
        action="append",
        default=[],
        dest="custom",
        metavar="NAME=VALUE",
        help="Custom parameter ($!NAME); repeat for more",
    )
    arg_parser.add_argument(
        "--show-captures",
        action="store_true",
        help="Print every captured resultset after the run",
    )
    arg_parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log each dispatched instruction",
    )

    args = arg_parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if not args.script.exists():
        print(f"Error: File not found: {args.script}", file=sys.stderr)
        return 1

    try:
        custom = _parse_assignments(args.custom)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return run_file(
        args.script,
        url=args.url,
        root=args.root,
        args=args.args,
        custom=custom,
        show_captures=args.show_captures,
    )


if __name__ == "__main__":
    sys.exit(main())
