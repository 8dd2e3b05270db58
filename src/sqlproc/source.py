"""Script sources: where procedure script text comes from."""

from __future__ import annotations

import gzip
from pathlib import Path
from typing import Protocol

from sqlproc.errors import SourceLoadError

SCRIPT_EXTENSIONS = (".sql", ".sql.gz")


class ScriptSource(Protocol):
    """Retrieves raw script text by name."""

    def read(self, name: str) -> str: ...


class FileSource:
    """Reads scripts from files under a root directory.

    Relative names resolve against the root; absolute names are used as is.
    A name without a suffix falls back to `.sql` and `.sql.gz` files.
    """

    def __init__(self, root: str | Path = ".") -> None:
        self.root = Path(root)

    def resolve(self, name: str) -> Path:
        """Return the file a script name refers to."""
        raw_path = Path(name)
        if not raw_path.is_absolute():
            raw_path = self.root / raw_path

        script_path = raw_path
        if not script_path.is_file() and not script_path.suffix:
            for ext in SCRIPT_EXTENSIONS:
                candidate = Path(str(script_path) + ext)
                if candidate.is_file():
                    script_path = candidate
                    break
        return script_path

    def read(self, name: str) -> str:
        script_path = self.resolve(name)
        if not script_path.is_file():
            raise SourceLoadError(f"Couldn't open {script_path} sql file", source=name)
        try:
            if script_path.suffix == ".gz":
                with gzip.open(script_path, "rt", encoding="utf-8") as f:
                    return f.read()
            return script_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise SourceLoadError(f"Couldn't read {script_path} sql file: {e}", source=name) from e


class MemorySource:
    """Serves scripts from an in-memory mapping of name to text."""

    def __init__(self, scripts: dict[str, str] | None = None) -> None:
        self.scripts: dict[str, str] = dict(scripts or {})

    def add(self, name: str, text: str) -> None:
        self.scripts[name] = text

    def read(self, name: str) -> str:
        try:
            return self.scripts[name]
        except KeyError:
            raise SourceLoadError(f"No script named {name}", source=name) from None
