"""Store of captured resultsets."""

from __future__ import annotations

from typing import Any

Rows = list[dict[str, Any]]


class ResultsetCache:
    """Append-only, index-addressed list of captured rows."""

    def __init__(self) -> None:
        self._sets: list[Rows] = []

    def __len__(self) -> int:
        return len(self._sets)

    def append(self, rows: Rows) -> int:
        """Store a resultset and return its index."""
        self._sets.append(list(rows))
        return len(self._sets) - 1

    def get(self, index: int) -> Rows:
        """Return the rows captured at index, or an empty list."""
        if 0 <= index < len(self._sets):
            return self._sets[index]
        return []

    def all(self) -> list[Rows]:
        """Return every captured resultset, oldest first."""
        return list(self._sets)

    def reset(self) -> None:
        self._sets.clear()
