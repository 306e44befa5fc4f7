from __future__ import annotations

from typing import Any, List, Sequence

from incsql.common.errors import CursorNotPositionedError


class ResumableRowCursor:
    """Forward-only, rewindable view over an in-memory row list.

    The merger makes one full pass per aggregate column, rewinding in between.
    """

    def __init__(self, rows: Sequence[Sequence[Any]], columns: Sequence[str] = ()):
        self._rows = rows
        self._columns = list(columns)
        self._position = -1

    @property
    def row_count(self) -> int:
        return len(self._rows)

    @property
    def column_count(self) -> int:
        if self._columns:
            return len(self._columns)
        return len(self._rows[0]) if self._rows else 0

    @property
    def columns(self) -> List[str]:
        return list(self._columns)

    def next(self) -> bool:
        """Advances one row; returns False once the rows are exhausted."""
        if self._position < len(self._rows):
            self._position += 1
        return self._position < len(self._rows)

    def has_next(self) -> bool:
        return self._position + 1 < len(self._rows)

    def rewind(self) -> None:
        self._position = -1

    def get_value(self, index: int) -> Any:
        if self._position < 0:
            raise CursorNotPositionedError("Cursor is positioned before the first row; call next().")
        if self._position >= len(self._rows):
            raise CursorNotPositionedError("Cursor is exhausted.")
        return self._rows[self._position][index]
