"""In-memory table mutated only through operation batches."""

from __future__ import annotations

from collections.abc import Iterable

import structlog

from kubelive.table.operations import (
    Added,
    Clear,
    Deleted,
    InitFinished,
    InitStart,
    Modified,
    Operation,
    Row,
    SetColumns,
)

logger = structlog.get_logger()


class TableStore:
    """Ordered rows plus header, selection and scroll offset.

    The store is not synchronized. It must only be touched by the thread
    that drains the operation queue (the UI thread); producers never hold
    a reference to it.

    Invariants:
        - row ids are unique
        - ``selected`` is in ``[0, len(rows))``, or 0 when empty
    """

    def __init__(self) -> None:
        self._rows: list[Row] = []
        self._ids: set[str] = set()
        self._header: tuple[str, ...] = ()
        self._selected = 0
        self._top_row = 0
        self._loading = False

    # =========================================================================
    # Read-only views
    # =========================================================================

    @property
    def header(self) -> tuple[str, ...]:
        """Current column set."""
        return self._header

    @property
    def rows(self) -> tuple[Row, ...]:
        """Snapshot of the rows in display order."""
        return tuple(self._rows)

    @property
    def selected(self) -> int:
        """Index of the row under the cursor."""
        return self._selected

    @property
    def selected_row(self) -> Row | None:
        """Row under the cursor, or None when the table is empty."""
        if not self._rows:
            return None
        return self._rows[self._selected]

    @property
    def top_row(self) -> int:
        """Index of the first visible row."""
        return self._top_row

    @property
    def loading(self) -> bool:
        """True between InitStart and InitFinished."""
        return self._loading

    def __len__(self) -> int:
        return len(self._rows)

    def __contains__(self, row_id: object) -> bool:
        return row_id in self._ids

    def row_at(self, index: int) -> Row | None:
        """Row at ``index`` or None if out of range."""
        if 0 <= index < len(self._rows):
            return self._rows[index]
        return None

    # =========================================================================
    # Mutation
    # =========================================================================

    def apply(self, batch: Iterable[Operation]) -> None:
        """Execute each operation of a batch in order.

        Args:
            batch: Operations produced together by one producer step.
        """
        for op in batch:
            self._apply_one(op)
        self._clamp_selection()

    def _apply_one(self, op: Operation) -> None:
        match op:
            case Clear():
                self._rows.clear()
                self._ids.clear()
                self._selected = 0
                self._top_row = 0
            case SetColumns(columns=columns):
                self._header = tuple(columns)
            case Added(row=row, index=index, sort_by_id=sort_by_id):
                self._add(row, index, sort_by_id)
            case Modified(row=row):
                position = self._position(row.id)
                if position is None:
                    # Watches may re-deliver updates for rows we never saw
                    self._add(row, None, False)
                else:
                    self._rows[position] = row
            case Deleted(row_id=row_id):
                position = self._position(row_id)
                if position is not None:
                    del self._rows[position]
                    self._ids.discard(row_id)
            case InitStart():
                self._loading = True
            case InitFinished():
                self._loading = False
            case _:
                logger.warning("unknown_table_operation", operation=repr(op))

    def _add(self, row: Row, index: int | None, sort_by_id: bool) -> None:
        existing = self._position(row.id)
        if existing is not None:
            self._rows[existing] = row
            return

        if index is not None:
            position = max(0, min(index, len(self._rows)))
        elif sort_by_id:
            position = len(self._rows)
            for i, current in enumerate(self._rows):
                if current.id > row.id:
                    position = i
                    break
        else:
            position = len(self._rows)

        self._rows.insert(position, row)
        self._ids.add(row.id)

    def _position(self, row_id: str) -> int | None:
        if row_id not in self._ids:
            return None
        for i, row in enumerate(self._rows):
            if row.id == row_id:
                return i
        return None

    def _clamp_selection(self) -> None:
        last = len(self._rows) - 1
        if self._selected > last:
            self._selected = max(last, 0)
        if self._selected < 0:
            self._selected = 0
        if self._top_row > self._selected:
            self._top_row = self._selected

    # =========================================================================
    # Cursor and scrolling
    # =========================================================================

    def select(self, index: int) -> bool:
        """Move the cursor to ``index``, clamped to the rows.

        Returns:
            True if the selection changed.
        """
        if not self._rows:
            return False
        index = max(0, min(index, len(self._rows) - 1))
        if index == self._selected:
            return False
        self._selected = index
        return True

    def scroll_to(self, top_row: int) -> None:
        """Set the first visible row, clamped to the rows."""
        self._top_row = max(0, min(top_row, max(len(self._rows) - 1, 0)))
