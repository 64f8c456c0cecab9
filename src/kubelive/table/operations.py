"""Row and operation model for live tables.

A table is never mutated directly. Producers (the initial listing, the watch
supervisor) describe changes as ``Operation`` values grouped into batches,
and the single consumer applies them to a ``TableStore``.

Usage:
    from kubelive.table.operations import Added, Clear, Row, SetColumns

    batch = (
        Clear(),
        SetColumns(("NAME", "STATUS")),
        Added(Row("default/web", ("web", "Running"))),
    )
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass


class RowMetadataError(ValueError):
    """Raised when a row carries no usable object metadata."""


@dataclass(frozen=True)
class RowMetadata:
    """Identity of the cluster object a row represents."""

    name: str
    namespace: str = ""
    kind: str = ""


@dataclass(frozen=True)
class Row:
    """An immutable table row.

    Attributes:
        id: Stable identity across updates of the same object.
        cells: Display values, one per header column.
        metadata: Object identity used by row actions, if known.
    """

    id: str
    cells: tuple[str, ...]
    metadata: RowMetadata | None = None

    def require_metadata(self) -> RowMetadata:
        """Return the row's metadata.

        Raises:
            RowMetadataError: If the row is not backed by a cluster object.
        """
        if self.metadata is None or not self.metadata.name:
            raise RowMetadataError(f"Row '{self.id}' has no object metadata")
        return self.metadata


@dataclass(frozen=True)
class Clear:
    """Remove all rows, keep the header."""


@dataclass(frozen=True)
class SetColumns:
    """Replace the column set."""

    columns: tuple[str, ...]


@dataclass(frozen=True)
class Added:
    """Insert a row.

    ``index`` pins the row to a fixed position (synthetic rows);
    ``sort_by_id`` inserts in ascending id order; otherwise the row is
    appended.
    """

    row: Row
    index: int | None = None
    sort_by_id: bool = False


@dataclass(frozen=True)
class Modified:
    """Replace the row with the same id, keeping its position."""

    row: Row


@dataclass(frozen=True)
class Deleted:
    """Remove the row with the given id."""

    row_id: str


@dataclass(frozen=True)
class InitStart:
    """A full reload started."""


@dataclass(frozen=True)
class InitFinished:
    """A full reload finished (successfully or not)."""


Operation = Clear | SetColumns | Added | Modified | Deleted | InitStart | InitFinished

OperationBatch = tuple[Operation, ...]


def seed_batch(
    columns: Sequence[str],
    rows: Sequence[Row],
    extra_rows: dict[int, Row] | None = None,
) -> OperationBatch:
    """Build the batch that replaces a table with a fresh listing.

    Args:
        columns: Header for the listing.
        rows: Listed rows, in list order.
        extra_rows: Synthetic rows keyed by the position they occupy.

    Returns:
        ``Clear, SetColumns, Added... , InitFinished``.
    """
    ops: list[Operation] = [Clear(), SetColumns(tuple(columns))]
    ops.extend(Added(row) for row in rows)
    for index, row in sorted((extra_rows or {}).items()):
        ops.append(Added(row, index=index))
    ops.append(InitFinished())
    return tuple(ops)
