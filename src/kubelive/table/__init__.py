"""Live table model, store and navigation engine.

Usage:
    from kubelive.table import OperationQueue, TableStore, TableView

    store = TableStore()
    queue = OperationQueue()
    view = TableView(store)
"""

from kubelive.table.actions import Action, ActionList, TableCapabilities
from kubelive.table.operations import (
    Added,
    Clear,
    Deleted,
    InitFinished,
    InitStart,
    Modified,
    Operation,
    OperationBatch,
    Row,
    RowMetadata,
    RowMetadataError,
    SetColumns,
    seed_batch,
)
from kubelive.table.queue import OperationQueue
from kubelive.table.store import TableStore
from kubelive.table.view import TableView, fit_columns

__all__ = [
    "Action",
    "ActionList",
    "Added",
    "Clear",
    "Deleted",
    "InitFinished",
    "InitStart",
    "Modified",
    "Operation",
    "OperationBatch",
    "OperationQueue",
    "Row",
    "RowMetadata",
    "RowMetadataError",
    "SetColumns",
    "TableCapabilities",
    "TableStore",
    "TableView",
    "fit_columns",
    "seed_batch",
]
