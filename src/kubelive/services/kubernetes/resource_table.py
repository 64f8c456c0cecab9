"""Resource table controller.

Binds one resource type and namespace to a live table: loads the full
listing, seeds the table, keeps it current through a ``WatchSupervisor``
and runs per-row actions (describe, edit, copy name, delete).

Example:
    ```python
    controller = ResourceTableController(
        client, PODS, "default", queue, status, commands=builder, executor=executor
    )
    controller.show()
    ...
    controller.hide()
    ```
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Sequence
from enum import Flag, auto
from typing import TYPE_CHECKING, Any

from kubelive.integrations.kubernetes.exceptions import KubernetesError
from kubelive.services.kubernetes.base import LiveTableService, StatusReporter
from kubelive.services.kubernetes.watch_supervisor import WatchSupervisor
from kubelive.table.actions import Action, ActionList, RowCallback, TableCapabilities
from kubelive.table.operations import (
    InitFinished,
    InitStart,
    Row,
    RowMetadata,
    RowMetadataError,
    seed_batch,
)
from kubelive.table.queue import OperationQueue

if TYPE_CHECKING:
    from kubelive.integrations.kubernetes.client import ClusterClient, TableColumn
    from kubelive.integrations.kubernetes.resources import Resource
    from kubelive.services.kubernetes.commands import CommandBuilder, CommandExecutor

Spawner = Callable[..., Any]


class TableFormat(Flag):
    """Column selection and behavior flags of a resource table."""

    WIDE = auto()
    SHORT = auto()
    NAME_ONLY = auto()
    NO_WATCH = auto()
    NO_ACTIONS = auto()

    @classmethod
    def from_config(cls, table_format: str, live: bool = True) -> TableFormat:
        """Build flags from the ``table_format``/``live`` config values."""
        flags = {"wide": cls.WIDE, "name": cls.NAME_ONLY}.get(table_format, cls.SHORT)
        if not live:
            flags |= cls.NO_WATCH
        return flags


def select_columns(columns: Sequence[TableColumn], table_format: TableFormat) -> list[int]:
    """Indices of the columns shown for a format, in server order."""
    selected = []
    for i, column in enumerate(columns):
        if TableFormat.WIDE in table_format:
            add = True
        elif TableFormat.SHORT in table_format:
            add = column.priority == 0
        elif TableFormat.NAME_ONLY in table_format:
            add = column.name == "Name"
        else:
            add = False
        if add:
            selected.append(i)
    return selected


def _spawn_thread(target: Callable[..., Any], *args: Any) -> None:
    threading.Thread(target=target, args=args, daemon=True).start()


class ResourceTableController(LiveTableService):
    """Drives a live table for one resource type in one namespace.

    Every network or external-command operation runs on its own background
    thread; results reach the table only as batches on the queue and the
    user only through the status reporter.

    Args:
        client: Cluster API client.
        resource: Resource type to show.
        namespace: Namespace scope; None or "" for all namespaces.
        queue: Queue the table drains.
        status: Status line collaborator.
        commands: Builds kubectl/pager command lines.
        executor: Runs command pipelines with the terminal released.
        clipboard: Writes text to the clipboard.
        table_format: Column selection and behavior flags.
        restart_delay: Delay before a closed watch is re-opened.
        on_select: Enter/double-click handler for rows, if any.
        spawn: Runs ``target(*args)`` in the background.
    """

    _entity_name = "resource_table"

    def __init__(
        self,
        client: ClusterClient,
        resource: Resource,
        namespace: str | None,
        queue: OperationQueue,
        status: StatusReporter,
        *,
        commands: CommandBuilder | None = None,
        executor: CommandExecutor | None = None,
        clipboard: Callable[[str], None] | None = None,
        table_format: TableFormat = TableFormat.SHORT,
        restart_delay: float = 0.0,
        on_select: RowCallback | None = None,
        spawn: Spawner | None = None,
    ) -> None:
        super().__init__(client, resource, namespace, queue, status)
        self._commands = commands
        self._executor = executor
        self._clipboard = clipboard
        self._format = table_format
        self._restart_delay = restart_delay
        self._on_select = on_select
        self._spawn = spawn or _spawn_thread

        self._extra_rows: dict[int, Row] = {}
        self._column_ids: list[int] | None = None
        self._lock = threading.Lock()
        self._shown: threading.Event | None = None
        self._supervisor: WatchSupervisor | None = None

    # =========================================================================
    # Configuration
    # =========================================================================

    @property
    def table_format(self) -> TableFormat:
        """Current format flags."""
        return self._format

    @property
    def supervisor(self) -> WatchSupervisor | None:
        """The running watch supervisor, if any."""
        return self._supervisor

    def set_extra_rows(self, rows: dict[int, Row]) -> None:
        """Synthetic rows inserted at fixed positions on every load."""
        self._extra_rows = dict(rows)

    def set_format(self, table_format: TableFormat) -> None:
        """Change format flags; takes effect on the next ``show()``."""
        self._format = table_format

    def capabilities(self) -> TableCapabilities:
        """Callbacks the table view should wire to this controller."""
        on_delete = None if TableFormat.NO_ACTIONS in self._format else self.delete
        return TableCapabilities(on_select=self._on_select, on_delete=on_delete)

    def actions(self) -> ActionList:
        """Row-action hotkeys, empty when the format has NO_ACTIONS."""
        if TableFormat.NO_ACTIONS in self._format:
            return ActionList()
        return ActionList(
            [
                Action("d", "Describe", self.describe),
                Action("e", "Edit", self.edit),
                Action("c", "Copy name", self.copy_name),
                Action("delete", "Delete", self.delete),
            ]
        )

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def show(self) -> None:
        """Load the table in the background and start live updates."""
        shown = threading.Event()
        shown.set()
        with self._lock:
            self._shown = shown
        self._log.debug("table_shown", format=str(self._format))
        self._spawn(self._provide_rows, shown)

    def hide(self) -> None:
        """Stop live updates. Idempotent and safe when nothing is running."""
        with self._lock:
            shown, self._shown = self._shown, None
            supervisor, self._supervisor = self._supervisor, None
        if shown is not None:
            shown.clear()
        if supervisor is not None:
            supervisor.stop()
            self._log.debug("table_hidden", restarts=supervisor.restart_count)

    def refresh(self) -> None:
        """Reload from scratch: ``hide()`` then ``show()``."""
        self.hide()
        self.show()

    def _provide_rows(self, shown: threading.Event) -> None:
        self._queue.put((InitStart(),))
        try:
            listing = self._client.list_as_table(self._resource, self._namespace)
        except KubernetesError as e:
            self._log.warning("listing_failed", error=str(e))
            if self._finish_loading(shown):
                self._status.error(e)
            return

        column_ids = select_columns(listing.columns, self._format)
        columns = [listing.columns[i].name for i in column_ids]
        with self._lock:
            current = self._shown is shown
            if current:
                self._column_ids = column_ids
                rows = [self._project(row) for row in listing.rows]
                self._queue.put(seed_batch(columns, rows, self._extra_rows))
        if not current:
            self._finish_loading(shown)
            return
        self._log.debug("table_seeded", rows=len(rows), columns=len(columns))

        if TableFormat.NO_WATCH in self._format:
            return

        supervisor = WatchSupervisor(
            self._client,
            self._resource,
            self._namespace,
            self._queue,
            self._status,
            resource_version=listing.resource_version,
            restart_delay=self._restart_delay,
            row_transform=self._project,
        )
        with self._lock:
            if self._shown is not shown:
                return
            self._supervisor = supervisor
        supervisor.start()

    def _finish_loading(self, shown: threading.Event) -> bool:
        """Queue ``InitFinished`` unless a newer ``show()`` owns the loading state.

        Returns:
            True if ``shown`` is still the current load.
        """
        with self._lock:
            if self._shown is not None and self._shown is not shown:
                self._log.debug("listing_superseded")
                return False
            self._queue.put((InitFinished(),))
            return self._shown is shown

    def _project(self, row: Row) -> Row:
        """Keep only the selected columns of a full-width row."""
        column_ids = self._column_ids
        if column_ids is None:
            return row
        cells = tuple(row.cells[i] if i < len(row.cells) else "" for i in column_ids)
        return Row(id=row.id, cells=cells, metadata=row.metadata)

    # =========================================================================
    # Row Actions
    # =========================================================================

    def describe(self, row: Row) -> None:
        """Show ``kubectl describe`` output for a row in the pager."""
        self._spawn(self._describe, row)

    def edit(self, row: Row) -> None:
        """Open the row's object in ``kubectl edit``."""
        self._spawn(self._edit, row)

    def copy_name(self, row: Row) -> None:
        """Copy the row's object name to the clipboard."""
        self._spawn(self._copy_name, row)

    def delete(self, row: Row) -> None:
        """Delete the row's object after confirmation."""
        self._spawn(self._delete, row)

    def _metadata(self, row: Row) -> RowMetadata | None:
        try:
            return row.require_metadata()
        except RowMetadataError as e:
            self._status.error(e)
            return None

    def _describe(self, row: Row) -> None:
        metadata = self._metadata(row)
        if metadata is None:
            return
        if self._commands is None or self._executor is None:
            self._status.error("Describe is not available")
            return
        try:
            self._executor.pipe(
                self._commands.describe(metadata.namespace, self._resource, metadata.name),
                self._commands.pager(),
            )
        except KubernetesError as e:
            self._status.error(e)

    def _edit(self, row: Row) -> None:
        metadata = self._metadata(row)
        if metadata is None:
            return
        if self._commands is None or self._executor is None:
            self._status.error("Edit is not available")
            return
        try:
            self._executor.pipe(
                self._commands.edit(metadata.namespace, self._resource, metadata.name)
            )
        except KubernetesError as e:
            self._status.error(e)

    def _copy_name(self, row: Row) -> None:
        metadata = self._metadata(row)
        if metadata is None:
            return
        if self._clipboard is None:
            self._status.error("Clipboard is not available")
            return
        try:
            self._clipboard(metadata.name)
        except Exception as e:
            self._log.warning("clipboard_failed", error=str(e))
            self._status.error(e)
            return
        self._status.info(f"Resource name copied! '{metadata.name}'")

    def _delete(self, row: Row) -> None:
        metadata = self._metadata(row)
        if metadata is None:
            return
        if self._resource.namespaced and metadata.namespace:
            display_name = f"{self._resource.kind} {metadata.namespace}/{metadata.name}"
        else:
            display_name = f"{self._resource.kind} {metadata.name}"

        if not self._status.confirm(f"You are about to delete {display_name}. Are you sure?"):
            self._status.info("Cancelled.")
            return
        try:
            self._client.delete(self._resource, metadata.namespace or None, metadata.name)
        except KubernetesError as e:
            self._status.error(e)
            return
        self._status.info("Deleted.")
