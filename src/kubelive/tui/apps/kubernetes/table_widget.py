"""Textual widget hosting a live table.

``ResourceTable`` owns a ``TableStore`` and ``TableView`` and is the single
consumer of its ``OperationQueue``. Producer threads put batches on the
queue; the queue's waker posts ``BatchesReady`` (thread-safe), and the
handler drains every pending batch, applies them in order and refreshes
once.
"""

from __future__ import annotations

import threading
from typing import Any

from rich.text import Text
from textual import events
from textual.message import Message

from kubelive.table.actions import ActionList, TableCapabilities
from kubelive.table.queue import OperationQueue
from kubelive.table.store import TableStore
from kubelive.table.view import ColumnResizer, TableView
from kubelive.tui.base import BaseWidget

LOADING_LABEL = "loading…"


class ResourceTable(BaseWidget, can_focus=True):
    """Keyboard and mouse driven live table.

    Navigation, the action menu and row callbacks are handled by the
    underlying ``TableView``; keys it does not consume bubble up to the
    screen bindings.
    """

    DEFAULT_CSS = """
    ResourceTable {
        height: 1fr;
        border: round $primary-darken-2;
        border-title-style: bold;
    }

    ResourceTable:focus {
        border: round $primary;
    }
    """

    class BatchesReady(Message):
        """Operation batches are waiting in the queue."""

    def __init__(
        self,
        queue: OperationQueue | None = None,
        capabilities: TableCapabilities | None = None,
        actions: ActionList | None = None,
        column_resizer: ColumnResizer | None = None,
        **kwargs: Any,
    ) -> None:
        """Initialize the table.

        Args:
            queue: Queue to consume; a new one is created when omitted.
            capabilities: Row callbacks the table supports.
            actions: Row-action hotkeys and menu entries.
            column_resizer: Custom column sizing.
            **kwargs: Additional widget arguments.
        """
        super().__init__(**kwargs)
        self._wake_pending = threading.Event()
        self._queue = queue or OperationQueue()
        self._queue.set_waker(self._wake)
        self._column_resizer = column_resizer
        self._store = TableStore()
        self._view = TableView(self._store, capabilities, actions, column_resizer)

    @property
    def store(self) -> TableStore:
        """The table being displayed."""
        return self._store

    @property
    def view(self) -> TableView:
        """Layout and navigation engine."""
        return self._view

    @property
    def queue(self) -> OperationQueue:
        """Queue this widget consumes."""
        return self._queue

    def configure(
        self,
        capabilities: TableCapabilities | None = None,
        actions: ActionList | None = None,
    ) -> None:
        """Set the row callbacks and row actions of the table."""
        self._view.capabilities = capabilities or TableCapabilities()
        self._view.actions = actions or ActionList()

    def reset(self) -> OperationQueue:
        """Drop the current table and start consuming a fresh queue.

        Batches still arriving on the previous queue are never applied.
        Row callbacks and actions are cleared; see ``configure``.

        Returns:
            The new queue.
        """
        self._queue.set_waker(None)
        self._queue = OperationQueue(on_ready=self._wake)
        height = self._view.viewport_height + 1
        self._store = TableStore()
        self._view = TableView(self._store, column_resizer=self._column_resizer)
        self._view.resize(height)
        self._update_subtitle()
        self.refresh()
        return self._queue

    # =========================================================================
    # Queue consumption
    # =========================================================================

    def _wake(self) -> None:
        # Called from producer threads
        if not self._wake_pending.is_set():
            self._wake_pending.set()
            if not self.post_message(self.BatchesReady()):
                self._wake_pending.clear()

    def on_resource_table_batches_ready(self, message: ResourceTable.BatchesReady) -> None:
        """Apply everything queued so far."""
        message.stop()
        self._wake_pending.clear()
        self.drain()

    def drain(self) -> int:
        """Apply all pending batches in order and redraw once.

        Returns:
            Number of batches applied.
        """
        batches = self._queue.drain()
        if not batches:
            return 0
        for batch in batches:
            self._store.apply(batch)
        self._view.ensure_visible()
        self._update_subtitle()
        self.refresh()
        return len(batches)

    def _update_subtitle(self) -> None:
        if self._store.loading:
            self.border_subtitle = LOADING_LABEL
        else:
            self.border_subtitle = f"{len(self._store)} rows"

    # =========================================================================
    # Rendering
    # =========================================================================

    def render(self) -> Text:
        """Draw the visible part of the table."""
        lines = self._view.render_lines(max(self.size.width, 1))
        return Text("\n", no_wrap=True).join(lines)

    def on_resize(self, event: events.Resize) -> None:
        """Track the viewport height."""
        self._view.resize(self.size.height)

    # =========================================================================
    # Input
    # =========================================================================

    def on_key(self, event: events.Key) -> None:
        """Give keys to the table view; unhandled keys bubble to bindings."""
        if self._view.handle_key(event.key):
            event.stop()
            event.prevent_default()
            self.refresh()

    def on_click(self, event: events.Click) -> None:
        """Select the clicked row; double click activates it."""
        offset = event.get_content_offset(self)
        if offset is None:
            return
        event.stop()
        self.focus()
        self._view.click(offset.y, double=event.chain >= 2)
        self.refresh()

    def on_mouse_scroll_down(self, event: events.MouseScrollDown) -> None:
        """Scroll wheel moves the cursor."""
        event.stop()
        if self._view.cursor_down():
            self.refresh()

    def on_mouse_scroll_up(self, event: events.MouseScrollUp) -> None:
        """Scroll wheel moves the cursor."""
        event.stop()
        if self._view.cursor_up():
            self.refresh()
