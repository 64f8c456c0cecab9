"""Hand-off of operation batches from producer threads to the UI thread."""

from __future__ import annotations

import queue
from collections.abc import Callable

from kubelive.table.operations import OperationBatch


class OperationQueue:
    """Multi-producer, single-consumer FIFO of operation batches.

    Producers call ``put`` from any thread; the consumer drains with
    ``drain`` on the thread that owns the ``TableStore``. Batches come out
    whole and in the order they were put.

    Args:
        on_ready: Called after every ``put`` (from the producer's thread) to
            wake the consumer. It must be thread-safe.
    """

    def __init__(self, on_ready: Callable[[], None] | None = None) -> None:
        self._queue: queue.SimpleQueue[OperationBatch] = queue.SimpleQueue()
        self._on_ready = on_ready

    def set_waker(self, on_ready: Callable[[], None] | None) -> None:
        """Replace the consumer wake-up callback."""
        self._on_ready = on_ready

    def put(self, batch: OperationBatch) -> None:
        """Enqueue a batch. Empty batches are dropped."""
        if not batch:
            return
        self._queue.put(tuple(batch))
        if self._on_ready is not None:
            self._on_ready()

    def drain(self) -> list[OperationBatch]:
        """Take every batch queued so far, oldest first."""
        batches: list[OperationBatch] = []
        while True:
            try:
                batches.append(self._queue.get_nowait())
            except queue.Empty:
                return batches

    def empty(self) -> bool:
        """True if no batch is waiting."""
        return self._queue.empty()
