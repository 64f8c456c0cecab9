"""Watch lifecycle supervision for live tables.

A ``WatchSupervisor`` keeps exactly one watch open for a visible table. Each
watch event becomes one operation batch; when the stream ends or reports an
error a new watch is opened, until ``stop()`` is called.

State machine::

    IDLE -> WATCHING -> (ERROR | CLOSED) -> RESTARTING -> WATCHING -> ...
                                    any state -> STOPPED
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from enum import Enum
from typing import TYPE_CHECKING

from kubelive.integrations.kubernetes.exceptions import KubernetesError, KubernetesGoneError
from kubelive.services.kubernetes.base import LiveTableService, StatusReporter
from kubelive.table.operations import Added, Deleted, Modified, Operation, OperationBatch, Row

if TYPE_CHECKING:
    from kubelive.integrations.kubernetes.client import ClusterClient, TableWatch, WatchEvent
    from kubelive.integrations.kubernetes.resources import Resource
    from kubelive.table.queue import OperationQueue

RowTransform = Callable[[Row], Row]


class WatchState(str, Enum):
    """Lifecycle state of a watch supervisor."""

    IDLE = "idle"
    WATCHING = "watching"
    ERROR = "error"
    CLOSED = "closed"
    RESTARTING = "restarting"
    STOPPED = "stopped"


def batch_for_event(event: WatchEvent, transform: RowTransform | None = None) -> OperationBatch:
    """Translate one watch event into an operation batch.

    ADDED rows are inserted in id order so live additions land where a
    fresh listing would put them.
    """
    rows = [transform(row) for row in event.rows] if transform else list(event.rows)
    ops: list[Operation] = []
    if event.type == "ADDED":
        ops.extend(Added(row, sort_by_id=True) for row in rows)
    elif event.type == "MODIFIED":
        ops.extend(Modified(row) for row in rows)
    elif event.type == "DELETED":
        ops.extend(Deleted(row.id) for row in rows)
    return tuple(ops)


class WatchSupervisor(LiveTableService):
    """Keeps a watch running on a background thread until stopped.

    Restarts are immediate unless ``restart_delay`` is set; the delay is
    waited on the stop event, so ``stop()`` interrupts it.

    Args:
        client: Cluster API client.
        resource: Resource type to watch.
        namespace: Namespace scope.
        queue: Queue receiving one batch per event.
        status: Status line for watch errors.
        resource_version: Version to start from, usually the listing's.
        restart_delay: Seconds to wait before re-opening a watch.
        row_transform: Applied to every row before it is queued.
    """

    _entity_name = "watch"

    def __init__(
        self,
        client: ClusterClient,
        resource: Resource,
        namespace: str | None,
        queue: OperationQueue,
        status: StatusReporter,
        *,
        resource_version: str | None = None,
        restart_delay: float = 0.0,
        row_transform: RowTransform | None = None,
    ) -> None:
        super().__init__(client, resource, namespace, queue, status)
        self._resource_version = resource_version
        self._restart_delay = restart_delay
        self._row_transform = row_transform

        self._stop_event = threading.Event()
        self._lock = threading.Lock()
        self._watch: TableWatch | None = None
        self._thread: threading.Thread | None = None
        self._state = WatchState.IDLE
        self._restart_count = 0

    # =========================================================================
    # Observability
    # =========================================================================

    @property
    def state(self) -> WatchState:
        """Current lifecycle state."""
        return self._state

    @property
    def restart_count(self) -> int:
        """Number of times a watch has been re-opened."""
        return self._restart_count

    @property
    def resource_version(self) -> str | None:
        """Last observed resource version."""
        return self._resource_version

    @property
    def stopped(self) -> bool:
        """True once ``stop()`` has been called."""
        return self._stop_event.is_set()

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def start(self) -> None:
        """Start supervising on a daemon thread.

        Raises:
            RuntimeError: If the supervisor was already started.
        """
        if self._thread is not None:
            raise RuntimeError("Watch supervisor already started")
        self._thread = threading.Thread(
            target=self.run,
            name=f"watch-{self._resource.plural}",
            daemon=True,
        )
        self._thread.start()

    def stop(self) -> None:
        """Stop supervising. Never blocks on the network.

        The current watch is asked to stop; any event it still yields is
        discarded and no restart follows. Idempotent.
        """
        with self._lock:
            if self._stop_event.is_set():
                return
            self._stop_event.set()
            watch = self._watch
        if watch is not None:
            watch.stop()
        self._state = WatchState.STOPPED
        self._log.debug("watch_stopped", restarts=self._restart_count)

    def join(self, timeout: float | None = None) -> None:
        """Wait for the supervisor thread to finish."""
        if self._thread is not None:
            self._thread.join(timeout)

    def run(self) -> None:
        """Supervision loop. ``start()`` runs this on a thread."""
        while not self._stop_event.is_set():
            self._watch_once()
            if self._stop_event.is_set():
                break

            self._state = WatchState.RESTARTING
            self._restart_count += 1
            self._log.info(
                "watch_restarting",
                restarts=self._restart_count,
                resource_version=self._resource_version,
            )
            if self._restart_delay and self._stop_event.wait(self._restart_delay):
                break

        self._state = WatchState.STOPPED

    def _watch_once(self) -> None:
        """Open one watch and pump its events until it ends."""
        self._state = WatchState.WATCHING
        try:
            watch = self._client.watch_as_table(
                self._resource, self._namespace, self._resource_version
            )
        except KubernetesError as e:
            self._fail(e, "watch_open_failed")
            return
        except Exception as e:
            self._fail(e, "watch_open_failed", exc_info=True)
            return

        with self._lock:
            self._watch = watch
        # stop() may have run before the watch was published
        if self._stop_event.is_set():
            watch.stop()
            return

        try:
            for event in watch.events():
                if self._stop_event.is_set():
                    return
                if event.type == "ERROR":
                    self._handle_error_event(event)
                    return
                self._resource_version = watch.resource_version or self._resource_version
                batch = batch_for_event(event, self._row_transform)
                if batch:
                    self._deliver(batch)
            if not self._stop_event.is_set():
                self._state = WatchState.CLOSED
                self._log.debug("watch_closed")
        except KubernetesError as e:
            self._fail(e, "watch_failed")
        except Exception as e:
            # Ends this watch like a close; the loop opens the next one
            self._fail(e, "watch_crashed", exc_info=True)
        finally:
            with self._lock:
                self._watch = None

    def _handle_error_event(self, event: WatchEvent) -> None:
        self._state = WatchState.ERROR
        error = event.error or KubernetesError("Unknown watch error")
        if isinstance(error, KubernetesGoneError):
            # Resource version expired; next watch starts from current state
            self._resource_version = None
        self._log.warning("watch_error_event", error=str(error))
        self._status.error(f"Error while watching: {error}")

    def _deliver(self, batch: OperationBatch) -> None:
        # Nothing is queued once stop() has returned
        with self._lock:
            if not self._stop_event.is_set():
                self._queue.put(batch)

    def _fail(self, error: Exception, event_name: str, exc_info: bool = False) -> None:
        if self._stop_event.is_set():
            return
        self._state = WatchState.ERROR
        self._log.warning(event_name, error=str(error), exc_info=exc_info)
        self._status.error(error)
