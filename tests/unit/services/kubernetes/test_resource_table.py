"""Unit tests for ResourceTableController."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from typing import Any
from unittest.mock import MagicMock

import pytest

from kubelive.integrations.kubernetes.client import TableColumn, TableListing, WatchEvent
from kubelive.integrations.kubernetes.config import CommandConfig
from kubelive.integrations.kubernetes.exceptions import (
    KubernetesConnectionError,
    KubernetesNotFoundError,
)
from kubelive.integrations.kubernetes.resources import NODES, PODS
from kubelive.services.kubernetes.commands import CommandBuilder, CommandError
from kubelive.services.kubernetes.resource_table import (
    ResourceTableController,
    TableFormat,
    select_columns,
)
from kubelive.table.operations import (
    Added,
    Clear,
    InitFinished,
    InitStart,
    Row,
    RowMetadata,
    SetColumns,
)
from kubelive.table.queue import OperationQueue
from kubelive.table.store import TableStore

SHORT_COLUMNS = ("Name", "Ready", "Status", "Restarts", "Age")


@pytest.fixture
def queue() -> OperationQueue:
    return OperationQueue()


@pytest.fixture
def executor() -> MagicMock:
    return MagicMock()


@pytest.fixture
def clipboard() -> MagicMock:
    return MagicMock()


@pytest.fixture
def make_controller(
    fake_client: Any,
    queue: OperationQueue,
    status: Any,
    executor: MagicMock,
    clipboard: MagicMock,
    spawn_inline: Callable[..., None],
) -> Iterator[Callable[..., ResourceTableController]]:
    """Build controllers that run background work inline; hides them on teardown."""
    created: list[ResourceTableController] = []

    def factory(resource: Any = PODS, namespace: str | None = "default", **kwargs: Any) -> Any:
        kwargs.setdefault("commands", CommandBuilder(CommandConfig(), context="minikube"))
        kwargs.setdefault("executor", executor)
        kwargs.setdefault("clipboard", clipboard)
        kwargs.setdefault("spawn", spawn_inline)
        controller = ResourceTableController(
            fake_client, resource, namespace, queue, status, **kwargs
        )
        created.append(controller)
        return controller

    yield factory
    for controller in created:
        supervisor = controller.supervisor
        controller.hide()
        if supervisor is not None:
            supervisor.join(1)


def applied(queue: OperationQueue) -> TableStore:
    store = TableStore()
    for batch in queue.drain():
        store.apply(batch)
    return store


@pytest.mark.unit
@pytest.mark.kubernetes
class TestTableFormat:
    """Tests for format flags and column selection."""

    columns = (
        TableColumn("Name"),
        TableColumn("Status"),
        TableColumn("IP", priority=1),
    )

    def test_from_config(self) -> None:
        """Config values map to flags."""
        assert TableFormat.from_config("short") == TableFormat.SHORT
        assert TableFormat.from_config("wide") == TableFormat.WIDE
        assert TableFormat.from_config("name") == TableFormat.NAME_ONLY
        assert TableFormat.from_config("wide", live=False) == TableFormat.WIDE | TableFormat.NO_WATCH

    def test_short_keeps_priority_zero(self) -> None:
        """SHORT shows only priority 0 columns."""
        assert select_columns(self.columns, TableFormat.SHORT) == [0, 1]

    def test_wide_keeps_everything(self) -> None:
        """WIDE shows every column."""
        assert select_columns(self.columns, TableFormat.WIDE) == [0, 1, 2]

    def test_name_only(self) -> None:
        """NAME_ONLY shows only the Name column."""
        assert select_columns(self.columns, TableFormat.NAME_ONLY) == [0]

    def test_no_column_flag_selects_nothing(self) -> None:
        """Behavior-only flags select no columns."""
        assert select_columns(self.columns, TableFormat.NO_WATCH) == []


@pytest.mark.unit
@pytest.mark.kubernetes
class TestShow:
    """Tests for loading and seeding the table."""

    def test_show_seeds_table(
        self, make_controller: Callable[..., ResourceTableController], queue: OperationQueue
    ) -> None:
        """The listing arrives as one seed batch after InitStart."""
        controller = make_controller()

        controller.show()

        batches = queue.drain()
        assert batches[0] == (InitStart(),)
        seed = batches[1]
        assert seed[0] == Clear()
        assert seed[1] == SetColumns(SHORT_COLUMNS)
        assert seed[-1] == InitFinished()
        rows = [op.row for op in seed if isinstance(op, Added)]
        assert [r.id for r in rows] == ["default/pod-a", "default/pod-b"]
        assert rows[0].cells == ("pod-a", "1/1", "Running", "0", "5m")

    def test_wide_format_shows_all_columns(
        self, make_controller: Callable[..., ResourceTableController], queue: OperationQueue
    ) -> None:
        """WIDE keeps the priority 1 columns."""
        make_controller(table_format=TableFormat.WIDE).show()

        store = applied(queue)
        assert store.header == (*SHORT_COLUMNS, "IP", "Node")
        assert len(store.rows[0].cells) == 7

    def test_name_only_format(
        self, make_controller: Callable[..., ResourceTableController], queue: OperationQueue
    ) -> None:
        """NAME_ONLY shows a single column."""
        make_controller(table_format=TableFormat.NAME_ONLY).show()

        store = applied(queue)
        assert store.header == ("Name",)
        assert [r.cells for r in store.rows] == [("pod-a",), ("pod-b",)]

    def test_starts_watch_from_listing_version(
        self,
        make_controller: Callable[..., ResourceTableController],
        fake_client: Any,
        wait_for: Callable[..., bool],
    ) -> None:
        """The watch resumes where the listing ended."""
        controller = make_controller()

        controller.show()

        assert controller.supervisor is not None
        assert wait_for(lambda: len(fake_client.watch_calls) == 1)
        assert fake_client.watch_calls[0] == ("pods", "default", "100")

    def test_no_watch_format(
        self, make_controller: Callable[..., ResourceTableController], fake_client: Any
    ) -> None:
        """NO_WATCH loads once and never watches."""
        controller = make_controller(table_format=TableFormat.SHORT | TableFormat.NO_WATCH)

        controller.show()

        assert controller.supervisor is None
        assert fake_client.watch_calls == []

    def test_watch_rows_are_projected(
        self,
        make_controller: Callable[..., ResourceTableController],
        fake_client: Any,
        queue: OperationQueue,
        make_watch: Any,
        make_pod_row: Callable[..., Row],
        wait_for: Callable[..., bool],
    ) -> None:
        """Rows from the watch get the same columns as the listing."""
        fake_client.watches = [
            make_watch([WatchEvent("ADDED", (make_pod_row("pod-c"),))], block=True)
        ]
        store = TableStore()

        def has_pod_c() -> bool:
            for batch in queue.drain():
                store.apply(batch)
            return "default/pod-c" in store

        make_controller().show()

        assert wait_for(has_pod_c)
        assert [r.id for r in store.rows] == ["default/pod-a", "default/pod-b", "default/pod-c"]
        assert store.rows[2].cells == ("pod-c", "1/1", "Running", "0", "5m")

    def test_listing_failure(
        self,
        make_controller: Callable[..., ResourceTableController],
        fake_client: Any,
        queue: OperationQueue,
        status: Any,
    ) -> None:
        """A failed listing ends the reload and reports the error."""
        fake_client.list_error = KubernetesConnectionError("cluster unreachable")
        controller = make_controller()

        controller.show()

        assert queue.drain() == [(InitStart(),), (InitFinished(),)]
        assert status.errors == ["cluster unreachable"]
        assert controller.supervisor is None

    def test_extra_rows_are_pinned(
        self, make_controller: Callable[..., ResourceTableController], queue: OperationQueue
    ) -> None:
        """Extra rows land at their fixed positions."""
        controller = make_controller(table_format=TableFormat.SHORT | TableFormat.NO_WATCH)
        controller.set_extra_rows({0: Row("summary", ("2 pods",))})

        controller.show()

        store = applied(queue)
        assert [r.id for r in store.rows] == ["summary", "default/pod-a", "default/pod-b"]

    def test_cluster_scoped_ignores_namespace(
        self, make_controller: Callable[..., ResourceTableController], fake_client: Any
    ) -> None:
        """Cluster-scoped resources are listed without a namespace."""
        controller = make_controller(NODES, "default", table_format=TableFormat.NO_WATCH)

        controller.show()

        assert fake_client.list_calls == [("nodes", None)]


@pytest.mark.unit
@pytest.mark.kubernetes
class TestHide:
    """Tests for stopping live updates."""

    def test_hide_stops_watch(
        self,
        make_controller: Callable[..., ResourceTableController],
        fake_client: Any,
        wait_for: Callable[..., bool],
    ) -> None:
        """Hiding stops the running watch."""
        controller = make_controller()
        controller.show()
        supervisor = controller.supervisor
        assert supervisor is not None
        assert wait_for(lambda: len(fake_client.opened) == 1)

        controller.hide()
        supervisor.join(1)

        assert supervisor.stopped
        assert controller.supervisor is None
        assert wait_for(lambda: fake_client.opened[0].stopped)

    def test_hide_is_idempotent(
        self, make_controller: Callable[..., ResourceTableController]
    ) -> None:
        """Hide without show, and hide twice, are no-ops."""
        controller = make_controller()

        controller.hide()
        controller.show()
        controller.hide()
        controller.hide()

        assert controller.supervisor is None

    def test_hide_during_listing_starts_no_watch(
        self,
        make_controller: Callable[..., ResourceTableController],
        fake_client: Any,
        queue: OperationQueue,
    ) -> None:
        """A listing that completes after hide() does not seed or watch."""
        pending: list[tuple[Callable[..., Any], tuple[Any, ...]]] = []
        controller = make_controller(spawn=lambda target, *args: pending.append((target, args)))

        controller.show()
        controller.hide()
        target, args = pending.pop()
        target(*args)

        assert queue.drain() == [(InitStart(),), (InitFinished(),)]
        assert controller.supervisor is None
        assert fake_client.watch_calls == []

    def test_restarts_stop_after_hide(
        self,
        make_controller: Callable[..., ResourceTableController],
        fake_client: Any,
        make_watch: Any,
        wait_for: Callable[..., bool],
    ) -> None:
        """N stream ends cause N restarts; none follow hide()."""
        restarts = 4
        fake_client.watches = [make_watch() for _ in range(restarts)]
        controller = make_controller()

        controller.show()
        supervisor = controller.supervisor
        assert supervisor is not None
        assert wait_for(lambda: len(fake_client.watch_calls) == restarts + 1)
        controller.hide()
        supervisor.join(1)

        assert supervisor.restart_count == restarts
        assert len(fake_client.watch_calls) == restarts + 1

    def test_refresh_reloads(
        self,
        make_controller: Callable[..., ResourceTableController],
        fake_client: Any,
        queue: OperationQueue,
    ) -> None:
        """Refresh lists again and replaces the table contents."""
        controller = make_controller(table_format=TableFormat.SHORT | TableFormat.NO_WATCH)
        controller.show()
        first = applied(queue).rows

        controller.refresh()

        store = TableStore()
        for batch in queue.drain():
            store.apply(batch)
        assert len(fake_client.list_calls) == 2
        assert store.rows == first

    def test_superseded_listing_leaves_loading_to_refresh(
        self,
        make_controller: Callable[..., ResourceTableController],
        fake_client: Any,
        queue: OperationQueue,
    ) -> None:
        """A listing overtaken by refresh() neither seeds nor ends the reload."""
        pending: list[tuple[Callable[..., Any], tuple[Any, ...]]] = []
        controller = make_controller(
            table_format=TableFormat.SHORT | TableFormat.NO_WATCH,
            spawn=lambda target, *args: pending.append((target, args)),
        )
        controller.show()
        controller.refresh()
        (stale, stale_args), (fresh, fresh_args) = pending

        stale(*stale_args)
        store = applied(queue)

        assert store.loading
        assert len(store) == 0

        fresh(*fresh_args)
        for batch in queue.drain():
            store.apply(batch)

        assert not store.loading
        assert [r.id for r in store.rows] == ["default/pod-a", "default/pod-b"]

    def test_superseded_listing_failure_is_not_reported(
        self,
        make_controller: Callable[..., ResourceTableController],
        fake_client: Any,
        queue: OperationQueue,
        status: Any,
    ) -> None:
        """Errors of an overtaken listing do not reach the status line."""
        pending: list[tuple[Callable[..., Any], tuple[Any, ...]]] = []
        controller = make_controller(spawn=lambda target, *args: pending.append((target, args)))
        fake_client.list_error = KubernetesConnectionError("cluster unreachable")
        controller.show()
        controller.refresh()

        stale, stale_args = pending[0]
        stale(*stale_args)

        assert queue.drain() == [(InitStart(),)]
        assert status.errors == []


@pytest.mark.unit
@pytest.mark.kubernetes
class TestLiveUpdates:
    """A seeded table kept current by watch events."""

    def test_modify_then_delete(
        self,
        make_controller: Callable[..., ResourceTableController],
        fake_client: Any,
        queue: OperationQueue,
        make_watch: Any,
        wait_for: Callable[..., bool],
    ) -> None:
        """pod-b turns Running and pod-a goes away, leaving only pod-b."""

        def row(name: str, phase: str) -> Row:
            return Row(
                f"default/{name}",
                (name, phase),
                RowMetadata(name=name, namespace="default", kind="Pod"),
            )

        fake_client.listing = TableListing(
            columns=(TableColumn("Name"), TableColumn("Status")),
            rows=(row("pod-a", "Running"), row("pod-b", "Pending")),
            resource_version="100",
        )
        fake_client.watches = [
            make_watch(
                [
                    WatchEvent("MODIFIED", (row("pod-b", "Running"),)),
                    WatchEvent("DELETED", (row("pod-a", "Running"),)),
                ],
                block=True,
            )
        ]
        store = TableStore()

        def only_pod_b_left() -> bool:
            for batch in queue.drain():
                store.apply(batch)
            return [r.id for r in store.rows] == ["default/pod-b"]

        make_controller().show()

        assert wait_for(only_pod_b_left)
        assert store.rows[0].cells == ("pod-b", "Running")
        assert store.selected == 0
        assert not store.loading


@pytest.mark.unit
@pytest.mark.kubernetes
class TestCapabilities:
    """Tests for declared callbacks and actions."""

    def test_default_capabilities(
        self, make_controller: Callable[..., ResourceTableController]
    ) -> None:
        """Delete is wired to the controller; select is whatever was given."""
        on_select = MagicMock()
        controller = make_controller(on_select=on_select)

        capabilities = controller.capabilities()

        assert capabilities.on_delete == controller.delete
        assert capabilities.on_select is on_select

    def test_no_actions(self, make_controller: Callable[..., ResourceTableController]) -> None:
        """NO_ACTIONS removes delete and every hotkey."""
        controller = make_controller(table_format=TableFormat.SHORT | TableFormat.NO_ACTIONS)

        assert controller.capabilities().on_delete is None
        assert controller.actions().actions == ()

    def test_action_hotkeys(self, make_controller: Callable[..., ResourceTableController]) -> None:
        """Describe, edit, copy and delete are bound."""
        keys = [a.key for a in make_controller().actions().actions]

        assert keys == ["d", "e", "c", "delete"]

    def test_set_format(self, make_controller: Callable[..., ResourceTableController]) -> None:
        """set_format replaces the flags."""
        controller = make_controller()

        controller.set_format(TableFormat.WIDE)

        assert controller.table_format == TableFormat.WIDE


@pytest.mark.unit
@pytest.mark.kubernetes
class TestDelete:
    """Tests for the delete row action."""

    def test_confirmed_delete(
        self,
        make_controller: Callable[..., ResourceTableController],
        fake_client: Any,
        status: Any,
        make_pod_row: Callable[..., Row],
    ) -> None:
        """A confirmed delete removes the object and reports success."""
        make_controller().delete(make_pod_row("pod-a"))

        assert status.prompts == ["You are about to delete Pod default/pod-a. Are you sure?"]
        assert fake_client.deleted == [("pods", "default", "pod-a")]
        assert status.infos == ["Deleted."]

    def test_declined_delete(
        self,
        make_controller: Callable[..., ResourceTableController],
        fake_client: Any,
        status: Any,
        make_pod_row: Callable[..., Row],
    ) -> None:
        """Declining never calls the API."""
        status.answer = False

        make_controller().delete(make_pod_row("pod-a"))

        assert fake_client.deleted == []
        assert status.infos == ["Cancelled."]

    def test_cluster_scoped_prompt(
        self,
        make_controller: Callable[..., ResourceTableController],
        fake_client: Any,
        status: Any,
    ) -> None:
        """Cluster-scoped objects are named without a namespace."""
        row = Row("node-1", ("node-1",), RowMetadata(name="node-1", kind="Node"))

        make_controller(NODES, None).delete(row)

        assert status.prompts == ["You are about to delete Node node-1. Are you sure?"]
        assert fake_client.deleted == [("nodes", None, "node-1")]

    def test_delete_failure(
        self,
        make_controller: Callable[..., ResourceTableController],
        fake_client: Any,
        status: Any,
        make_pod_row: Callable[..., Row],
    ) -> None:
        """API errors go to the status line."""
        fake_client.delete_error = KubernetesNotFoundError(
            resource_type="Pod", resource_name="pod-a", namespace="default"
        )

        make_controller().delete(make_pod_row("pod-a"))

        assert status.infos == []
        assert status.errors == [str(fake_client.delete_error)]

    def test_row_without_metadata(
        self,
        make_controller: Callable[..., ResourceTableController],
        fake_client: Any,
        status: Any,
    ) -> None:
        """Synthetic rows cannot be deleted."""
        make_controller().delete(Row("summary", ("2 pods",)))

        assert status.prompts == []
        assert fake_client.deleted == []
        assert len(status.errors) == 1


@pytest.mark.unit
@pytest.mark.kubernetes
class TestOtherActions:
    """Tests for describe, edit and copy name."""

    def test_describe_pipes_into_pager(
        self,
        make_controller: Callable[..., ResourceTableController],
        executor: MagicMock,
        make_pod_row: Callable[..., Row],
    ) -> None:
        """Describe output goes through the pager."""
        make_controller().describe(make_pod_row("pod-a"))

        describe, pager = executor.pipe.call_args.args
        assert describe.argv == (
            "kubectl",
            "--context",
            "minikube",
            "--namespace",
            "default",
            "describe",
            "pods",
            "pod-a",
        )
        assert pager.argv == ("less",)

    def test_edit(
        self,
        make_controller: Callable[..., ResourceTableController],
        executor: MagicMock,
        make_pod_row: Callable[..., Row],
    ) -> None:
        """Edit runs kubectl edit on its own."""
        make_controller().edit(make_pod_row("pod-a"))

        (command,) = executor.pipe.call_args.args
        assert command.argv[-3:] == ("edit", "pods", "pod-a")

    def test_command_failure_is_reported(
        self,
        make_controller: Callable[..., ResourceTableController],
        executor: MagicMock,
        status: Any,
        make_pod_row: Callable[..., Row],
    ) -> None:
        """Failed external commands show on the status line."""
        executor.pipe.side_effect = CommandError("Cannot run 'kubectl'")

        make_controller().describe(make_pod_row("pod-a"))

        assert status.errors == ["Cannot run 'kubectl'"]

    def test_describe_without_commands(
        self,
        make_controller: Callable[..., ResourceTableController],
        status: Any,
        make_pod_row: Callable[..., Row],
    ) -> None:
        """Without a command builder describe is unavailable."""
        make_controller(commands=None).describe(make_pod_row("pod-a"))

        assert status.errors == ["Describe is not available"]

    def test_copy_name(
        self,
        make_controller: Callable[..., ResourceTableController],
        clipboard: MagicMock,
        status: Any,
        make_pod_row: Callable[..., Row],
    ) -> None:
        """The object name lands on the clipboard."""
        make_controller().copy_name(make_pod_row("pod-a"))

        clipboard.assert_called_once_with("pod-a")
        assert status.infos == ["Resource name copied! 'pod-a'"]

    def test_copy_name_failure(
        self,
        make_controller: Callable[..., ResourceTableController],
        clipboard: MagicMock,
        status: Any,
        make_pod_row: Callable[..., Row],
    ) -> None:
        """Clipboard errors are reported, not raised."""
        clipboard.side_effect = OSError("no display")

        make_controller().copy_name(make_pod_row("pod-a"))

        assert status.infos == []
        assert status.errors == ["no display"]
