"""Shared pytest fixtures for kubelive tests."""

from __future__ import annotations

import os
import threading
import time
from collections.abc import Awaitable, Callable, Iterator
from typing import Any

import pytest
import typer
from textual.pilot import Pilot
from typer.testing import CliRunner

from kubelive.cli.main import app
from kubelive.integrations.kubernetes.client import TableColumn, TableListing, WatchEvent
from kubelive.integrations.kubernetes.config import KubeliveConfig
from kubelive.integrations.kubernetes.resources import Resource
from kubelive.table.operations import Row, RowMetadata

POD_COLUMNS = (
    TableColumn("Name", priority=0),
    TableColumn("Ready", priority=0),
    TableColumn("Status", priority=0),
    TableColumn("Restarts", type="integer", priority=0),
    TableColumn("Age", priority=0),
    TableColumn("IP", priority=1),
    TableColumn("Node", priority=1),
)


def pod_row(name: str, namespace: str = "default", status: str = "Running") -> Row:
    """Full-width pod row as the API server would render it."""
    return Row(
        id=f"{namespace}/{name}" if namespace else name,
        cells=(name, "1/1", status, "0", "5m", "10.0.0.1", "node-1"),
        metadata=RowMetadata(name=name, namespace=namespace, kind="Pod"),
    )


class FakeWatch:
    """Scripted table watch.

    Yields the given events (raising any exception found among them), then
    ends, or with ``block=True`` waits until ``stop()`` is called.
    """

    def __init__(
        self,
        events: list[WatchEvent | Exception] | None = None,
        *,
        block: bool = False,
        resource_version: str | None = None,
    ) -> None:
        self._events = list(events or [])
        self._block = block
        self._stopped = threading.Event()
        self.resource_version = resource_version

    @property
    def stopped(self) -> bool:
        return self._stopped.is_set()

    def stop(self) -> None:
        self._stopped.set()

    def events(self) -> Iterator[WatchEvent]:
        for event in self._events:
            if self._stopped.is_set():
                return
            if isinstance(event, Exception):
                raise event
            yield event
        if self._block:
            self._stopped.wait()


class FakeClusterClient:
    """In-memory stand-in for ClusterClient.

    ``watches`` is consumed in order by ``watch_as_table``; an Exception
    entry is raised instead of returned. Once exhausted, every new watch
    blocks until stopped.
    """

    def __init__(self, config: KubeliveConfig | None = None) -> None:
        self.config = config or KubeliveConfig()
        self.default_namespace = self.config.namespace
        self.listing = TableListing(
            columns=POD_COLUMNS,
            rows=(pod_row("pod-a"), pod_row("pod-b")),
            resource_version="100",
        )
        self.list_error: Exception | None = None
        self.list_calls: list[tuple[str, str | None]] = []
        self.watches: list[FakeWatch | Exception] = []
        self.watch_calls: list[tuple[str, str | None, str | None]] = []
        self.opened: list[FakeWatch] = []
        self.delete_error: Exception | None = None
        self.deleted: list[tuple[str, str | None, str]] = []
        self.namespaces = ["default", "kube-system"]
        self.contexts = ["minikube", "production"]
        self.context = "minikube"
        self._lock = threading.Lock()

    def list_as_table(self, resource: Resource, namespace: str | None) -> TableListing:
        self.list_calls.append((resource.plural, namespace))
        if self.list_error is not None:
            raise self.list_error
        return self.listing

    def watch_as_table(
        self,
        resource: Resource,
        namespace: str | None,
        resource_version: str | None = None,
    ) -> FakeWatch:
        with self._lock:
            self.watch_calls.append((resource.plural, namespace, resource_version))
            item = self.watches.pop(0) if self.watches else FakeWatch(block=True)
            if isinstance(item, Exception):
                raise item
            self.opened.append(item)
            return item

    def delete(self, resource: Resource, namespace: str | None, name: str) -> None:
        if self.delete_error is not None:
            raise self.delete_error
        self.deleted.append((resource.plural, namespace, name))

    def list_namespaces(self) -> list[str]:
        return list(self.namespaces)

    def list_contexts(self) -> list[dict[str, Any]]:
        return [{"name": name, "active": name == self.context} for name in self.contexts]

    def get_current_context(self) -> str:
        return self.context

    def switch_context(self, context_name: str) -> None:
        self.context = context_name


class RecordingStatus:
    """StatusReporter that records messages and answers confirmations."""

    def __init__(self, answer: bool = True) -> None:
        self.answer = answer
        self.infos: list[str] = []
        self.errors: list[str] = []
        self.prompts: list[str] = []

    def info(self, message: str) -> None:
        self.infos.append(message)

    def error(self, error: Exception | str) -> None:
        self.errors.append(str(error))

    def confirm(self, prompt: str) -> bool:
        self.prompts.append(prompt)
        return self.answer


def run_inline(target: Callable[..., Any], *args: Any) -> None:
    """Spawner that runs background work on the calling thread."""
    target(*args)


def wait_until(predicate: Callable[[], bool], timeout: float = 2.0) -> bool:
    """Poll ``predicate`` until it holds or ``timeout`` expires."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.005)
    return predicate()


async def settle_ui(pilot: Pilot[Any], predicate: Callable[[], bool], timeout: float = 2.0) -> bool:
    """Let the app process messages until ``predicate`` holds or ``timeout`` expires."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        await pilot.pause(0.01)
    return predicate()


@pytest.fixture
def cli_runner() -> CliRunner:
    """Create a Typer CLI test runner."""
    return CliRunner()


@pytest.fixture
def cli_app() -> typer.Typer:
    """Return the CLI app for testing."""
    return app


@pytest.fixture(autouse=True)
def reset_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Reset environment variables for each test."""
    for key in list(os.environ.keys()):
        if key.startswith("KUBELIVE_"):
            monkeypatch.delenv(key, raising=False)
    for key in ("KUBECONFIG", "PAGER", "EDITOR"):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def fake_client() -> FakeClusterClient:
    """Cluster client listing pod-a and pod-b in "default"."""
    return FakeClusterClient()


@pytest.fixture
def status() -> RecordingStatus:
    """Status reporter that confirms every prompt."""
    return RecordingStatus()


@pytest.fixture
def make_watch() -> type[FakeWatch]:
    """Factory for scripted watches."""
    return FakeWatch


@pytest.fixture
def make_pod_row() -> Callable[..., Row]:
    """Factory for full-width pod rows."""
    return pod_row


@pytest.fixture
def spawn_inline() -> Callable[..., None]:
    """Spawner running background work synchronously."""
    return run_inline


@pytest.fixture
def wait_for() -> Callable[..., bool]:
    """Poll a predicate with a timeout."""
    return wait_until


@pytest.fixture
def settle() -> Callable[..., Awaitable[bool]]:
    """Await UI processing until a predicate holds."""
    return settle_ui
