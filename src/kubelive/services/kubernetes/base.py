"""Shared pieces of the live table services.

Provides the status-line collaborator protocol and the base class holding
the client, resource type, namespace and output queue of a table.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

import structlog

if TYPE_CHECKING:
    from kubelive.integrations.kubernetes.client import ClusterClient
    from kubelive.integrations.kubernetes.resources import Resource
    from kubelive.table.queue import OperationQueue

logger = structlog.get_logger()


class StatusReporter(Protocol):
    """Status line of the terminal UI.

    All methods may be called from background threads.
    """

    def info(self, message: str) -> None:
        """Show an informational message."""
        ...

    def error(self, error: Exception | str) -> None:
        """Show an error."""
        ...

    def confirm(self, prompt: str) -> bool:
        """Ask a yes/no question and block until it is answered.

        Must not be called on the UI thread.
        """
        ...


class LiveTableService:
    """Base class for services that feed a live table.

    Provides shared concerns:
    - Client, resource type and namespace of the table
    - The operation queue batches are written to
    - Structured logging with entity binding

    Subclasses set ``_entity_name`` for structured log context.
    """

    _entity_name: str = ""

    def __init__(
        self,
        client: ClusterClient,
        resource: Resource,
        namespace: str | None,
        queue: OperationQueue,
        status: StatusReporter,
    ) -> None:
        """Initialize the service.

        Args:
            client: Cluster API client.
            resource: Resource type shown in the table.
            namespace: Namespace scope; None or "" for all namespaces.
            queue: Queue the table's batches are written to.
            status: Status line for errors and messages.
        """
        self._client = client
        self._resource = resource
        self._namespace = namespace if resource.namespaced else None
        self._queue = queue
        self._status = status
        self._log = logger.bind(
            entity=self._entity_name,
            resource=resource.plural,
            namespace=self._namespace,
        )

    @property
    def resource(self) -> Resource:
        """Resource type shown in the table."""
        return self._resource

    @property
    def namespace(self) -> str | None:
        """Namespace scope, None for cluster-scoped or all-namespace tables."""
        return self._namespace

    @property
    def queue(self) -> OperationQueue:
        """Queue the table's batches are written to."""
        return self._queue
