"""Kubernetes API client wrapper.

Talks to the API server through a per-client ``ApiClient`` (no process-global
configuration) and asks the server to render listings and watch events as
``meta.k8s.io/v1`` Tables, so any resource type can be shown with the same
columns kubectl would print.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import structlog
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)
from urllib3.exceptions import HTTPError as TransportError

from kubelive.integrations.kubernetes.exceptions import (
    KubernetesAuthError,
    KubernetesConflictError,
    KubernetesConnectionError,
    KubernetesError,
    KubernetesGoneError,
    KubernetesNotFoundError,
    KubernetesTimeoutError,
    KubernetesValidationError,
)
from kubelive.integrations.kubernetes.resources import NAMESPACES, Resource
from kubelive.table.operations import Row, RowMetadata

if TYPE_CHECKING:
    from kubernetes.client import ApiClient
    from kubernetes.watch import Watch

    from kubelive.integrations.kubernetes.config import KubeliveConfig

logger = structlog.get_logger()

TABLE_ACCEPT = "application/json;as=Table;v=1;g=meta.k8s.io,application/json"
TABLE_QUERY = ("includeObject", "Metadata")
AUTH_SETTINGS = ["BearerToken"]

WATCH_EVENT_TYPES = ("ADDED", "MODIFIED", "DELETED")


@dataclass(frozen=True)
class TableColumn:
    """A column definition of a server-side Table."""

    name: str
    type: str = "string"
    priority: int = 0
    description: str = ""


@dataclass(frozen=True)
class TableListing:
    """Result of a full listing rendered as a Table.

    Attributes:
        columns: Column definitions in server order.
        rows: Rows with one cell per column definition.
        resource_version: Collection version to start a watch from.
    """

    columns: tuple[TableColumn, ...]
    rows: tuple[Row, ...]
    resource_version: str | None = None


@dataclass(frozen=True)
class WatchEvent:
    """One event of a table watch.

    ``type`` is ADDED, MODIFIED, DELETED or ERROR. Error events carry the
    translated error instead of rows.
    """

    type: str
    rows: tuple[Row, ...] = ()
    error: KubernetesError | None = None


def row_from_table_row(resource: Resource, table_row: dict[str, Any]) -> Row:
    """Convert one Table row (with ``includeObject=Metadata``) to a Row.

    Args:
        resource: Resource type the row belongs to.
        table_row: Raw row dict with ``cells`` and ``object``.

    Returns:
        Row keyed ``namespace/name``, or the bare name for cluster-scoped
        objects.
    """
    cells = tuple("" if cell is None else str(cell) for cell in table_row.get("cells", []))
    metadata = (table_row.get("object") or {}).get("metadata") or {}
    name = metadata.get("name", "")
    namespace = metadata.get("namespace", "") or ""
    if not name:
        return Row(id=cells[0] if cells else "", cells=cells)

    row_id = f"{namespace}/{name}" if namespace else name
    return Row(
        id=row_id,
        cells=cells,
        metadata=RowMetadata(name=name, namespace=namespace, kind=resource.kind),
    )


def _rows_resource_version(table: dict[str, Any]) -> str | None:
    version = None
    for table_row in table.get("rows") or []:
        metadata = (table_row.get("object") or {}).get("metadata") or {}
        version = metadata.get("resourceVersion") or version
    return version


class TableWatch:
    """An open watch whose events are rendered as Table rows.

    Iterate ``events()`` on a background thread. ``stop()`` may be called
    from any thread; the iterator ends at the next received line and the
    connection is released.
    """

    def __init__(
        self,
        client: ClusterClient,
        resource: Resource,
        namespace: str | None,
        resource_version: str | None,
        timeout_seconds: int,
    ) -> None:
        from kubernetes import watch

        self._client = client
        self._resource = resource
        self._namespace = namespace
        self._timeout_seconds = timeout_seconds
        self._watcher: Watch = watch.Watch()
        self.resource_version = resource_version

    def stop(self) -> None:
        """Ask the underlying stream to stop."""
        self._watcher.stop()

    def events(self) -> Iterator[WatchEvent]:
        """Yield events until the server closes the stream or stop() is called.

        API error events end the stream with a single ERROR event. Lines that
        do not decode to an event are skipped.

        Raises:
            KubernetesConnectionError: If the connection fails mid-stream.
        """
        from kubernetes.client import ApiException

        kwargs: dict[str, Any] = {"timeout_seconds": self._timeout_seconds}
        if self.resource_version:
            kwargs["resource_version"] = self.resource_version

        try:
            for raw in self._watcher.stream(
                self._client._watch_request,
                self._resource.api_path(self._namespace),
                **kwargs,
            ):
                # Blank keep-alive lines and undecodable JSON arrive as None
                if not isinstance(raw, dict):
                    continue
                event_type = raw.get("type")
                table = raw.get("raw_object") or raw.get("object") or {}
                if event_type not in WATCH_EVENT_TYPES:
                    continue
                self.resource_version = _rows_resource_version(table) or self.resource_version
                rows = tuple(
                    row_from_table_row(self._resource, table_row)
                    for table_row in table.get("rows") or []
                )
                yield WatchEvent(type=event_type, rows=rows)
        except ApiException as e:
            yield WatchEvent(
                type="ERROR",
                error=ClusterClient.translate_api_exception(
                    e, resource_type=self._resource.kind, namespace=self._namespace
                ),
            )
        except TransportError as e:
            raise KubernetesConnectionError(
                message=f"Watch of {self._resource.plural} interrupted",
                original_error=e,
            ) from e


class ClusterClient:
    """Single-context Kubernetes API client.

    Wraps the official kubernetes Python client with:
    - Explicit configuration (kubeconfig path, context) per instance
    - Generic list/watch/delete by resource descriptor and namespace
    - Automatic retry with tenacity for transient errors
    - Consistent error translation to custom exceptions

    Example:
        ```python
        from kubelive.integrations.kubernetes import ClusterClient, KubeliveConfig
        from kubelive.integrations.kubernetes.resources import PODS

        with ClusterClient(KubeliveConfig.from_env()) as client:
            listing = client.list_as_table(PODS, "default")
            print(f"{len(listing.rows)} pods")
        ```
    """

    def __init__(self, config: KubeliveConfig) -> None:
        """Initialize the client and load credentials.

        Args:
            config: Complete kubelive configuration.

        Raises:
            KubernetesConnectionError: If neither kubeconfig nor in-cluster
                configuration can be loaded.
        """
        self._config = config
        self._retries = config.retry_attempts
        self._current_context: str | None = None
        self._default_namespace = config.namespace
        self._api_client: ApiClient | None = None

        self._load_config(config.context)

        logger.info(
            "cluster_client_initialized",
            context=self._current_context,
            default_namespace=self._default_namespace,
        )

    def _load_config(self, context: str | None) -> None:
        """Build a fresh ApiClient from kubeconfig or in-cluster credentials."""
        from kubernetes import client, config
        from kubernetes.config import ConfigException

        try:
            api_client = config.new_client_from_config(
                config_file=self._config.kubeconfig,
                context=context,
            )
            self._current_context = context or self._active_context_name()
            logger.debug(
                "loaded_kubeconfig",
                context=self._current_context,
                kubeconfig=self._config.kubeconfig,
            )
        except ConfigException as e:
            try:
                configuration = client.Configuration()
                config.load_incluster_config(client_configuration=configuration)
                api_client = client.ApiClient(configuration)
                self._current_context = "in-cluster"
                logger.debug("loaded_incluster_config")
            except ConfigException as incluster_error:
                raise KubernetesConnectionError(
                    message="Cannot load Kubernetes configuration. "
                    "Ensure kubeconfig exists or running inside a cluster.",
                    original_error=e,
                ) from incluster_error

        if self._api_client is not None:
            self._api_client.close()
        self._api_client = api_client

    def _active_context_name(self) -> str | None:
        from kubernetes import config
        from kubernetes.config import ConfigException

        try:
            _, active = config.list_kube_config_contexts(config_file=self._config.kubeconfig)
        except ConfigException:
            return None
        return active.get("name") if active else None

    @property
    def api_client(self) -> ApiClient:
        """The underlying ApiClient for the current context."""
        if self._api_client is None:
            raise KubernetesConnectionError(message="Client is closed")
        return self._api_client

    # =========================================================================
    # Context Management
    # =========================================================================

    def switch_context(self, context_name: str) -> None:
        """Switch to a different kubeconfig context.

        Args:
            context_name: The kubeconfig context name.

        Raises:
            KubernetesConnectionError: If the context cannot be loaded.
        """
        from kubernetes import config
        from kubernetes.config import ConfigException

        try:
            api_client = config.new_client_from_config(
                config_file=self._config.kubeconfig,
                context=context_name,
            )
        except ConfigException as e:
            raise KubernetesConnectionError(
                message=f"Failed to switch to context '{context_name}'",
                original_error=e,
            ) from e

        if self._api_client is not None:
            self._api_client.close()
        self._api_client = api_client
        self._current_context = context_name
        logger.info("switched_context", context=context_name)

    def get_current_context(self) -> str:
        """Get the current active context name.

        Returns:
            The current context name, or 'in-cluster' if running inside a pod.
        """
        return self._current_context or "unknown"

    def list_contexts(self) -> list[dict[str, Any]]:
        """List all available kubeconfig contexts.

        Returns:
            List of context dictionaries with 'name', 'cluster', 'namespace'
            and 'active' keys.
        """
        from kubernetes import config
        from kubernetes.config import ConfigException

        try:
            contexts, active = config.list_kube_config_contexts(
                config_file=self._config.kubeconfig
            )
        except ConfigException:
            return []

        result = []
        for ctx in contexts:
            ctx_info = ctx.get("context", {})
            result.append(
                {
                    "name": ctx.get("name", ""),
                    "cluster": ctx_info.get("cluster", ""),
                    "namespace": ctx_info.get("namespace", "default"),
                    "active": ctx.get("name") == active.get("name") if active else False,
                }
            )
        return result

    # =========================================================================
    # Table Operations
    # =========================================================================

    def list_as_table(self, resource: Resource, namespace: str | None) -> TableListing:
        """List a resource collection rendered as a Table.

        Args:
            resource: Resource type to list.
            namespace: Namespace to list in; None or "" lists all namespaces.
                Ignored for cluster-scoped resources.

        Returns:
            Column definitions, rows and the collection resource version.

        Raises:
            KubernetesError: If the request fails after retries.
        """
        path = resource.api_path(namespace)

        @self.make_retry_decorator()
        def _list() -> dict[str, Any]:
            try:
                return self.api_client.call_api(
                    path,
                    "GET",
                    query_params=[TABLE_QUERY],
                    header_params={"Accept": TABLE_ACCEPT},
                    response_type="object",
                    auth_settings=AUTH_SETTINGS,
                    _return_http_data_only=True,
                    _request_timeout=self._config.request_timeout,
                )
            except Exception as e:
                raise self.translate_api_exception(
                    e, resource_type=resource.kind, namespace=namespace
                ) from e

        table = _list() or {}
        columns = tuple(
            TableColumn(
                name=col.get("name", ""),
                type=col.get("type", "string"),
                priority=int(col.get("priority", 0) or 0),
                description=col.get("description", ""),
            )
            for col in table.get("columnDefinitions") or []
        )
        rows = tuple(row_from_table_row(resource, r) for r in table.get("rows") or [])
        resource_version = (table.get("metadata") or {}).get("resourceVersion")

        logger.debug(
            "listed_as_table",
            resource=resource.plural,
            namespace=namespace,
            rows=len(rows),
            resource_version=resource_version,
        )
        return TableListing(columns=columns, rows=rows, resource_version=resource_version)

    def watch_as_table(
        self,
        resource: Resource,
        namespace: str | None,
        resource_version: str | None = None,
    ) -> TableWatch:
        """Prepare a watch of a resource collection rendered as Table rows.

        The HTTP request is issued when ``events()`` is first iterated.

        Args:
            resource: Resource type to watch.
            namespace: Namespace to watch; None or "" watches all namespaces.
            resource_version: Version to resume from, or None to start with
                the current state (every object arrives as ADDED).
        """
        return TableWatch(
            self,
            resource,
            namespace,
            resource_version,
            timeout_seconds=self._config.watch.timeout_seconds,
        )

    def _watch_request(
        self,
        path: str,
        resource_version: str | None = None,
        timeout_seconds: int | None = None,
        watch: bool = True,
        _preload_content: bool = False,
    ) -> Any:
        """Open the raw streaming watch response for ``path``."""
        query: list[tuple[str, Any]] = [TABLE_QUERY, ("watch", str(watch).lower())]
        if resource_version:
            query.append(("resourceVersion", resource_version))
        if timeout_seconds:
            query.append(("timeoutSeconds", timeout_seconds))
        return self.api_client.call_api(
            path,
            "GET",
            query_params=query,
            header_params={"Accept": TABLE_ACCEPT},
            auth_settings=AUTH_SETTINGS,
            _return_http_data_only=True,
            _preload_content=_preload_content,
            # connect timeout only; reads block until the server closes the watch
            _request_timeout=(self._config.request_timeout, None),
        )

    def delete(self, resource: Resource, namespace: str | None, name: str) -> None:
        """Delete a single object with background propagation.

        Args:
            resource: Resource type of the object.
            namespace: Object namespace (ignored for cluster-scoped types).
            name: Object name.

        Raises:
            KubernetesError: If the request fails after retries.
        """
        path = resource.api_path(namespace, name)

        @self.make_retry_decorator()
        def _delete() -> None:
            try:
                self.api_client.call_api(
                    path,
                    "DELETE",
                    header_params={
                        "Accept": "application/json",
                        "Content-Type": "application/json",
                    },
                    body={"propagationPolicy": "Background"},
                    response_type="object",
                    auth_settings=AUTH_SETTINGS,
                    _return_http_data_only=True,
                    _request_timeout=self._config.request_timeout,
                )
            except Exception as e:
                raise self.translate_api_exception(
                    e,
                    resource_type=resource.kind,
                    resource_name=name,
                    namespace=namespace,
                ) from e

        _delete()
        logger.info("deleted_resource", resource=resource.plural, namespace=namespace, name=name)

    def list_namespaces(self) -> list[str]:
        """Names of all namespaces, in server order."""
        listing = self.list_as_table(NAMESPACES, None)
        return [row.metadata.name if row.metadata else row.id for row in listing.rows]

    # =========================================================================
    # Error Translation
    # =========================================================================

    @staticmethod
    def translate_api_exception(
        e: Exception,
        resource_type: str | None = None,
        resource_name: str | None = None,
        namespace: str | None = None,
    ) -> KubernetesError:
        """Translate a kubernetes ApiException or transport error.

        Args:
            e: The original exception.
            resource_type: Type of resource being operated on.
            resource_name: Name of the resource.
            namespace: Namespace of the resource.

        Returns:
            An appropriate KubernetesError subclass.
        """
        from kubernetes.client import ApiException
        from urllib3.exceptions import TimeoutError as TransportTimeoutError

        if isinstance(e, KubernetesError):
            return e

        if isinstance(e, TransportTimeoutError):
            return KubernetesTimeoutError(message=str(e) or "Request timed out")

        if isinstance(e, (TransportError, ConnectionError)):
            return KubernetesConnectionError(
                message=f"Cannot reach the Kubernetes API server: {e}",
                original_error=e,
            )

        if not isinstance(e, ApiException):
            return KubernetesError(
                message=str(e),
                resource_type=resource_type,
                resource_name=resource_name,
                namespace=namespace,
            )

        status = e.status

        if status in (401, 403):
            return KubernetesAuthError(
                message=e.reason or "Authentication/authorization failed",
                status_code=status,
                reason=e.reason,
            )

        if status == 404:
            return KubernetesNotFoundError(
                resource_type=resource_type,
                resource_name=resource_name,
                namespace=namespace,
            )

        if status == 409:
            return KubernetesConflictError(
                resource_type=resource_type,
                resource_name=resource_name,
                namespace=namespace,
            )

        if status == 410:
            return KubernetesGoneError(message=e.reason or "Watch resource version expired")

        if status in (400, 422):
            return KubernetesValidationError(
                message=e.reason or "Validation failed",
                status_code=status,
            )

        return KubernetesError(
            message=e.reason or f"Kubernetes API error: {status}",
            status_code=status,
            resource_type=resource_type,
            resource_name=resource_name,
            namespace=namespace,
        )

    # =========================================================================
    # Retry Decorator
    # =========================================================================

    def make_retry_decorator(self) -> Any:
        """Create a retry decorator for transient connection errors.

        Returns:
            A tenacity retry decorator configured with exponential backoff.
        """
        return retry(
            retry=retry_if_exception_type(KubernetesConnectionError),
            stop=stop_after_attempt(self._retries),
            wait=wait_exponential(multiplier=1, min=1, max=10),
            reraise=True,
        )

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def default_namespace(self) -> str:
        """Namespace shown at startup."""
        return self._default_namespace

    @property
    def config(self) -> KubeliveConfig:
        """The configuration this client was built from."""
        return self._config

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def close(self) -> None:
        """Close the client and release its connection pool."""
        if self._api_client is not None:
            self._api_client.close()
            self._api_client = None
        logger.debug("cluster_client_closed")

    def __enter__(self) -> ClusterClient:
        """Context manager entry."""
        return self

    def __exit__(self, *args: Any) -> None:
        """Context manager exit."""
        self.close()
