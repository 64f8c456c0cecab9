"""Kubernetes integration - API client, configuration and resource registry."""

from kubelive.integrations.kubernetes.client import (
    ClusterClient,
    TableColumn,
    TableListing,
    TableWatch,
    WatchEvent,
)
from kubelive.integrations.kubernetes.config import (
    CommandConfig,
    KubeliveConfig,
    WatchConfig,
)
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
from kubelive.integrations.kubernetes.resources import (
    BUILTIN_RESOURCES,
    Resource,
    get_resource,
)

__all__ = [
    "BUILTIN_RESOURCES",
    "ClusterClient",
    "CommandConfig",
    "KubeliveConfig",
    "KubernetesAuthError",
    "KubernetesConflictError",
    "KubernetesConnectionError",
    "KubernetesError",
    "KubernetesGoneError",
    "KubernetesNotFoundError",
    "KubernetesTimeoutError",
    "KubernetesValidationError",
    "Resource",
    "TableColumn",
    "TableListing",
    "TableWatch",
    "WatchConfig",
    "WatchEvent",
    "get_resource",
]
