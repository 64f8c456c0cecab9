"""Errors raised by the cluster client and the services built on it.

Every failure that reaches the status line is a ``KubernetesError``; its
string form carries the HTTP status and the object involved, e.g.
``Pod 'web' not found in namespace 'default' (status: 404) [Pod/web in default]``.
"""

from __future__ import annotations

from typing import Any


class KubernetesError(Exception):
    """Base class for cluster errors.

    Attributes:
        message: Human-readable error message.
        status_code: HTTP status returned by the API server, if any.
        resource_type: Kind of the object involved (e.g. "Pod").
        resource_name: Name of the object involved.
        namespace: Namespace of the object involved.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        resource_type: str | None = None,
        resource_name: str | None = None,
        namespace: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.resource_type = resource_type
        self.resource_name = resource_name
        self.namespace = namespace

    @property
    def location(self) -> str | None:
        """``Kind/name in namespace``, when the object is known."""
        if not (self.resource_type and self.resource_name):
            return None
        where = f"{self.resource_type}/{self.resource_name}"
        return f"{where} in {self.namespace}" if self.namespace else where

    def __str__(self) -> str:
        text = self.message
        if self.status_code:
            text += f" (status: {self.status_code})"
        if self.location:
            text += f" [{self.location}]"
        return text


class KubernetesConnectionError(KubernetesError):
    """The API server cannot be reached or no credentials could be loaded.

    The only error the supervisor and client retry on.

    Args:
        message: Human-readable error message.
        original_error: Underlying transport or kubeconfig error.
    """

    def __init__(
        self,
        message: str = "Failed to connect to Kubernetes cluster",
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.original_error = original_error


class KubernetesAuthError(KubernetesError):
    """The server refused the credentials (401) or the request (403)."""

    def __init__(
        self,
        message: str = "Kubernetes authentication/authorization failed",
        status_code: int | None = 401,
        reason: str | None = None,
    ) -> None:
        super().__init__(message, status_code=status_code)
        self.reason = reason


class _ObjectError(KubernetesError):
    """An error about one named object, worded from ``template``."""

    status: int | None = None
    template = "{kind} '{name}'"
    default_message = "Kubernetes error"

    def __init__(
        self,
        message: str | None = None,
        resource_type: str | None = None,
        resource_name: str | None = None,
        namespace: str | None = None,
    ) -> None:
        if resource_type and resource_name:
            message = self.template.format(kind=resource_type, name=resource_name)
            if namespace:
                message += f" in namespace '{namespace}'"
        super().__init__(
            message or self.default_message,
            status_code=self.status,
            resource_type=resource_type,
            resource_name=resource_name,
            namespace=namespace,
        )


class KubernetesNotFoundError(_ObjectError):
    """The object does not exist (404), e.g. it was deleted meanwhile."""

    status = 404
    template = "{kind} '{name}' not found"
    default_message = "Kubernetes resource not found"


class KubernetesConflictError(_ObjectError):
    """The request conflicts with the object's current state (409)."""

    status = 409
    template = "{kind} '{name}' conflicts with the server state"
    default_message = "Resource conflict"


class KubernetesValidationError(KubernetesError):
    """The API server rejected the request as malformed (400/422).

    Attributes:
        validation_errors: Per-field details, when the server sent any.
    """

    def __init__(
        self,
        message: str = "Invalid request",
        validation_errors: dict[str, Any] | None = None,
        status_code: int | None = 422,
    ) -> None:
        super().__init__(message, status_code=status_code)
        self.validation_errors = dict(validation_errors or {})


class KubernetesGoneError(KubernetesError):
    """The watch resource version is too old (410).

    The next watch has to start without a resource version.
    """

    def __init__(self, message: str = "Watch resource version expired") -> None:
        super().__init__(message, status_code=410)


class KubernetesTimeoutError(KubernetesError):
    """A request did not complete in time."""

    def __init__(
        self,
        message: str = "Kubernetes operation timed out",
        timeout_seconds: int | None = None,
    ) -> None:
        if timeout_seconds:
            message += f" (after {timeout_seconds}s)"
        super().__init__(message)
        self.timeout_seconds = timeout_seconds
