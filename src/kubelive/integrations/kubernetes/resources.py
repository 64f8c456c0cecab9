"""Built-in Kubernetes resource descriptors.

kubelive does not run API discovery; the browsable resource types are the
fixed set below. Each descriptor knows how to build its REST path, which is
all the generic list/watch/delete calls need.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Resource:
    """A Kubernetes resource type addressable through the REST API.

    Attributes:
        kind: Object kind (e.g. "Pod").
        plural: Lowercase plural used in URLs (e.g. "pods").
        group: API group, empty for the core group.
        version: API version within the group.
        namespaced: Whether objects live inside a namespace.
        short_names: Aliases accepted by ``get_resource``.
    """

    kind: str
    plural: str
    group: str = ""
    version: str = "v1"
    namespaced: bool = True
    short_names: tuple[str, ...] = field(default_factory=tuple)

    @property
    def group_version(self) -> str:
        """``group/version``, or just ``version`` for the core group."""
        return f"{self.group}/{self.version}" if self.group else self.version

    @property
    def kubectl_name(self) -> str:
        """Fully qualified name accepted by kubectl (``plural.group``)."""
        return f"{self.plural}.{self.group}" if self.group else self.plural

    @property
    def display_name(self) -> str:
        """Human readable plural, used in titles and selectors."""
        return f"{self.kind}es" if self.kind.endswith("s") else f"{self.kind}s"

    def api_path(self, namespace: str | None = None, name: str | None = None) -> str:
        """Build the REST path for a collection or a single object.

        Args:
            namespace: Namespace to scope to. Ignored for cluster-scoped
                resources; ``None`` or empty lists across all namespaces.
            name: Object name, or None for the collection.

        Returns:
            URL path relative to the API server root.
        """
        prefix = f"/apis/{self.group_version}" if self.group else f"/api/{self.version}"
        if self.namespaced and namespace:
            path = f"{prefix}/namespaces/{namespace}/{self.plural}"
        else:
            path = f"{prefix}/{self.plural}"
        if name:
            path = f"{path}/{name}"
        return path


PODS = Resource("Pod", "pods", short_names=("po",))
DEPLOYMENTS = Resource("Deployment", "deployments", group="apps", short_names=("deploy",))
STATEFULSETS = Resource("StatefulSet", "statefulsets", group="apps", short_names=("sts",))
DAEMONSETS = Resource("DaemonSet", "daemonsets", group="apps", short_names=("ds",))
REPLICASETS = Resource("ReplicaSet", "replicasets", group="apps", short_names=("rs",))
JOBS = Resource("Job", "jobs", group="batch")
CRONJOBS = Resource("CronJob", "cronjobs", group="batch", short_names=("cj",))
SERVICES = Resource("Service", "services", short_names=("svc",))
INGRESSES = Resource("Ingress", "ingresses", group="networking.k8s.io", short_names=("ing",))
CONFIGMAPS = Resource("ConfigMap", "configmaps", short_names=("cm",))
SECRETS = Resource("Secret", "secrets")
PERSISTENT_VOLUME_CLAIMS = Resource(
    "PersistentVolumeClaim", "persistentvolumeclaims", short_names=("pvc",)
)
EVENTS = Resource("Event", "events", short_names=("ev",))
NAMESPACES = Resource("Namespace", "namespaces", namespaced=False, short_names=("ns",))
NODES = Resource("Node", "nodes", namespaced=False, short_names=("no",))
PERSISTENT_VOLUMES = Resource("PersistentVolume", "persistentvolumes", namespaced=False, short_names=("pv",))

# Ordered list for cycling through types
BUILTIN_RESOURCES: tuple[Resource, ...] = (
    PODS,
    DEPLOYMENTS,
    STATEFULSETS,
    DAEMONSETS,
    REPLICASETS,
    JOBS,
    CRONJOBS,
    SERVICES,
    INGRESSES,
    CONFIGMAPS,
    SECRETS,
    PERSISTENT_VOLUME_CLAIMS,
    EVENTS,
    NAMESPACES,
    NODES,
    PERSISTENT_VOLUMES,
)


def get_resource(name: str) -> Resource:
    """Look up a built-in resource by plural, kind or short name.

    Matching is case-insensitive.

    Args:
        name: e.g. "pods", "Pod", "po" or "deployments.apps".

    Returns:
        The matching resource descriptor.

    Raises:
        KeyError: If no built-in resource matches.
    """
    wanted = name.strip().lower()
    for resource in BUILTIN_RESOURCES:
        aliases = {resource.plural, resource.kind.lower(), resource.kubectl_name, *resource.short_names}
        if wanted in aliases:
            return resource
    raise KeyError(f"Unknown resource type: {name}")
