"""Resource collection descriptors."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ResourceDescriptor:
    """A watchable Kubernetes resource collection.

    ``api_version`` is ``v1`` for the core group or ``<group>/<version>``
    otherwise.  ``resource`` is the lowercase plural name used in URLs
    (``pods``, ``deployments``).  An empty namespace means all namespaces.
    """

    api_version: str
    resource: str
    namespace: str = ""

    def __post_init__(self) -> None:
        if not self.api_version or not self.resource:
            raise ValueError("api_version and resource must not be empty")

    @classmethod
    def parse(cls, value: str, namespace: str = "") -> ResourceDescriptor:
        """Parse ``v1/pods`` or ``apps/v1/deployments``."""
        parts = [p for p in value.strip("/").split("/") if p]
        if len(parts) == 2:
            return cls(api_version=parts[0], resource=parts[1], namespace=namespace)
        if len(parts) == 3:
            return cls(api_version=f"{parts[0]}/{parts[1]}", resource=parts[2], namespace=namespace)
        raise ValueError(f"Invalid resource {value!r}: expected <version>/<plural> or <group>/<version>/<plural>")

    @property
    def path(self) -> str:
        prefix = f"/apis/{self.api_version}" if "/" in self.api_version else f"/api/{self.api_version}"
        if self.namespace:
            prefix = f"{prefix}/namespaces/{self.namespace}"
        return f"{prefix}/{self.resource}"

    def __str__(self) -> str:
        return self.path
