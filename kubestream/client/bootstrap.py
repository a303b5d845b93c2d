"""Resource-version bootstrap.

A watch has to start from a resource version the server can still serve.
The cheapest way to get one is a list request: the list's own
``metadata.resourceVersion`` is a consistent snapshot of the collection.
``limit=1`` keeps the response small; the items themselves are ignored.
"""

from __future__ import annotations

import httpx
import structlog

from kubestream.errors import BootstrapError
from kubestream.models.config import WatchOptions
from kubestream.models.resources import ResourceDescriptor

_log = structlog.get_logger(component="client.bootstrap")


class ListBootstrap:
    """Callable returning the current resource version of a collection.

    Args:
        client:  Client rooted at the API server.
        options: Selectors are passed through so the list and the watch
                 see the same collection.
    """

    def __init__(self, client: httpx.AsyncClient, options: WatchOptions | None = None) -> None:
        self._client = client
        self._options = options or WatchOptions()

    async def __call__(self, resource: ResourceDescriptor) -> str:
        params = self._options.query_params()
        params["limit"] = "1"
        timeout = httpx.Timeout(self._options.connect_timeout, read=self._options.read_timeout)
        try:
            response = await self._client.get(resource.path, params=params, timeout=timeout)
        except httpx.HTTPError as exc:
            raise BootstrapError(f"list {resource} failed: {type(exc).__name__}: {exc}") from exc

        if not response.is_success:
            raise BootstrapError(
                f"list {resource} returned {response.status_code}: {response.text[:200]}",
                status_code=response.status_code,
            )

        try:
            resource_version = response.json()["metadata"]["resourceVersion"]
        except (ValueError, KeyError, TypeError, RecursionError) as exc:
            raise BootstrapError(
                f"list {resource} returned no resourceVersion",
                status_code=response.status_code,
            ) from exc
        if not resource_version:
            raise BootstrapError(f"list {resource} returned an empty resourceVersion", status_code=response.status_code)

        _log.debug("resource_version_discovered", resource=str(resource), resource_version=resource_version)
        return str(resource_version)
