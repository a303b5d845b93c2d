"""Consumer-facing event streams.

Usage::

    connection = await load_connection()
    stream = await watch(connection, ResourceDescriptor("v1", "pods", "default"))
    async with stream:
        async for event in stream:
            print(event.type, event.resource_version)

``watch()`` raises if the first bootstrap fails.  After that the stream only
ever ends, it never raises: unrecoverable conditions are logged and surface
as end of iteration.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable, Callable
from types import TracebackType

import structlog

from kubestream.client.bootstrap import ListBootstrap
from kubestream.client.connection import Connection
from kubestream.models.config import WatchOptions
from kubestream.models.events import WatchEvent
from kubestream.models.resources import ResourceDescriptor
from kubestream.watch.controller import Bootstrap, ResumeController
from kubestream.watch.session import HttpxWatchTransport, WatchTransport

_log = structlog.get_logger(component="watch.stream")

CloseCallback = Callable[[], Awaitable[None]]


class EventStream:
    """A lazy, unbounded, single-use sequence of WatchEvents.

    Iterating yields events one by one; ``pull()`` exposes the underlying
    batches (one per processed transport signal, often empty).  Closing the
    stream, explicitly or by leaving ``async with``, releases the live
    exchange on every exit path.
    """

    def __init__(
        self,
        controller: ResumeController,
        on_close: list[CloseCallback] | None = None,
    ) -> None:
        self._controller = controller
        self._on_close = on_close or []
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def resource_version(self) -> str:
        """The last resource version delivered (or bootstrapped)."""
        return self._controller.resource_version

    async def pull(self) -> list[WatchEvent] | None:
        """Advance the watch once.  Returns None when the stream has ended."""
        if self._closed:
            return None
        batch = await self._controller.step()
        if batch is None:
            await self.aclose()
        return batch

    def __aiter__(self) -> AsyncIterator[WatchEvent]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[WatchEvent]:
        try:
            while True:
                batch = await self.pull()
                if batch is None:
                    return
                for event in batch:
                    yield event
        finally:
            await self.aclose()

    async def aclose(self) -> None:
        """Release the exchange and any owned client.  Idempotent."""
        if self._closed:
            return
        self._closed = True
        await self._controller.close()
        for callback in self._on_close:
            try:
                await callback()
            except Exception as exc:  # noqa: BLE001
                _log.warning("event_stream_close_callback_failed", error=str(exc))

    async def __aenter__(self) -> EventStream:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()


async def open_stream(
    resource: ResourceDescriptor,
    options: WatchOptions,
    *,
    transport: WatchTransport,
    bootstrap: Bootstrap,
    on_close: list[CloseCallback] | None = None,
) -> EventStream:
    """Bootstrap, open the first session and wrap it in an EventStream.

    Raises:
        BootstrapError: the starting resource version could not be found.
        WatchOpenError: the first watch exchange could not be started.
    """
    resource_version = await bootstrap(resource)
    handle = await transport.open_watch(resource, resource_version, options)
    _log.info("watch_started", resource=str(resource), resource_version=resource_version)
    controller = ResumeController(
        resource=resource,
        options=options,
        transport=transport,
        bootstrap=bootstrap,
        handle=handle,
        resource_version=resource_version,
    )
    return EventStream(controller, on_close=on_close)


async def watch(
    connection: Connection,
    resource: ResourceDescriptor,
    options: WatchOptions | None = None,
) -> EventStream:
    """Watch *resource* through an httpx client built from *connection*.

    The client is owned by the returned stream and closed with it.
    """
    options = options or WatchOptions()
    client = connection.build_client(connect_timeout=options.connect_timeout)
    try:
        return await open_stream(
            resource,
            options,
            transport=HttpxWatchTransport(client),
            bootstrap=ListBootstrap(client, options),
            on_close=[client.aclose],
        )
    except BaseException:
        await client.aclose()
        raise
