"""Watch sessions: one streamed HTTP exchange each.

WatchTransport  -- opens sessions against a resource collection.
WatchHandle     -- the controller's view of one live exchange: a queue of
                   Signals, flow-controlled by ``request_next()``.
HttpxWatchTransport / HttpxWatchSession -- the httpx implementation.

A session runs a pump task that reads the response and puts Signals on its
own queue.  The pump waits for demand before delivering each signal, so at
most one unprocessed signal is ever queued.  ``close()`` cancels the pump;
signals that were still in flight die with the session's queue and can never
reach a newer session.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from itertools import count

import httpx
import structlog

from kubestream.errors import WatchOpenError
from kubestream.models.config import WatchOptions
from kubestream.models.resources import ResourceDescriptor
from kubestream.watch.signals import Chunk, End, Failure, FailureReason, Headers, Signal, Status

_log = structlog.get_logger(component="watch.session")

_session_ids = count(1)


class WatchHandle(ABC):
    """One live watch exchange, owned by exactly one controller."""

    @abstractmethod
    async def next_signal(self) -> Signal:
        """Wait for the next transport signal, in delivery order."""

    @abstractmethod
    def request_next(self) -> None:
        """Allow the transport to deliver one more signal."""

    @abstractmethod
    async def close(self) -> None:
        """Release the exchange.  Best-effort: must not raise."""


class WatchTransport(ABC):
    """Opens watch exchanges."""

    @abstractmethod
    async def open_watch(
        self,
        resource: ResourceDescriptor,
        resource_version: str,
        options: WatchOptions,
    ) -> WatchHandle:
        """Start a watch from *resource_version*.

        Returns as soon as the exchange is started; the response itself is
        reported through the handle's signals.

        Raises:
            WatchOpenError: if the exchange cannot be started at all.
        """


class HttpxWatchSession(WatchHandle):
    """A watch exchange streamed through an ``httpx.AsyncClient``."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        path: str,
        params: dict[str, str],
        timeout: httpx.Timeout,
    ) -> None:
        self._client = client
        self._path = path
        self._params = params
        self._timeout = timeout
        self._signals: asyncio.Queue[Signal] = asyncio.Queue()
        # The first signal (the status line) needs no explicit request.
        self._demand = asyncio.Semaphore(1)
        self._closed = False
        self.session_id = next(_session_ids)
        self._log = _log.bind(path=path, session_id=self.session_id)
        self._task = asyncio.create_task(self._pump(), name=f"watch-session-{self.session_id}")

    @property
    def closed(self) -> bool:
        return self._closed

    async def next_signal(self) -> Signal:
        return await self._signals.get()

    def request_next(self) -> None:
        self._demand.release()

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if not self._task.done():
            self._task.cancel()
        (outcome,) = await asyncio.gather(self._task, return_exceptions=True)
        if isinstance(outcome, Exception):
            self._log.warning("watch_session_close_error", error=str(outcome))
        self._log.debug("watch_session_closed")

    async def _deliver(self, signal: Signal) -> None:
        await self._demand.acquire()
        self._signals.put_nowait(signal)

    async def _pump(self) -> None:
        try:
            async with self._client.stream(
                "GET",
                self._path,
                params=self._params,
                timeout=self._timeout,
            ) as response:
                await self._deliver(Status(response.status_code, response.reason_phrase))
                if response.status_code != 200:
                    return
                await self._deliver(Headers(dict(response.headers)))
                async for chunk in response.aiter_bytes():
                    if chunk:
                        await self._deliver(Chunk(chunk))
            await self._deliver(End())
        except httpx.ReadTimeout as exc:
            await self._deliver(Failure(FailureReason.IDLE_TIMEOUT, str(exc) or "read timeout"))
        except httpx.HTTPError as exc:
            await self._deliver(Failure(FailureReason.TRANSPORT, f"{type(exc).__name__}: {exc}"))
        except Exception as exc:  # noqa: BLE001
            # Anything else would leave the controller waiting forever.
            self._log.error("watch_session_pump_crashed", error=str(exc), exc_info=True)
            await self._deliver(Failure(FailureReason.TRANSPORT, f"{type(exc).__name__}: {exc}"))


class HttpxWatchTransport(WatchTransport):
    """Opens HttpxWatchSessions on a shared client.

    The client carries the base URL and credentials (see
    ``kubestream.client.connection``).  It is not closed by the transport.
    """

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    async def open_watch(
        self,
        resource: ResourceDescriptor,
        resource_version: str,
        options: WatchOptions,
    ) -> WatchHandle:
        if self._client.is_closed:
            raise WatchOpenError(f"cannot watch {resource}: http client is closed")
        timeout = httpx.Timeout(options.connect_timeout, read=options.read_timeout)
        session = HttpxWatchSession(
            self._client,
            resource.path,
            options.watch_params(resource_version),
            timeout,
        )
        _log.debug(
            "watch_session_opened",
            path=resource.path,
            resource_version=resource_version,
            session_id=session.session_id,
        )
        return session
