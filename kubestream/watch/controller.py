"""Resume controller: the state machine behind an EventStream.

The controller is either RECEIVING from a live watch session or RESTARTING,
in which case it asks the bootstrap for a fresh resource version and opens
a new session.  Each ``step()`` processes exactly one transport signal (or
one restart attempt) and returns the events it produced, or None once the
stream has halted.

Recovery policy:
    * stream end, 410 Gone, error event   -> restart via bootstrap
    * idle read timeout                   -> reopen from the same version
    * any other status or transport error -> halt
    * bootstrap failure during restart    -> halt

The old session is always closed before the controller moves on, so late
signals from it are never consumed.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable

import structlog

from kubestream.errors import KubeStreamError
from kubestream.models.config import WatchOptions
from kubestream.models.events import Mode, WatchEvent
from kubestream.models.resources import ResourceDescriptor
from kubestream.watch.decoder import decode_events
from kubestream.watch.lines import LineAssembler
from kubestream.watch.session import WatchHandle, WatchTransport
from kubestream.watch.signals import Chunk, End, Failure, FailureReason, Headers, Signal, Status

_log = structlog.get_logger(component="watch.controller")

_HTTP_OK = 200
_HTTP_GONE = 410

Bootstrap = Callable[[ResourceDescriptor], Awaitable[str]]


class ResumeController:
    """Drives one logical watch across any number of HTTP exchanges.

    Args:
        resource:         Collection being watched.
        options:          Selectors and transport tuning, reused on every reopen.
        transport:        Opens new watch sessions.
        bootstrap:        Discovers a fresh starting resource version.
        handle:           The already-open first session.
        resource_version: The version *handle* was opened from.
    """

    def __init__(
        self,
        resource: ResourceDescriptor,
        options: WatchOptions,
        transport: WatchTransport,
        bootstrap: Bootstrap,
        handle: WatchHandle,
        resource_version: str,
    ) -> None:
        self._resource = resource
        self._options = options
        self._transport = transport
        self._bootstrap = bootstrap
        self._handle: WatchHandle | None = handle
        self._resource_version = resource_version
        self._lines = LineAssembler()
        self._mode = Mode.RECEIVING
        self._halted = False
        self._log = _log.bind(resource=str(resource))

    @property
    def mode(self) -> Mode:
        return self._mode

    @property
    def resource_version(self) -> str:
        return self._resource_version

    @property
    def halted(self) -> bool:
        return self._halted

    async def step(self) -> list[WatchEvent] | None:
        """Advance the state machine by one signal or one restart attempt."""
        if self._halted:
            return None
        if self._mode is Mode.RESTARTING:
            return await self._restart()
        assert self._handle is not None
        signal = await self._handle.next_signal()
        return await self._on_signal(signal)

    async def close(self) -> None:
        """Release the live session, if any.  Never raises."""
        self._halted = True
        await self._drop_handle()

    # ------------------------------------------------------------------
    # RECEIVING
    # ------------------------------------------------------------------

    async def _on_signal(self, signal: Signal) -> list[WatchEvent] | None:
        assert self._handle is not None

        if isinstance(signal, End):
            self._log.warning("watch_stream_ended", action="restart")
            await self._enter_restarting()
            return []

        if isinstance(signal, Headers):
            self._handle.request_next()
            return []

        if isinstance(signal, Status):
            if signal.code == _HTTP_OK:
                self._handle.request_next()
                return []
            if signal.code == _HTTP_GONE:
                self._log.warning(
                    "watch_resource_version_gone",
                    resource_version=self._resource_version,
                    action="restart",
                )
                await self._enter_restarting()
                return []
            self._log.error("watch_status_unexpected", status_code=signal.code, reason=signal.reason)
            return await self._halt()

        if isinstance(signal, Chunk):
            return await self._on_chunk(signal)

        if isinstance(signal, Failure):
            if signal.reason is FailureReason.IDLE_TIMEOUT:
                return await self._resume_after_timeout(signal)
            self._log.error("watch_transport_failed", reason=signal.reason.value, detail=signal.detail)
            return await self._halt()

        self._log.error("watch_signal_unexpected", signal=repr(signal))
        return await self._halt()

    async def _on_chunk(self, signal: Chunk) -> list[WatchEvent]:
        assert self._handle is not None
        self._log.debug("watch_chunk_received", size=len(signal.data))
        lines = self._lines.push(signal.data)
        result = decode_events(
            lines,
            self._resource_version,
            skip_bookmarks=self._options.allow_bookmarks,
        )
        self._resource_version = result.resource_version
        if result.mode is Mode.RESTARTING:
            await self._enter_restarting()
        else:
            self._handle.request_next()
        return result.events

    async def _resume_after_timeout(self, signal: Failure) -> list[WatchEvent] | None:
        # The cursor is still valid after an idle timeout; only the socket is new.
        self._log.debug(
            "watch_idle_timeout",
            detail=signal.detail,
            resource_version=self._resource_version,
            action="resume",
        )
        await self._drop_handle()
        try:
            self._handle = await self._transport.open_watch(
                self._resource,
                self._resource_version,
                self._options,
            )
        except KubeStreamError as exc:
            self._log.error("watch_resume_failed", error=str(exc))
            return await self._halt()
        return []

    # ------------------------------------------------------------------
    # RESTARTING
    # ------------------------------------------------------------------

    async def _enter_restarting(self) -> None:
        self._mode = Mode.RESTARTING
        await self._drop_handle()

    async def _restart(self) -> list[WatchEvent] | None:
        try:
            resource_version = await self._bootstrap(self._resource)
            handle = await self._transport.open_watch(self._resource, resource_version, self._options)
        except KubeStreamError as exc:
            self._log.error("watch_restart_failed", error=str(exc), action="halt")
            return await self._halt()
        self._log.info("watch_restarted", resource_version=resource_version)
        self._handle = handle
        self._resource_version = resource_version
        self._mode = Mode.RECEIVING
        return []

    # ------------------------------------------------------------------
    # Teardown
    # ------------------------------------------------------------------

    async def _halt(self) -> None:
        await self.close()
        return None

    async def _drop_handle(self) -> None:
        handle, self._handle = self._handle, None
        self._lines.reset()
        if handle is None:
            return
        try:
            await handle.close()
        except Exception as exc:  # noqa: BLE001
            self._log.warning("watch_session_close_failed", error=str(exc))
