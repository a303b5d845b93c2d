"""Shared fakes for kubestream unit tests.

FakeTransport hands out FakeHandles that replay scripted signal lists, so the
controller and EventStream can be exercised without any network I/O.
"""

from __future__ import annotations

import json
from typing import Any

import pytest

from kubestream.models.config import WatchOptions
from kubestream.models.resources import ResourceDescriptor
from kubestream.watch.session import WatchHandle, WatchTransport
from kubestream.watch.signals import Signal

# ---------------------------------------------------------------------------
# Line helpers
# ---------------------------------------------------------------------------


def event_line(resource_version: str, event_type: str = "ADDED", name: str = "web-0") -> bytes:
    """One newline-terminated watch line for a Pod at *resource_version*."""
    payload = {
        "type": event_type,
        "object": {
            "kind": "Pod",
            "apiVersion": "v1",
            "metadata": {"name": name, "namespace": "default", "resourceVersion": resource_version},
        },
    }
    return json.dumps(payload).encode() + b"\n"


def error_line(message: str = "too old resource version: 1 (150)", code: int = 410) -> bytes:
    """A server-reported ERROR line carrying a Status object."""
    payload = {
        "type": "ERROR",
        "object": {
            "kind": "Status",
            "apiVersion": "v1",
            "metadata": {},
            "status": "Failure",
            "message": message,
            "reason": "Expired",
            "code": code,
        },
    }
    return json.dumps(payload).encode() + b"\n"


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class FakeHandle(WatchHandle):
    """Replays a fixed list of signals and records flow control calls."""

    def __init__(
        self,
        signals: list[Signal],
        resource_version: str,
        close_error: Exception | None = None,
    ) -> None:
        self._signals = list(signals)
        self._close_error = close_error
        self.resource_version = resource_version
        self.requests = 0
        self.closed = False

    async def next_signal(self) -> Signal:
        if self.closed:
            raise AssertionError("next_signal() called on a closed handle")
        if not self._signals:
            raise AssertionError("no scripted signals left")
        return self._signals.pop(0)

    def request_next(self) -> None:
        self.requests += 1

    async def close(self) -> None:
        self.closed = True
        if self._close_error is not None:
            raise self._close_error


class FakeTransport(WatchTransport):
    """Opens FakeHandles from a queue of scripts (or raises queued errors)."""

    def __init__(self) -> None:
        self._scripts: list[tuple[list[Signal], Exception | None] | Exception] = []
        self.opened: list[str] = []
        self.handles: list[FakeHandle] = []

    def script(self, *signals: Signal, close_error: Exception | None = None) -> None:
        """Queue the signals of the next session; *close_error* makes its close() raise."""
        self._scripts.append((list(signals), close_error))

    def fail_next_open(self, exc: Exception) -> None:
        self._scripts.append(exc)

    async def open_watch(
        self,
        resource: ResourceDescriptor,
        resource_version: str,
        options: WatchOptions,
    ) -> WatchHandle:
        self.opened.append(resource_version)
        item = self._scripts.pop(0) if self._scripts else ([], None)
        if isinstance(item, Exception):
            raise item
        signals, close_error = item
        handle = FakeHandle(signals, resource_version, close_error)
        self.handles.append(handle)
        return handle


class FakeBootstrap:
    """Returns queued resource versions (or raises queued errors)."""

    def __init__(self, *results: str | Exception) -> None:
        self._results: list[Any] = list(results)
        self.calls = 0

    async def __call__(self, resource: ResourceDescriptor) -> str:
        self.calls += 1
        if not self._results:
            raise AssertionError("bootstrap called more often than scripted")
        result = self._results.pop(0)
        if isinstance(result, Exception):
            raise result
        return str(result)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def resource() -> ResourceDescriptor:
    return ResourceDescriptor("v1", "pods", namespace="default")


@pytest.fixture
def options() -> WatchOptions:
    return WatchOptions(read_timeout=30.0)


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()
