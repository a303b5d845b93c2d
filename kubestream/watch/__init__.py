"""Resumable watch engine.

Submodules
----------
lines      -- newline framing of raw body chunks.
decoder    -- JSON line decoding, resource-version dedup, error-event detection.
signals    -- closed set of transport signals.
session    -- WatchTransport/WatchHandle and the httpx streaming session.
controller -- ResumeController: receive / restart state machine.
stream     -- EventStream and the ``watch()`` / ``open_stream()`` factories.
"""

from kubestream.watch.controller import ResumeController
from kubestream.watch.stream import EventStream, open_stream, watch

__all__ = ["EventStream", "ResumeController", "open_stream", "watch"]
