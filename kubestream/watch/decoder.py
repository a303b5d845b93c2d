"""Decoding of framed watch lines into WatchEvents.

Each line is parsed on its own.  Lines that fail to parse are logged and
dropped; they never end the stream.  A line whose object carries the
current resource version is a replay and is suppressed.  An error object
(``{"object": {"message": ...}}`` with no resource version) asks the
controller to restart, and the rest of the batch is discarded.
"""

from __future__ import annotations

import json
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

import structlog

from kubestream.models.events import EventType, Mode, WatchEvent

_log = structlog.get_logger(component="watch.decoder")

_PREVIEW_BYTES = 200


@dataclass
class DecodeResult:
    """Outcome of decoding one batch of lines."""

    resource_version: str
    mode: Mode = Mode.RECEIVING
    events: list[WatchEvent] = field(default_factory=list)
    error_message: str = ""


def decode_events(
    lines: Iterable[bytes],
    resource_version: str,
    *,
    skip_bookmarks: bool = False,
) -> DecodeResult:
    """Decode *lines* in order against the current *resource_version*.

    Resource versions are opaque: they are only compared for equality.
    When *skip_bookmarks* is set, BOOKMARK events move the cursor forward
    without being emitted.
    """
    result = DecodeResult(resource_version=resource_version)

    for line in lines:
        if result.mode is Mode.RESTARTING:
            break
        if not line.strip():
            continue

        try:
            payload = json.loads(line)
        except (ValueError, RecursionError) as exc:
            _log.warning(
                "watch_line_malformed",
                error=str(exc),
                line=line[:_PREVIEW_BYTES].decode("utf-8", errors="replace"),
            )
            continue

        obj = payload.get("object") if isinstance(payload, dict) else None
        if not isinstance(obj, dict):
            _log.warning("watch_line_unrecognized", reason="missing object")
            continue

        new_version = _resource_version_of(obj)
        if new_version is not None:
            if new_version == result.resource_version:
                continue
            result.resource_version = new_version
            event_type = payload.get("type")
            if not isinstance(event_type, str):
                event_type = ""
            if skip_bookmarks and event_type == EventType.BOOKMARK:
                continue
            result.events.append(WatchEvent(type=event_type, object=obj, raw=payload))
        elif "message" in obj:
            result.error_message = str(obj["message"])
            result.mode = Mode.RESTARTING
            _log.warning(
                "watch_error_event",
                message=result.error_message,
                code=obj.get("code"),
                reason=obj.get("reason"),
            )
        else:
            _log.warning("watch_line_unrecognized", reason="object has neither resourceVersion nor message")

    return result


def _resource_version_of(obj: dict[str, Any]) -> str | None:
    metadata = obj.get("metadata")
    if not isinstance(metadata, dict) or "resourceVersion" not in metadata:
        return None
    return str(metadata["resourceVersion"])
