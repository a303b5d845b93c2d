"""Watch event data structures and enumerations."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


class EventType(StrEnum):
    """Change type carried in the ``type`` field of a watch line."""

    ADDED = "ADDED"
    MODIFIED = "MODIFIED"
    DELETED = "DELETED"
    BOOKMARK = "BOOKMARK"
    ERROR = "ERROR"


class Mode(StrEnum):
    """Resume controller state."""

    RECEIVING = "receiving"
    RESTARTING = "restarting"


@dataclass(frozen=True)
class WatchEvent:
    """One decoded line of a watch stream.

    ``type`` is kept as the raw string so that change types added by newer
    API servers pass through untouched; compare it against EventType.
    """

    type: str
    object: dict[str, Any]
    raw: dict[str, Any] = field(default_factory=dict, repr=False)

    @property
    def resource_version(self) -> str:
        metadata = self.object.get("metadata") or {}
        return str(metadata.get("resourceVersion", ""))

    def to_dict(self) -> dict[str, Any]:
        """Return the ``{"type", "object"}`` envelope as sent by the server."""
        return {"type": self.type, "object": self.object}
