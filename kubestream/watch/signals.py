"""Transport signals delivered by a watch session to the controller.

The set is closed: the controller dispatches on exactly these types and
treats anything else as a fatal protocol error.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum


class FailureReason(StrEnum):
    """Why a watch exchange failed."""

    IDLE_TIMEOUT = "idle_timeout"
    TRANSPORT = "transport"


@dataclass(frozen=True)
class Status:
    """HTTP status line of the watch response."""

    code: int
    reason: str = ""


@dataclass(frozen=True)
class Headers:
    """Response headers arrived."""

    headers: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class Chunk:
    """A slice of the response body, cut at an arbitrary byte offset."""

    data: bytes


@dataclass(frozen=True)
class End:
    """The server closed the body normally."""


@dataclass(frozen=True)
class Failure:
    """The exchange broke before the body ended."""

    reason: FailureReason
    detail: str = ""


Signal = Status | Headers | Chunk | End | Failure
