"""Newline framing for watch response bodies.

The API server writes one JSON document per line, but the transport hands us
chunks cut at arbitrary byte offsets.  Framing is done on bytes, so a UTF-8
sequence split across two chunks is rejoined before anything decodes it.
"""

from __future__ import annotations

_NEWLINE = b"\n"


def feed(remainder: bytes, chunk: bytes) -> tuple[list[bytes], bytes]:
    """Split ``remainder + chunk`` into complete lines and a new remainder.

    Every returned line is newline-free.  The new remainder is whatever
    followed the last newline (possibly empty) and never contains one.
    """
    *lines, rest = (remainder + chunk).split(_NEWLINE)
    return lines, rest


class LineAssembler:
    """Holds the incomplete trailing line between chunks of one exchange.

    There is no line length limit: the remainder grows until the server
    sends a newline.
    """

    def __init__(self) -> None:
        self._remainder = b""

    @property
    def remainder(self) -> bytes:
        return self._remainder

    def push(self, chunk: bytes) -> list[bytes]:
        lines, self._remainder = feed(self._remainder, chunk)
        return lines

    def reset(self) -> None:
        """Drop any partial line; called when a new exchange starts."""
        self._remainder = b""
