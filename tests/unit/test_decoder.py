"""Unit tests for kubestream.watch.decoder.

Covers version-based dedup, malformed-line resilience, error-event restart
short-circuiting, bookmark handling, and chunk-boundary invariance of the
assembler + decoder pipeline.
"""

from __future__ import annotations

import json

from conftest import error_line, event_line
from hypothesis import given
from hypothesis import strategies as st
from structlog.testing import capture_logs

from kubestream.models.events import Mode
from kubestream.watch.decoder import decode_events
from kubestream.watch.lines import LineAssembler


def _lines(*raw: bytes) -> list[bytes]:
    return [line.rstrip(b"\n") for line in raw]


# ---------------------------------------------------------------------------
# Accept / suppress
# ---------------------------------------------------------------------------


class TestResourceVersionDedup:
    def test_new_version_is_emitted_and_advances_cursor(self) -> None:
        result = decode_events(_lines(event_line("101")), "100")
        assert [e.resource_version for e in result.events] == ["101"]
        assert result.events[0].type == "ADDED"
        assert result.resource_version == "101"
        assert result.mode is Mode.RECEIVING

    def test_current_version_is_suppressed(self) -> None:
        result = decode_events(_lines(event_line("100")), "100")
        assert result.events == []
        assert result.resource_version == "100"

    def test_consecutive_duplicates_emit_once(self) -> None:
        result = decode_events(_lines(event_line("101"), event_line("101", "MODIFIED")), "100")
        assert len(result.events) == 1
        assert result.resource_version == "101"

    def test_events_keep_arrival_order(self) -> None:
        result = decode_events(
            _lines(event_line("7", name="a"), event_line("5", name="b"), event_line("9", name="c")),
            "1",
        )
        assert [e.object["metadata"]["name"] for e in result.events] == ["a", "b", "c"]
        assert result.resource_version == "9"

    def test_versions_compare_as_opaque_strings(self) -> None:
        # "10" and "010" are different tokens even though they parse to the same number.
        result = decode_events(_lines(event_line("010")), "10")
        assert len(result.events) == 1
        assert result.resource_version == "010"

    def test_numeric_json_version_is_normalised_to_string(self) -> None:
        line = json.dumps({"type": "ADDED", "object": {"metadata": {"resourceVersion": 101}}}).encode()
        result = decode_events([line], "101")
        assert result.events == []

    def test_non_string_type_becomes_empty(self) -> None:
        line = json.dumps({"type": None, "object": {"metadata": {"resourceVersion": "101"}}}).encode()
        result = decode_events([line], "100")
        assert [e.type for e in result.events] == [""]

    def test_event_keeps_full_payload(self) -> None:
        result = decode_events(_lines(event_line("101")), "100")
        event = result.events[0]
        assert event.raw["type"] == "ADDED"
        assert event.to_dict() == {"type": "ADDED", "object": event.object}


# ---------------------------------------------------------------------------
# Malformed and unrecognised lines
# ---------------------------------------------------------------------------


class TestMalformedLines:
    def test_malformed_line_is_skipped_and_logged(self) -> None:
        with capture_logs() as logs:
            result = decode_events([b'{"type": "ADDED", "obj', *_lines(event_line("101"))], "100")

        assert [e.resource_version for e in result.events] == ["101"]
        assert any(entry["event"] == "watch_line_malformed" for entry in logs)

    def test_malformed_line_leaves_cursor_alone(self) -> None:
        result = decode_events([b"not json at all"], "100")
        assert result.events == []
        assert result.resource_version == "100"
        assert result.mode is Mode.RECEIVING

    def test_deeply_nested_line_is_skipped_and_logged(self) -> None:
        with capture_logs() as logs:
            result = decode_events([b"[" * 200000, *_lines(event_line("101"))], "100")

        assert [e.resource_version for e in result.events] == ["101"]
        assert result.mode is Mode.RECEIVING
        assert any(entry["event"] == "watch_line_malformed" for entry in logs)

    def test_invalid_utf8_is_treated_as_malformed(self) -> None:
        result = decode_events([b'{"type":"\xff\xfe"}'], "100")
        assert result.events == []
        assert result.mode is Mode.RECEIVING

    def test_blank_lines_are_ignored(self) -> None:
        with capture_logs() as logs:
            result = decode_events([b"", b"  ", *_lines(event_line("101"))], "100")
        assert len(result.events) == 1
        assert logs == []

    def test_unrecognised_shape_is_skipped(self) -> None:
        with capture_logs() as logs:
            result = decode_events([b"[1, 2]", b'{"object": {"spec": {}}}', b'{"type": "ADDED"}'], "100")
        assert result.events == []
        assert result.mode is Mode.RECEIVING
        assert sum(entry["event"] == "watch_line_unrecognized" for entry in logs) == 3


# ---------------------------------------------------------------------------
# Error events
# ---------------------------------------------------------------------------


class TestErrorEvents:
    def test_error_object_requests_restart(self) -> None:
        result = decode_events(_lines(error_line("too old resource version")), "100")
        assert result.mode is Mode.RESTARTING
        assert result.error_message == "too old resource version"
        assert result.events == []

    def test_lines_after_error_are_ignored(self) -> None:
        result = decode_events(
            _lines(event_line("101"), error_line(), event_line("102"), event_line("103")),
            "100",
        )
        assert [e.resource_version for e in result.events] == ["101"]
        assert result.resource_version == "101"
        assert result.mode is Mode.RESTARTING


# ---------------------------------------------------------------------------
# Bookmarks
# ---------------------------------------------------------------------------


class TestBookmarks:
    def test_bookmark_is_emitted_by_default(self) -> None:
        result = decode_events(_lines(event_line("200", "BOOKMARK")), "100")
        assert [e.type for e in result.events] == ["BOOKMARK"]

    def test_bookmark_advances_cursor_silently_when_skipped(self) -> None:
        result = decode_events(
            _lines(event_line("200", "BOOKMARK"), event_line("201")),
            "100",
            skip_bookmarks=True,
        )
        assert [e.resource_version for e in result.events] == ["201"]
        assert result.resource_version == "201"

    def test_skipped_bookmark_still_dedups_following_replay(self) -> None:
        result = decode_events(
            _lines(event_line("200", "BOOKMARK"), event_line("200")),
            "100",
            skip_bookmarks=True,
        )
        assert result.events == []
        assert result.resource_version == "200"


# ---------------------------------------------------------------------------
# Chunk-boundary invariance (assembler + decoder)
# ---------------------------------------------------------------------------


def _decode_chunks(chunks: list[bytes], resource_version: str) -> tuple[list[dict], str]:
    assembler = LineAssembler()
    events = []
    for chunk in chunks:
        result = decode_events(assembler.push(chunk), resource_version)
        resource_version = result.resource_version
        events.extend(e.raw for e in result.events)
    return events, resource_version


_payload = st.lists(
    st.one_of(
        st.integers(min_value=100, max_value=110).map(lambda v: event_line(str(v))),
        st.just(b"garbage{\n"),
        st.just(b"\n"),
    ),
    max_size=12,
).map(b"".join)


@given(payload=_payload, cuts=st.lists(st.integers(min_value=0, max_value=2000), max_size=15))
def test_chunking_does_not_change_emitted_events(payload: bytes, cuts: list[int]) -> None:
    offsets = sorted({min(c, len(payload)) for c in cuts})
    bounds = [0, *offsets, len(payload)]
    chunks = [payload[a:b] for a, b in zip(bounds, bounds[1:], strict=False)]

    assert _decode_chunks(chunks, "100") == _decode_chunks([payload], "100")


def test_version_split_across_chunks_is_emitted_once() -> None:
    payload = event_line("101") + event_line("101")
    cut = len(event_line("101")) + 20
    events, resource_version = _decode_chunks([payload[:cut], payload[cut:]], "100")
    assert len(events) == 1
    assert resource_version == "101"
