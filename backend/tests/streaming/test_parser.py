"""Tests for SSE line classification.

(c) Mike Casale 2025.
Licensed under the MIT License.
See LICENSE file for details.
"""

from __future__ import annotations as _annotations

import pytest

from zengpt_bridge.streaming.frames import DataEvent, DoneEvent, FieldKind, SSEField
from zengpt_bridge.streaming.parser import parse_sse_line

__all__ = ()


class TestDataLines:
    """Tests for `data:` lines."""

    def test_done_sentinel(self) -> None:
        """The literal [DONE] should produce a DoneEvent."""
        assert parse_sse_line("data: [DONE]") == DoneEvent()

    def test_done_sentinel_with_surrounding_whitespace(self) -> None:
        """Whitespace around the line should be ignored."""
        assert parse_sse_line("  data: [DONE]\r") == DoneEvent()

    def test_json_payload_is_reserialized(self) -> None:
        """Valid JSON should be re-serialized compactly."""
        event = parse_sse_line('data: {"text": "hi",  "partial": true}')

        assert isinstance(event, DataEvent)
        assert event.payload == '{"text":"hi","partial":true}'
        assert event.is_json
        assert event.value == {"text": "hi", "partial": True}

    def test_non_ascii_is_not_escaped(self) -> None:
        """Re-serialized JSON should keep non-ASCII characters."""
        event = parse_sse_line('data: {"text": "\\u00e9t\\u00e9"}')

        assert isinstance(event, DataEvent)
        assert event.payload == '{"text":"été"}'

    def test_non_json_payload_passes_through(self) -> None:
        """Invalid JSON should not raise and keep the raw text."""
        event = parse_sse_line("data: {not json")

        assert isinstance(event, DataEvent)
        assert event.payload == "{not json"
        assert not event.is_json

    def test_prefix_requires_space(self) -> None:
        """`data:` without the following space is not recognized."""
        assert parse_sse_line('data:{"text": "hi"}') is None


class TestMetadataLines:
    """Tests for `event:`, `id:` and `retry:` lines."""

    @pytest.mark.parametrize(
        ("line", "kind", "value"),
        [
            ("event: message", FieldKind.EVENT, "message"),
            ("id: 42", FieldKind.ID, "42"),
            ("retry: 3000", FieldKind.RETRY, "3000"),
        ],
    )
    def test_metadata_fields(self, line: str, kind: FieldKind, value: str) -> None:
        """Metadata lines should produce SSEField, never a data event."""
        assert parse_sse_line(line) == SSEField(kind, value)

    def test_retry_value(self) -> None:
        """Integer retry values should be exposed in milliseconds."""
        field = parse_sse_line("retry: 3000")

        assert isinstance(field, SSEField)
        assert field.retry_ms == 3000

    def test_retry_value_not_integer(self) -> None:
        """Non-integer retry values should be tolerated."""
        field = parse_sse_line("retry: soon")

        assert isinstance(field, SSEField)
        assert field.retry_ms is None

    def test_event_named_data_is_metadata(self) -> None:
        """An event name that looks like data should not be misparsed."""
        field = parse_sse_line("event: data: [DONE]")

        assert field == SSEField(FieldKind.EVENT, "data: [DONE]")


class TestIgnoredLines:
    """Tests for lines that produce nothing."""

    @pytest.mark.parametrize("line", ["", "   ", ": heartbeat", "unknown: field", "data"])
    def test_ignored(self, line: str) -> None:
        """Blank, comment and unrecognized lines should be ignored."""
        assert parse_sse_line(line) is None
