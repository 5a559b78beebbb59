"""SSE line classification."""
from __future__ import annotations

import json

from zengpt_bridge.core.constants import DATA_PREFIX, DONE_SENTINEL, EVENT_PREFIX, ID_PREFIX, RETRY_PREFIX

from .frames import DataEvent, DoneEvent, FieldKind, ParsedLine, SSEField

__all__ = ['parse_sse_line']

_METADATA_PREFIXES: tuple[tuple[str, FieldKind], ...] = (
    (EVENT_PREFIX, FieldKind.EVENT),
    (ID_PREFIX, FieldKind.ID),
    (RETRY_PREFIX, FieldKind.RETRY),
)


def parse_sse_line(line: str) -> ParsedLine | None:
    """Classify one logical SSE line.

    Returns `DoneEvent` for `data: [DONE]`, `DataEvent` for any other
    `data:` line, `SSEField` for `event:`/`id:`/`retry:` lines, and `None`
    for blank or unrecognized lines. Never raises.
    """
    trimmed = line.strip()
    if not trimmed:
        return None

    if trimmed.startswith(DATA_PREFIX):
        data = trimmed[len(DATA_PREFIX):]
        if data == DONE_SENTINEL:
            return DoneEvent()
        try:
            value = json.loads(data)
        except (ValueError, RecursionError):
            return DataEvent(payload=data)
        return DataEvent(payload=json.dumps(value, separators=(',', ':'), ensure_ascii=False), value=value)

    for prefix, kind in _METADATA_PREFIXES:
        if trimmed.startswith(prefix):
            return SSEField(kind, trimmed[len(prefix):])

    return None
