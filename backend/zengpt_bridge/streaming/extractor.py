"""Delta extraction from agent turn payloads.

(c) Mike Casale 2025.
Licensed under the MIT License.
See LICENSE file for details.
"""

from __future__ import annotations as _annotations

# Standard library (alphabetical)
from typing import Any

# Local imports (core first, then alphabetical)
from .frames import AgentTurnPayload, DataEvent, EmptyPayload, Extraction, FlatPayload, NestedPayload

__all__ = ('classify_payload', 'extract_delta')

_FLAT_TEXT_KEYS: tuple[str, ...] = ('response', 'text')


def classify_payload(event: DataEvent) -> AgentTurnPayload:
    """Resolve a data event into exactly one payload shape.

    Precedence is fixed: nested `content.parts[0].text`, then top-level
    `response`, then top-level `text`. A payload that is not JSON is
    treated as flat text. Empty strings and non-string values count as
    absent.
    """
    if not event.is_json:
        return FlatPayload(event.payload) if event.payload else EmptyPayload(reason='empty raw payload')

    value = event.value
    if isinstance(value, str):
        return FlatPayload(value) if value else EmptyPayload(reason='empty JSON string')
    if not isinstance(value, dict):
        return EmptyPayload(reason=f'unexpected JSON {type(value).__name__}')

    partial = value.get('partial')
    partial = partial if isinstance(partial, bool) else None

    nested = _nested_text(value)
    if nested:
        return NestedPayload(nested, partial)

    for key in _FLAT_TEXT_KEYS:
        text = value.get(key)
        if isinstance(text, str) and text:
            return FlatPayload(text, partial)

    return EmptyPayload(partial)


def extract_delta(payload: AgentTurnPayload) -> Extraction:
    """Return the text to forward and whether the payload ends the turn.

    Only an explicit `partial: false` completes a turn; the text is
    forwarded as-is, even when it repeats earlier partial fragments.
    """
    if isinstance(payload, (NestedPayload, FlatPayload)):
        return Extraction(text=payload.text, completed=payload.partial is False)
    return Extraction(completed=payload.partial is False)


def _nested_text(value: dict[str, Any]) -> str | None:
    content = value.get('content')
    if not isinstance(content, dict):
        return None
    parts = content.get('parts')
    if not isinstance(parts, list) or not parts:
        return None
    first = parts[0]
    if not isinstance(first, dict):
        return None
    text = first.get('text')
    return text if isinstance(text, str) else None
