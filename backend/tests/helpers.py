"""Builders for upstream agent streams used across tests.

(c) Mike Casale 2025.
Licensed under the MIT License.
See LICENSE file for details.
"""

from __future__ import annotations as _annotations

import json
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

__all__ = ("AGENT_EVENT_EXTRAS", "agent_event", "chunked", "collect")

AGENT_EVENT_EXTRAS: dict[str, Any] = {
    "invocationId": "test-123",
    "author": "ZenGPTCentralAgent",
    "actions": {"stateDelta": {}, "artifactDelta": {}, "requestedAuthConfigs": {}},
    "timestamp": 1751255536.452697,
}


def agent_event(text: str, *, partial: bool, event_id: str = "chunk") -> bytes:
    """One upstream SSE event in the agent's nested content format."""
    payload = {
        "content": {"parts": [{"text": text}], "role": "model"},
        "partial": partial,
        **AGENT_EVENT_EXTRAS,
        "id": event_id,
    }
    return f"data: {json.dumps(payload)}\n\n".encode()


async def chunked(data: bytes, size: int) -> AsyncIterator[bytes]:
    """Deliver `data` in chunks of `size` bytes."""
    for start in range(0, len(data), size):
        yield data[start : start + size]


async def collect(frames: Any) -> list[bytes]:
    """Drain an async iterable of frames."""
    return [frame async for frame in frames]
