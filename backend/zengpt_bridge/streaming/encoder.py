"""Downstream SSE frame encoding."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Final

from zengpt_bridge.core.constants import DEFAULT_ENCODING, DONE_SENTINEL
from zengpt_bridge.core.models import TextDeltaFrame

from .frames import Extraction

__all__ = ['DONE_FRAME', 'SSEEncoder']

DONE_FRAME: Final[str] = f'data: {DONE_SENTINEL}\n\n'


@dataclass(frozen=True, slots=True)
class SSEEncoder:
    """Serialize text deltas and completion into the chat client's SSE dialect.

    Text delta: `data: {"type":"text-delta","textDelta":"..."}\\n\\n`
    Completion: `data: [DONE]\\n\\n`
    """

    encoding: str = DEFAULT_ENCODING

    def text_delta(self, text: str) -> bytes:
        return TextDeltaFrame(text_delta=text).to_sse().encode(self.encoding)

    def done(self) -> bytes:
        return DONE_FRAME.encode(self.encoding)

    def encode(self, extraction: Extraction) -> tuple[bytes, ...]:
        """Frames for one extraction: the text delta first, then completion."""
        frames: list[bytes] = []
        if extraction.text:
            frames.append(self.text_delta(extraction.text))
        if extraction.completed:
            frames.append(self.done())
        return tuple(frames)
