"""Line reassembly for SSE byte streams.

(c) Mike Casale 2025.
Licensed under the MIT License.
See LICENSE file for details.
"""

from __future__ import annotations as _annotations

# Standard library (alphabetical)
from dataclasses import dataclass, field

# Local imports (core first, then alphabetical)
from zengpt_bridge.core.constants import DEFAULT_ENCODING

__all__ = ('DecodedLine', 'SSEFrameReader')


@dataclass(frozen=True, slots=True)
class DecodedLine:
    """One logical line, or the decode error that replaced it."""

    text: str | None
    raw: bytes
    error: UnicodeDecodeError | None = None


@dataclass
class SSEFrameReader:
    """Reassemble logical lines from arbitrarily split byte chunks.

    Bytes are buffered until a newline arrives, so a line (or a multi-byte
    character) split across chunks is decoded only once it is complete.
    The buffer is unbounded; the upstream is trusted to send newlines.

    Example:
        >>> reader = SSEFrameReader()
        >>> [line.text for line in reader.feed(b'data: a\\nda')]
        ['data: a']
        >>> [line.text for line in reader.feed(b'ta: b\\n')]
        ['data: b']
    """

    encoding: str = DEFAULT_ENCODING
    _buffer: bytearray = field(default_factory=bytearray, init=False, repr=False)
    _closed: bool = field(default=False, init=False)

    @property
    def pending(self) -> int:
        """Number of buffered bytes not yet terminated by a newline."""
        return len(self._buffer)

    def feed(self, chunk: bytes) -> list[DecodedLine]:
        """Append a chunk and return every line it completes."""
        if self._closed:
            raise ValueError('feed() called after close()')
        if not chunk:
            return []
        self._buffer.extend(chunk)
        *complete, rest = self._buffer.split(b'\n')
        self._buffer = bytearray(rest)
        return [self._decode(bytes(raw)) for raw in complete]

    def close(self) -> list[DecodedLine]:
        """Flush the residual fragment as a final line, if any."""
        self._closed = True
        if not self._buffer:
            return []
        raw = bytes(self._buffer)
        self._buffer.clear()
        return [self._decode(raw)]

    def _decode(self, raw: bytes) -> DecodedLine:
        try:
            return DecodedLine(raw.decode(self.encoding), raw)
        except UnicodeDecodeError as exc:
            return DecodedLine(None, raw, exc)
