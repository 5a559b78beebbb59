"""Response transformer: agent SSE stream in, chat-client SSE stream out.

(c) Mike Casale 2025.
Licensed under the MIT License.
See LICENSE file for details.
"""

from __future__ import annotations as _annotations

# Standard library (alphabetical)
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

# Third-party (alphabetical)
import anyio

# Local imports (core first, then alphabetical)
from zengpt_bridge.core.constants import DEFAULT_ENCODING
from zengpt_bridge.core.exceptions import StreamTransformError
from zengpt_bridge.infra.instrumentation import Metrics, get_logger

from .encoder import SSEEncoder
from .extractor import classify_payload, extract_delta
from .frames import DataEvent, DoneEvent, EmptyPayload, Extraction, LineOutcome, SSEField
from .parser import parse_sse_line
from .reader import DecodedLine, SSEFrameReader

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, AsyncIterable, AsyncIterator, Awaitable, Callable

    import httpx

__all__ = ('ResponseTransformer', 'StreamStats', 'transform_agent_stream', 'transform_httpx_response')

logger = get_logger('streaming.transformer')


@dataclass
class StreamStats:
    """Counters for one transformed stream."""

    lines: int = 0
    text_deltas: int = 0
    ignored: int = 0
    skipped: int = 0
    malformed: int = 0
    completed: bool = False


class ResponseTransformer:
    """Single-pass transcoder from agent-turn SSE to text-delta SSE.

    Iterating the transformer pulls upstream chunks one at a time and yields
    encoded downstream frames as soon as each line completes. Faults inside
    the pipeline never escape: malformed lines are dropped and an upstream
    failure ends the output early. The upstream is released exactly once,
    whether the stream finishes, fails, or is closed by the consumer.

    A turn completes once. Data lines after the first completion emit no
    frames; any text they carry is logged as `stream_text_after_done`, so a
    multi-step turn that completes early is visible in diagnostics.

    Example:
        >>> transformer = ResponseTransformer(response.aiter_bytes(), release=response.aclose)
        >>> async for frame in transformer:
        ...     await send(frame)
    """

    def __init__(
        self,
        upstream: AsyncIterable[bytes],
        *,
        release: Callable[[], Awaitable[Any]] | None = None,
        encoding: str = DEFAULT_ENCODING,
    ) -> None:
        self._upstream = upstream
        self._release_upstream = release if release is not None else getattr(upstream, 'aclose', None)
        self._reader = SSEFrameReader(encoding)
        self._encoder = SSEEncoder(encoding)
        self._frames: AsyncGenerator[bytes, None] | None = None
        self._released = False
        self.stats = StreamStats()

    @property
    def completed(self) -> bool:
        """Whether a completion frame has been emitted."""
        return self.stats.completed

    @property
    def released(self) -> bool:
        return self._released

    def __aiter__(self) -> AsyncIterator[bytes]:
        if self._frames is None:
            self._frames = self._run()
        return self._frames

    async def aclose(self) -> None:
        """Stop the transform and release the upstream. Safe to call repeatedly."""
        if self._frames is not None:
            try:
                await self._frames.aclose()
            except RuntimeError as exc:
                # Generator still running in another task; its own finally releases.
                logger.debug('stream_close_deferred', error=str(exc))
        await self._release()

    def process_line(self, line: DecodedLine) -> LineOutcome:
        """Push one logical line through parse, extract and encode."""
        if line.error is not None:
            return LineOutcome('undecodable', detail=str(line.error))
        try:
            return self._process_text(line.text or '')
        except StreamTransformError as exc:
            return LineOutcome('malformed', detail=str(exc))

    def _process_text(self, text: str) -> LineOutcome:
        parsed = parse_sse_line(text)
        if parsed is None:
            return LineOutcome.ignored('blank or unrecognized line')
        if isinstance(parsed, SSEField):
            return LineOutcome.ignored(f'{parsed.kind.value} field')
        if self.stats.completed:
            if isinstance(parsed, DataEvent):
                late = extract_delta(classify_payload(parsed))
                if late.text:
                    logger.info('stream_text_after_done', text=late.text[:200])
            return LineOutcome.skipped('turn already completed')

        if isinstance(parsed, DoneEvent):
            extraction = Extraction(completed=True)
            reason = None
        else:
            if not parsed.is_json:
                logger.debug('stream_line_not_json', payload=parsed.payload[:200])
            try:
                payload = classify_payload(parsed)
                extraction = extract_delta(payload)
            except Exception as exc:
                raise StreamTransformError('extract', str(exc)) from exc
            reason = payload.reason if isinstance(payload, EmptyPayload) else None

        try:
            frames = self._encoder.encode(extraction)
        except UnicodeEncodeError as exc:
            raise StreamTransformError('encode', str(exc)) from exc
        if extraction.text:
            self.stats.text_deltas += 1
        if extraction.completed:
            self.stats.completed = True
        if not frames:
            return LineOutcome.skipped(reason)
        return LineOutcome.emitted(*frames)

    def _handle(self, line: DecodedLine) -> tuple[bytes, ...]:
        self.stats.lines += 1
        outcome = self.process_line(line)
        if outcome.status == 'ignored':
            self.stats.ignored += 1
        elif outcome.status == 'skipped':
            self.stats.skipped += 1
            logger.debug('stream_line_skipped', reason=outcome.detail)
        elif outcome.status == 'undecodable':
            self.stats.malformed += 1
            logger.warning('stream_line_undecodable', error=outcome.detail, size=len(line.raw))
        elif outcome.status == 'malformed':
            self.stats.malformed += 1
            logger.warning('stream_line_malformed', error=outcome.detail, line=(line.text or '')[:200])
        return outcome.frames

    async def _run(self) -> AsyncGenerator[bytes, None]:
        started = time.monotonic()
        try:
            try:
                async for chunk in self._upstream:
                    for line in self._reader.feed(chunk):
                        for frame in self._handle(line):
                            yield frame
            except Exception as exc:
                logger.error('stream_upstream_failed', error=str(exc), error_type=type(exc).__name__)
                return

            for line in self._reader.close():
                for frame in self._handle(line):
                    yield frame

            if not self.stats.completed:
                logger.warning('stream_ended_without_done', lines=self.stats.lines)
        finally:
            Metrics.record_stream(
                lines=self.stats.lines,
                text_deltas=self.stats.text_deltas,
                completed=self.stats.completed,
                skipped=self.stats.skipped,
                malformed=self.stats.malformed,
                duration_ms=(time.monotonic() - started) * 1000,
            )
            await self._release()

    async def _release(self) -> None:
        if self._released:
            return
        self._released = True
        if self._release_upstream is None:
            return
        # Runs from a cancelled task on client disconnect; must not be interrupted.
        with anyio.CancelScope(shield=True):
            try:
                await self._release_upstream()
            except Exception as exc:
                logger.warning('stream_release_failed', error=str(exc), error_type=type(exc).__name__)


def transform_agent_stream(
    upstream: AsyncIterable[bytes],
    *,
    release: Callable[[], Awaitable[Any]] | None = None,
    encoding: str = DEFAULT_ENCODING,
) -> ResponseTransformer:
    """Wrap an upstream agent byte stream in a downstream text-delta stream."""
    return ResponseTransformer(upstream, release=release, encoding=encoding)


def transform_httpx_response(response: httpx.Response, *, encoding: str = DEFAULT_ENCODING) -> ResponseTransformer:
    """Transform an open streaming `httpx.Response`; closes it when done."""
    return ResponseTransformer(response.aiter_bytes(), release=response.aclose, encoding=encoding)
