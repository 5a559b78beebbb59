"""Tests for the response transformer.

(c) Mike Casale 2025.
Licensed under the MIT License.
See LICENSE file for details.
"""

from __future__ import annotations as _annotations

from typing import TYPE_CHECKING
from unittest.mock import AsyncMock, MagicMock

import anyio
import httpx
import pytest

from tests.helpers import agent_event, chunked, collect
from zengpt_bridge.streaming import transformer as transformer_module
from zengpt_bridge.streaming.transformer import ResponseTransformer, transform_agent_stream, transform_httpx_response

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

__all__ = ()

pytestmark = pytest.mark.anyio

DONE = b"data: [DONE]\n\n"


def delta(text: str) -> bytes:
    return f'data: {{"type":"text-delta","textDelta":"{text}"}}\n\n'.encode()


async def transform(data: bytes, *, chunk_size: int | None = None) -> list[bytes]:
    upstream = chunked(data, chunk_size or max(len(data), 1))
    return await collect(transform_agent_stream(upstream))


class TestSingleEvents:
    """One upstream event in, the documented frames out."""

    async def test_partial_text(self) -> None:
        """A partial nested payload yields exactly one text-delta frame."""
        frames = await transform(agent_event("Hello", partial=True))

        assert frames == [b'data: {"type":"text-delta","textDelta":"Hello"}\n\n']

    async def test_final_text(self) -> None:
        """A non-partial payload yields its text delta followed by [DONE]."""
        frames = await transform(agent_event("Bye", partial=False))

        assert frames == [delta("Bye"), DONE]

    async def test_done_sentinel(self) -> None:
        """A [DONE] line yields only the completion frame."""
        assert await transform(b"data: [DONE]\n\n") == [DONE]

    async def test_empty_text_is_noop(self) -> None:
        """An event without text emits nothing."""
        frames = await transform(b'data: {"content": {"parts": [{"text": ""}]}, "partial": true}\n\n')

        assert frames == []

    async def test_flat_payloads(self) -> None:
        """Flat `response` and `text` payloads are forwarded."""
        frames = await transform(b'data: {"response": "one"}\n\ndata: {"text": "two"}\n\n')

        assert frames == [delta("one"), delta("two")]

    async def test_metadata_lines_are_ignored(self) -> None:
        """event/id/retry lines and comments produce no frames."""
        data = b"event: message\nid: 1\nretry: 1000\n: comment\n" + agent_event("x", partial=True)

        assert await transform(data) == [delta("x")]

    async def test_crlf_line_endings(self) -> None:
        """CRLF-terminated upstream lines are handled."""
        assert await transform(b'data: {"text": "x"}\r\n\r\ndata: [DONE]\r\n\r\n') == [delta("x"), DONE]


class TestMalformedInput:
    """Malformed frames degrade without aborting the stream."""

    async def test_non_json_payload_does_not_stop_stream(self) -> None:
        """Raw text is forwarded and later lines are still processed."""
        data = b"data: not json\n\n" + agent_event("after", partial=True)

        frames = await transform(data)

        assert frames == [delta("not json"), delta("after")]

    async def test_undecodable_line_is_dropped(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Invalid UTF-8 drops only its own line and logs a warning."""
        logger = MagicMock()
        monkeypatch.setattr(transformer_module, "logger", logger)
        data = b"data: \xff\xfe\n\n" + agent_event("ok", partial=True)

        stream = transform_agent_stream(chunked(data, len(data)))
        frames = await collect(stream)

        assert frames == [delta("ok")]
        assert stream.stats.malformed == 1
        assert logger.warning.call_args_list[0].args[0] == "stream_line_undecodable"

    async def test_unexpected_shape_is_skipped(self) -> None:
        """JSON without text yields nothing and does not raise."""
        assert await transform(b"data: [1, 2]\n\ndata: {}\n\n") == []

    async def test_unencodable_text_is_dropped(self) -> None:
        """Text the output encoding cannot represent drops only that line."""
        data = agent_event("wave \U0001f44b", partial=True) + agent_event("plain", partial=True)

        stream = transform_agent_stream(chunked(data, len(data)), encoding="latin-1")
        frames = await collect(stream)

        assert frames == [delta("plain")]
        assert stream.stats.malformed == 1
        assert stream.stats.text_deltas == 1


class TestEndToEnd:
    """The recorded four-event agent turn."""

    async def test_fixture_reproduces_final_text(self, agent_stream_fixture: bytes) -> None:
        """Partial fragments and the final full sentence are all forwarded.

        The final non-partial event repeats the whole answer, so the
        downstream text is duplicated. This is the upstream's behaviour as
        observed; the transformer forwards it unchanged.
        """
        frames = await transform(agent_stream_fixture)

        assert frames == [
            delta("Hello"),
            delta("! I'm ZenGPT"),
            delta(", your AI assistant."),
            delta("Hello! I'm ZenGPT, your AI assistant."),
            DONE,
        ]

    @pytest.mark.parametrize("chunk_size", [1, 2, 3, 7, 64, 1000])
    async def test_chunk_boundary_invariance(self, agent_stream_fixture: bytes, chunk_size: int) -> None:
        """Output is identical however the upstream bytes are split."""
        whole = await transform(agent_stream_fixture)

        assert await transform(agent_stream_fixture, chunk_size=chunk_size) == whole

    async def test_residual_line_is_flushed(self) -> None:
        """A last line without a trailing newline is still processed."""
        assert await transform(b'data: {"text": "tail", "partial": false}') == [delta("tail"), DONE]

    async def test_single_completion_frame(self, agent_stream_fixture: bytes) -> None:
        """A [DONE] after a final event does not emit a second sentinel."""
        stream = transform_agent_stream(chunked(agent_stream_fixture + b"data: [DONE]\n\n", 10))

        frames = await collect(stream)

        assert frames.count(DONE) == 1
        assert frames[-1] == DONE
        assert stream.completed
        assert stream.stats.text_deltas == 4

    async def test_text_after_completion_is_logged(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Text arriving after the turn completed is not forwarded but is logged."""
        logger = MagicMock()
        monkeypatch.setattr(transformer_module, "logger", logger)
        data = agent_event("first", partial=False) + agent_event("late answer", partial=True)

        stream = transform_agent_stream(chunked(data, len(data)))
        frames = await collect(stream)

        assert frames == [delta("first"), DONE]
        assert stream.stats.skipped == 1
        logger.info.assert_called_once_with("stream_text_after_done", text="late answer")

    async def test_stream_without_done(self) -> None:
        """A stream ending without completion just closes."""
        stream = transform_agent_stream(chunked(agent_event("cut", partial=True), 5))

        assert await collect(stream) == [delta("cut")]
        assert not stream.completed


class TestResourceRelease:
    """The upstream is released exactly once on every exit path."""

    async def test_release_on_completion(self, agent_stream_fixture: bytes) -> None:
        """Normal exhaustion releases the upstream."""
        release = AsyncMock()

        stream = transform_agent_stream(chunked(agent_stream_fixture, 16), release=release)
        await collect(stream)
        await stream.aclose()

        release.assert_awaited_once()
        assert stream.released

    async def test_release_on_consumer_cancel(self, agent_stream_fixture: bytes) -> None:
        """Closing mid-stream releases the upstream once, without raising."""
        release = AsyncMock()
        stream = transform_agent_stream(chunked(agent_stream_fixture, 16), release=release)

        iterator = stream.__aiter__()
        first = await iterator.__anext__()
        await stream.aclose()
        await stream.aclose()

        assert first == delta("Hello")
        release.assert_awaited_once()

    async def test_release_when_never_iterated(self) -> None:
        """Closing an unstarted transformer still releases the upstream."""
        release = AsyncMock()

        stream = transform_agent_stream(chunked(b"data: [DONE]\n", 4), release=release)
        await stream.aclose()

        release.assert_awaited_once()

    async def test_release_completes_when_consumer_task_is_cancelled(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Cancelling the consuming task still runs the release to completion."""
        metrics = MagicMock()
        monkeypatch.setattr(transformer_module, "Metrics", metrics)
        state = {"started": 0, "finished": 0}

        async def release() -> None:
            state["started"] += 1
            await anyio.sleep(0)
            state["finished"] += 1

        async def upstream() -> AsyncIterator[bytes]:
            yield agent_event("Hello", partial=True)
            await anyio.sleep_forever()

        stream = transform_agent_stream(upstream(), release=release)
        received: list[bytes] = []
        first_frame = anyio.Event()

        async def consume() -> None:
            async for frame in stream:
                received.append(frame)
                first_frame.set()

        async with anyio.create_task_group() as tg:
            tg.start_soon(consume)
            await first_frame.wait()
            tg.cancel_scope.cancel()
        await stream.aclose()

        assert received == [delta("Hello")]
        assert state == {"started": 1, "finished": 1}
        assert stream.released
        metrics.record_stream.assert_called_once()

    async def test_upstream_failure_ends_stream(self) -> None:
        """A transport fault ends the output early and releases the upstream."""
        release = AsyncMock()

        async def failing() -> AsyncIterator[bytes]:
            yield agent_event("partial", partial=True)
            raise httpx.ReadError("connection dropped")

        frames = await collect(transform_agent_stream(failing(), release=release))

        assert frames == [delta("partial")]
        release.assert_awaited_once()

    async def test_release_failure_is_suppressed(self) -> None:
        """Errors raised while releasing never reach the consumer."""
        release = AsyncMock(side_effect=RuntimeError("already released"))
        stream = transform_agent_stream(chunked(b"data: [DONE]\n\n", 4), release=release)

        assert await collect(stream) == [DONE]
        await stream.aclose()

        release.assert_awaited_once()

    async def test_default_release_closes_upstream_generator(self) -> None:
        """Without a release callback the upstream's own aclose is used."""
        closed = False

        async def upstream() -> AsyncIterator[bytes]:
            nonlocal closed
            try:
                yield agent_event("a", partial=True)
                yield agent_event("b", partial=True)
            finally:
                closed = True

        stream = ResponseTransformer(upstream())
        iterator = stream.__aiter__()
        await iterator.__anext__()
        await stream.aclose()

        assert closed


class TestHttpxResponse:
    """Transforming an open httpx streaming response."""

    async def test_transform_httpx_response(self, agent_stream_fixture: bytes) -> None:
        """The response body is transcoded and the response closed."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=agent_stream_fixture, headers={"content-type": "text/event-stream"})

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            request = client.build_request("POST", "https://agent.test/run_sse")
            response = await client.send(request, stream=True)

            frames = await collect(transform_httpx_response(response))

        assert frames[-1] == DONE
        assert len(frames) == 5
        assert response.is_closed
