"""FastAPI application bridging the chat UI to the agent service.

(c) Mike Casale 2025.
Licensed under the MIT License.
See LICENSE file for details.
"""

from __future__ import annotations as _annotations

# Standard library (alphabetical)
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Final

# Third-party (alphabetical)
import logfire
from fastapi import BackgroundTasks, FastAPI, Request
from fastapi.responses import JSONResponse, Response, StreamingResponse

# Local imports (core first, then alphabetical)
from zengpt_bridge._version import __version__
from zengpt_bridge.adapters.zengpt import ZenGPTClient
from zengpt_bridge.core.constants import CORS_HEADERS, CORS_MAX_AGE_SECONDS, SSE_RESPONSE_HEADERS
from zengpt_bridge.core.exceptions import ZenGPTClientError, status_code_for_error
from zengpt_bridge.core.settings import ZenGPTSettings, load_zengpt_settings
from zengpt_bridge.infra import configure_instrumentation, load_settings
from zengpt_bridge.streaming.messages import transform_response
from zengpt_bridge.streaming.transformer import transform_httpx_response

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

__all__ = ('ChatHandler', 'ChatInput', 'build_app', 'create_app', 'extract_message_content')

APP_TITLE: Final[str] = 'ZenGPT Bridge'
CHAT_AGENT_PATH: Final[str] = '/api/chat-agent'


@dataclass(frozen=True, slots=True)
class ChatInput:
    """Validated chat request: the latest user text and its session."""

    content: str
    session_id: str


class ChatHandler:
    """Handle chat requests from the frontend."""

    def __init__(self, settings: ZenGPTSettings, client: ZenGPTClient) -> None:
        self.settings = settings
        self.client = client

    async def stream(self, request: Request) -> Response:
        """Forward the latest message and stream the transcoded reply."""
        try:
            parsed = await self._parse(request)
            if isinstance(parsed, Response):
                return parsed

            logfire.info('chat_request_received', session_id=parsed.session_id)
            upstream = await self.client.open_stream(parsed.content, parsed.session_id)
            transformer = transform_httpx_response(upstream, encoding=self.settings.encoding)
            cleanup = BackgroundTasks()
            cleanup.add_task(transformer.aclose)
            return StreamingResponse(
                transformer,
                media_type='text/event-stream',
                headers={**SSE_RESPONSE_HEADERS, **CORS_HEADERS},
                background=cleanup,
            )
        except ZenGPTClientError as exc:
            return _client_error_response(exc)
        except Exception as exc:
            logfire.error('chat_endpoint_error', error=str(exc))
            return _error_response(500, error='Internal server error', message=str(exc))

    async def invoke(self, request: Request) -> Response:
        """Forward the latest message and return the complete reply as message parts."""
        try:
            parsed = await self._parse(request)
            if isinstance(parsed, Response):
                return parsed

            logfire.info('chat_invoke_received', session_id=parsed.session_id)
            response = await self.client.invoke(parsed.content, parsed.session_id)
            message = transform_response(response)
            return JSONResponse(message.to_wire(), headers=CORS_HEADERS)
        except ZenGPTClientError as exc:
            return _client_error_response(exc)
        except Exception as exc:
            logfire.error('chat_endpoint_error', error=str(exc))
            return _error_response(500, error='Internal server error', message=str(exc))

    async def _parse(self, request: Request) -> ChatInput | Response:
        if not self.settings.enabled:
            return _error_response(
                503, error='ZenGPT agent is not enabled. Set ZENGPT_ENABLED=true to use this endpoint.'
            )

        try:
            body = await request.json()
        except ValueError:
            return _error_response(400, error='Request body must be JSON')
        if not isinstance(body, dict):
            return _error_response(400, error='Request body must be a JSON object')

        messages = body.get('messages')
        if not isinstance(messages, list) or not messages:
            return _error_response(400, error='Messages array is required')

        content = extract_message_content(messages[-1])
        if not content.strip():
            return _error_response(400, error='Message content is required')

        session_id = body.get('id')
        if not isinstance(session_id, str) or not session_id:
            session_id = ZenGPTClient.generate_session_id()
        return ChatInput(content, session_id)


def extract_message_content(message: Any) -> str:
    """Return the text of a chat message.

    Messages in parts format contribute their `text` parts joined by
    newlines; otherwise the `content` field is used.
    """
    if not isinstance(message, dict):
        return ''
    parts = message.get('parts')
    if isinstance(parts, list):
        texts = [
            part['text']
            for part in parts
            if isinstance(part, dict) and part.get('type') == 'text' and isinstance(part.get('text'), str)
        ]
        return '\n'.join(text for text in texts if text)
    content = message.get('content')
    return content if isinstance(content, str) else ''


def create_app(
    settings: ZenGPTSettings | None = None, *, client: ZenGPTClient | None = None, instrument: bool = False
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Agent service settings; read from the environment when omitted.
        client: Pre-built agent client, mainly for tests.
        instrument: Trace requests with Logfire; requires `configure_instrumentation()` first.

    Returns:
        Configured application. The agent client is closed on shutdown.

    Raises:
        ConfigurationError: If settings are read from the environment and are unusable.
    """
    settings = settings or load_zengpt_settings()
    client = client or ZenGPTClient(settings)
    handler = ChatHandler(settings, client)

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        logfire.info(
            'bridge_started', api_url=settings.api_url, enabled=settings.enabled, api_key=settings.masked_api_key
        )
        yield
        await client.aclose()

    app = FastAPI(
        title=APP_TITLE,
        description='Streaming bridge between the chat UI and the ZenGPT agent service',
        version=__version__,
        lifespan=lifespan,
    )
    if instrument:
        logfire.instrument_fastapi(app)
    app.state.settings = settings
    app.state.client = client

    @app.get('/health')
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {'status': 'healthy'}

    @app.get(f'{CHAT_AGENT_PATH}/status')
    async def agent_status() -> dict[str, bool]:
        """Report the feature flag and upstream reachability."""
        healthy = await client.health_check() if settings.enabled else False
        return {'enabled': settings.enabled, 'upstreamHealthy': healthy}

    @app.post(CHAT_AGENT_PATH)
    async def chat_agent(request: Request) -> Response:
        return await handler.stream(request)

    @app.post(f'{CHAT_AGENT_PATH}/invoke')
    async def chat_agent_invoke(request: Request) -> Response:
        return await handler.invoke(request)

    @app.options(CHAT_AGENT_PATH)
    async def chat_agent_preflight() -> Response:
        return Response(status_code=200, headers={**CORS_HEADERS, 'Access-Control-Max-Age': str(CORS_MAX_AGE_SECONDS)})

    return app


def build_app() -> FastAPI:
    """Application factory for uvicorn: instrumentation plus environment settings."""
    configure_instrumentation(environment=load_settings().environment)
    return create_app(instrument=True)


def _error_response(status_code: int, **content: Any) -> JSONResponse:
    return JSONResponse(content, status_code=status_code)


def _client_error_response(exc: ZenGPTClientError) -> JSONResponse:
    logfire.error('zengpt_api_error', code=exc.code, error=str(exc))
    return _error_response(
        status_code_for_error(exc), error=exc.detail.message, code=exc.code, details=exc.detail.details
    )
