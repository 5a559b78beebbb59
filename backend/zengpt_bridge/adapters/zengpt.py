"""Async HTTP client for the hosted ZenGPT agent service.

(c) Mike Casale 2025.
Licensed under the MIT License.
See LICENSE file for details.
"""

from __future__ import annotations as _annotations

# Standard library (alphabetical)
import json
import random
import string
import time
from dataclasses import dataclass, field
from typing import Any

# Third-party (alphabetical)
import httpx
import logfire
from pydantic import ValidationError

# Local imports (core first, then alphabetical)
from zengpt_bridge.core.constants import (
    DEFAULT_SESSION_PREFIX,
    HEALTH_ENDPOINT,
    RUN_ENDPOINT,
    RUN_SSE_ENDPOINT,
)
from zengpt_bridge.core.exceptions import ErrorDetail, ZenGPTClientError
from zengpt_bridge.core.models import ZenGPTErrorBody, ZenGPTRequest, ZenGPTResponse
from zengpt_bridge.core.settings import ZenGPTSettings
from zengpt_bridge.infra.instrumentation import Metrics, get_logger

__all__ = ('ZenGPTClient',)

logger = get_logger('adapters.zengpt')

_SESSION_ALPHABET = string.digits + string.ascii_lowercase


@dataclass
class ZenGPTClient:
    """Client for the agent service's run, run_sse and session endpoints.

    Retries are not attempted; every failure surfaces as a
    `ZenGPTClientError` with a stable code (`TIMEOUT`, `NETWORK_ERROR`,
    `HTTP_<status>` or the code reported by the service).

    Example:
        >>> settings = ZenGPTSettings(api_key='my_api_key')
        >>> async with ZenGPTClient(settings) as client:
        ...     response = await client.open_stream('Hello', client.generate_session_id())
        ...     async for frame in transform_httpx_response(response):
        ...         print(frame)
    """

    settings: ZenGPTSettings
    transport: httpx.AsyncBaseTransport | None = field(default=None, repr=False)
    _client: httpx.AsyncClient = field(init=False, repr=False)

    def __post_init__(self) -> None:
        headers = {'Content-Type': 'application/json'}
        if self.settings.api_key:
            headers['X-API-Key'] = self.settings.api_key
        else:
            logger.warning('zengpt_api_key_missing', hint='Set ZENGPT_API_KEY environment variable.')
        self._client = httpx.AsyncClient(
            base_url=self.settings.api_url,
            timeout=self.settings.timeout,
            headers=headers,
            transport=self.transport,
        )

    async def __aenter__(self) -> ZenGPTClient:
        return self

    async def __aexit__(self, exc_type: type[BaseException] | None, exc_val: BaseException | None, exc_tb: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    @staticmethod
    def generate_session_id(prefix: str = DEFAULT_SESSION_PREFIX) -> str:
        """Return `<prefix>-<epoch millis>-<9 random base36 chars>`."""
        suffix = ''.join(random.choices(_SESSION_ALPHABET, k=9))
        return f'{prefix}-{int(time.time() * 1000)}-{suffix}'

    async def invoke(self, message: str, session_id: str) -> ZenGPTResponse:
        """Run one turn and wait for the complete response."""
        body = self._run_request(message, session_id).to_body()
        with logfire.span('zengpt.invoke', session_id=session_id):
            response = await self._request('POST', RUN_ENDPOINT, payload=body)
            try:
                data = response.json()
            except json.JSONDecodeError as exc:
                raise ZenGPTClientError(
                    'Invalid response', ErrorDetail('INVALID_RESPONSE', 'Response was not JSON', response.text[:500])
                ) from exc
            return _to_response(data, session_id)

    async def open_stream(self, message: str, session_id: str) -> httpx.Response:
        """Start a streaming turn and return the open response.

        The body is not read. The caller owns the response and must close it,
        which `transform_httpx_response` does on every exit path.
        """
        body = self._run_request(message, session_id, streaming=True).to_body()
        with logfire.span('zengpt.open_stream', session_id=session_id):
            return await self._request(
                'POST', RUN_SSE_ENDPOINT, payload=body, headers={'Accept': 'text/event-stream'}, stream=True
            )

    async def create_session(self, session_id: str, *, user_id: str | None = None) -> dict[str, Any]:
        """Create a session for the configured agent application."""
        user = user_id or self.settings.user_id
        path = f'/apps/{self.settings.app_name}/users/{user}/sessions/{session_id}'
        with logfire.span('zengpt.create_session', session_id=session_id, user_id=user):
            response = await self._request('POST', path, payload={'state': {}})
            try:
                return response.json()
            except json.JSONDecodeError:
                return {}

    async def health_check(self) -> bool:
        """Return True when the service's health endpoint answers 2xx."""
        try:
            response = await self._client.get(HEALTH_ENDPOINT)
        except httpx.HTTPError as exc:
            logger.warning('zengpt_health_check_failed', error=str(exc))
            return False
        return response.is_success

    def _run_request(self, message: str, session_id: str, *, streaming: bool | None = None) -> ZenGPTRequest:
        return ZenGPTRequest.for_text(
            message,
            app_name=self.settings.app_name,
            user_id=self.settings.user_id,
            session_id=session_id,
            streaming=streaming,
        )

    async def _request(
        self,
        method: str,
        path: str,
        *,
        payload: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        stream: bool = False,
    ) -> httpx.Response:
        logger.info('zengpt_request', method=method, url=f'{self.settings.api_url}{path}')
        started = time.monotonic()
        request = self._client.build_request(method, path, json=payload, headers=headers)
        try:
            response = await self._client.send(request, stream=stream)
        except httpx.TimeoutException as exc:
            raise ZenGPTClientError('Request timeout', ErrorDetail('TIMEOUT', 'Request timed out')) from exc
        except httpx.HTTPError as exc:
            raise ZenGPTClientError(
                'Network error', ErrorDetail('NETWORK_ERROR', str(exc) or 'Network request failed')
            ) from exc

        Metrics.record_api_call(path, response.status_code, (time.monotonic() - started) * 1000)
        logger.info('zengpt_response', status_code=response.status_code, content_type=response.headers.get('content-type'))

        if response.is_success:
            return response

        try:
            error_text = (await response.aread()).decode(response.encoding or 'utf-8', errors='replace')
        finally:
            await response.aclose()
        detail = _error_detail(response, error_text)
        logger.warning('zengpt_error_response', status_code=response.status_code, code=detail.code)
        raise ZenGPTClientError(detail.message, detail)


def _error_detail(response: httpx.Response, error_text: str) -> ErrorDetail:
    try:
        body = ZenGPTErrorBody.model_validate_json(error_text)
    except ValidationError:
        return ErrorDetail(
            f'HTTP_{response.status_code}', response.reason_phrase or 'Unknown error', error_text or None
        )
    return ErrorDetail(body.error.code, body.error.message, body.error.details)


def _to_response(data: Any, session_id: str) -> ZenGPTResponse:
    """Accept either a response document or a list of agent turn events."""
    if isinstance(data, dict):
        try:
            response = ZenGPTResponse.model_validate(data)
        except ValidationError as exc:
            raise ZenGPTClientError(
                'Invalid response', ErrorDetail('INVALID_RESPONSE', 'Unexpected response shape', str(exc))
            ) from exc
        if not response.session_id:
            response.session_id = session_id
        return response

    text = ''
    if isinstance(data, list):
        for event in data:
            content = event.get('content') if isinstance(event, dict) else None
            parts = content.get('parts') if isinstance(content, dict) else None
            if isinstance(parts, list):
                texts = [part['text'] for part in parts if isinstance(part, dict) and isinstance(part.get('text'), str)]
                if any(texts):
                    text = ''.join(texts)
    return ZenGPTResponse(response=text, session_id=session_id)
