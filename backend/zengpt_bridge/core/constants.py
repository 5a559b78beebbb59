"""Module-level constants for zengpt-bridge.

All constants are declared with Final type annotation for immutability
and IDE support.
"""
from __future__ import annotations

from typing import Final

# =============================================================================
# Section 1: Module Exports
# =============================================================================
__all__ = [
    # SSE protocol
    'DONE_SENTINEL',
    'DATA_PREFIX',
    'EVENT_PREFIX',
    'ID_PREFIX',
    'RETRY_PREFIX',
    'TEXT_DELTA_TYPE',
    # Upstream defaults
    'DEFAULT_API_URL',
    'DEFAULT_APP_NAME',
    'DEFAULT_USER_ID',
    'DEFAULT_TIMEOUT_SECONDS',
    'DEFAULT_ENCODING',
    'DEFAULT_SESSION_PREFIX',
    # Endpoints
    'RUN_ENDPOINT',
    'RUN_SSE_ENDPOINT',
    'HEALTH_ENDPOINT',
    # HTTP headers
    'SSE_RESPONSE_HEADERS',
    'CORS_HEADERS',
    'CORS_MAX_AGE_SECONDS',
]

# =============================================================================
# Section 2: SSE Protocol Constants
# =============================================================================
DONE_SENTINEL: Final[str] = '[DONE]'
DATA_PREFIX: Final[str] = 'data: '
EVENT_PREFIX: Final[str] = 'event: '
ID_PREFIX: Final[str] = 'id: '
RETRY_PREFIX: Final[str] = 'retry: '
TEXT_DELTA_TYPE: Final[str] = 'text-delta'

# =============================================================================
# Section 3: Upstream Defaults
# =============================================================================
DEFAULT_API_URL: Final[str] = 'https://zengpt-central-agent-us-central1.run.app'
DEFAULT_APP_NAME: Final[str] = 'zengpt_central_agent'
DEFAULT_USER_ID: Final[str] = 'default_user'
DEFAULT_TIMEOUT_SECONDS: Final[float] = 30.0
DEFAULT_ENCODING: Final[str] = 'utf-8'
DEFAULT_SESSION_PREFIX: Final[str] = 'zengpt'

RUN_ENDPOINT: Final[str] = '/run'
RUN_SSE_ENDPOINT: Final[str] = '/run_sse'
HEALTH_ENDPOINT: Final[str] = '/health'

# =============================================================================
# Section 4: HTTP Header Constants
# =============================================================================
SSE_RESPONSE_HEADERS: Final[dict[str, str]] = {
    'Cache-Control': 'no-cache, no-transform',
    'Connection': 'keep-alive',
    'X-Accel-Buffering': 'no',  # Disable nginx buffering
}

CORS_HEADERS: Final[dict[str, str]] = {
    'Access-Control-Allow-Origin': '*',
    'Access-Control-Allow-Methods': 'POST, OPTIONS',
    'Access-Control-Allow-Headers': 'Content-Type, Authorization',
}

CORS_MAX_AGE_SECONDS: Final[int] = 86400
