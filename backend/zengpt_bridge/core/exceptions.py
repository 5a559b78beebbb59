"""Exception hierarchy for zengpt-bridge.

(c) Mike Casale 2025.
Licensed under the MIT License.
See LICENSE file for details.
"""

from __future__ import annotations as _annotations

# Standard library (alphabetical)
from dataclasses import dataclass
from typing import Any

__all__ = (
    'BridgeError',
    'ConfigurationError',
    'ErrorDetail',
    'StreamTransformError',
    'ZenGPTClientError',
    'status_code_for_error',
)


class BridgeError(Exception):
    """Base exception for all zengpt-bridge errors.

    All exceptions in the system inherit from this class, enabling
    catch-all handling at application boundaries.

    Attributes:
        context: Additional context for debugging.
        recoverable: Whether the error can potentially be recovered.
    """

    def __init__(self, message: str, *, context: dict[str, Any] | None = None, recoverable: bool = True) -> None:
        self.context = context or {}
        self.recoverable = recoverable
        super().__init__(message)


class ConfigurationError(BridgeError):
    """Raised when a required setting is missing or unusable."""

    def __init__(self, setting: str, message: str) -> None:
        self.setting = setting
        super().__init__(f'Invalid setting {setting}: {message}', context={'setting': setting}, recoverable=False)


# =============================================================================
# Agent Client Exceptions
# =============================================================================
@dataclass(frozen=True, slots=True)
class ErrorDetail:
    """Error payload reported by (or synthesized for) the agent service."""

    code: str
    message: str
    details: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {'code': self.code, 'message': self.message, 'details': self.details}


class ZenGPTClientError(BridgeError):
    """Raised when a request to the agent service fails.

    Attributes:
        detail: Structured error code, message and optional details.
    """

    def __init__(self, message: str, detail: ErrorDetail) -> None:
        self.detail = detail
        super().__init__(
            message,
            context=detail.to_dict(),
            recoverable=detail.code in ('TIMEOUT', 'NETWORK_ERROR') or detail.code.startswith('HTTP_5'),
        )

    @property
    def code(self) -> str:
        return self.detail.code


# =============================================================================
# Streaming Exceptions
# =============================================================================
class StreamTransformError(BridgeError):
    """Raised inside the response transformer; never escapes it."""

    def __init__(self, stage: str, message: str) -> None:
        self.stage = stage
        super().__init__(f'[{stage}] {message}', context={'stage': stage})


def status_code_for_error(exc: ZenGPTClientError) -> int:
    """Map a client error to the HTTP status returned to the chat UI."""
    code = exc.code
    if code == 'TIMEOUT':
        return 408
    if code.startswith('HTTP_'):
        try:
            return int(code[5:])
        except ValueError:
            return 500
    return 500
