"""Centralized instrumentation for zengpt-bridge.

(c) Mike Casale 2025.
Licensed under the MIT License.
See LICENSE file for details.
"""

from __future__ import annotations as _annotations

# Standard library (alphabetical)
import os
from typing import Literal

# Third-party (alphabetical)
import logfire

__all__ = ("configure_instrumentation", "get_logger", "Metrics")


class Metrics:
    """Centralized metrics recording.

    Provides methods for recording various metric types consistently
    across the application.
    """

    @staticmethod
    def record_api_call(endpoint: str, status_code: int, duration_ms: float) -> None:
        """Record agent service call metrics."""
        logfire.info("api_call", endpoint=endpoint, status_code=status_code, duration_ms=duration_ms)

    @staticmethod
    def record_stream(
        *, lines: int, text_deltas: int, completed: bool, skipped: int, malformed: int, duration_ms: float
    ) -> None:
        """Record the summary of one transformed response stream."""
        logfire.info(
            "agent_stream_completed",
            lines=lines,
            text_deltas=text_deltas,
            completed=completed,
            skipped=skipped,
            malformed=malformed,
            duration_ms=duration_ms,
        )


def configure_instrumentation(
    *,
    service_name: str = "zengpt-bridge",
    environment: str | None = None,
    send_to_logfire: bool | Literal["if-token-present"] | None = "if-token-present",
) -> None:
    """Configure global instrumentation settings.

    This function should be called once at application startup.

    Args:
        service_name: Name of the service for tracing.
        environment: Deployment environment (dev, staging, prod).
        send_to_logfire: Whether to send telemetry to Logfire.
    """
    environment = environment or os.getenv("ENVIRONMENT", "development")

    logfire.configure(service_name=service_name, environment=environment, send_to_logfire=send_to_logfire)

    # Upstream calls to the agent service
    logfire.instrument_httpx()


def get_logger(name: str) -> logfire.Logfire:
    """Get a logger with component-specific settings.

    Args:
        name: Component name (e.g., 'streaming.transformer', 'adapters.zengpt').

    Returns:
        Configured Logfire instance.
    """
    return logfire.with_settings(tags=[f"component:{name}"])
