"""Shared test fixtures and helpers for zengpt-bridge tests.

(c) Mike Casale 2025.
Licensed under the MIT License.
See LICENSE file for details.
"""

from __future__ import annotations as _annotations

import os
from typing import TYPE_CHECKING

import httpx
import logfire
import pytest

from tests.helpers import agent_event
from zengpt_bridge.core.settings import ZenGPTSettings

# Keep diagnostics local during tests.
logfire.configure(send_to_logfire=False, console=False)

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

__all__ = ("TestEnv",)


class TestEnv:
    """Helper for managing environment variables in tests."""

    __test__ = False  # Prevent pytest from collecting this class

    def __init__(self) -> None:
        self.envars: dict[str, str | None] = {}

    def set(self, name: str, value: str) -> None:
        """Set an environment variable, saving the original value."""
        self.envars[name] = os.getenv(name)
        os.environ[name] = value

    def remove(self, name: str) -> None:
        """Remove an environment variable, saving the original value."""
        self.envars[name] = os.environ.pop(name, None)

    def reset(self) -> None:
        """Reset all modified environment variables to original values."""
        for name, value in self.envars.items():
            if value is None:
                os.environ.pop(name, None)
            else:
                os.environ[name] = value


@pytest.fixture
def env() -> Iterator[TestEnv]:
    """Fixture for managing environment variables in tests."""
    test_env = TestEnv()
    yield test_env
    test_env.reset()


@pytest.fixture(scope="session")
def anyio_backend() -> str:
    """Use asyncio as the async backend."""
    return "asyncio"


@pytest.fixture
def agent_stream_fixture() -> bytes:
    """Four agent turn events: three partial fragments and the final full sentence."""
    return b"".join(
        [
            agent_event("Hello", partial=True, event_id="chunk1"),
            agent_event("! I'm ZenGPT", partial=True, event_id="chunk2"),
            agent_event(", your AI assistant.", partial=True, event_id="chunk3"),
            agent_event("Hello! I'm ZenGPT, your AI assistant.", partial=False, event_id="final"),
        ]
    )


@pytest.fixture
def settings() -> ZenGPTSettings:
    """Agent settings that never touch the environment or a real service."""
    return ZenGPTSettings(
        _env_file=None,
        api_url="https://agent.test",
        api_key="test-api-key-1234",
        enabled=True,
        timeout=5,
    )


@pytest.fixture
def recorded_requests() -> list[httpx.Request]:
    """Requests seen by `make_transport` handlers."""
    return []


@pytest.fixture
def make_transport(recorded_requests: list[httpx.Request]) -> Callable[..., httpx.MockTransport]:
    """Build a mock agent service from a request handler."""

    def factory(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.MockTransport:
        def recording_handler(request: httpx.Request) -> httpx.Response:
            recorded_requests.append(request)
            return handler(request)

        return httpx.MockTransport(recording_handler)

    return factory
