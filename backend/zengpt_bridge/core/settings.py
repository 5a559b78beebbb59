"""Settings for the agent service connection.

(c) Mike Casale 2025.
Licensed under the MIT License.
See LICENSE file for details.
"""

from __future__ import annotations as _annotations

# =============================================================================
# Section 1: Imports
# =============================================================================
# Standard library (alphabetical)
import codecs

# Third-party (alphabetical)
from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Local imports (core first, then alphabetical)
from .constants import (
    DEFAULT_API_URL,
    DEFAULT_APP_NAME,
    DEFAULT_ENCODING,
    DEFAULT_TIMEOUT_SECONDS,
    DEFAULT_USER_ID,
)
from .exceptions import ConfigurationError

# =============================================================================
# Section 2: Module Exports
# =============================================================================
__all__ = ("BridgeSettings", "ZenGPTSettings", "load_zengpt_settings", "mask_secret")


# =============================================================================
# Section 11: Classes
# =============================================================================
class BridgeSettings(BaseSettings):
    """Base settings with shared environment defaults."""

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        validate_default=True,
    )


class ZenGPTSettings(BridgeSettings):
    """Settings for the upstream agent service.

    Environment variables are prefixed with ZENGPT_.
    """

    model_config = SettingsConfigDict(env_prefix="ZENGPT_", env_file=".env", extra="ignore", validate_default=True)

    api_url: str = Field(default=DEFAULT_API_URL, description="Base URL of the agent service")
    api_key: str = Field(default="", description="Value sent in the X-API-Key header")
    enabled: bool = Field(default=False, description="Feature flag for the chat-agent route")
    timeout: float = Field(default=DEFAULT_TIMEOUT_SECONDS, ge=1, description="HTTP timeout in seconds")
    app_name: str = Field(default=DEFAULT_APP_NAME, description="Agent application name")
    user_id: str = Field(default=DEFAULT_USER_ID, description="User id sent with every run")
    encoding: str = Field(default=DEFAULT_ENCODING, description="Text encoding of both SSE streams")

    @field_validator("api_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @field_validator("encoding")
    @classmethod
    def _known_encoding(cls, value: str) -> str:
        try:
            codecs.lookup(value)
        except LookupError as exc:
            raise ValueError(f"unknown encoding: {value}") from exc
        return value

    @property
    def masked_api_key(self) -> str:
        return mask_secret(self.api_key)


# =============================================================================
# Section 12: Functions
# =============================================================================
def mask_secret(secret: str | None) -> str:
    """Return a log-safe rendering of a secret."""
    if not secret:
        return "None"
    if len(secret) <= 8:
        return secret[0] + "***" + secret[-1]
    return secret[:4] + "..." + secret[-4:]


def load_zengpt_settings() -> ZenGPTSettings:
    """Read agent settings from the environment.

    Raises:
        ConfigurationError: If a value is present but unusable. The error
            names the offending environment variable.
    """
    try:
        return ZenGPTSettings()
    except ValidationError as exc:
        error = exc.errors()[0]
        field = str(error["loc"][0]) if error["loc"] else "settings"
        raise ConfigurationError(f"ZENGPT_{field.upper()}", error["msg"]) from exc
