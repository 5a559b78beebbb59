"""Process and server configuration for zengpt-bridge.

(c) Mike Casale 2025.
Licensed under the MIT License.
See LICENSE file for details.
"""

from __future__ import annotations as _annotations

# =============================================================================
# Section 1: Imports
# =============================================================================
# Standard library (alphabetical)
import os
from dataclasses import dataclass, field
from typing import Final

# =============================================================================
# Section 2: Module Exports
# =============================================================================
__all__ = ("Settings", "load_settings", "DEFAULT_HOST", "DEFAULT_PORT")

# =============================================================================
# Section 3: Constants
# =============================================================================
DEFAULT_HOST: Final[str] = "0.0.0.0"
DEFAULT_PORT: Final[int] = 9000


# =============================================================================
# Section 9: Dataclasses
# =============================================================================
@dataclass
class Settings:
    """Runtime configuration settings."""

    environment: str = field(default_factory=lambda: os.getenv("ENVIRONMENT", "development"))
    host: str = field(default_factory=lambda: os.getenv("HOST", DEFAULT_HOST))
    port: int = field(default_factory=lambda: int(os.getenv("PORT", str(DEFAULT_PORT))))
    reload: bool = field(default_factory=lambda: os.getenv("RELOAD", "false").lower() == "true")


# =============================================================================
# Section 12: Functions
# =============================================================================
def load_settings() -> Settings:
    """Load settings from environment."""
    return Settings()
