"""zengpt-bridge package initialization.

(c) Mike Casale 2025.
Licensed under the MIT License.
See LICENSE file for details.
"""

from __future__ import annotations as _annotations

# =============================================================================
# Section 1: Imports
# =============================================================================
# Local imports (core first, then alphabetical)
from ._version import __version__
from .adapters.zengpt import ZenGPTClient
from .core.settings import ZenGPTSettings
from .streaming.transformer import ResponseTransformer, transform_agent_stream, transform_httpx_response

# =============================================================================
# Section 2: Module Exports
# =============================================================================
__all__ = (
    "__version__",
    "ZenGPTClient",
    "ZenGPTSettings",
    "ResponseTransformer",
    "transform_agent_stream",
    "transform_httpx_response",
)
