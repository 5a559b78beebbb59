"""Agent service adapters."""
from __future__ import annotations

from .zengpt import ZenGPTClient

__all__ = [
    'ZenGPTClient',
]
