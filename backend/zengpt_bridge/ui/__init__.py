"""HTTP surface for the chat UI."""
from __future__ import annotations
