"""Core types, settings and errors for zengpt-bridge."""
from __future__ import annotations
