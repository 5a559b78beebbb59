"""In-flight value types of the response transcoder.

Every value here lives for a single line of a single stream and is owned
by the transformer that produced it.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Literal, TypeAlias

__all__ = [
    'FieldKind',
    'SSEField',
    'DoneEvent',
    'DataEvent',
    'ParsedLine',
    'NestedPayload',
    'FlatPayload',
    'EmptyPayload',
    'AgentTurnPayload',
    'Extraction',
    'OutcomeStatus',
    'LineOutcome',
]


# =============================================================================
# SSE Fields
# =============================================================================
class FieldKind(str, Enum):
    """Metadata field names recognized on a non-data line."""

    EVENT = 'event'
    ID = 'id'
    RETRY = 'retry'


@dataclass(frozen=True, slots=True)
class SSEField:
    """A non-data SSE field (`event:`, `id:` or `retry:`)."""

    kind: FieldKind
    value: str

    @property
    def retry_ms(self) -> int | None:
        """Reconnection time for `retry:` fields, if it is an integer."""
        if self.kind is not FieldKind.RETRY:
            return None
        try:
            return int(self.value)
        except ValueError:
            return None


# =============================================================================
# Agent Turn Events
# =============================================================================
@dataclass(frozen=True, slots=True)
class DoneEvent:
    """The `[DONE]` sentinel."""


_UNPARSED: Any = object()


@dataclass(frozen=True, slots=True)
class DataEvent:
    """A `data:` line other than the sentinel.

    `payload` is the re-serialized JSON text when the line held valid JSON,
    otherwise the raw text after the prefix.
    """

    payload: str
    value: Any = field(default=_UNPARSED, compare=False, repr=False)

    @property
    def is_json(self) -> bool:
        return self.value is not _UNPARSED


ParsedLine: TypeAlias = DoneEvent | DataEvent | SSEField


# =============================================================================
# Agent Turn Payloads
# =============================================================================
@dataclass(frozen=True, slots=True)
class NestedPayload:
    """Payload carrying `content.parts[0].text`."""

    text: str
    partial: bool | None = None


@dataclass(frozen=True, slots=True)
class FlatPayload:
    """Payload carrying a top-level `response` or `text`, or raw non-JSON text."""

    text: str
    partial: bool | None = None


@dataclass(frozen=True, slots=True)
class EmptyPayload:
    """Payload without any extractable text."""

    partial: bool | None = None
    reason: str = 'no text field'


AgentTurnPayload: TypeAlias = NestedPayload | FlatPayload | EmptyPayload


@dataclass(frozen=True, slots=True)
class Extraction:
    """Text to emit and whether the turn completed."""

    text: str | None = None
    completed: bool = False


# =============================================================================
# Line Outcomes
# =============================================================================
OutcomeStatus = Literal['emitted', 'ignored', 'skipped', 'malformed', 'undecodable']


@dataclass(frozen=True, slots=True)
class LineOutcome:
    """Result of pushing one logical line through the pipeline.

    `ignored`: blank, metadata or unrecognized line.
    `skipped`: a recognized event that produced no frame.
    `malformed`: payload that could not be interpreted.
    `undecodable`: bytes that are not valid in the stream encoding.
    """

    status: OutcomeStatus
    frames: tuple[bytes, ...] = ()
    detail: str | None = None

    @classmethod
    def emitted(cls, *frames: bytes) -> LineOutcome:
        return cls('emitted', frames)

    @classmethod
    def ignored(cls, detail: str | None = None) -> LineOutcome:
        return cls('ignored', detail=detail)

    @classmethod
    def skipped(cls, detail: str | None = None) -> LineOutcome:
        return cls('skipped', detail=detail)
