"""Streaming transcoder from agent-turn SSE to the chat client's text-delta SSE.

Reader -> parser -> extractor -> encoder, composed by `ResponseTransformer`.
"""
from __future__ import annotations

from .encoder import DONE_FRAME, SSEEncoder
from .extractor import classify_payload, extract_delta
from .frames import (
    AgentTurnPayload,
    DataEvent,
    DoneEvent,
    EmptyPayload,
    Extraction,
    FieldKind,
    FlatPayload,
    LineOutcome,
    NestedPayload,
    SSEField,
)
from .messages import create_text_part, create_tool_invocation_part, create_tool_result_part, transform_response
from .parser import parse_sse_line
from .reader import DecodedLine, SSEFrameReader
from .transformer import ResponseTransformer, StreamStats, transform_agent_stream, transform_httpx_response

__all__ = [
    # Frame reader
    'DecodedLine',
    'SSEFrameReader',
    # Event parser
    'parse_sse_line',
    'FieldKind',
    'SSEField',
    'DoneEvent',
    'DataEvent',
    # Delta extractor
    'AgentTurnPayload',
    'NestedPayload',
    'FlatPayload',
    'EmptyPayload',
    'Extraction',
    'classify_payload',
    'extract_delta',
    # Output encoder
    'DONE_FRAME',
    'SSEEncoder',
    # Transformer
    'LineOutcome',
    'ResponseTransformer',
    'StreamStats',
    'transform_agent_stream',
    'transform_httpx_response',
    # Complete responses
    'create_text_part',
    'create_tool_invocation_part',
    'create_tool_result_part',
    'transform_response',
]
