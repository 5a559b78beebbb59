"""Wire models for the agent service and the chat UI.

Upstream models describe what the agent service accepts and returns;
downstream models describe what the chat framework's client consumes.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

__all__ = [
    # Upstream models
    'ContentPart',
    'NewMessage',
    'ZenGPTRequest',
    'ToolCall',
    'ResponseMetadata',
    'ZenGPTResponse',
    'ZenGPTErrorInfo',
    'ZenGPTErrorBody',
    # Downstream models
    'PartType',
    'ToolInvocation',
    'MessagePart',
    'TransformedMessage',
    'TextDeltaFrame',
]


# =============================================================================
# Upstream Models
# =============================================================================
class ContentPart(BaseModel):
    """One text part of an outgoing user message."""

    text: str


class NewMessage(BaseModel):
    """User message in the agent's run format."""

    parts: list[ContentPart]


class ZenGPTRequest(BaseModel):
    """Body of a /run or /run_sse request."""

    model_config = ConfigDict(populate_by_name=True)

    app_name: str = Field(alias='appName')
    user_id: str = Field(alias='userId')
    session_id: str = Field(alias='sessionId')
    new_message: NewMessage = Field(alias='newMessage')
    streaming: bool | None = None

    @classmethod
    def for_text(
        cls, text: str, *, app_name: str, user_id: str, session_id: str, streaming: bool | None = None
    ) -> ZenGPTRequest:
        return cls(
            app_name=app_name,
            user_id=user_id,
            session_id=session_id,
            new_message=NewMessage(parts=[ContentPart(text=text)]),
            streaming=streaming,
        )

    def to_body(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class ToolCall(BaseModel):
    """Tool call reported in a complete agent response."""

    tool: str
    input: Any = None
    output: Any = None


class ResponseMetadata(BaseModel):
    """Usage metadata of a complete agent response."""

    model_config = ConfigDict(extra='allow')

    model_used: str | None = None
    tokens_used: int | None = None
    processing_time: float | None = None


class ZenGPTResponse(BaseModel):
    """Complete (non-streaming) agent response."""

    model_config = ConfigDict(extra='allow')

    response: str = ''
    session_id: str = ''
    tool_calls: list[ToolCall] = Field(default_factory=list)
    metadata: ResponseMetadata | None = None


class ZenGPTErrorInfo(BaseModel):
    """Code, message and details of an agent service error."""

    code: str
    message: str
    details: str | None = None


class ZenGPTErrorBody(BaseModel):
    """Error document returned by the agent service on failure."""

    error: ZenGPTErrorInfo
    session_id: str | None = None


# =============================================================================
# Downstream Models
# =============================================================================
PartType = Literal['text', 'tool-invocation', 'tool-result', 'reasoning']


class ToolInvocation(BaseModel):
    """Tool invocation descriptor inside a message part."""

    model_config = ConfigDict(populate_by_name=True)

    tool_name: str = Field(alias='toolName')
    tool_call_id: str = Field(alias='toolCallId')
    state: Literal['call', 'result']
    args: Any = None


class MessagePart(BaseModel):
    """One part of an assistant message in the chat framework's format."""

    model_config = ConfigDict(populate_by_name=True)

    type: PartType
    text: str | None = None
    tool_invocation: ToolInvocation | None = Field(default=None, alias='toolInvocation')
    result: Any = None
    reasoning: str | None = None


class TransformedMessage(BaseModel):
    """Assistant message built from a complete agent response."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    role: Literal['user', 'assistant'] = 'assistant'
    parts: list[MessagePart] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), alias='createdAt')

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode='json', by_alias=True, exclude_none=True)


class TextDeltaFrame(BaseModel):
    """Envelope of one downstream text-delta frame."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    type: Literal['text-delta'] = 'text-delta'
    text_delta: str = Field(alias='textDelta')

    def to_sse(self) -> str:
        """Convert to Server-Sent Events format."""
        return f"data: {self.model_dump_json(by_alias=True)}\n\n"
