"""Conversion of complete agent responses into chat message parts."""
from __future__ import annotations

import time
from typing import Any

from zengpt_bridge.core.models import MessagePart, ToolInvocation, TransformedMessage, ZenGPTResponse

__all__ = [
    'create_text_part',
    'create_tool_invocation_part',
    'create_tool_result_part',
    'transform_response',
]


def create_text_part(text: str) -> MessagePart:
    return MessagePart(type='text', text=text)


def create_tool_invocation_part(tool_name: str, tool_call_id: str, args: Any) -> MessagePart:
    return MessagePart(
        type='tool-invocation',
        tool_invocation=ToolInvocation(tool_name=tool_name, tool_call_id=tool_call_id, state='call', args=args),
    )


def create_tool_result_part(tool_name: str, tool_call_id: str, result: Any) -> MessagePart:
    return MessagePart(
        type='tool-result',
        tool_invocation=ToolInvocation(tool_name=tool_name, tool_call_id=tool_call_id, state='result'),
        result=result,
    )


def transform_response(response: ZenGPTResponse, message_id: str | None = None) -> TransformedMessage:
    """Build an assistant message from a complete agent response.

    The response text becomes a text part. Each tool call becomes a
    `tool-invocation` part, followed by a `tool-result` part when the call
    reported an output.

    Args:
        response: Complete response from the agent service.
        message_id: Id for the message and prefix for tool call ids.

    Returns:
        Assistant message in the chat framework's parts format.
    """
    parts: list[MessagePart] = []

    if response.response:
        parts.append(create_text_part(response.response))

    prefix = message_id or 'msg'
    for index, tool_call in enumerate(response.tool_calls):
        tool_call_id = f'{prefix}-tool-{index}'
        parts.append(create_tool_invocation_part(tool_call.tool, tool_call_id, tool_call.input))
        if tool_call.output is not None:
            parts.append(create_tool_result_part(tool_call.tool, tool_call_id, tool_call.output))

    return TransformedMessage(id=message_id or f'msg-{int(time.time() * 1000)}', parts=parts)
