"""Streaming types: normalized upstream deltas and the events built from them."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Protocol, Union

from chat_gateway.types.chat import ChatMessage
from chat_gateway.types.tool import ToolCall

__all__ = [
    "TOOL_CALLS_FINISH_REASON",
    "ToolCallFragment",
    "StreamDelta",
    "TextChunk",
    "ReasoningChunk",
    "ToolCallReady",
    "StreamComplete",
    "StreamFailed",
    "StreamEvent",
    "StreamSink",
    "dispatch_event",
]

# Finish reason that marks the end of tool-call fragments.
TOOL_CALLS_FINISH_REASON = "tool_calls"


@dataclass(frozen=True, slots=True)
class ToolCallFragment:
    """One piece of a tool call; fragments sharing ``index`` belong together."""
    index: int
    id: Optional[str] = None
    name: Optional[str] = None
    arguments: Optional[str] = None


@dataclass(frozen=True, slots=True)
class StreamDelta:
    """Provider-neutral view of a single streamed chunk."""
    content: Optional[str] = None
    reasoning: Optional[str] = None
    tool_calls: tuple[ToolCallFragment, ...] = ()
    finish_reason: Optional[str] = None
    usage: Optional[dict[str, int]] = None
    model: Optional[str] = None


@dataclass(frozen=True, slots=True)
class TextChunk:
    content: str
    index: int


@dataclass(frozen=True, slots=True)
class ReasoningChunk:
    content: str
    index: int


@dataclass(frozen=True, slots=True)
class ToolCallReady:
    tool_call: ToolCall


@dataclass(frozen=True, slots=True)
class StreamComplete:
    message: ChatMessage


@dataclass(frozen=True, slots=True)
class StreamFailed:
    error: Exception


StreamEvent = Union[TextChunk, ReasoningChunk, ToolCallReady, StreamComplete, StreamFailed]


class StreamSink(Protocol):
    """Receiver for the events of one streaming completion.

    ``on_complete`` and ``on_error`` are mutually exclusive and called at most
    once per stream.
    """

    async def on_text_chunk(self, content: str, index: int) -> None: ...

    async def on_reasoning_chunk(self, content: str, index: int) -> None: ...

    async def on_tool_call(self, tool_call: ToolCall) -> None: ...

    async def on_complete(self, message: ChatMessage) -> None: ...

    async def on_error(self, error: Exception) -> None: ...


async def dispatch_event(sink: StreamSink, event: StreamEvent) -> Any:
    """Route ``event`` to the matching sink method."""
    if isinstance(event, TextChunk):
        return await sink.on_text_chunk(event.content, event.index)
    if isinstance(event, ReasoningChunk):
        return await sink.on_reasoning_chunk(event.content, event.index)
    if isinstance(event, ToolCallReady):
        return await sink.on_tool_call(event.tool_call)
    if isinstance(event, StreamComplete):
        return await sink.on_complete(event.message)
    if isinstance(event, StreamFailed):
        return await sink.on_error(event.error)
    raise TypeError(f"Unknown stream event: {type(event).__name__}")
