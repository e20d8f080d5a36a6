from .chat import ChatMessage, ChatRequest, Role
from .stream import (
    ReasoningChunk,
    StreamComplete,
    StreamDelta,
    StreamEvent,
    StreamFailed,
    StreamSink,
    TextChunk,
    ToolCallFragment,
    ToolCallReady,
)
from .tool import ToolCall, ToolCallResult, ToolDeclaration, ToolRegistry, ToolStatus

__all__ = [
    "ChatMessage",
    "ChatRequest",
    "Role",
    "ReasoningChunk",
    "StreamComplete",
    "StreamDelta",
    "StreamEvent",
    "StreamFailed",
    "StreamSink",
    "TextChunk",
    "ToolCallFragment",
    "ToolCallReady",
    "ToolCall",
    "ToolCallResult",
    "ToolDeclaration",
    "ToolRegistry",
    "ToolStatus",
]
