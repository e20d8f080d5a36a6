"""
Chat Gateway - streaming chat completions over OpenAI-compatible providers.
"""

import logging

from ._exceptions import (
    GatewayError,
    MalformedToolResultReference,
    NoProviderConfigured,
    ToolArgumentParseFailure,
    UpstreamRequestFailed,
)
from .client import Gateway
from .providers import Provider, get_api_key, infer_provider
from .providers.registry import ProviderBinding, ProviderRegistry
from .stream_utils import StreamAggregator, aggregate_stream
from .types import (
    ChatMessage,
    ChatRequest,
    ReasoningChunk,
    Role,
    StreamComplete,
    StreamDelta,
    StreamEvent,
    StreamFailed,
    StreamSink,
    TextChunk,
    ToolCall,
    ToolCallFragment,
    ToolCallReady,
    ToolCallResult,
    ToolDeclaration,
    ToolRegistry,
    ToolStatus,
)

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.1.0"

__all__ = [
    "Gateway",
    "Provider",
    "ProviderBinding",
    "ProviderRegistry",
    "get_api_key",
    "infer_provider",
    "StreamAggregator",
    "aggregate_stream",
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
    "ToolCall",
    "ToolCallFragment",
    "ToolCallReady",
    "ToolCallResult",
    "ToolDeclaration",
    "ToolRegistry",
    "ToolStatus",
    "GatewayError",
    "MalformedToolResultReference",
    "NoProviderConfigured",
    "ToolArgumentParseFailure",
    "UpstreamRequestFailed",
]
