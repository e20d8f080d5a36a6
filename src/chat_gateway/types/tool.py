"""
Provider-neutral dataclasses for client-side tool use.

They are intentionally minimal: everything wire-specific lives in adapters.
"""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any, Mapping, Protocol, Sequence

if TYPE_CHECKING:
    from chat_gateway.types.chat import ChatMessage

__all__ = [
    "RAW_ARGUMENTS_KEY",
    "ToolStatus",
    "ToolCall",
    "ToolCallResult",
    "ToolDeclaration",
    "ToolRegistry",
]

# Key used to wrap argument text that could not be parsed into an object.
RAW_ARGUMENTS_KEY = "raw"


class ToolStatus(StrEnum):
    PENDING = "pending"
    RUNNING = "running"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(slots=True)
class ToolCall:
    """A model-agnostic request emitted by the LLM to call a local tool."""
    id: str
    name: str
    arguments: dict[str, Any] = field(default_factory=dict)
    status: ToolStatus = ToolStatus.PENDING
    # Set when the argument text was not a JSON object and is kept under "raw".
    raw_arguments: bool = False

    @property
    def has_raw_arguments(self) -> bool:
        """True when the arguments are the unparsed-text wrapper."""
        return self.raw_arguments


@dataclass(slots=True)
class ToolCallResult:
    """Payload to send back to the LLM after the tool finished running."""
    id: str                     # must match the call id
    content: str | dict[str, Any]

    def to_message(self) -> "ChatMessage":
        from chat_gateway.types.chat import ChatMessage

        content = (
            self.content
            if isinstance(self.content, str)
            else json.dumps(self.content, ensure_ascii=False)
        )
        return ChatMessage.tool_result(self.id, content)


@dataclass(frozen=True, slots=True)
class ToolDeclaration:
    """A tool the model may invoke: name, description and JSON-schema parameters."""
    name: str
    description: str = ""
    parameters: Mapping[str, Any] = field(
        default_factory=lambda: {"type": "object", "properties": {}}
    )


class ToolRegistry(Protocol):
    """Collaborator that knows which tools exist and how to run them."""

    def list_tools(self) -> Sequence[ToolDeclaration]:
        ...

    async def call_tool(self, name: str, arguments: Mapping[str, Any]) -> Any:
        ...
