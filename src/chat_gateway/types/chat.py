"""Normalized chat types shared by every provider."""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Optional, Sequence

from chat_gateway.types.tool import ToolCall, ToolDeclaration

__all__ = ["Role", "ChatMessage", "ChatRequest", "generate_id"]


def generate_id(prefix: str = "") -> str:
    """Return a short random identifier, optionally prefixed."""
    return f"{prefix}{uuid.uuid4().hex[:24]}"


class Role(StrEnum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


@dataclass
class ChatMessage:
    """
    One turn of a conversation.

    ``content`` is always a string, empty when the turn carries no text.
    ``reasoning_content`` is only set on assistant turns from providers that
    expose their deliberation separately from the answer. ``tool_call_id`` is
    the back-reference a tool-role turn must carry.
    """

    role: Role
    content: str = ""
    reasoning_content: Optional[str] = None
    tool_calls: list[ToolCall] = field(default_factory=list)
    tool_call_id: Optional[str] = None
    metadata: dict[str, Any] = field(default_factory=dict)
    id: str = field(default_factory=generate_id)
    timestamp: int = field(default_factory=lambda: int(time.time() * 1000))

    def __post_init__(self) -> None:
        self.role = Role(self.role)
        if self.content is None:
            self.content = ""

    @classmethod
    def system(cls, content: str) -> "ChatMessage":
        return cls(role=Role.SYSTEM, content=content)

    @classmethod
    def user(cls, content: str) -> "ChatMessage":
        return cls(role=Role.USER, content=content)

    @classmethod
    def assistant(
        cls,
        content: str = "",
        *,
        tool_calls: Sequence[ToolCall] = (),
        reasoning_content: Optional[str] = None,
    ) -> "ChatMessage":
        return cls(
            role=Role.ASSISTANT,
            content=content,
            tool_calls=list(tool_calls),
            reasoning_content=reasoning_content,
        )

    @classmethod
    def tool_result(cls, tool_call_id: str, content: str) -> "ChatMessage":
        return cls(role=Role.TOOL, content=content, tool_call_id=tool_call_id)


@dataclass
class ChatRequest:
    """A completion request: messages (oldest first) plus optional overrides."""

    messages: Sequence[ChatMessage]
    model: Optional[str] = None
    provider: Optional[str] = None
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    tools: Optional[Sequence[ToolDeclaration]] = None
