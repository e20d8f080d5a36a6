"""OpenAI-compatible adapter for pure request/response transformations."""

from __future__ import annotations

import json
import logging
from typing import Any, Optional, Sequence

from openai.types.chat import ChatCompletion, ChatCompletionChunk

from chat_gateway._exceptions import MalformedToolResultReference, ToolArgumentParseFailure
from chat_gateway.types.chat import ChatMessage, ChatRequest, Role
from chat_gateway.types.stream import StreamDelta, ToolCallFragment
from chat_gateway.types.tool import (
    RAW_ARGUMENTS_KEY,
    ToolCall,
    ToolDeclaration,
    ToolStatus,
)

__all__ = ["OpenAIRequestAdapter", "finalize_tool_call", "parse_tool_arguments"]

_logger = logging.getLogger(__name__)

# Delta attributes different providers use for reasoning text.
_REASONING_FIELDS = ("reasoning_content", "reasoning")


def _parse_arguments(text: str, logger: Optional[logging.Logger]) -> tuple[dict[str, Any], bool]:
    if not text.strip():
        return {}, False
    try:
        parsed = json.loads(text)
    except (ValueError, RecursionError) as exc:
        failure = ToolArgumentParseFailure(text, exc)
    else:
        if isinstance(parsed, dict):
            return parsed, False
        failure = ToolArgumentParseFailure(text)

    (logger or _logger).warning("Bad JSON in tool call: %s", failure)
    return {RAW_ARGUMENTS_KEY: text}, True


def parse_tool_arguments(text: str, logger: Optional[logging.Logger] = None) -> dict[str, Any]:
    """
    Parse accumulated tool-call argument text into a mapping.

    Blank text means "no arguments". Anything that is not a JSON object is
    returned as ``{"raw": text}``; this function never raises.
    """
    return _parse_arguments(text, logger)[0]


def finalize_tool_call(
    id: str,
    name: str,
    text: str,
    logger: Optional[logging.Logger] = None,
) -> ToolCall:
    """Build a finished ToolCall, marking it when *text* had to be kept raw."""
    arguments, raw = _parse_arguments(text, logger)
    return ToolCall(
        id=id,
        name=name,
        arguments=arguments,
        status=ToolStatus.SUCCESS,
        raw_arguments=raw,
    )


class OpenAIRequestAdapter:
    """Adapter for converting between the normalized model and Chat Completions."""

    def to_provider(
        self,
        request: ChatRequest,
        model: str,
        *,
        stream: bool = False,
        temperature: Optional[float] = None,
    ) -> dict[str, Any]:
        """Build the keyword arguments for ``chat.completions.create``."""
        args: dict[str, Any] = {
            "model": model,
            "messages": self.build_messages(request.messages),
            "stream": stream,
        }

        temp = request.temperature if request.temperature is not None else temperature
        if temp is not None:
            args["temperature"] = temp

        if request.max_tokens is not None:
            # Newer OpenAI models reject max_tokens
            if self._requires_max_completion_tokens(model):
                args["max_completion_tokens"] = request.max_tokens
            else:
                args["max_tokens"] = request.max_tokens

        if request.tools:
            args["tools"] = self.build_tools(request.tools)
            args["tool_choice"] = "auto"

        return args

    def build_messages(self, messages: Sequence[ChatMessage]) -> list[dict[str, Any]]:
        """Convert normalized messages to the wire format, one for one."""
        return [self.build_message(msg) for msg in messages]

    def build_message(self, msg: ChatMessage) -> dict[str, Any]:
        if msg.role is Role.TOOL:
            if not msg.tool_call_id:
                raise MalformedToolResultReference(
                    f"Tool message {msg.id} has no tool_call_id"
                )
            return {
                "role": "tool",
                "tool_call_id": msg.tool_call_id,
                "content": msg.content,
            }

        if msg.role is Role.ASSISTANT and msg.tool_calls:
            return {
                "role": "assistant",
                # content may be null when tool_calls is present
                "content": msg.content or None,
                "tool_calls": [
                    {
                        "id": tc.id,
                        "type": "function",
                        "function": {
                            "name": tc.name,
                            "arguments": json.dumps(tc.arguments, ensure_ascii=False),
                        },
                    }
                    for tc in msg.tool_calls
                ],
            }

        return {"role": str(msg.role), "content": msg.content}

    def build_tools(self, tools: Sequence[ToolDeclaration]) -> list[dict[str, Any]]:
        return [
            {
                "type": "function",
                "function": {
                    "name": tool.name,
                    "description": tool.description,
                    "parameters": dict(tool.parameters),
                },
            }
            for tool in tools
        ]

    def from_provider(self, raw: ChatCompletion) -> ChatMessage:
        """Convert a finished completion to an assistant ChatMessage."""
        metadata: dict[str, Any] = {"model": raw.model}
        if raw.usage is not None:
            metadata["tokens"] = {
                "input": raw.usage.prompt_tokens or 0,
                "output": raw.usage.completion_tokens or 0,
            }

        if not raw.choices or not raw.choices[0].message:
            return ChatMessage(role=Role.ASSISTANT, content="", metadata=metadata)

        choice = raw.choices[0]
        message = choice.message
        metadata["finish_reason"] = choice.finish_reason

        tool_calls: list[ToolCall] = []
        for tc in message.tool_calls or []:
            function = getattr(tc, "function", None)
            if function is None:
                continue
            tool_calls.append(finalize_tool_call(tc.id, function.name, function.arguments or ""))

        return ChatMessage(
            role=Role.ASSISTANT,
            content=message.content or "",
            reasoning_content=self._reasoning_of(message),
            tool_calls=tool_calls,
            metadata=metadata,
        )

    def delta_from_chunk(self, chunk: ChatCompletionChunk) -> StreamDelta:
        """Extract the normalized delta carried by one streaming chunk."""
        usage = None
        if getattr(chunk, "usage", None) is not None:
            usage = {
                "input": chunk.usage.prompt_tokens or 0,
                "output": chunk.usage.completion_tokens or 0,
            }

        if not chunk.choices:
            return StreamDelta(usage=usage, model=chunk.model)

        choice = chunk.choices[0]
        delta = choice.delta
        fragments: tuple[ToolCallFragment, ...] = ()
        if delta is not None and delta.tool_calls:
            fragments = tuple(
                ToolCallFragment(
                    index=tc.index,
                    id=tc.id,
                    name=tc.function.name if tc.function else None,
                    arguments=tc.function.arguments if tc.function else None,
                )
                for tc in delta.tool_calls
            )

        return StreamDelta(
            content=delta.content if delta is not None else None,
            reasoning=self._reasoning_of(delta) if delta is not None else None,
            tool_calls=fragments,
            finish_reason=choice.finish_reason,
            usage=usage,
            model=chunk.model,
        )

    @staticmethod
    def _reasoning_of(obj: Any) -> Optional[str]:
        """Reasoning text travels in fields the SDK does not declare."""
        for field_name in _REASONING_FIELDS:
            value = getattr(obj, field_name, None)
            if value is None:
                extra = getattr(obj, "model_extra", None) or {}
                value = extra.get(field_name)
            if isinstance(value, str) and value:
                return value
        return None

    def _requires_max_completion_tokens(self, model: str) -> bool:
        """Check if model requires max_completion_tokens instead of max_tokens."""
        newer_models = (
            "gpt-5",  # GPT-5 series
            "o1",  # O1 series models
            "o3",  # O3 series models
            "o4",
        )
        return model.startswith(newer_models)
