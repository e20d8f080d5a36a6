"""Builders and fakes shared by the test modules."""
from __future__ import annotations

from typing import Any, Optional
from unittest.mock import AsyncMock, MagicMock

from openai.types.chat import ChatCompletion, ChatCompletionChunk

from chat_gateway import ChatMessage, ToolCall


def make_chunk(
    *,
    content: Optional[str] = None,
    reasoning: Optional[str] = None,
    tool_calls: Optional[list[dict[str, Any]]] = None,
    finish_reason: Optional[str] = None,
    usage: Optional[tuple[int, int]] = None,
    model: str = "deepseek-chat",
    reasoning_field: str = "reasoning_content",
) -> ChatCompletionChunk:
    """Build a real SDK chunk from plain values."""
    delta: dict[str, Any] = {}
    if content is not None:
        delta["content"] = content
    if reasoning is not None:
        delta[reasoning_field] = reasoning
    if tool_calls is not None:
        delta["tool_calls"] = tool_calls
    payload: dict[str, Any] = {
        "id": "chatcmpl-1",
        "object": "chat.completion.chunk",
        "created": 0,
        "model": model,
        "choices": [{"index": 0, "delta": delta, "finish_reason": finish_reason}],
    }
    if usage is not None:
        payload["usage"] = {
            "prompt_tokens": usage[0],
            "completion_tokens": usage[1],
            "total_tokens": usage[0] + usage[1],
        }
    return ChatCompletionChunk.model_validate(payload)


def tool_fragment(
    index: int,
    *,
    id: Optional[str] = None,
    name: Optional[str] = None,
    arguments: Optional[str] = None,
) -> dict[str, Any]:
    function: dict[str, Any] = {}
    if name is not None:
        function["name"] = name
    if arguments is not None:
        function["arguments"] = arguments
    fragment: dict[str, Any] = {"index": index, "function": function}
    if id is not None:
        fragment["id"] = id
        fragment["type"] = "function"
    return fragment


def make_completion(
    *,
    content: Optional[str] = "Hello",
    tool_calls: Optional[list[dict[str, Any]]] = None,
    finish_reason: str = "stop",
    model: str = "deepseek-chat",
    reasoning: Optional[str] = None,
    reasoning_field: str = "reasoning_content",
) -> ChatCompletion:
    message: dict[str, Any] = {"role": "assistant", "content": content}
    if tool_calls is not None:
        message["tool_calls"] = tool_calls
    if reasoning is not None:
        message[reasoning_field] = reasoning
    return ChatCompletion.model_validate(
        {
            "id": "chatcmpl-1",
            "object": "chat.completion",
            "created": 0,
            "model": model,
            "choices": [{"index": 0, "message": message, "finish_reason": finish_reason}],
            "usage": {"prompt_tokens": 12, "completion_tokens": 5, "total_tokens": 17},
        }
    )


class FakeStream:
    """Async-iterable stand-in for the SDK's AsyncStream."""

    def __init__(self, chunks: list[Any], *, error: Optional[Exception] = None) -> None:
        self._chunks = list(chunks)
        self._error = error
        self.closed = False
        self.consumed = 0

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for chunk in self._chunks:
            self.consumed += 1
            yield chunk
        if self._error is not None:
            raise self._error

    async def close(self) -> None:
        self.closed = True


def fake_client(response: Any = None, *, side_effect: Any = None) -> MagicMock:
    client = MagicMock()
    client.base_url = "https://example.invalid/v1"
    client.chat.completions.create = AsyncMock(return_value=response, side_effect=side_effect)
    client.close = AsyncMock()
    return client


class RecordingSink:
    """Collects every sink call as (kind, payload) tuples."""

    def __init__(self, *, fail_on: Optional[str] = None) -> None:
        self.calls: list[tuple[str, Any]] = []
        self.fail_on = fail_on

    def _record(self, kind: str, payload: Any) -> None:
        self.calls.append((kind, payload))
        if kind == self.fail_on:
            raise RuntimeError(f"sink refused {kind}")

    async def on_text_chunk(self, content: str, index: int) -> None:
        self._record("text", (content, index))

    async def on_reasoning_chunk(self, content: str, index: int) -> None:
        self._record("reasoning", (content, index))

    async def on_tool_call(self, tool_call: ToolCall) -> None:
        self._record("tool_call", tool_call)

    async def on_complete(self, message: ChatMessage) -> None:
        self._record("complete", message)

    async def on_error(self, error: Exception) -> None:
        self._record("error", error)

    def kinds(self) -> list[str]:
        return [kind for kind, _ in self.calls]


