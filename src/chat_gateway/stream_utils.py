"""Reconstruction of a complete assistant message from streamed deltas."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, AsyncIterable, Iterable, Optional

from chat_gateway.adapters.openai import finalize_tool_call
from chat_gateway.types.chat import ChatMessage, Role, generate_id
from chat_gateway.types.stream import (
    TOOL_CALLS_FINISH_REASON,
    ReasoningChunk,
    StreamComplete,
    StreamDelta,
    StreamEvent,
    StreamFailed,
    TextChunk,
    ToolCallFragment,
    ToolCallReady,
)
from chat_gateway.types.tool import ToolCall

__all__ = ["StreamAggregator", "aggregate_stream"]


@dataclass(slots=True)
class _PendingToolCall:
    """Accumulation state for one positional index."""
    index: int
    id: str
    name: str = ""
    arguments_parts: list[str] = field(default_factory=list)
    final: Optional[ToolCall] = None

    @property
    def arguments_text(self) -> str:
        return "".join(self.arguments_parts)


class StreamAggregator:
    """
    Incrementally rebuilds one completion from its deltas.

    ``feed`` returns the events produced by one delta; ``finish`` or ``fail``
    returns the terminal events and closes the aggregator. An instance serves
    exactly one stream.
    """

    def __init__(
        self,
        *,
        model: Optional[str] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.model = model
        self.logger = logger or logging.getLogger(__name__)
        self._content: list[str] = []
        self._reasoning: list[str] = []
        self._tool_calls: dict[int, _PendingToolCall] = {}
        self._chunk_index = 0
        self._finish_reason: Optional[str] = None
        self._usage: Optional[dict[str, int]] = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def content(self) -> str:
        return "".join(self._content)

    @property
    def reasoning(self) -> str:
        return "".join(self._reasoning)

    def feed(self, delta: StreamDelta) -> list[StreamEvent]:
        """Apply one delta and return the events it produces, in order."""
        self._ensure_open()
        events: list[StreamEvent] = []

        if delta.model and not self.model:
            self.model = delta.model
        if delta.usage:
            self._usage = dict(delta.usage)

        if delta.content:
            self._content.append(delta.content)
            events.append(TextChunk(content=delta.content, index=self._next_index()))

        if delta.reasoning:
            self._reasoning.append(delta.reasoning)
            events.append(ReasoningChunk(content=delta.reasoning, index=self._next_index()))

        for fragment in delta.tool_calls:
            self._merge_fragment(fragment)

        if delta.finish_reason:
            self._finish_reason = delta.finish_reason
            if delta.finish_reason == TOOL_CALLS_FINISH_REASON:
                events.extend(self._finalize_tool_calls())

        return events

    def finish(self) -> list[StreamEvent]:
        """Finalize leftover tool calls and emit the completion event."""
        self._ensure_open()
        events: list[StreamEvent] = list(self._finalize_tool_calls())
        self._closed = True
        events.append(StreamComplete(message=self._build_message()))
        return events

    def fail(self, error: Exception) -> list[StreamEvent]:
        """Close the aggregator with a single error event."""
        self._ensure_open()
        self._closed = True
        return [StreamFailed(error=error)]

    def _next_index(self) -> int:
        index = self._chunk_index
        self._chunk_index += 1
        return index

    def _merge_fragment(self, fragment: ToolCallFragment) -> None:
        pending = self._tool_calls.get(fragment.index)
        if pending is None:
            pending = _PendingToolCall(
                index=fragment.index,
                id=fragment.id or generate_id("call_"),
            )
            self._tool_calls[fragment.index] = pending
        elif pending.final is not None:
            self.logger.warning(
                "Ignoring fragment for finalized tool call at index %d", fragment.index
            )
            return

        if fragment.name:
            pending.name = fragment.name
        if fragment.arguments:
            pending.arguments_parts.append(fragment.arguments)

    def _finalize_tool_calls(self) -> Iterable[ToolCallReady]:
        """Freeze every not-yet-final call, in ascending index order."""
        ready: list[ToolCallReady] = []
        for index in sorted(self._tool_calls):
            pending = self._tool_calls[index]
            if pending.final is not None:
                continue
            pending.final = finalize_tool_call(
                pending.id, pending.name, pending.arguments_text, self.logger
            )
            ready.append(ToolCallReady(tool_call=pending.final))
        return ready

    def _build_message(self) -> ChatMessage:
        metadata: dict[str, Any] = {"model": self.model}
        if self._finish_reason is not None:
            metadata["finish_reason"] = self._finish_reason
        if self._usage is not None:
            metadata["tokens"] = self._usage

        reasoning = self.reasoning
        return ChatMessage(
            role=Role.ASSISTANT,
            content=self.content,
            reasoning_content=reasoning or None,
            tool_calls=[
                self._tool_calls[i].final  # type: ignore[misc]
                for i in sorted(self._tool_calls)
            ],
            metadata=metadata,
        )

    def _ensure_open(self) -> None:
        if self._closed:
            raise RuntimeError("StreamAggregator is closed; use a new instance per stream")


async def aggregate_stream(
    deltas: AsyncIterable[StreamDelta],
    model: Optional[str] = None,
) -> ChatMessage:
    """
    Pure helper that drains *deltas* into a single ChatMessage.

    Errors raised while reading *deltas* propagate to the caller.
    """
    aggregator = StreamAggregator(model=model)
    async for delta in deltas:
        aggregator.feed(delta)
    for event in aggregator.finish():
        if isinstance(event, StreamComplete):
            return event.message
    raise RuntimeError("StreamAggregator finished without a completion event")
