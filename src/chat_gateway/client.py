"""
Gateway with unified chat() and stream_chat() methods over every configured provider.
"""

from __future__ import annotations

import logging
from typing import Any, AsyncGenerator, Optional, Union

from chat_gateway._exceptions import classify_error
from chat_gateway.adapters.openai import OpenAIRequestAdapter
from chat_gateway.providers import Provider
from chat_gateway.providers.registry import ProviderBinding, ProviderRegistry
from chat_gateway.stream_utils import StreamAggregator
from chat_gateway.types.chat import ChatMessage, ChatRequest
from chat_gateway.types.stream import (
    StreamComplete,
    StreamEvent,
    StreamFailed,
    StreamSink,
    dispatch_event,
)
from chat_gateway.types.tool import ToolRegistry

__all__ = ["Gateway", "DEFAULT_MODEL", "DEFAULT_TEMPERATURE"]

DEFAULT_MODEL = "deepseek-chat"
DEFAULT_TEMPERATURE = 0.7


class Gateway:
    """
    Public entry point: resolves a provider, translates the request, and
    normalizes whatever comes back.

    The gateway itself holds no per-call state, so concurrent calls are safe.
    """

    def __init__(
        self,
        registry: Optional[ProviderRegistry] = None,
        *,
        tools: Optional[ToolRegistry] = None,
        default_model: str = DEFAULT_MODEL,
        default_temperature: Optional[float] = DEFAULT_TEMPERATURE,
        logger: Optional[logging.Logger] = None,
        name: Optional[str] = None,
    ) -> None:
        """
        Args:
            registry: Provider bindings. Defaults to one built from the environment.
            tools: Optional tool registry whose declarations are sent when a
                request does not declare tools itself.
            default_model: Model used when a request names none.
            default_temperature: Sampling temperature used when a request sets none.
            logger: Optional logger instance.
            name: Optional name used in log lines; defaults to the class name.
        """
        self.registry = registry if registry is not None else ProviderRegistry.from_env()
        self.tools = tools
        self.default_model = default_model
        self.default_temperature = default_temperature
        self.logger = logger or logging.getLogger(__name__)
        self.name = name if name is not None else self.__class__.__name__
        self._adapter = OpenAIRequestAdapter()

    @property
    def adapter(self) -> OpenAIRequestAdapter:
        return self._adapter

    def configure(self, provider: Union[Provider, str], api_key: str) -> ProviderBinding:
        """Install or replace the API key for *provider*."""
        return self.registry.configure(provider, api_key)

    def available_providers(self) -> list[Provider]:
        return self.registry.list_available()

    async def chat(self, request: ChatRequest) -> ChatMessage:
        """
        Send a request and return the complete assistant message.

        Raises:
            NoProviderConfigured: No binding could be resolved.
            MalformedToolResultReference: A tool message lacks its tool_call_id.
            UpstreamRequestFailed: The provider call failed.
        """
        binding, args = self._prepare(request, stream=False)
        self._log(f"Sending request to {binding.provider} model {args['model']} (Stream: False)")

        try:
            raw = await binding.client.chat.completions.create(**args)
        except Exception as exc:
            raise classify_error(exc, self.logger) from exc

        message = self._adapter.from_provider(raw)
        message.metadata.setdefault("provider", str(binding.provider))
        return message

    async def stream(self, request: ChatRequest) -> AsyncGenerator[StreamEvent, None]:
        """
        Stream a request as events: text, reasoning and tool-call events
        followed by exactly one StreamComplete or StreamFailed.

        Resolution, translation and opening the connection raise before the
        first event. Closing the generator early abandons the upstream stream
        and produces no terminal event.
        """
        binding, args = self._prepare(request, stream=True)
        model = args["model"]
        self._log(f"Sending request to {binding.provider} model {model} (Stream: True)")

        try:
            upstream = await binding.client.chat.completions.create(**args)
        except Exception as exc:
            raise classify_error(exc, self.logger) from exc

        aggregator = StreamAggregator(model=model, logger=self.logger)
        try:
            try:
                async for chunk in upstream:
                    for event in aggregator.feed(self._adapter.delta_from_chunk(chunk)):
                        yield event
            except Exception as exc:
                error = classify_error(exc, self.logger)
                for event in aggregator.fail(error):
                    yield event
                return

            for event in aggregator.finish():
                if isinstance(event, StreamComplete):
                    event.message.metadata.setdefault("provider", str(binding.provider))
                yield event
        finally:
            await self._close_upstream(upstream)

    async def stream_chat(
        self,
        request: ChatRequest,
        sink: StreamSink,
    ) -> Optional[ChatMessage]:
        """
        Stream a request, forwarding each event to *sink* in order.

        Returns the final message, or None when the stream ended in an error.
        Upstream faults met mid-stream reach the sink as ``on_error`` instead
        of being raised; a failing sink callback ends the stream the same way.
        """
        events = self.stream(request)
        try:
            async for event in events:
                if isinstance(event, StreamComplete):
                    await dispatch_event(sink, event)
                    return event.message
                if isinstance(event, StreamFailed):
                    await dispatch_event(sink, event)
                    return None
                try:
                    await dispatch_event(sink, event)
                except Exception as exc:
                    self._log(f"Stream sink failed: {exc!r}", logging.WARNING)
                    await sink.on_error(exc)
                    return None
        finally:
            await events.aclose()
        return None

    def _prepare(self, request: ChatRequest, *, stream: bool) -> tuple[ProviderBinding, dict[str, Any]]:
        binding = self.registry.resolve(request.provider, request.model)
        if not request.tools and self.tools is not None:
            declared = list(self.tools.list_tools())
            if declared:
                request = ChatRequest(
                    messages=request.messages,
                    model=request.model,
                    provider=request.provider,
                    temperature=request.temperature,
                    max_tokens=request.max_tokens,
                    tools=declared,
                )
        args = self._adapter.to_provider(
            request,
            request.model or self.default_model,
            stream=stream,
            temperature=self.default_temperature,
        )
        return binding, args

    @staticmethod
    async def _close_upstream(upstream: Any) -> None:
        close = getattr(upstream, "close", None)
        if close is None:
            return
        result = close()
        if hasattr(result, "__await__"):
            await result

    def _log(self, message: str, level: int = logging.INFO) -> None:
        self.logger.log(level, f"[{self.name}] {message}")

    # --- lifecycle ---------------------------------------------------------
    async def aclose(self) -> None:
        """Close the underlying provider clients. Safe to call multiple times."""
        await self.registry.aclose()

    async def __aenter__(self) -> "Gateway":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()
