from __future__ import annotations

import argparse
import asyncio
import logging

from chat_gateway import ChatMessage, ChatRequest, Gateway, ToolCall, ToolCallResult, ToolDeclaration

logger = logging.getLogger(__name__)
logging.basicConfig(level=logging.INFO)

WEATHER_TOOL = ToolDeclaration(
    name="get_weather",
    description="Get the current weather in a given location",
    parameters={
        "type": "object",
        "properties": {
            "location": {
                "type": "string",
                "description": "City and state, e.g. San Francisco, CA",
            },
            "unit": {
                "type": "string",
                "enum": ["celsius", "fahrenheit"],
            },
        },
        "required": ["location"],
    },
)


class WeatherTools:
    """Minimal tool registry with a single stubbed tool."""

    def list_tools(self) -> list[ToolDeclaration]:
        return [WEATHER_TOOL]

    async def call_tool(self, name: str, arguments: dict) -> str:
        # imagine we call a real weather API here
        return "15 °C, mostly cloudy"


async def single_tool_roundtrip(model: str) -> None:
    """
    Run a single tool-calling roundtrip with the given model.

    1) Send user prompt
    2) Let model emit a tool call
    3) Execute stub tool, re-inject call + result
    4) Ask model to finish using tool result
    """
    tools = WeatherTools()
    messages = [ChatMessage.user("What's the weather in San Francisco?")]

    async with Gateway(tools=tools) as gateway:
        # Step 1 → get first response
        rsp1 = await gateway.chat(ChatRequest(messages=messages, model=model))

        # Step 2 → tool calls come back already parsed
        calls: list[ToolCall] = rsp1.tool_calls
        if not calls:
            logger.warning(f"Model answered directly: {rsp1.content}")
            return

        # Step 3 → inject the assistant turn and one tool result per call
        messages.append(rsp1)
        for call in calls:
            if call.has_raw_arguments:
                logger.warning("Unparseable arguments for %s: %s", call.name, call.arguments)
            output = await tools.call_tool(call.name, call.arguments)
            messages.append(ToolCallResult(call.id, output).to_message())

        # Step 4 → final completion
        rsp2 = await gateway.chat(ChatRequest(messages=messages, model=model))
        logger.info("%s says: %s", rsp2.metadata.get("provider"), rsp2.content)


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    parser.add_argument(
        "--model",
        default="deepseek-chat",  # "gpt-4.1-nano", "moonshot-v1-8k", "qwen/qwen-2.5-72b-instruct"
    )
    args = parser.parse_args()

    asyncio.run(single_tool_roundtrip(args.model))
