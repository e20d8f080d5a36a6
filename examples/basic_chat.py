import asyncio

from openai import AsyncOpenAI
from chat_gateway import ChatMessage, ChatRequest, Gateway, Provider, ProviderRegistry, ToolCall
from chat_gateway.providers import get_api_key


class PrintSink:
    """Writes the stream to stdout as it arrives."""

    async def on_text_chunk(self, content: str, index: int) -> None:
        print(content, end="", flush=True)

    async def on_reasoning_chunk(self, content: str, index: int) -> None:
        print(f"\033[2m{content}\033[0m", end="", flush=True)

    async def on_tool_call(self, tool_call: ToolCall) -> None:
        print(f"\n[tool] {tool_call.name}({tool_call.arguments})")

    async def on_complete(self, message: ChatMessage) -> None:
        print("\n--", message.metadata)

    async def on_error(self, error: Exception) -> None:
        print("\n!!", error)


async def chat_example_default_registry():
    # Picks up DEEPSEEK_API_KEY, OPENROUTER_API_KEY, ... from the environment / .env
    async with Gateway() as gateway:
        print("Available:", gateway.available_providers())

        request = ChatRequest(
            messages=[
                ChatMessage.system("You are a helpful assistant."),
                ChatMessage.user("What's your name?"),
            ],
            max_tokens=1000,
        )
        response = await gateway.chat(request)
        print("One-shot: ", response.content)

        await gateway.stream_chat(request, PrintSink())


async def chat_example_pass_client():
    registry = ProviderRegistry(fallback_to_default=False)
    registry.configure(
        Provider.OPENROUTER,
        client=AsyncOpenAI(
            api_key=get_api_key(Provider.OPENROUTER),
            base_url="https://openrouter.ai/api/v1",
            max_retries=3,
            timeout=10,
        ),
    )

    async with Gateway(registry) as gateway:
        request = ChatRequest(
            messages=[ChatMessage.user("Explain streaming in one sentence.")],
            model="deepseek/deepseek-chat",
        )
        await gateway.stream_chat(request, PrintSink())


if __name__ == "__main__":
    asyncio.run(chat_example_default_registry())
    asyncio.run(chat_example_pass_client())
