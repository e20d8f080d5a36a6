"""Pure transformation adapters for the upstream wire format."""

from .openai import OpenAIRequestAdapter, finalize_tool_call, parse_tool_arguments

__all__ = [
    "OpenAIRequestAdapter",
    "finalize_tool_call",
    "parse_tool_arguments",
]
