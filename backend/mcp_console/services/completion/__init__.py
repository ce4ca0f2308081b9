"""
Completion providers: Anthropic, OpenAI, etc.
Each vendor client builds its own request shape but takes the same neutral message list
and returns plain text, so the chat pipeline stays provider-agnostic.
"""
from mcp_console.services.completion.adapter import DEFAULT_TEMPERATURE, generate_completion
from mcp_console.services.completion.registry import available_models, get_generator, list_kinds, register
from mcp_console.services.completion.types import CompletionMessage, ModelInfo

__all__ = [
    "DEFAULT_TEMPERATURE",
    "CompletionMessage",
    "ModelInfo",
    "available_models",
    "generate_completion",
    "get_generator",
    "list_kinds",
    "register",
]
