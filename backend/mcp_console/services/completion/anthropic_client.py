"""
Anthropic (Claude) completion client.
System messages go into the top-level system parameter; tool messages are not supported and dropped.
"""
import logging
from typing import Any

from anthropic import AsyncAnthropic

from mcp_console.core.constants import ROLE_ASSISTANT, ROLE_SYSTEM, ROLE_TOOL, ROLE_USER
from mcp_console.services.completion.types import CompletionMessage, ModelInfo

logger = logging.getLogger(__name__)

DEFAULT_MAX_TOKENS = 1000  # the Messages API requires max_tokens

MODELS = [
    ModelInfo("claude-3-5-sonnet-20240620", "Claude 3.5 Sonnet", "Balanced performance and speed"),
    ModelInfo("claude-3-opus-20240229", "Claude 3 Opus", "Highest capability model"),
    ModelInfo("claude-3-sonnet-20240229", "Claude 3 Sonnet", "Balanced performance and speed"),
    ModelInfo("claude-3-haiku-20240307", "Claude 3 Haiku", "Fast and cost-effective"),
]


def build_anthropic_request(messages: list[CompletionMessage]) -> tuple[str | None, list[dict[str, str]]]:
    """
    Split history into (system prompt, turns).
    System messages are joined in order with a blank line; tool messages are dropped;
    consecutive turns of the same role are merged so user/assistant alternate.
    """
    system_parts: list[str] = []
    turns: list[dict[str, str]] = []
    for msg in messages:
        if msg.role == ROLE_SYSTEM:
            system_parts.append(msg.content)
            continue
        if msg.role == ROLE_TOOL:
            continue
        role = ROLE_ASSISTANT if msg.role == ROLE_ASSISTANT else ROLE_USER
        if turns and turns[-1]["role"] == role:
            turns[-1]["content"] = f"{turns[-1]['content']}\n\n{msg.content}"
        else:
            turns.append({"role": role, "content": msg.content})
    system = "\n\n".join(system_parts) if system_parts else None
    return system, turns


def first_text(response: Any) -> str:
    """First text block of a Messages API response, '' if there is none."""
    for block in getattr(response, "content", None) or []:
        if getattr(block, "type", None) == "text":
            return getattr(block, "text", None) or ""
    return ""


async def generate_anthropic_completion(
    api_key: str,
    model: str,
    messages: list[CompletionMessage],
    *,
    temperature: float = 0.7,
    max_tokens: int | None = None,
    client: AsyncAnthropic | None = None,
) -> str:
    system, turns = build_anthropic_request(messages)
    kwargs: dict[str, Any] = {
        "model": model,
        "messages": turns,
        "temperature": temperature,
        "max_tokens": max_tokens or DEFAULT_MAX_TOKENS,
    }
    if system:
        kwargs["system"] = system
    logger.debug("Anthropic request model=%s turns=%s system=%s", model, len(turns), bool(system))
    if client is not None:
        response = await client.messages.create(**kwargs)
    else:
        async with AsyncAnthropic(api_key=api_key) as owned:
            response = await owned.messages.create(**kwargs)
    return first_text(response)
