"""
OpenAI chat completions client. All four roles map directly; tool messages carry tool_call_id.
"""
import logging
from typing import Any

from openai import AsyncOpenAI

from mcp_console.core.constants import ROLE_ASSISTANT, ROLE_SYSTEM, ROLE_TOOL
from mcp_console.services.completion.types import CompletionMessage, ModelInfo

logger = logging.getLogger(__name__)

MODELS = [
    ModelInfo("gpt-4o", "GPT-4o", "Latest model with enhanced capabilities"),
    ModelInfo("gpt-4", "GPT-4", "Advanced reasoning model"),
    ModelInfo("gpt-3.5-turbo", "GPT-3.5 Turbo", "Fast and efficient"),
]


def build_openai_messages(messages: list[CompletionMessage]) -> list[dict[str, str]]:
    """Same order and roles as the history; tool messages use the tool name as tool_call_id."""
    out: list[dict[str, str]] = []
    for msg in messages:
        if msg.role == ROLE_TOOL:
            out.append({"role": ROLE_TOOL, "content": msg.content, "tool_call_id": msg.name or "unknown"})
        elif msg.role in (ROLE_SYSTEM, ROLE_ASSISTANT):
            out.append({"role": msg.role, "content": msg.content})
        else:
            out.append({"role": "user", "content": msg.content})
    return out


def first_text(completion: Any) -> str:
    """Content of the first choice, '' if missing."""
    choices = getattr(completion, "choices", None) or []
    if not choices:
        return ""
    message = getattr(choices[0], "message", None)
    return (getattr(message, "content", None) or "") if message is not None else ""


async def generate_openai_completion(
    api_key: str,
    model: str,
    messages: list[CompletionMessage],
    *,
    temperature: float = 0.7,
    max_tokens: int | None = None,
    client: AsyncOpenAI | None = None,
) -> str:
    kwargs: dict[str, Any] = {
        "model": model,
        "messages": build_openai_messages(messages),
        "temperature": temperature,
    }
    if max_tokens:
        kwargs["max_tokens"] = max_tokens
    logger.debug("OpenAI request model=%s messages=%s", model, len(kwargs["messages"]))
    if client is not None:
        completion = await client.chat.completions.create(**kwargs)
    else:
        async with AsyncOpenAI(api_key=api_key) as owned:
            completion = await owned.chat.completions.create(**kwargs)
    text = first_text(completion)
    logger.debug("OpenAI response (%s chars)", len(text))
    return text
