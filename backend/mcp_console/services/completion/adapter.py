"""
Completion provider adapter: provider id + model + neutral message history -> plain text.
Resolves the provider through the store, validates it, and dispatches by kind.
"""
import logging

from mcp_console.core.errors import (
    CompletionFailed,
    ProviderInactive,
    ProviderNotFound,
    ProviderUnconfigured,
    UnsupportedProvider,
)
from mcp_console.services.completion.registry import get_generator
from mcp_console.services.completion.types import CompletionMessage
from mcp_console.services.storage import Store

logger = logging.getLogger(__name__)

DEFAULT_TEMPERATURE = 0.7


async def generate_completion(
    store: Store,
    provider_id: int,
    model: str,
    messages: list[CompletionMessage],
    temperature: float = DEFAULT_TEMPERATURE,
    max_tokens: int | None = None,
) -> str:
    """
    Generate a reply with the provider's vendor client. Never returns None ('' when the vendor sends no text).
    Raises ProviderNotFound / ProviderInactive / ProviderUnconfigured / UnsupportedProvider for bad
    configuration and CompletionFailed (cause attached) when the vendor call fails.
    """
    provider = store.get_provider(provider_id)
    if provider is None:
        raise ProviderNotFound(provider_id)
    if not provider.active:
        raise ProviderInactive(provider.name)
    if not provider.api_key:
        raise ProviderUnconfigured(provider.name)

    generate = get_generator(provider.provider)
    if generate is None:
        raise UnsupportedProvider(provider.provider)

    try:
        text = await generate(
            provider.api_key,
            model,
            messages,
            temperature=temperature,
            max_tokens=max_tokens,
        )
    except Exception as e:
        logger.warning("Completion failed provider=%s kind=%s model=%s: %s", provider.id, provider.provider, model, e)
        raise CompletionFailed(f"{provider.provider} completion failed: {e}", cause=e) from e
    return text or ""
