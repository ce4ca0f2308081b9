"""Registry of completion provider kinds. Add new vendor clients here."""
import logging
from collections.abc import Awaitable, Callable

from mcp_console.core.constants import PROVIDER_ANTHROPIC, PROVIDER_OPENAI
from mcp_console.services.completion.types import ModelInfo

logger = logging.getLogger(__name__)

# generate(api_key, model, messages, *, temperature, max_tokens) -> text
Generator = Callable[..., Awaitable[str]]

# Registry: kind -> (generate, models)
_kinds: dict[str, tuple[Generator, list[ModelInfo]]] = {}


def register(kind: str, generate: Generator, models: list[ModelInfo]) -> None:
    """Register a vendor client under a provider kind (ai_providers.provider)."""
    _kinds[kind] = (generate, list(models))
    logger.debug("Registered completion provider kind: %s", kind)


def get_generator(kind: str) -> Generator | None:
    """Return the generate function for a kind (case-insensitive), or None if unsupported."""
    entry = _kinds.get((kind or "").lower())
    return entry[0] if entry else None


def available_models(kind: str) -> list[ModelInfo]:
    """Model catalogue for a kind (case-insensitive); empty if unknown."""
    entry = _kinds.get((kind or "").lower())
    return list(entry[1]) if entry else []


def list_kinds() -> list[str]:
    return list(_kinds.keys())


def _init_registry() -> None:
    from mcp_console.services.completion import anthropic_client, openai_client

    register(PROVIDER_ANTHROPIC, anthropic_client.generate_anthropic_completion, anthropic_client.MODELS)
    register(PROVIDER_OPENAI, openai_client.generate_openai_completion, openai_client.MODELS)


# Register built-in kinds on first import
_init_registry()
