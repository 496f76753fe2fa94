"""Completion providers for Partyline."""

import logging
from typing import Optional, Type

from partyline.config import Settings, get_settings
from partyline.errors import InvalidConfigError

from .base import CompletionProvider, SDKProvider, with_retry
from .claude import ClaudeProvider
from .gpt import GPTProvider
from .types import (
    FinishReason,
    Message,
    MessageRole,
    ModelResponse,
    Usage,
    estimate_cost,
)

logger = logging.getLogger(__name__)

PROVIDERS: dict[str, Type[CompletionProvider]] = {
    "claude": ClaudeProvider,
    "gpt": GPTProvider,
}


def get_provider(
    name: str,
    api_key: Optional[str] = None,
    model_id: Optional[str] = None,
    max_tokens: int = 4096,
    temperature: float = 0.7,
    max_retries: int = 3,
) -> CompletionProvider:
    """Create a completion provider by name.

    Raises:
        InvalidConfigError: If the name is not a known provider
    """
    provider_class = PROVIDERS.get(name.lower())
    if provider_class is None:
        raise InvalidConfigError(
            "provider.name", name, f"must be one of {sorted(PROVIDERS)}"
        )
    return provider_class(
        api_key=api_key,
        model_id=model_id,
        max_tokens=max_tokens,
        temperature=temperature,
        max_retries=max_retries,
    )


def create_provider(settings: Optional[Settings] = None) -> CompletionProvider:
    """Create the configured completion provider."""
    settings = settings or get_settings()
    config = settings.provider
    provider = get_provider(
        config.name,
        api_key=settings.api_key_for(config.name),
        model_id=config.model_id,
        max_tokens=config.max_tokens,
        temperature=config.temperature,
        max_retries=config.max_retries,
    )
    if not provider.is_available:
        logger.warning(f"Provider {config.name} has no API key configured")
    return provider


__all__ = [
    "CompletionProvider",
    "SDKProvider",
    "ClaudeProvider",
    "GPTProvider",
    "PROVIDERS",
    "create_provider",
    "get_provider",
    "with_retry",
    "FinishReason",
    "Message",
    "MessageRole",
    "ModelResponse",
    "Usage",
    "estimate_cost",
]
