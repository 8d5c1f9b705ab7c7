"""
LLM Provider factory module.
Creates provider instances based on configuration.
"""

import logging
from typing import Optional, Dict, List

from renotefy.config import Settings
from renotefy.llm.base import LLMProvider
from renotefy.llm.gemini_provider import GeminiProvider
from renotefy.llm.openai_provider import OpenAIProvider

logger = logging.getLogger(__name__)

# ============================================================
# Provider Registry
# ============================================================
PROVIDERS: Dict[str, type] = {
    "gemini": GeminiProvider,
    "openai": OpenAIProvider,
}


def create_provider(
    provider_name: str,
    api_key: Optional[str] = None,
    base_url: Optional[str] = None,
) -> Optional[LLMProvider]:
    """
    Create an LLM provider instance.

    Args:
        provider_name: Name of the provider (gemini, openai)
        api_key: API key for authentication
        base_url: Custom base URL for the API

    Returns:
        LLMProvider instance or None if provider not found
    """
    provider_class = PROVIDERS.get(provider_name.lower())

    if not provider_class:
        logger.error(f"Unknown provider: {provider_name}")
        return None

    return provider_class(api_key=api_key, base_url=base_url)


def provider_from_settings(settings: Settings) -> LLMProvider:
    """Build the configured provider, with its key and base URL.

    Raises:
        ValueError: If settings name an unknown provider.
    """
    name = settings.llm_provider.lower()
    if name == "openai":
        provider = create_provider(name, settings.openai_api_key, settings.openai_base_url)
    else:
        provider = create_provider(name, settings.gemini_api_key, settings.gemini_base_url)
    if provider is None:
        raise ValueError(f"Unsupported LLM provider: {settings.llm_provider}")
    if not provider.api_key:
        logger.warning(f"No API key configured for {name}; AI helpers will fail")
    return provider


def get_available_providers() -> List[str]:
    """Get list of all supported provider names."""
    return list(PROVIDERS.keys())
