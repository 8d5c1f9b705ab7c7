"""
LLM providers package.
Unified interface for the text-generation backends.
"""

from renotefy.llm.base import LLMProvider, LLMResponse, ModelInfo
from renotefy.llm.factory import create_provider, get_available_providers, provider_from_settings

__all__ = [
    "LLMProvider",
    "LLMResponse",
    "ModelInfo",
    "create_provider",
    "get_available_providers",
    "provider_from_settings",
]
