"""
Text-generation provider interface.

Providers take OpenAI-shaped chat messages ({"role", "content"} dicts
with roles system / user / assistant) and translate them to whatever
their API expects.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import httpx
from pydantic import BaseModel

logger = logging.getLogger(__name__)


class LLMResponse(BaseModel):
    """A finished (non-streamed) completion."""
    content: str
    model: str
    provider: str
    usage: Dict[str, int] = {}
    finish_reason: Optional[str] = None


class ModelInfo(BaseModel):
    id: str
    name: str
    context_length: Optional[int] = None


class LLMProvider(ABC):
    """
    Base class for text-generation backends.

    Subclasses implement list_models() and generate(); both talk HTTP
    through _request(), so transport failures and error statuses surface
    as httpx.HTTPError for the caller to handle.
    """

    provider_name: str = "base"
    default_base_url: str = ""

    def __init__(self, api_key: Optional[str] = None, base_url: Optional[str] = None):
        self.api_key = api_key
        self.base_url = (base_url or self.default_base_url).rstrip("/")

    @abstractmethod
    def _get_headers(self) -> Dict[str, str]:
        """Authentication and content-type headers for every request."""

    async def _request(
        self,
        method: str,
        path: str,
        timeout: float = 120.0,
        **kwargs: Any,
    ) -> Dict[str, Any]:
        """Send one request to base_url + path and return the JSON body.

        Raises:
            httpx.HTTPError: On transport failures or non-2xx replies.
        """
        async with httpx.AsyncClient(timeout=timeout) as client:
            response = await client.request(
                method, f"{self.base_url}{path}", headers=self._get_headers(), **kwargs
            )
            response.raise_for_status()
            return response.json()

    @abstractmethod
    async def list_models(self) -> List[ModelInfo]:
        """Models this key can use; empty when unreachable or unconfigured."""

    @abstractmethod
    async def generate(
        self,
        messages: List[Dict[str, str]],
        model: str,
        temperature: float = 0.7,
        max_tokens: Optional[int] = None,
        **kwargs
    ) -> LLMResponse:
        """
        Generate a complete response.

        Args:
            messages: Chat history, oldest first.
            model: Model identifier to use.
            temperature: Sampling temperature (0-2).
            max_tokens: Cap on generated tokens, if any.

        Raises:
            httpx.HTTPError: On transport failures or non-2xx replies.
            KeyError: If the reply lacks the expected fields.
        """

    async def test_connection(self) -> bool:
        """True if the provider answers and lists at least one model."""
        return bool(await self.list_models())
