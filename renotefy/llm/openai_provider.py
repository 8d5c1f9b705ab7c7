"""
OpenAI chat completions provider.
Also works against any server exposing the same API (set a base URL).
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from renotefy.llm.base import LLMProvider, LLMResponse, ModelInfo

logger = logging.getLogger(__name__)


class OpenAIProvider(LLMProvider):
    """Chat completions over /chat/completions; models from /models."""

    provider_name = "openai"
    default_base_url = "https://api.openai.com/v1"

    def _get_headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    async def list_models(self) -> List[ModelInfo]:
        if not self.api_key:
            return []
        try:
            data = await self._request("GET", "/models", timeout=30.0)
        except httpx.HTTPError as e:
            logger.error(f"Failed to list OpenAI models: {e}")
            return []
        return sorted(
            (ModelInfo(id=m["id"], name=m["id"]) for m in data.get("data", []) if m.get("id")),
            key=lambda m: m.id,
        )

    async def generate(
        self,
        messages: List[Dict[str, str]],
        model: str,
        temperature: float = 0.7,
        max_tokens: Optional[int] = None,
        **kwargs
    ) -> LLMResponse:
        payload: Dict[str, Any] = {
            "model": model,
            "messages": messages,
            "temperature": temperature,
        }
        if max_tokens:
            payload["max_tokens"] = max_tokens

        data = await self._request("POST", "/chat/completions", json=payload)

        choice = data["choices"][0]
        # Newer servers nest *_details objects inside usage
        usage = {k: v for k, v in (data.get("usage") or {}).items() if isinstance(v, int)}
        return LLMResponse(
            content=choice["message"]["content"] or "",
            model=model,
            provider=self.provider_name,
            usage=usage,
            finish_reason=choice.get("finish_reason"),
        )
