"""
Gemini LLM provider implementation.
Talks to the Generative Language REST API (generateContent).
"""

import logging
from typing import List, Dict, Any, Optional, Tuple
import httpx

from renotefy.llm.base import LLMProvider, LLMResponse, ModelInfo

logger = logging.getLogger(__name__)


class GeminiProvider(LLMProvider):
    """
    Google Gemini provider.

    Gemini calls the assistant role "model" and takes the system prompt
    as a separate systemInstruction, so OpenAI-style messages are
    converted before sending.
    """

    provider_name = "gemini"
    default_base_url = "https://generativelanguage.googleapis.com/v1beta"

    def _get_headers(self) -> Dict[str, str]:
        """Build request headers with authentication."""
        return {
            "x-goog-api-key": self.api_key or "",
            "Content-Type": "application/json",
        }

    @staticmethod
    def _to_contents(
        messages: List[Dict[str, str]],
    ) -> Tuple[Optional[str], List[Dict[str, Any]]]:
        """Split OpenAI-style messages into (system text, Gemini contents)."""
        system_parts: List[str] = []
        contents: List[Dict[str, Any]] = []
        for msg in messages:
            role = msg.get("role", "user")
            text = msg.get("content", "")
            if role == "system":
                system_parts.append(text)
                continue
            contents.append({
                "role": "model" if role == "assistant" else "user",
                "parts": [{"text": text}],
            })
        system = "\n\n".join(system_parts) if system_parts else None
        return system, contents

    async def list_models(self) -> List[ModelInfo]:
        """List models that support generateContent."""
        if not self.api_key:
            return []

        try:
            data = await self._request("GET", "/models", timeout=30.0)
        except httpx.HTTPError as e:
            logger.error(f"Failed to list Gemini models: {e}")
            return []

        models = []
        for model in data.get("models", []):
            if "generateContent" not in model.get("supportedGenerationMethods", []):
                continue
            # Names come back as "models/gemini-1.5-flash"
            model_id = model.get("name", "").split("/", 1)[-1]
            models.append(ModelInfo(
                id=model_id,
                name=model.get("displayName", model_id),
                context_length=model.get("inputTokenLimit"),
            ))
        return models

    async def generate(
        self,
        messages: List[Dict[str, str]],
        model: str,
        temperature: float = 0.7,
        max_tokens: Optional[int] = None,
        **kwargs
    ) -> LLMResponse:
        """Generate a complete response from Gemini."""
        system, contents = self._to_contents(messages)
        payload: Dict[str, Any] = {
            "contents": contents,
            "generationConfig": {"temperature": temperature},
        }
        if max_tokens:
            payload["generationConfig"]["maxOutputTokens"] = max_tokens
        if system:
            payload["systemInstruction"] = {"parts": [{"text": system}]}

        data = await self._request("POST", f"/models/{model}:generateContent", json=payload)

        candidate = data["candidates"][0]
        parts = candidate.get("content", {}).get("parts", [])
        usage = data.get("usageMetadata", {})
        return LLMResponse(
            content="".join(p.get("text", "") for p in parts),
            model=model,
            provider=self.provider_name,
            usage={
                "prompt_tokens": usage.get("promptTokenCount", 0),
                "completion_tokens": usage.get("candidatesTokenCount", 0),
            },
            finish_reason=candidate.get("finishReason"),
        )
