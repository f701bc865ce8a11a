"""
Gemini direct REST provider implementation
"""

import aiohttp
import numpy as np

from .base import LLMProvider, LLMResponse


class GeminiProvider(LLMProvider):
    """Google Generative Language API provider (generateContent / embedContent)"""

    BASE_URL = "https://generativelanguage.googleapis.com/v1beta/models"

    def __init__(self, api_key: str, model: str, **kwargs):
        """Initialize Gemini provider with API key and model configuration."""
        super().__init__(api_key, _bare_model(model), **kwargs)
        self.embedding_model = _bare_model(self.embedding_model)
        self.session = None

    def validate_config(self) -> bool:
        """Validate Gemini configuration including API key and model."""
        if not self.api_key:
            raise ValueError("API key is required for Gemini provider")

        if not self.model:
            raise ValueError("Model is required for Gemini provider")

        return True

    async def __aenter__(self):
        """Setup async HTTP session for API requests."""
        if self.session is None:
            self.session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Cleanup HTTP session resources."""
        if self.session:
            await self.session.close()
            self.session = None

    async def _post(self, url: str, payload: dict) -> dict:
        if not self.session:
            await self.__aenter__()

        async with self.session.post(
            url,
            params={"key": self.api_key},
            headers={"Content-Type": "application/json"},
            json=payload,
        ) as response:
            if response.status >= 400:
                body = await response.text()
                raise RuntimeError(f"Gemini API {response.status}: {body[:500]}")
            return await response.json()

    async def generate(self, prompt: str, **kwargs) -> LLMResponse:
        """Generate a completion with generateContent."""
        self.validate_config()

        generation_config = {}
        if kwargs.get("json_mode"):
            generation_config["responseMimeType"] = "application/json"
        if "temperature" in kwargs:
            generation_config["temperature"] = kwargs["temperature"]
        if "max_tokens" in kwargs:
            generation_config["maxOutputTokens"] = kwargs["max_tokens"]

        payload = {"contents": [{"parts": [{"text": prompt}]}]}
        if generation_config:
            payload["generationConfig"] = generation_config

        try:
            data = await self._post(f"{self.BASE_URL}/{self.model}:generateContent", payload)
        except aiohttp.ClientError as e:
            raise RuntimeError(f"Gemini API request failed: {e}") from e

        candidates = data.get("candidates") or [{}]
        candidate = candidates[0]
        parts = (candidate.get("content") or {}).get("parts") or [{}]
        usage = data.get("usageMetadata")

        return LLMResponse(
            content=parts[0].get("text", ""),
            model=self.model,
            usage={
                "prompt_tokens": usage.get("promptTokenCount", 0),
                "completion_tokens": usage.get("candidatesTokenCount", 0),
                "total_tokens": usage.get("totalTokenCount", 0),
            } if usage else None,
            finish_reason=candidate.get("finishReason"),
        )

    async def embed(self, text: str) -> np.ndarray:
        """Embed text with embedContent using the SEMANTIC_SIMILARITY task type."""
        if not self.embedding_model:
            raise ValueError("Embedding model is required for Gemini embeddings")

        payload = {
            "content": {"parts": [{"text": text}]},
            "taskType": "SEMANTIC_SIMILARITY",
        }
        try:
            data = await self._post(f"{self.BASE_URL}/{self.embedding_model}:embedContent", payload)
        except aiohttp.ClientError as e:
            raise RuntimeError(f"Gemini embedding request failed: {e}") from e

        values = (data.get("embedding") or {}).get("values") or []
        if not values:
            raise RuntimeError("Gemini embedding API returned an empty values array")
        return np.array(values, dtype=np.float64)


def _bare_model(model: str) -> str:
    """Strip a LiteLLM-style ``gemini/`` or ``models/`` prefix from a model name."""
    for prefix in ("gemini/", "models/"):
        if model.startswith(prefix):
            return model[len(prefix):]
    return model
