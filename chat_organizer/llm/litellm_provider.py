"""
LiteLLM provider implementation
"""

import numpy as np

from ..logging_config import get_logger
from .base import LLMProvider, LLMResponse

logger = get_logger("llm.litellm")

# Embedding inputs are cut to keep requests inside provider limits.
MAX_EMBED_CHARS = 8000


class LiteLLMProvider(LLMProvider):
    """LiteLLM-based provider, works with any model string LiteLLM routes"""

    def validate_config(self) -> bool:
        """Validate LiteLLM configuration including API key and models."""
        if not self.api_key:
            raise ValueError("API key is required for LiteLLM provider")

        if not self.model:
            raise ValueError("Model is required for LiteLLM provider")

        return True

    async def generate(self, prompt: str, **kwargs) -> LLMResponse:
        """Generate a completion using LiteLLM."""
        self.validate_config()

        import litellm

        call_kwargs = {
            "temperature": 0.2,
            "max_tokens": 64,
            **kwargs
        }
        if call_kwargs.pop("json_mode", False):
            call_kwargs["response_format"] = {"type": "json_object"}

        try:
            response = await litellm.acompletion(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                api_key=self.api_key,
                timeout=self.timeout,
                **call_kwargs
            )

            choice = response.choices[0]
            usage = None
            if hasattr(response, 'usage') and response.usage:
                usage = {
                    "prompt_tokens": getattr(response.usage, 'prompt_tokens', 0),
                    "completion_tokens": getattr(response.usage, 'completion_tokens', 0),
                    "total_tokens": getattr(response.usage, 'total_tokens', 0)
                }

            return LLMResponse(
                content=choice.message.content or "",
                model=self.model,
                usage=usage,
                finish_reason=getattr(choice, 'finish_reason', None)
            )

        except Exception as e:
            raise RuntimeError(f"LiteLLM generation failed: {e}") from e

    async def embed(self, text: str) -> np.ndarray:
        """Compute an embedding using litellm."""
        if not self.embedding_model:
            raise ValueError("Embedding model is required for LiteLLM embeddings")

        import litellm

        logger.debug("Embedding request: model=%s, input_len=%d", self.embedding_model, len(text))
        try:
            response = await litellm.aembedding(
                model=self.embedding_model,
                input=[text[:MAX_EMBED_CHARS]],
                api_key=self.api_key,
                timeout=self.timeout,
            )
            vector = response.data[0]["embedding"]
        except Exception as e:
            raise RuntimeError(f"LiteLLM embedding failed: {e}") from e

        result = np.array(vector, dtype=np.float64)
        if result.size == 0:
            raise RuntimeError("LiteLLM embedding returned an empty vector")
        logger.debug("Embedding success: dim=%d", result.shape[0])
        return result
