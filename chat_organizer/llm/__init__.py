"""
Provider package: label generation and embeddings
"""

from .base import EmbeddingProvider, LLMProvider, LLMResponse
from .factory import LLMProviderFactory, LLMProviderType
from .gemini_provider import GeminiProvider
from .litellm_provider import LiteLLMProvider

__all__ = [
    "EmbeddingProvider",
    "LLMProvider",
    "LLMResponse",
    "LLMProviderFactory",
    "LLMProviderType",
    "GeminiProvider",
    "LiteLLMProvider",
]
