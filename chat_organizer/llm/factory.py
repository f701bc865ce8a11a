"""
Provider factory
"""

import os
from typing import Dict
from enum import Enum

from ..config import ProviderConfig
from .base import LLMProvider
from .gemini_provider import GeminiProvider
from .litellm_provider import LiteLLMProvider


class LLMProviderType(Enum):
    """Available provider types"""
    LITELLM = "litellm"
    GEMINI = "gemini"


class LLMProviderFactory:
    """Factory for creating providers"""

    PROVIDERS = {
        LLMProviderType.LITELLM: LiteLLMProvider,
        LLMProviderType.GEMINI: GeminiProvider,
    }

    @classmethod
    def create_provider(
        cls,
        provider_type: LLMProviderType,
        api_key: str,
        model: str,
        **kwargs
    ) -> LLMProvider:
        """Create a provider instance"""
        if provider_type not in cls.PROVIDERS:
            raise ValueError(f"Unknown provider type: {provider_type}")

        provider_class = cls.PROVIDERS[provider_type]
        return provider_class(api_key=api_key, model=model, **kwargs)

    @classmethod
    def from_config(cls, config: ProviderConfig) -> LLMProvider:
        """Create a provider from the providers section of the configuration.

        The API key is read from the environment variable named by
        ``config.api_key_env``.
        """
        try:
            provider_type = LLMProviderType(config.provider.lower())
        except ValueError:
            raise ValueError(f"Invalid provider type in configuration: {config.provider}")

        api_key = os.getenv(config.api_key_env)
        if not api_key:
            raise ValueError(f"Environment variable {config.api_key_env} is required")

        extra_config = {"embedding_model": config.embedding_model}
        if config.timeout is not None:
            extra_config["timeout"] = config.timeout

        return cls.create_provider(provider_type, api_key, config.label_model, **extra_config)

    @classmethod
    def get_available_providers(cls) -> Dict[str, str]:
        """Get list of available providers with descriptions"""
        return {
            LLMProviderType.LITELLM.value: "LiteLLM provider (supports multiple LLM services)",
            LLMProviderType.GEMINI.value: "Gemini direct REST provider"
        }
