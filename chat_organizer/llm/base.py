"""
Base provider interface for label generation and embeddings
"""

from abc import ABC, abstractmethod
from typing import Dict, Optional, Protocol
from dataclasses import dataclass

import numpy as np


@dataclass
class LLMResponse:
    """Standardized LLM response structure"""
    content: str
    model: str
    usage: Optional[Dict[str, int]] = None
    finish_reason: Optional[str] = None


class EmbeddingProvider(Protocol):
    """Anything that turns text into a vector (allows easy test mocking)."""

    async def embed(self, text: str) -> np.ndarray: ...


class LLMProvider(ABC):
    """Abstract base class for providers that generate text and embeddings"""

    def __init__(self, api_key: str, model: str, **kwargs):
        """Initialize provider with API key, completion model and optional embedding model."""
        self.api_key = api_key
        self.model = model
        self.embedding_model = kwargs.get("embedding_model", "")
        self.config = kwargs
        self.timeout = kwargs.get("timeout", 30)

    @abstractmethod
    async def generate(self, prompt: str, **kwargs) -> LLMResponse:
        """Generate a completion for the prompt."""

    @abstractmethod
    async def embed(self, text: str) -> np.ndarray:
        """Embed text. Raises RuntimeError when the service returns no vector."""

    @abstractmethod
    def validate_config(self) -> bool:
        """Validate provider configuration and credentials."""

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        pass
