"""OpenRouter infrastructure package."""

from .openrouter_client import OpenRouterClient
from .openrouter_embedding_provider import OpenRouterEmbeddingProvider
from .openrouter_http import OpenRouterHTTP

__all__ = ["OpenRouterClient", "OpenRouterEmbeddingProvider", "OpenRouterHTTP"]
