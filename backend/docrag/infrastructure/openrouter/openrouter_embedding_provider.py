"""OpenRouter embedding adapter — calls the /embeddings endpoint.

Default model: openai/text-embedding-3-small (1536 dimensions).
"""

import logging
from typing import Any

import httpx

from docrag.application.interfaces.embedding_provider import EmbeddingProvider
from docrag.domain.exceptions import EmbeddingProviderError
from docrag.infrastructure.openrouter.openrouter_http import (
    DEFAULT_BASE_URL,
    OpenRouterHTTP,
    error_message,
)

logger = logging.getLogger(__name__)

_PROVIDER = "openrouter"
_OPERATION = "embeddings"

# nomic-embed-text models expect a task prefix; OpenAI models do not
_NOMIC_DOCUMENT_PREFIX = "search_document: "
_NOMIC_QUERY_PREFIX = "search_query: "


class OpenRouterEmbeddingProvider(OpenRouterHTTP, EmbeddingProvider):
    """Generates embeddings through OpenRouter.

    Response items may arrive in any order; they are re-sorted by their
    ``index`` field before use.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        app_name: str = "DocRAG",
        model: str = "openai/text-embedding-3-small",
        model_dimensions: int = 1536,
        http_client: httpx.AsyncClient | None = None,
        timeout_seconds: float = 120.0,
    ):
        super().__init__(api_key, base_url, app_name, http_client, timeout_seconds)
        self._model = model
        self._dimensions = model_dimensions

    @property
    def dimensions(self) -> int:
        return self._dimensions

    def _with_prefix(self, texts: list[str], prefix: str) -> list[str]:
        if "nomic" not in self._model.lower():
            return texts
        return [f"{prefix}{t}" for t in texts]

    async def generate_embeddings(self, texts: list[str]) -> list[list[float]]:
        """Embed document texts, returning vectors in input order.

        Raises:
            EmbeddingProviderError: Transport failure, non-200 status, or a
                response whose item count does not match the input.
        """
        return await self._embed(self._with_prefix(texts, _NOMIC_DOCUMENT_PREFIX), texts)

    async def generate_query_embedding(self, query: str) -> list[float]:
        vectors = await self._embed(self._with_prefix([query], _NOMIC_QUERY_PREFIX), [query])
        return vectors[0]

    async def _embed(self, inputs: list[str], texts: list[str]) -> list[list[float]]:
        if not inputs:
            return []

        payload: dict[str, Any] = {
            "model": self._model,
            "input": inputs,
            "dimensions": self._dimensions,
        }
        context = {"text_count": len(texts), "total_chars": sum(len(t) for t in texts)}

        try:
            response = await self._post("/embeddings", payload)
        except httpx.HTTPError as e:
            logger.error("Embedding request failed before a response: %s", e)
            raise EmbeddingProviderError(
                _PROVIDER, _OPERATION, f"{type(e).__name__}: {e}", context=context
            ) from e

        if response.status_code != 200:
            message = error_message(response)[:500]
            logger.error("Embedding API error %d: %s", response.status_code, message)
            raise EmbeddingProviderError(
                _PROVIDER,
                _OPERATION,
                message,
                status_code=response.status_code,
                context=context,
            )

        try:
            items = sorted(response.json()["data"] or [], key=lambda item: item.get("index", 0))
            vectors = [list(item["embedding"]) for item in items]
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            logger.error("Malformed embedding response: %s", e)
            raise EmbeddingProviderError(
                _PROVIDER,
                _OPERATION,
                f"Malformed response body ({type(e).__name__}: {e})",
                status_code=response.status_code,
                context={**context, "body": response.text[:200]},
            ) from e

        if len(vectors) != len(inputs):
            raise EmbeddingProviderError(
                _PROVIDER,
                _OPERATION,
                f"Expected {len(inputs)} embeddings, got {len(vectors)}",
                context=context,
            )

        logger.info("Generated %d embeddings (model=%s)", len(vectors), self._model)
        return vectors
