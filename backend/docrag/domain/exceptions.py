"""Domain-specific exceptions — framework-independent."""

from typing import Any


class EntityNotFoundError(Exception):
    """Raised when a requested entity does not exist."""

    def __init__(self, entity_type: str, entity_id: int | str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type} with id '{entity_id}' not found")


class ChunkingConfigError(ValueError):
    """Raised when a chunker is configured with inconsistent sizes."""


class ProviderError(Exception):
    """Raised when an external collaborator (embedding, index, LLM) fails.

    Carries the operation name and input-size context so the caller can
    decide whether to retry. Nothing inside the core retries on its own.
    """

    def __init__(
        self,
        provider: str,
        operation: str,
        message: str,
        *,
        status_code: int | None = None,
        context: dict[str, Any] | None = None,
    ):
        self.provider = provider
        self.operation = operation
        self.message = message
        self.status_code = status_code
        self.context = context or {}
        status = f" {status_code}" if status_code is not None else ""
        super().__init__(f"[{provider}] {operation}{status}: {message}")


class EmbeddingProviderError(ProviderError):
    """Raised when the embedding provider returns an error or malformed data."""


class VectorIndexError(ProviderError):
    """Raised when the vector index rejects an upsert, query or delete."""


class ChatProviderError(ProviderError):
    """Raised when a chat provider returns an error.

    Provider-agnostic — works for OpenRouter, OpenAI, Groq, etc.
    """

    def __init__(self, provider: str, status_code: int, message: str):
        super().__init__(provider, "chat_completion", message, status_code=status_code)


class IngestionError(Exception):
    """Raised when a document could not be chunked, embedded or indexed.

    The whole document is considered failed; no partial state is durable.
    """

    def __init__(self, document_id: str, message: str):
        self.document_id = document_id
        self.message = message
        super().__init__(f"Ingestion of document '{document_id}' failed: {message}")


class RetrievalError(Exception):
    """Raised when a RAG query fails because a provider is unavailable.

    Distinct from an empty result, which is a normal outcome.
    """

    def __init__(self, message: str, *, cause: ProviderError | None = None):
        self.message = message
        self.cause = cause
        super().__init__(message)


class DocumentInFlightError(IngestionError):
    """Raised when a document is claimed while another ingestion holds it."""
