"""Domain entity for service request logging — tracks usage, cost and retrieval."""

from dataclasses import dataclass, field
from datetime import datetime, timezone


@dataclass
class ServiceRequestLog:
    """A logged LLM request with token usage, timing and retrieval figures.

    Persisted for audit and usage billing by external collaborators.
    """

    model: str
    provider: str  # e.g. "openrouter"
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0
    cost: float | None = None  # Cost in USD
    duration_ms: int | None = None
    status: str = "success"  # "success" | "error"
    error_message: str | None = None
    feature: str = "rag_chat"
    owner_id: str | None = None
    chunks_retrieved: int = 0
    avg_score: float | None = None
    request_context: str | None = None  # Extra context (e.g. document ids)
    id: int | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
