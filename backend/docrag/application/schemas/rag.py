"""Pydantic v2 schemas (DTOs) for RAG queries and grounded chat answers."""

from pydantic import BaseModel, Field

from docrag.domain.entities import RAGContext


# ── Retrieval ──


class RAGQueryInput(BaseModel):
    """Input for a single retrieval call.

    ``owner_id`` is always applied as a filter; ``document_ids`` narrows the
    search further when given.
    """

    query: str = Field(..., min_length=1, description="Natural-language question")
    owner_id: str = Field(..., min_length=1)
    document_ids: list[str] | None = Field(
        default=None, description="Restrict retrieval to these documents"
    )
    top_k: int = Field(default=5, ge=1, le=50)
    min_score: float = Field(default=0.7, ge=0.0, le=1.0)
    max_context_tokens: int | None = Field(
        default=None, gt=0, description="Approximate token budget for the context text"
    )


# ── Chat ──


class HistoryMessage(BaseModel):
    """A prior conversation turn."""

    role: str = Field(..., pattern=r"^(system|user|assistant)$")
    content: str


class ChatQuestion(BaseModel):
    """A user question to answer from the owner's documents."""

    query: str = Field(..., min_length=1)
    owner_id: str = Field(..., min_length=1)
    document_ids: list[str] | None = None
    history: list[HistoryMessage] = Field(default_factory=list)
    domain_hint: str | None = Field(
        default=None, description="legal | business | technical | general"
    )
    top_k: int | None = Field(default=None, ge=1, le=50)
    min_score: float | None = Field(default=None, ge=0.0, le=1.0)


class ChatAnswer(BaseModel):
    """A grounded answer with the context it was built from."""

    answer: str
    rag_context: RAGContext
    model: str
    tokens_used: int = 0
    processing_time_ms: int = 0
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
