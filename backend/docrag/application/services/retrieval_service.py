"""Retrieval service — turns a question into a ranked, bounded RAG context.

Flow:
  1. Scope: the owner is always filtered on, selected documents narrow it further.
  2. Search: embed the question and over-fetch candidates from the vector index.
  3. Rank: drop weak and duplicate matches, sort by score, keep ``top_k``.
  4. Render: join chunks with their document names into the context text.
"""

import logging
import time

from docrag.application.interfaces.document_repository import DocumentRepository
from docrag.application.interfaces.embedding_provider import EmbeddingProvider
from docrag.application.interfaces.vector_index import VectorIndex
from docrag.application.schemas.rag import RAGQueryInput
from docrag.domain.entities import (
    DocumentSummary,
    RAGContext,
    RankedChunk,
    VectorFilter,
    VectorMatch,
    estimate_token_count,
)
from docrag.domain.exceptions import ProviderError, RetrievalError

logger = logging.getLogger(__name__)

_DEFAULT_OVERFETCH_FACTOR = 2
_UNKNOWN_DOCUMENT = "Unknown"
_CONTEXT_SEPARATOR = "\n\n---\n\n"

# ── Confidence heuristic ────────────────────────────────────────────
_NO_CONTEXT_CONFIDENCE = 0.2
_CHUNK_BONUS_DIVISOR = 5
_MAX_CHUNK_BONUS = 0.2


def calculate_confidence(chunks: list[RankedChunk]) -> float:
    """Average relevance plus a small bonus for having more supporting chunks.

    ``min(avg + min(n / 5, 0.2), 1.0)``; a fixed 0.2 when nothing was found.
    """
    if not chunks:
        return _NO_CONTEXT_CONFIDENCE
    avg_score = sum(c.score for c in chunks) / len(chunks)
    bonus = min(len(chunks) / _CHUNK_BONUS_DIVISOR, _MAX_CHUNK_BONUS)
    return max(0.0, min(avg_score + bonus, 1.0))


def format_chunk(chunk: RankedChunk) -> str:
    return (
        f"[Document: {chunk.document_name}, Chunk {chunk.chunk_index + 1}, "
        f"Relevance: {chunk.score * 100:.1f}%]\n{chunk.content}"
    )


class RetrievalService:
    """Application service for RAG retrieval over an owner's documents."""

    def __init__(
        self,
        embedding_provider: EmbeddingProvider,
        vector_index: VectorIndex,
        document_repository: DocumentRepository,
        *,
        overfetch_factor: int = _DEFAULT_OVERFETCH_FACTOR,
    ):
        if overfetch_factor < 1:
            raise ValueError("overfetch_factor must be at least 1")
        self._embedding_provider = embedding_provider
        self._vector_index = vector_index
        self._document_repo = document_repository
        self._overfetch_factor = overfetch_factor

    async def perform_query(self, query_input: RAGQueryInput) -> RAGContext:
        """Retrieve the most relevant chunks for a question.

        Returns an empty context (no chunks, empty text) when nothing matches;
        that is a normal outcome, not an error.

        Raises:
            RetrievalError: The embedding provider or the vector index failed.
        """
        start = time.monotonic()
        scope = VectorFilter(
            owner_id=query_input.owner_id,
            document_ids=tuple(query_input.document_ids) if query_input.document_ids else None,
        )

        try:
            query_vector = await self._embedding_provider.generate_query_embedding(
                query_input.query
            )
            matches = await self._vector_index.query(
                query_vector,
                top_k=query_input.top_k * self._overfetch_factor,
                filter=scope,
                min_score=query_input.min_score,
            )
        except ProviderError as e:
            logger.error("Retrieval failed for owner %s: %s", query_input.owner_id, e)
            raise RetrievalError(
                f"Retrieval unavailable ({e.operation}): {e.message}", cause=e
            ) from e

        if not matches:
            logger.info(
                "No matches for owner %s (documents=%s)",
                query_input.owner_id,
                len(query_input.document_ids or []),
            )
            return RAGContext(query=query_input.query, total_candidates=0)

        ranked = self._rank(matches, query_input.min_score)[: query_input.top_k]
        names = await self._resolve_names([m.metadata.document_id for m in ranked])

        chunks = [
            RankedChunk(
                document_id=m.metadata.document_id,
                document_name=names.get(m.metadata.document_id, _UNKNOWN_DOCUMENT),
                chunk_index=m.metadata.chunk_index,
                content=m.text,
                score=m.score,
                metadata={
                    "vector_id": m.id,
                    "file_name": m.metadata.file_name,
                    "file_type": m.metadata.file_type,
                    **m.metadata.extensions,
                },
            )
            for m in ranked
        ]
        chunks = self._apply_token_budget(chunks, query_input.max_context_tokens)

        context = RAGContext(
            query=query_input.query,
            relevant_chunks=chunks,
            total_candidates=len(matches),
            context_text=_CONTEXT_SEPARATOR.join(format_chunk(c) for c in chunks),
        )

        duration_ms = int((time.monotonic() - start) * 1000)
        logger.info(
            "Retrieved %d/%d chunks for owner %s (avg score %.3f) in %dms",
            len(chunks),
            len(matches),
            query_input.owner_id,
            context.avg_score,
            duration_ms,
        )
        return context

    def calculate_confidence(self, chunks: list[RankedChunk]) -> float:
        return calculate_confidence(chunks)

    async def get_available_documents(self, owner_id: str) -> list[DocumentSummary]:
        """Vectorized documents of an owner, newest first."""
        documents = await self._document_repo.list_by_owner(owner_id, vectorized_only=True)
        return [
            DocumentSummary(
                id=doc.id,
                name=doc.display_name,
                file_type=doc.file_type,
                chunk_count=doc.chunk_count,
                created_at=doc.created_at,
            )
            for doc in documents
        ]

    async def validate_document_access(self, owner_id: str, document_ids: list[str]) -> bool:
        """Whether every id belongs to the owner and is ready for retrieval."""
        requested = set(document_ids)
        if not requested:
            return True
        try:
            accessible = await self._document_repo.count_accessible(owner_id, sorted(requested))
        except Exception as e:
            logger.warning("Document access check failed for owner %s: %s", owner_id, e)
            return False
        return accessible == len(requested)

    # ── Helpers ─────────────────────────────────────────────────────

    @staticmethod
    def _rank(matches: list[VectorMatch], min_score: float) -> list[VectorMatch]:
        """Drop matches below ``min_score`` and duplicate ids, best first.

        The index already orders by score; the sort is stable, so equal
        scores keep the index's order.
        """
        eligible = sorted(
            (m for m in matches if m.score >= min_score),
            key=lambda m: m.score,
            reverse=True,
        )
        seen: set[str] = set()
        ranked: list[VectorMatch] = []
        for match in eligible:
            if match.id in seen:
                continue
            seen.add(match.id)
            ranked.append(match)
        return ranked

    async def _resolve_names(self, document_ids: list[str]) -> dict[str, str]:
        distinct = list(dict.fromkeys(document_ids))
        if not distinct:
            return {}
        try:
            return await self._document_repo.find_names_by_ids(distinct)
        except Exception as e:
            logger.warning("Could not resolve document names: %s", e)
            return {}

    @staticmethod
    def _apply_token_budget(
        chunks: list[RankedChunk], max_tokens: int | None
    ) -> list[RankedChunk]:
        """Drop trailing chunks once the rendered context exceeds ``max_tokens``.

        The best chunk is always kept, even when it alone is over budget.
        """
        if max_tokens is None or not chunks:
            return chunks

        kept = [chunks[0]]
        used = estimate_token_count(format_chunk(chunks[0]))
        separator_tokens = estimate_token_count(_CONTEXT_SEPARATOR)
        for chunk in chunks[1:]:
            cost = separator_tokens + estimate_token_count(format_chunk(chunk))
            if used + cost > max_tokens:
                break
            kept.append(chunk)
            used += cost

        if len(kept) < len(chunks):
            logger.debug("Token budget %d kept %d/%d chunks", max_tokens, len(kept), len(chunks))
        return kept
