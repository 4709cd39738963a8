"""LLM usage logger — single entry point for recording completion requests.

Every grounded answer is persisted with its token usage, cost, duration and
the retrieval figures it was based on, so external billing and audit can
consume the log table.
"""

import logging

from docrag.application.interfaces import ServiceRequestLogRepository
from docrag.domain.entities import RetrievalStats, ServiceRequestLog, TokenUsage

logger = logging.getLogger(__name__)


class LLMUsageLogger:
    """Tracks and persists LLM usage.

    Usage:
        usage_logger = LLMUsageLogger(log_repository)
        await usage_logger.log_request(
            model="openai/gpt-4o-mini",
            provider="openrouter",
            feature="rag_chat",
            usage=result.usage,
            duration_ms=42,
            retrieval=payload.retrieval,
        )
    """

    def __init__(self, log_repository: ServiceRequestLogRepository):
        self._repo = log_repository

    async def log_request(
        self,
        *,
        model: str,
        provider: str,
        feature: str,
        usage: TokenUsage,
        duration_ms: int,
        status: str = "success",
        error_message: str | None = None,
        owner_id: str | None = None,
        retrieval: RetrievalStats | None = None,
        request_context: str | None = None,
    ) -> ServiceRequestLog:
        """Persist and log an LLM request.

        Args:
            model: Model identifier (e.g. "openai/gpt-4o-mini").
            provider: Provider name (e.g. "openrouter").
            feature: Which subsystem triggered the call (e.g. "rag_chat").
            usage: Token usage from the completion result.
            duration_ms: Wall-clock time of the request in milliseconds.
            status: "success" or "error".
            error_message: Error details if status == "error".
            owner_id: The user the request was made for.
            retrieval: Chunk count and average score of the context used.
            request_context: Additional context (e.g. document ids).

        Returns:
            The persisted ServiceRequestLog entity.
        """
        stats = retrieval or RetrievalStats()
        entry = ServiceRequestLog(
            model=model,
            provider=provider,
            feature=feature,
            prompt_tokens=usage.prompt_tokens,
            completion_tokens=usage.completion_tokens,
            total_tokens=usage.total_tokens,
            cost=usage.cost,
            duration_ms=duration_ms,
            status=status,
            error_message=error_message,
            owner_id=owner_id,
            chunks_retrieved=stats.chunk_count,
            avg_score=stats.avg_score if stats.chunk_count else None,
            request_context=request_context,
        )

        saved = await self._repo.create(entry)

        cost_str = f"${usage.cost:.6f}" if usage.cost else "n/a"
        ctx_str = f" ctx={request_context}" if request_context else ""

        logger.info(
            "LLM [%s] model=%s tokens=%d cost=%s chunks=%d %dms%s",
            feature,
            model,
            usage.total_tokens,
            cost_str,
            stats.chunk_count,
            duration_ms,
            ctx_str,
        )

        return saved

    async def log_error(
        self,
        *,
        model: str,
        provider: str,
        feature: str,
        duration_ms: int,
        error: Exception,
        owner_id: str | None = None,
        request_context: str | None = None,
    ) -> ServiceRequestLog:
        """Convenience method for logging failed LLM requests."""
        return await self.log_request(
            model=model,
            provider=provider,
            feature=feature,
            usage=TokenUsage(),
            duration_ms=duration_ms,
            status="error",
            error_message=str(error),
            owner_id=owner_id,
            request_context=request_context,
        )
