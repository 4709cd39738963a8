"""Grounded chat use case — retrieval, prompt assembly, completion and usage logging."""

import logging
import time

from docrag.application.interfaces.chat_provider import ChatProvider
from docrag.application.schemas.rag import ChatAnswer, ChatQuestion, RAGQueryInput
from docrag.application.services.llm_usage_logger import LLMUsageLogger
from docrag.application.services.prompt_builder import PromptAssembler, detect_domain
from docrag.application.services.retrieval_service import RetrievalService, calculate_confidence
from docrag.domain.entities import ChatMessage, PromptDomain, RAGContext
from docrag.domain.exceptions import ChatProviderError

logger = logging.getLogger(__name__)

_FEATURE = "rag_chat"
_AUTO_DOMAIN = "auto"
_EMPTY_ANSWER = "No response generated."


class RAGChatService:
    """Application service — answers a question from the owner's documents.

    Provider-agnostic: retrieval, prompt assembly and the chat provider are
    all injected.
    """

    def __init__(
        self,
        retrieval_service: RetrievalService,
        prompt_assembler: PromptAssembler,
        chat_provider: ChatProvider,
        usage_logger: LLMUsageLogger,
        *,
        model: str,
        temperature: float | None = None,
        max_tokens: int | None = None,
        top_k: int = 5,
        min_score: float = 0.7,
        max_context_tokens: int | None = None,
    ):
        self._retrieval = retrieval_service
        self._assembler = prompt_assembler
        self._provider = chat_provider
        self._usage_logger = usage_logger
        self._model = model
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._top_k = top_k
        self._min_score = min_score
        self._max_context_tokens = max_context_tokens

    async def answer(self, question: ChatQuestion) -> ChatAnswer:
        """Answer a question.

        1. Retrieves the relevant context
        2. Builds the grounded prompt with the recent history
        3. Calls the provider
        4. Logs the request with usage and retrieval figures

        Raises:
            RetrievalError: Retrieval was unavailable.
            ChatProviderError: The completion failed (logged, then re-raised).
        """
        start = time.monotonic()

        rag_context = await self._retrieval.perform_query(
            RAGQueryInput(
                query=question.query,
                owner_id=question.owner_id,
                document_ids=question.document_ids,
                top_k=question.top_k or self._top_k,
                min_score=self._min_score if question.min_score is None else question.min_score,
                max_context_tokens=self._max_context_tokens,
            )
        )

        history = [ChatMessage(role=m.role, content=m.content) for m in question.history]
        payload = self._assembler.build_prompt(
            rag_context, history, self._domain_for(question.domain_hint, rag_context)
        )
        request_context = f"documents={len(question.document_ids or [])}"

        try:
            result = await self._provider.complete(
                payload.messages,
                self._model,
                temperature=self._temperature,
                max_tokens=self._max_tokens,
            )
        except ChatProviderError as e:
            duration_ms = int((time.monotonic() - start) * 1000)
            await self._usage_logger.log_error(
                model=self._model,
                provider=self._provider.provider_name,
                feature=_FEATURE,
                duration_ms=duration_ms,
                error=e,
                owner_id=question.owner_id,
                request_context=request_context,
            )
            logger.error("RAG chat completion error: %s", e)
            raise

        duration_ms = int((time.monotonic() - start) * 1000)
        await self._usage_logger.log_request(
            model=result.model or self._model,
            provider=result.provider or self._provider.provider_name,
            feature=_FEATURE,
            usage=result.usage,
            duration_ms=duration_ms,
            owner_id=question.owner_id,
            retrieval=payload.retrieval,
            request_context=request_context,
        )

        return ChatAnswer(
            answer=result.content or _EMPTY_ANSWER,
            rag_context=rag_context,
            model=result.model or self._model,
            tokens_used=result.usage.total_tokens,
            processing_time_ms=duration_ms,
            confidence=calculate_confidence(rag_context.relevant_chunks),
        )

    @staticmethod
    def _domain_for(domain_hint: str | None, rag_context: RAGContext) -> PromptDomain | str | None:
        """``"auto"`` picks a persona from the best-ranked chunk."""
        if domain_hint != _AUTO_DOMAIN:
            return domain_hint
        if not rag_context.relevant_chunks:
            return None
        top = rag_context.relevant_chunks[0]
        return detect_domain(top.document_name, top.content)
