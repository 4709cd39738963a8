"""Composition root — wires infrastructure adapters to the application services.

One ServiceContainer is created at startup and closed at shutdown. It owns
the shared HTTP client, the database engine and the providers; everything
bound to a database session is built per unit of work through the
``build_*`` factory methods.

Usage:
    container = ServiceContainer.create(get_settings())
    await container.init_schema()
    async with container.session() as session:
        chat = container.build_chat_service(session)
        answer = await chat.answer(question)
    await container.aclose()
"""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

import httpx
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from docrag.application.interfaces import Chunker, TextExtractor
from docrag.application.services import (
    DocumentProcessingService,
    EmbeddingService,
    LLMUsageLogger,
    PromptAssembler,
    RAGChatService,
    RegexStructureAnalyzer,
    RetrievalService,
    build_chunker_from_settings,
)
from docrag.config import Settings
from docrag.domain.entities import Document
from docrag.domain.exceptions import IngestionError
from docrag.infrastructure.database import Base, create_engine_from_settings, create_session_factory
from docrag.infrastructure.database.models.vector_models import set_embedding_dimensions
from docrag.infrastructure.database.repositories import (
    SQLAlchemyChunkRepository,
    SQLAlchemyDocumentRepository,
    SQLAlchemyServiceRequestLogRepository,
)
from docrag.infrastructure.extractors import MultiFormatTextExtractor
from docrag.infrastructure.openrouter import OpenRouterClient, OpenRouterEmbeddingProvider
from docrag.infrastructure.vector_index import PgVectorIndex

logger = logging.getLogger(__name__)


class ServiceContainer:
    """Owns long-lived resources and builds session-scoped services."""

    def __init__(
        self,
        settings: Settings,
        *,
        http_client: httpx.AsyncClient,
        engine: AsyncEngine,
        session_factory: async_sessionmaker[AsyncSession],
        chat_provider: OpenRouterClient,
        embedding_provider: OpenRouterEmbeddingProvider,
        text_extractor: TextExtractor,
        chunker: Chunker,
    ):
        self.settings = settings
        self.http_client = http_client
        self.engine = engine
        self.session_factory = session_factory
        self.chat_provider = chat_provider
        self.embedding_provider = embedding_provider
        self.text_extractor = text_extractor
        self.chunker = chunker

    @classmethod
    def create(cls, settings: Settings) -> "ServiceContainer":
        """Build every long-lived resource from settings.

        Raises:
            ChunkingConfigError: The configured chunking strategy or sizes are invalid.
            ValueError: The database URL is not a PostgreSQL URL, or the embedding
                dimensions are outside what the vector index accepts.
        """
        if not settings.openrouter_api_key.strip():
            logger.warning(
                "OPENROUTER_API_KEY is not configured; embedding and chat calls will fail."
            )

        set_embedding_dimensions(settings.embedding_dimensions)
        http_client = httpx.AsyncClient(timeout=settings.http_timeout_seconds)
        engine = create_engine_from_settings(settings)
        analyzer = RegexStructureAnalyzer()

        container = cls(
            settings,
            http_client=http_client,
            engine=engine,
            session_factory=create_session_factory(engine),
            chat_provider=OpenRouterClient(
                api_key=settings.openrouter_api_key,
                base_url=settings.openrouter_base_url,
                app_name=settings.openrouter_app_name,
                http_client=http_client,
                timeout_seconds=settings.http_timeout_seconds,
            ),
            embedding_provider=OpenRouterEmbeddingProvider(
                api_key=settings.openrouter_api_key,
                base_url=settings.openrouter_base_url,
                app_name=settings.openrouter_app_name,
                model=settings.embedding_model,
                model_dimensions=settings.embedding_dimensions,
                http_client=http_client,
                timeout_seconds=settings.http_timeout_seconds,
            ),
            text_extractor=MultiFormatTextExtractor(),
            chunker=build_chunker_from_settings(settings, analyzer),
        )
        logger.info(
            "Service container ready (chunking=%s, chat_model=%s, embedding_model=%s)",
            container.chunker.strategy.value,
            settings.chat_model,
            settings.embedding_model,
        )
        return container

    async def aclose(self) -> None:
        """Close the shared HTTP client and dispose of the engine."""
        await self.http_client.aclose()
        await self.engine.dispose()
        logger.info("Service container closed")

    async def init_schema(self) -> None:
        """Create the pgvector extension and all tables if missing."""
        async with self.engine.begin() as conn:
            await conn.execute(text("CREATE EXTENSION IF NOT EXISTS vector"))
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database schema initialized")

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """One unit of work: commits on success, rolls back on any exception."""
        async with self.session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    # ── Session-scoped services ─────────────────────────────────────

    def build_vector_index(self, session: AsyncSession) -> PgVectorIndex:
        return PgVectorIndex(session, dimensions=self.settings.embedding_dimensions)

    def build_embedding_service(self, session: AsyncSession) -> EmbeddingService:
        return EmbeddingService(
            self.embedding_provider,
            self.build_vector_index(session),
            embedding_batch_size=self.settings.embedding_batch_size,
            upsert_batch_size=self.settings.upsert_batch_size,
            max_concurrency=self.settings.embedding_concurrency,
        )

    def build_retrieval_service(self, session: AsyncSession) -> RetrievalService:
        return RetrievalService(
            self.embedding_provider,
            self.build_vector_index(session),
            SQLAlchemyDocumentRepository(session),
            overfetch_factor=self.settings.rag_overfetch_factor,
        )

    def build_chat_service(self, session: AsyncSession) -> RAGChatService:
        settings = self.settings
        return RAGChatService(
            self.build_retrieval_service(session),
            PromptAssembler(
                history_limit=settings.history_limit,
                language=settings.prompt_language,
            ),
            self.chat_provider,
            LLMUsageLogger(SQLAlchemyServiceRequestLogRepository(session)),
            model=settings.chat_model,
            temperature=settings.chat_temperature,
            max_tokens=settings.chat_max_tokens,
            top_k=settings.rag_top_k,
            min_score=settings.rag_min_score,
            max_context_tokens=settings.rag_max_context_tokens,
        )

    def build_processing_service(self, session: AsyncSession) -> DocumentProcessingService:
        return DocumentProcessingService(
            SQLAlchemyDocumentRepository(session),
            SQLAlchemyChunkRepository(session),
            self.text_extractor,
            self.chunker,
            self.build_embedding_service(session),
            timeout_seconds=self.settings.processing_timeout_seconds,
        )

    # ── Use cases spanning a unit of work ───────────────────────────

    async def ingest_document(self, document_id: str, file_path: str | Path) -> Document:
        """Claim a stored document, then process it in a second unit of work.

        The claim is committed first, so a concurrent call for the same
        document fails with DocumentInFlightError instead of running twice.
        A failed ingestion rolls back its partial chunks and vectors; the
        FAILED status is then recorded in a fresh session, which also
        releases the claim.

        Raises:
            EntityNotFoundError: No document with this id exists.
            DocumentInFlightError: Another ingestion holds the document.
            IngestionError: The pipeline failed.
        """
        async with self.session() as session:
            document = await self.build_processing_service(session).claim_document(document_id)

        try:
            async with self.session() as session:
                return await self.build_processing_service(session).process_document(
                    document, file_path
                )
        except asyncio.CancelledError:
            await self._record_failure(document_id, "Processing was cancelled")
            raise
        except Exception as e:
            message = e.message if isinstance(e, IngestionError) else str(e)
            await self._record_failure(document_id, message)
            raise

    async def _record_failure(self, document_id: str, message: str) -> None:
        async with self.session() as session:
            repository = SQLAlchemyDocumentRepository(session)
            document = await repository.get_by_id(document_id)
            if document is None:
                return
            document.mark_failed(message)
            await repository.update(document)
        logger.info("Recorded failed ingestion of document %s", document_id)
