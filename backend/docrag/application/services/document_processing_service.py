"""Document processing service — runs the ingestion pipeline for one document.

extract → chunk → persist chunks → embed + index → ready

The document status moves PROCESSING → CHUNKING → EMBEDDING → READY. Any
failure, timeout or cancellation leaves it FAILED, never READY.
"""

import asyncio
import logging
from datetime import datetime, timezone
from pathlib import Path

from docrag.application.interfaces.chunk_repository import ChunkRepository
from docrag.application.interfaces.chunker import Chunker
from docrag.application.interfaces.document_repository import DocumentRepository
from docrag.application.interfaces.text_extractor import TextExtractor
from docrag.application.services.embedding_service import EmbeddingService
from docrag.domain.entities import Document, DocumentStatus, SourceMetadata
from docrag.domain.exceptions import DocumentInFlightError, EntityNotFoundError, IngestionError
from docrag.infrastructure.logging.colored_logger import PipelineLogger, PipelineStage

logger = logging.getLogger(__name__)
plog = PipelineLogger("DocumentProcessingService")


class DocumentProcessingService:
    """Application service that ingests and removes documents.

    Ingestion is two steps: ``claim_document`` atomically moves the document
    to PROCESSING, then ``process_document`` runs the pipeline. The claim
    should be committed on its own so concurrent callers observe it.
    """

    def __init__(
        self,
        document_repository: DocumentRepository,
        chunk_repository: ChunkRepository,
        text_extractor: TextExtractor,
        chunker: Chunker,
        embedding_service: EmbeddingService,
        *,
        timeout_seconds: float | None = None,
    ):
        self._document_repo = document_repository
        self._chunk_repo = chunk_repository
        self._text_extractor = text_extractor
        self._chunker = chunker
        self._embedding_service = embedding_service
        self._timeout_seconds = timeout_seconds

    async def claim_document(self, document_id: str) -> Document:
        """Take the processing lock of a document.

        Raises:
            EntityNotFoundError: No document with this id exists.
            DocumentInFlightError: Another ingestion already holds it.
        """
        document = await self._document_repo.get_by_id(document_id)
        if document is None:
            raise EntityNotFoundError("Document", document_id)
        if not await self._document_repo.claim_for_processing(document_id):
            raise DocumentInFlightError(
                document_id, f"Document is already {document.status.value}"
            )
        document.status = DocumentStatus.PROCESSING
        document.error_message = None
        return document

    async def process_document(self, document: Document, file_path: str | Path) -> Document:
        """Run the full pipeline on a claimed document.

        Reprocessing replaces earlier chunks and vectors.

        Returns:
            The document in status READY.

        Raises:
            IngestionError: Any step failed or the timeout expired. The
                document has been marked FAILED.
            asyncio.CancelledError: The caller cancelled; the document has
                been marked FAILED.
        """
        if document.id is None:
            raise ValueError("Document must be persisted before processing")
        if document.status is not DocumentStatus.PROCESSING:
            raise ValueError("Document must be claimed before processing")

        plog.separator(document.display_name)
        try:
            if self._timeout_seconds:
                await asyncio.wait_for(
                    self._run_pipeline(document, Path(file_path)), self._timeout_seconds
                )
            else:
                await self._run_pipeline(document, Path(file_path))
        except asyncio.CancelledError:
            await self._mark_failed(document, "Processing was cancelled")
            raise
        except TimeoutError as e:
            message = f"Processing timed out after {self._timeout_seconds}s"
            await self._mark_failed(document, message)
            raise IngestionError(document.id, message) from e
        except IngestionError as e:
            await self._mark_failed(document, e.message)
            raise
        except Exception as e:
            await self._mark_failed(document, str(e))
            raise IngestionError(document.id, str(e)) from e

        return document

    async def delete_document(self, document_id: str, owner_id: str) -> None:
        """Delete a document with its vectors and chunks.

        Vectors and chunks are removed best effort; the document record is
        always deleted.

        Raises:
            EntityNotFoundError: The owner has no such document.
        """
        document = await self._document_repo.get_by_id(document_id, owner_id=owner_id)
        if document is None:
            raise EntityNotFoundError("Document", document_id)

        plog.step_start(PipelineStage.PIPELINE, "Deleting document", document_id=document_id)
        vectors_deleted = await self._embedding_service.delete_document_vectors(document_id)
        try:
            chunks_deleted = await self._chunk_repo.delete_by_document(document_id)
        except Exception as e:
            logger.warning("Could not delete chunks of document %s: %s", document_id, e)
            chunks_deleted = 0

        await self._document_repo.delete(document_id)
        plog.step_complete(
            PipelineStage.COMPLETE,
            f"Deleted '{document.display_name}'",
            chunks=chunks_deleted,
            vectors_removed=vectors_deleted,
        )

    async def delete_owner_data(self, owner_id: str) -> int:
        """Delete every document of an owner. Returns the number of documents removed."""
        await self._embedding_service.delete_owner_vectors(owner_id)
        chunks_deleted = await self._chunk_repo.delete_by_owner(owner_id)
        documents_deleted = await self._document_repo.delete_by_owner(owner_id)
        logger.info(
            "Deleted data for owner %s: %d documents, %d chunks",
            owner_id,
            documents_deleted,
            chunks_deleted,
        )
        return documents_deleted

    # ── Pipeline ────────────────────────────────────────────────────

    async def _run_pipeline(self, document: Document, file_path: Path) -> None:
        with plog.timed_step(
            PipelineStage.EXTRACT,
            f"Extracting text from '{document.display_name}'",
            type=document.file_type.value,
        ):
            extraction = await self._text_extractor.extract(file_path, document.file_type)
        if not extraction.text.strip():
            raise IngestionError(document.id, "No text could be extracted from the document")

        document.text_extracted = extraction.text
        document.metadata.update(
            page_count=extraction.page_count,
            word_count=extraction.word_count,
            character_count=extraction.character_count,
        )
        plog.detail("Extracted", pages=extraction.page_count, words=extraction.word_count)

        await self._set_status(document, DocumentStatus.CHUNKING)
        previous = await self._chunk_repo.delete_by_document(document.id)
        await self._embedding_service.delete_document_vectors(document.id)
        if previous:
            plog.detail("Replaced previous chunks", count=previous)

        with plog.timed_step(
            PipelineStage.CHUNK, "Chunking text", strategy=self._chunker.strategy.value
        ):
            result = self._chunker.chunk(
                extraction.text,
                SourceMetadata(
                    file_name=document.display_name,
                    file_type=document.file_type.value,
                ),
            )
        plog.stats(
            chunks=result.total_chunks,
            avg_chars=f"{result.avg_chunk_size:.0f}",
            paragraphs=result.paragraphs_detected,
            headings=result.headings_detected,
        )
        if not result.chunks:
            raise IngestionError(document.id, "Chunking produced no chunks")

        await self._set_status(document, DocumentStatus.EMBEDDING)
        stored = await self._chunk_repo.store_chunks(document, result.chunks)

        with plog.timed_step(PipelineStage.INDEX, f"Embedding and indexing {len(stored)} chunks"):
            vector_ids = await self._embedding_service.upsert_chunks(stored)
        await self._chunk_repo.set_vector_ids(
            {chunk.id: vector_id for chunk, vector_id in zip(stored, vector_ids, strict=True)}
        )

        document.status = DocumentStatus.READY
        document.vectorized = True
        document.chunk_count = len(stored)
        document.error_message = None
        document.processed_at = datetime.now(timezone.utc)
        await self._document_repo.update(document)

        plog.step_complete(
            PipelineStage.COMPLETE,
            f"'{document.display_name}' is ready",
            chunks=len(stored),
        )

    async def _set_status(self, document: Document, status: DocumentStatus) -> None:
        document.status = status
        await self._document_repo.update(document)

    async def _mark_failed(self, document: Document, message: str) -> None:
        plog.step_error(PipelineStage.ERROR, f"Ingestion failed for '{document.display_name}': {message}")
        document.mark_failed(message)
        await self._embedding_service.delete_document_vectors(document.id)
        try:
            await self._document_repo.update(document)
        except Exception as e:
            logger.error("Could not record failure of document %s: %s", document.id, e)
