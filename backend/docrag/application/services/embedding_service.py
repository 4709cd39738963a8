"""Embedding service — turns persisted chunks into indexed vectors.

This is an application service that coordinates:
1. Generating embeddings via the EmbeddingProvider, in batches
2. Building one VectorRecord per chunk
3. Upserting the records into the VectorIndex, in batches
"""

import asyncio
import logging
import time

from docrag.application.interfaces.embedding_provider import EmbeddingProvider
from docrag.application.interfaces.vector_index import VectorIndex
from docrag.domain.entities import DocumentChunk, VectorFilter, VectorMetadata, VectorRecord
from docrag.domain.exceptions import EmbeddingProviderError, IngestionError

logger = logging.getLogger(__name__)

_DEFAULT_EMBEDDING_BATCH_SIZE = 100  # Max texts per embedding API call
_DEFAULT_UPSERT_BATCH_SIZE = 100  # Max records per index upsert


class EmbeddingService:
    """Application service for embedding chunks and maintaining their vectors.

    A document's vectors are all-or-nothing: when any batch fails, whatever
    was already upserted for the document is removed again (best effort)
    and the whole operation fails.
    """

    def __init__(
        self,
        embedding_provider: EmbeddingProvider,
        vector_index: VectorIndex,
        *,
        embedding_batch_size: int = _DEFAULT_EMBEDDING_BATCH_SIZE,
        upsert_batch_size: int = _DEFAULT_UPSERT_BATCH_SIZE,
        max_concurrency: int = 1,
    ):
        if embedding_batch_size < 1 or upsert_batch_size < 1 or max_concurrency < 1:
            raise ValueError("Batch sizes and concurrency must be at least 1")
        self._embedding_provider = embedding_provider
        self._vector_index = vector_index
        self._embedding_batch_size = embedding_batch_size
        self._upsert_batch_size = upsert_batch_size
        self._max_concurrency = max_concurrency

    async def embed_texts(self, texts: list[str]) -> list[list[float]]:
        """Embed ``texts`` and return the vectors in input order.

        Batches may run concurrently (up to ``max_concurrency``); results are
        reassembled by batch position, never by completion order.

        Raises:
            EmbeddingProviderError: A batch failed, or came back with the
                wrong number of vectors or the wrong dimensionality.
        """
        if not texts:
            return []

        semaphore = asyncio.Semaphore(self._max_concurrency)
        size = self._embedding_batch_size

        async def embed_batch(batch_start: int) -> list[list[float]]:
            batch = texts[batch_start : batch_start + size]
            async with semaphore:
                vectors = await self._embedding_provider.generate_embeddings(batch)
            if len(vectors) != len(batch):
                raise EmbeddingProviderError(
                    "embedding",
                    "generate_embeddings",
                    f"Expected {len(batch)} vectors, got {len(vectors)}",
                    context={"batch_start": batch_start, "batch_size": len(batch)},
                )
            return vectors

        batches = await asyncio.gather(
            *(embed_batch(batch_start) for batch_start in range(0, len(texts), size))
        )
        vectors = [vector for batch in batches for vector in batch]

        expected = self._embedding_provider.dimensions
        for position, vector in enumerate(vectors):
            if len(vector) != expected:
                raise EmbeddingProviderError(
                    "embedding",
                    "generate_embeddings",
                    f"Vector {position} has {len(vector)} dimensions, expected {expected}",
                    context={"text_count": len(texts)},
                )
        return vectors

    async def upsert_chunks(self, chunks: list[DocumentChunk]) -> list[str]:
        """Embed and index the chunks of one document.

        Returns:
            The vector ids, in chunk order. Each vector reuses its chunk's id.

        Raises:
            IngestionError: If embedding or any upsert batch fails.
        """
        if not chunks:
            return []

        document_id = chunks[0].document_id
        if any(chunk.id is None for chunk in chunks):
            raise IngestionError(document_id, "Chunks must be persisted before indexing")

        start = time.monotonic()
        upserted = 0

        try:
            vectors = await self.embed_texts([chunk.content for chunk in chunks])
            records = [
                self._to_record(chunk, vector)
                for chunk, vector in zip(chunks, vectors, strict=True)
            ]
            for batch_start in range(0, len(records), self._upsert_batch_size):
                batch = records[batch_start : batch_start + self._upsert_batch_size]
                await self._vector_index.upsert(batch)
                upserted += len(batch)
        except Exception as e:
            logger.error(
                "Indexing failed for document %s after %d/%d vectors: %s",
                document_id,
                upserted,
                len(chunks),
                e,
            )
            if upserted:
                await self.delete_document_vectors(document_id)
            raise IngestionError(document_id, f"Vector indexing failed: {e}") from e

        duration_ms = int((time.monotonic() - start) * 1000)
        logger.info(
            "Indexed document %s: %d vectors in %dms",
            document_id,
            len(records),
            duration_ms,
        )
        return [record.id for record in records]

    async def delete_document_vectors(self, document_id: str) -> bool:
        """Remove all vectors of a document. Failures are logged, not raised."""
        return await self._delete(VectorFilter(document_ids=(document_id,)), f"document {document_id}")

    async def delete_owner_vectors(self, owner_id: str) -> bool:
        """Remove all vectors of an owner. Failures are logged, not raised."""
        return await self._delete(VectorFilter(owner_id=owner_id), f"owner {owner_id}")

    async def _delete(self, scope: VectorFilter, label: str) -> bool:
        try:
            deleted = await self._vector_index.delete_many(scope)
        except Exception as e:
            logger.warning("Could not delete vectors for %s: %s", label, e)
            return False
        logger.info("Deleted %d vectors for %s", deleted, label)
        return True

    @staticmethod
    def _to_record(chunk: DocumentChunk, vector: list[float]) -> VectorRecord:
        return VectorRecord(
            id=chunk.id,
            values=vector,
            metadata=VectorMetadata(
                document_id=chunk.document_id,
                owner_id=chunk.owner_id,
                chunk_index=chunk.chunk_index,
                text=chunk.content,
                file_name=chunk.metadata.source_file_name,
                file_type=chunk.metadata.source_file_type,
                created_at=chunk.created_at,
                extensions=dict(chunk.metadata.extensions),
            ),
        )
