"""SQLAlchemy implementation of ChunkRepository."""

import dataclasses
import logging
import uuid
from typing import Any

from sqlalchemy import delete, update
from sqlalchemy.ext.asyncio import AsyncSession

from docrag.application.interfaces.chunk_repository import ChunkRepository
from docrag.domain.entities import Chunk, ChunkMetadata, Document, DocumentChunk
from docrag.infrastructure.database.models.document_models import DocumentChunkModel

logger = logging.getLogger(__name__)


def _metadata_to_json(metadata: ChunkMetadata) -> dict[str, Any]:
    data = dataclasses.asdict(metadata)
    data["type"] = metadata.type.value
    return data


class SQLAlchemyChunkRepository(ChunkRepository):
    """Concrete chunk repository backed by PostgreSQL."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def store_chunks(self, document: Document, chunks: list[Chunk]) -> list[DocumentChunk]:
        """Persist the chunks of a document; each gets a fresh UUID."""
        if not chunks:
            return []

        stored = [
            DocumentChunk(
                id=str(uuid.uuid4()),
                document_id=document.id,
                owner_id=document.owner_id,
                chunk_index=chunk.index,
                content=chunk.text,
                metadata=chunk.metadata,
                start_char=chunk.start_char,
                end_char=chunk.end_char,
            )
            for chunk in chunks
        ]
        self._session.add_all(
            [
                DocumentChunkModel(
                    id=entity.id,
                    document_id=entity.document_id,
                    owner_id=entity.owner_id,
                    chunk_index=entity.chunk_index,
                    content=entity.content,
                    start_char=entity.start_char,
                    end_char=entity.end_char,
                    metadata_=_metadata_to_json(entity.metadata),
                    created_at=entity.created_at,
                )
                for entity in stored
            ]
        )
        await self._session.flush()
        logger.info("Stored %d chunks for document %s", len(stored), document.id)
        return stored

    async def set_vector_ids(self, vector_ids: dict[str, str]) -> None:
        """Record vector ids in one bulk UPDATE keyed by chunk id."""
        if not vector_ids:
            return
        await self._session.execute(
            update(DocumentChunkModel),
            [{"id": chunk_id, "vector_id": vector_id} for chunk_id, vector_id in vector_ids.items()],
        )
        await self._session.flush()

    async def delete_by_document(self, document_id: str) -> int:
        """Delete all chunks belonging to a document."""
        result = await self._session.execute(
            delete(DocumentChunkModel).where(DocumentChunkModel.document_id == document_id)
        )
        count = result.rowcount
        if count > 0:
            logger.info("Deleted %d chunks for document %s", count, document_id)
        return count

    async def delete_by_owner(self, owner_id: str) -> int:
        result = await self._session.execute(
            delete(DocumentChunkModel).where(DocumentChunkModel.owner_id == owner_id)
        )
        return result.rowcount

