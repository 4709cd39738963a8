"""PostgreSQL + pgvector implementation of the VectorIndex port."""

import logging

from sqlalchemy import delete, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from docrag.application.interfaces.vector_index import VectorIndex
from docrag.domain.entities import VectorFilter, VectorMatch, VectorMetadata, VectorRecord
from docrag.domain.exceptions import VectorIndexError
from docrag.infrastructure.database.models.vector_models import (
    VectorRecordModel,
    embedding_dimensions,
)

logger = logging.getLogger(__name__)

_PROVIDER = "pgvector"
_UPDATABLE_COLUMNS = (
    "owner_id",
    "document_id",
    "chunk_index",
    "text",
    "file_name",
    "file_type",
    "extensions",
    "embedding",
    "created_at",
)


class PgVectorIndex(VectorIndex):
    """Vector index stored in the ``vector_records`` table.

    Similarity is cosine similarity, ``1 - (embedding <=> query)``, served by
    the HNSW index on the embedding column.
    """

    def __init__(self, session: AsyncSession, dimensions: int | None = None):
        self._session = session
        self._dimensions = dimensions or embedding_dimensions()

    async def upsert(self, records: list[VectorRecord]) -> None:
        if not records:
            return
        for record in records:
            if len(record.values) != self._dimensions:
                raise VectorIndexError(
                    _PROVIDER,
                    "upsert",
                    f"Record {record.id} has {len(record.values)} dimensions, "
                    f"index expects {self._dimensions}",
                    context={"record_count": len(records)},
                )

        stmt = insert(VectorRecordModel).values(
            [
                {
                    "id": record.id,
                    "owner_id": record.metadata.owner_id,
                    "document_id": record.metadata.document_id,
                    "chunk_index": record.metadata.chunk_index,
                    "text": record.metadata.text,
                    "file_name": record.metadata.file_name,
                    "file_type": record.metadata.file_type,
                    "extensions": record.metadata.extensions,
                    "embedding": record.values,
                    "created_at": record.metadata.created_at,
                }
                for record in records
            ]
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[VectorRecordModel.id],
            set_={column: stmt.excluded[column] for column in _UPDATABLE_COLUMNS},
        )

        try:
            await self._session.execute(stmt)
            await self._session.flush()
        except SQLAlchemyError as e:
            raise VectorIndexError(
                _PROVIDER, "upsert", str(e), context={"record_count": len(records)}
            ) from e
        logger.debug("Upserted %d vectors", len(records))

    async def query(
        self,
        vector: list[float],
        *,
        top_k: int,
        filter: VectorFilter,
        min_score: float = 0.0,
    ) -> list[VectorMatch]:
        distance = VectorRecordModel.embedding.cosine_distance(vector)
        stmt = self._apply_filter(
            select(VectorRecordModel, (1 - distance).label("score")), filter
        )
        if min_score > 0:
            stmt = stmt.where(distance <= 1 - min_score)
        stmt = stmt.order_by(distance).limit(top_k)

        try:
            result = await self._session.execute(stmt)
            rows = result.all()
        except SQLAlchemyError as e:
            raise VectorIndexError(
                _PROVIDER, "query", str(e), context={"top_k": top_k}
            ) from e

        logger.debug("Vector query returned %d matches (top_k=%d)", len(rows), top_k)
        return [
            VectorMatch(
                id=model.id,
                score=max(0.0, min(1.0, float(score))),
                metadata=VectorMetadata(
                    document_id=model.document_id,
                    owner_id=model.owner_id,
                    chunk_index=model.chunk_index,
                    text=model.text,
                    file_name=model.file_name,
                    file_type=model.file_type,
                    created_at=model.created_at,
                    extensions=dict(model.extensions or {}),
                ),
            )
            for model, score in rows
        ]

    async def delete_many(self, filter: VectorFilter) -> int:
        if filter.is_empty:
            raise ValueError("Refusing to delete vectors without a filter")
        try:
            result = await self._session.execute(
                self._apply_filter(delete(VectorRecordModel), filter)
            )
        except SQLAlchemyError as e:
            raise VectorIndexError(_PROVIDER, "delete", str(e)) from e
        return result.rowcount

    @staticmethod
    def _apply_filter(stmt, scope: VectorFilter):
        """All set fields must match (AND)."""
        if scope.owner_id is not None:
            stmt = stmt.where(VectorRecordModel.owner_id == scope.owner_id)
        if scope.document_ids:
            stmt = stmt.where(VectorRecordModel.document_id.in_(scope.document_ids))
        return stmt
