"""SQLAlchemy ORM model for the pgvector-backed vector index."""

from sqlalchemy import Column, DateTime, Index, Integer, String, Text, func
from sqlalchemy.dialects.postgresql import JSONB

from pgvector.sqlalchemy import Vector

from docrag.infrastructure.database.base import Base

DEFAULT_EMBEDDING_DIMENSIONS = 1536
# pgvector refuses HNSW indexes on wider columns
MAX_INDEXED_DIMENSIONS = 2000


class VectorRecordModel(Base):
    """One embedded chunk with the metadata needed to filter and cite it.

    Kept apart from ``document_chunks`` so the index can be rebuilt or moved
    without touching the chunk store; ``id`` equals the chunk id.
    """

    __tablename__ = "vector_records"

    id = Column(String(36), primary_key=True)
    owner_id = Column(String(64), nullable=False, index=True)
    document_id = Column(String(36), nullable=False, index=True)
    chunk_index = Column(Integer, nullable=False)
    text = Column(Text, nullable=False)
    file_name = Column(String(255), nullable=False, default="")
    file_type = Column(String(10), nullable=False, default="")
    extensions = Column(JSONB, nullable=False, server_default="{}")
    embedding = Column(Vector(DEFAULT_EMBEDDING_DIMENSIONS), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        Index(
            "idx_vector_records_embedding_hnsw",
            embedding,
            postgresql_using="hnsw",
            postgresql_ops={"embedding": "vector_cosine_ops"},
        ),
    )


def embedding_dimensions() -> int:
    """Width of the embedding column as it will be created."""
    return VectorRecordModel.__table__.c.embedding.type.dim


def set_embedding_dimensions(dimensions: int) -> None:
    """Fix the embedding column width; call before ``create_all``.

    Raises:
        ValueError: ``dimensions`` is outside what an HNSW index accepts.
    """
    if not 1 <= dimensions <= MAX_INDEXED_DIMENSIONS:
        raise ValueError(
            f"Embedding dimensions must be between 1 and {MAX_INDEXED_DIMENSIONS}, got {dimensions}"
        )
    VectorRecordModel.__table__.c.embedding.type = Vector(dimensions)
