"""SQLAlchemy ORM models for documents and their text chunks."""

import uuid

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB

from docrag.infrastructure.database.base import Base


def _generate_uuid() -> str:
    return str(uuid.uuid4())


class DocumentModel(Base):
    """An uploaded document and its ingestion state — one row per file."""

    __tablename__ = "documents"

    # ── Identity ──────────────────────────────────────────────────────
    id = Column(String(36), primary_key=True, default=_generate_uuid)
    owner_id = Column(String(64), nullable=False, index=True)
    file_name = Column(String(255), nullable=False)
    original_name = Column(String(255), nullable=False)
    file_type = Column(String(10), nullable=False)
    file_size = Column(Integer, nullable=False, default=0)

    # ── Ingestion state ───────────────────────────────────────────────
    status = Column(String(20), nullable=False, default="uploaded", index=True)
    chunk_count = Column(Integer, nullable=False, default=0)
    vectorized = Column(Boolean, nullable=False, default=False)
    text_extracted = Column(Text, nullable=True)
    metadata_ = Column("metadata", JSONB, nullable=False, server_default="{}")
    error_message = Column(Text, nullable=True)

    # ── Timestamps ────────────────────────────────────────────────────
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    processed_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("idx_documents_owner_vectorized", owner_id, vectorized),
    )


class DocumentChunkModel(Base):
    """A chunk of a document's text, in reading order."""

    __tablename__ = "document_chunks"

    id = Column(String(36), primary_key=True, default=_generate_uuid)
    document_id = Column(
        String(36),
        ForeignKey("documents.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    owner_id = Column(String(64), nullable=False, index=True)
    chunk_index = Column(Integer, nullable=False)
    content = Column(Text, nullable=False)
    start_char = Column(Integer, nullable=False, default=0)
    end_char = Column(Integer, nullable=False, default=0)
    metadata_ = Column("metadata", JSONB, nullable=False, server_default="{}")
    vector_id = Column(String(36), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        UniqueConstraint("document_id", "chunk_index", name="uq_document_chunk_index"),
    )
