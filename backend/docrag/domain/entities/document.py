"""Domain entities for uploaded documents and their persisted chunks."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any

from docrag.domain.entities.chunk import ChunkMetadata


class DocumentStatus(str, Enum):
    """Lifecycle states of a document in the ingestion pipeline.

    The status doubles as the per-document lock: callers must not start an
    ingestion for a document that is already in an in-flight state.
    """

    UPLOADED = "uploaded"
    PROCESSING = "processing"
    CHUNKING = "chunking"
    EMBEDDING = "embedding"
    READY = "ready"
    FAILED = "failed"

    @property
    def in_flight(self) -> bool:
        return self in (
            DocumentStatus.PROCESSING,
            DocumentStatus.CHUNKING,
            DocumentStatus.EMBEDDING,
        )


class DocumentType(str, Enum):
    PDF = "pdf"
    DOCX = "docx"
    TXT = "txt"


_EXTENSION_TYPES: dict[str, DocumentType] = {
    ".pdf": DocumentType.PDF,
    ".docx": DocumentType.DOCX,
    ".txt": DocumentType.TXT,
    ".md": DocumentType.TXT,
}


def get_document_type(filename: str) -> DocumentType:
    """Map a filename to its document type.

    Raises:
        ValueError: If the extension is not supported.
    """
    suffix = Path(filename).suffix.lower()
    doc_type = _EXTENSION_TYPES.get(suffix)
    if doc_type is None:
        raise ValueError(f"Unsupported file type: '{suffix or filename}'")
    return doc_type


@dataclass
class Document:
    """An uploaded document owned by a single user."""

    owner_id: str
    file_name: str
    original_name: str
    file_type: DocumentType
    file_size: int = 0
    id: str | None = None
    status: DocumentStatus = DocumentStatus.UPLOADED
    chunk_count: int = 0
    vectorized: bool = False
    text_extracted: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    error_message: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    processed_at: datetime | None = None

    @property
    def display_name(self) -> str:
        return self.original_name or self.file_name

    def mark_failed(self, message: str) -> None:
        self.status = DocumentStatus.FAILED
        self.vectorized = False
        self.error_message = message


@dataclass
class DocumentChunk:
    """A chunk after it has been persisted for a document.

    ``id`` is the persisted identity; the vector record for the chunk reuses
    it so each chunk maps to exactly one vector.
    """

    document_id: str
    owner_id: str
    chunk_index: int
    content: str
    metadata: ChunkMetadata = field(default_factory=ChunkMetadata)
    start_char: int = 0
    end_char: int = 0
    id: str | None = None
    vector_id: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class DocumentSummary:
    """Lightweight listing entry for documents available to retrieval."""

    id: str
    name: str
    file_type: DocumentType
    chunk_count: int
    created_at: datetime
