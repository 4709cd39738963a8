"""Domain entities for vector index records, filters and matches."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


@dataclass
class VectorMetadata:
    """Metadata stored alongside each vector.

    Enough to reconstruct which owner, document and chunk a vector came from.
    """

    document_id: str
    owner_id: str
    chunk_index: int
    text: str
    file_name: str = ""
    file_type: str = ""
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    extensions: dict[str, Any] = field(default_factory=dict)


@dataclass
class VectorRecord:
    id: str
    values: list[float]
    metadata: VectorMetadata


@dataclass(frozen=True)
class VectorFilter:
    """Scope for index queries and deletes. All set fields must match (AND)."""

    owner_id: str | None = None
    document_ids: tuple[str, ...] | None = None

    @property
    def is_empty(self) -> bool:
        return self.owner_id is None and not self.document_ids


@dataclass
class VectorMatch:
    """A single result from a similarity query."""

    id: str
    score: float  # 0.0 – 1.0 (cosine similarity)
    metadata: VectorMetadata

    @property
    def text(self) -> str:
        return self.metadata.text
