"""Domain entities for retrieval results."""

from dataclasses import dataclass, field
from typing import Any


@dataclass
class RankedChunk:
    """A retrieved chunk joined with its document's display name."""

    document_id: str
    document_name: str
    chunk_index: int
    content: str
    score: float  # 0.0 – 1.0
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class RAGContext:
    """Context assembled for one query. Built per call, never persisted.

    ``relevant_chunks`` is sorted by descending score. An empty list with an
    empty ``context_text`` means nothing relevant was found.
    """

    query: str
    relevant_chunks: list[RankedChunk] = field(default_factory=list)
    total_candidates: int = 0
    context_text: str = ""

    @property
    def avg_score(self) -> float:
        if not self.relevant_chunks:
            return 0.0
        return sum(c.score for c in self.relevant_chunks) / len(self.relevant_chunks)

    @property
    def document_names(self) -> list[str]:
        """Distinct document names in ranking order."""
        names: list[str] = []
        for chunk in self.relevant_chunks:
            if chunk.document_name not in names:
                names.append(chunk.document_name)
        return names


@dataclass(frozen=True)
class RetrievalStats:
    """Usage figures about the retrieval step, recorded for audit/billing."""

    chunk_count: int = 0
    avg_score: float = 0.0
