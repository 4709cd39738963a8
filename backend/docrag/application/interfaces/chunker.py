"""Abstract interface (port) shared by all chunking strategies."""

from abc import ABC, abstractmethod

from docrag.domain.entities import ChunkResult, ChunkStrategy, SourceMetadata


class Chunker(ABC):
    """Turns text into an ordered sequence of overlapping chunks.

    Implementations are pure: the same text and config always produce the
    same chunks.
    """

    @property
    @abstractmethod
    def strategy(self) -> ChunkStrategy:
        ...

    @abstractmethod
    def chunk(self, text: str, metadata: SourceMetadata | None = None) -> ChunkResult:
        """Chunk ``text``. Empty or whitespace-only text yields zero chunks."""
        ...
