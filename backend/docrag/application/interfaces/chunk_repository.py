"""Abstract repository interface (port) for persisted document chunks."""

from abc import ABC, abstractmethod

from docrag.domain.entities import Chunk, Document, DocumentChunk


class ChunkRepository(ABC):
    """Port for document chunk persistence."""

    @abstractmethod
    async def store_chunks(self, document: Document, chunks: list[Chunk]) -> list[DocumentChunk]:
        """Persist the chunks of a document and assign their ids.

        Returns:
            The persisted chunks, in chunk order.
        """
        ...

    @abstractmethod
    async def set_vector_ids(self, vector_ids: dict[str, str]) -> None:
        """Record the vector id for each chunk id."""
        ...

    @abstractmethod
    async def delete_by_document(self, document_id: str) -> int:
        """Delete all chunks for a document. Returns count of deleted rows."""
        ...

    @abstractmethod
    async def delete_by_owner(self, owner_id: str) -> int:
        ...
