"""Abstract repository interface (port) for documents."""

from abc import ABC, abstractmethod

from docrag.domain.entities import Document


class DocumentRepository(ABC):
    """Port for document persistence."""

    @abstractmethod
    async def get_by_id(self, document_id: str, *, owner_id: str | None = None) -> Document | None:
        """Return the document, optionally scoped to its owner."""
        ...

    @abstractmethod
    async def create(self, document: Document) -> Document:
        ...

    @abstractmethod
    async def update(self, document: Document) -> Document:
        ...

    @abstractmethod
    async def claim_for_processing(self, document_id: str) -> bool:
        """Atomically move the document to PROCESSING unless it is already in flight.

        Returns False when another ingestion holds the document.
        """
        ...

    @abstractmethod
    async def delete(self, document_id: str) -> bool:
        ...

    @abstractmethod
    async def find_names_by_ids(self, document_ids: list[str]) -> dict[str, str]:
        """Map document ids to display names. Unknown ids are simply absent."""
        ...

    @abstractmethod
    async def list_by_owner(
        self, owner_id: str, *, vectorized_only: bool = False
    ) -> list[Document]:
        """List an owner's documents, newest first."""
        ...

    @abstractmethod
    async def count_accessible(self, owner_id: str, document_ids: list[str]) -> int:
        """Count how many of ``document_ids`` belong to the owner and are vectorized."""
        ...

    @abstractmethod
    async def delete_by_owner(self, owner_id: str) -> int:
        ...
