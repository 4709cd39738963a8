"""Abstract interface (port) for a filterable vector similarity index."""

from abc import ABC, abstractmethod

from docrag.domain.entities import VectorFilter, VectorMatch, VectorRecord


class VectorIndex(ABC):
    """Port for vector storage and nearest-neighbour search."""

    @abstractmethod
    async def upsert(self, records: list[VectorRecord]) -> None:
        """Insert or replace records by id.

        Raises:
            VectorIndexError: If the index rejects the batch.
        """
        ...

    @abstractmethod
    async def query(
        self,
        vector: list[float],
        *,
        top_k: int,
        filter: VectorFilter,
        min_score: float = 0.0,
    ) -> list[VectorMatch]:
        """Find the records most similar to ``vector`` within ``filter``.

        Returns:
            At most ``top_k`` matches with ``score >= min_score``, ordered by
            descending score.
        """
        ...

    @abstractmethod
    async def delete_many(self, filter: VectorFilter) -> int:
        """Delete every record matching ``filter``. Returns the deleted count.

        An empty filter is rejected so a bug can never wipe the index.
        """
        ...
