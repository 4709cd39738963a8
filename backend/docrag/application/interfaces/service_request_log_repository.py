"""Port for the completion usage log consumed by billing and audit."""

from abc import ABC, abstractmethod

from docrag.domain.entities import ServiceRequestLog


class ServiceRequestLogRepository(ABC):

    @abstractmethod
    async def create(self, log: ServiceRequestLog) -> ServiceRequestLog:
        """Persist one log entry and return it with its assigned ID."""
        ...

    @abstractmethod
    async def list_recent(
        self,
        *,
        owner_id: str | None = None,
        feature: str | None = None,
        limit: int = 100,
    ) -> list[ServiceRequestLog]:
        """Newest entries first, optionally narrowed to one owner and/or feature."""
        ...
