"""SQLAlchemy adapter for the completion usage log."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from docrag.application.interfaces import ServiceRequestLogRepository
from docrag.domain.entities import ServiceRequestLog
from docrag.infrastructure.database.models.service_request_log import ServiceRequestLogModel

# Columns copied one-to-one between the ORM row and the entity
_FIELDS = (
    "model",
    "provider",
    "feature",
    "prompt_tokens",
    "completion_tokens",
    "total_tokens",
    "cost",
    "duration_ms",
    "status",
    "error_message",
    "owner_id",
    "chunks_retrieved",
    "avg_score",
    "request_context",
)


class SQLAlchemyServiceRequestLogRepository(ServiceRequestLogRepository):

    def __init__(self, session: AsyncSession):
        self._session = session

    async def create(self, log: ServiceRequestLog) -> ServiceRequestLog:
        row = ServiceRequestLogModel(
            created_at=log.created_at, **{name: getattr(log, name) for name in _FIELDS}
        )
        self._session.add(row)
        await self._session.flush()
        return _to_entity(row)

    async def list_recent(
        self,
        *,
        owner_id: str | None = None,
        feature: str | None = None,
        limit: int = 100,
    ) -> list[ServiceRequestLog]:
        stmt = select(ServiceRequestLogModel)
        if owner_id is not None:
            stmt = stmt.where(ServiceRequestLogModel.owner_id == owner_id)
        if feature is not None:
            stmt = stmt.where(ServiceRequestLogModel.feature == feature)
        stmt = stmt.order_by(
            ServiceRequestLogModel.created_at.desc(), ServiceRequestLogModel.id.desc()
        ).limit(limit)
        result = await self._session.execute(stmt)
        return [_to_entity(row) for row in result.scalars().all()]


def _to_entity(row: ServiceRequestLogModel) -> ServiceRequestLog:
    return ServiceRequestLog(
        id=row.id,
        created_at=row.created_at,
        **{name: getattr(row, name) for name in _FIELDS},
    )
