"""SQLAlchemy implementation of the DocumentRepository."""

import uuid

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from docrag.application.interfaces import DocumentRepository
from docrag.domain.entities import Document, DocumentStatus, DocumentType
from docrag.infrastructure.database.models.document_models import DocumentModel

_IN_FLIGHT = [status.value for status in DocumentStatus if status.in_flight]


class SQLAlchemyDocumentRepository(DocumentRepository):
    """Concrete document repository backed by PostgreSQL via SQLAlchemy."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def get_by_id(self, document_id: str, *, owner_id: str | None = None) -> Document | None:
        model = await self._get_model(document_id, owner_id)
        return self._to_domain(model) if model else None

    async def create(self, document: Document) -> Document:
        if not document.id:
            document.id = str(uuid.uuid4())

        model = DocumentModel(
            id=document.id,
            owner_id=document.owner_id,
            file_name=document.file_name,
            original_name=document.original_name,
            file_type=document.file_type.value,
            file_size=document.file_size,
            status=document.status.value,
            chunk_count=document.chunk_count,
            vectorized=document.vectorized,
            text_extracted=document.text_extracted,
            metadata_=document.metadata,
            error_message=document.error_message,
            created_at=document.created_at,
            processed_at=document.processed_at,
        )
        self._session.add(model)
        await self._session.flush()
        return document

    async def update(self, document: Document) -> Document:
        model = await self._get_model(document.id)
        if model is None:
            raise ValueError(f"Document with id {document.id} not found")

        model.status = document.status.value
        model.chunk_count = document.chunk_count
        model.vectorized = document.vectorized
        model.text_extracted = document.text_extracted
        model.error_message = document.error_message
        model.processed_at = document.processed_at
        # JSONB: assign a copy so the change is detected
        model.metadata_ = dict(document.metadata)

        await self._session.flush()
        return document

    async def claim_for_processing(self, document_id: str) -> bool:
        result = await self._session.execute(
            update(DocumentModel)
            .where(
                DocumentModel.id == document_id,
                DocumentModel.status.not_in(_IN_FLIGHT),
            )
            .values(status=DocumentStatus.PROCESSING.value, error_message=None)
        )
        return result.rowcount == 1

    async def delete(self, document_id: str) -> bool:
        model = await self._get_model(document_id)
        if model is None:
            return False
        await self._session.delete(model)
        await self._session.flush()
        return True

    async def find_names_by_ids(self, document_ids: list[str]) -> dict[str, str]:
        if not document_ids:
            return {}
        result = await self._session.execute(
            select(DocumentModel.id, DocumentModel.original_name, DocumentModel.file_name)
            .where(DocumentModel.id.in_(document_ids))
        )
        return {row.id: row.original_name or row.file_name for row in result.all()}

    async def list_by_owner(
        self, owner_id: str, *, vectorized_only: bool = False
    ) -> list[Document]:
        stmt = select(DocumentModel).where(DocumentModel.owner_id == owner_id)
        if vectorized_only:
            stmt = stmt.where(DocumentModel.vectorized.is_(True))
        result = await self._session.execute(stmt.order_by(DocumentModel.created_at.desc()))
        return [self._to_domain(m) for m in result.scalars().all()]

    async def count_accessible(self, owner_id: str, document_ids: list[str]) -> int:
        if not document_ids:
            return 0
        result = await self._session.execute(
            select(func.count())
            .select_from(DocumentModel)
            .where(
                DocumentModel.owner_id == owner_id,
                DocumentModel.id.in_(document_ids),
                DocumentModel.vectorized.is_(True),
            )
        )
        return result.scalar_one()

    async def delete_by_owner(self, owner_id: str) -> int:
        result = await self._session.execute(
            delete(DocumentModel).where(DocumentModel.owner_id == owner_id)
        )
        return result.rowcount

    # ── Mapping ─────────────────────────────────────────────────────

    async def _get_model(self, document_id: str, owner_id: str | None = None) -> DocumentModel | None:
        stmt = select(DocumentModel).where(DocumentModel.id == document_id)
        if owner_id is not None:
            stmt = stmt.where(DocumentModel.owner_id == owner_id)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    def _to_domain(model: DocumentModel) -> Document:
        return Document(
            id=model.id,
            owner_id=model.owner_id,
            file_name=model.file_name,
            original_name=model.original_name,
            file_type=DocumentType(model.file_type),
            file_size=model.file_size,
            status=DocumentStatus(model.status),
            chunk_count=model.chunk_count,
            vectorized=model.vectorized,
            text_extracted=model.text_extracted,
            metadata=dict(model.metadata_ or {}),
            error_message=model.error_message,
            created_at=model.created_at,
            processed_at=model.processed_at,
        )
