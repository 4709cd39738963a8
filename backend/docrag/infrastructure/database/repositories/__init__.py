from .chunk_repository import SQLAlchemyChunkRepository
from .document_repository import SQLAlchemyDocumentRepository
from .service_request_log_repository import SQLAlchemyServiceRequestLogRepository

__all__ = [
    "SQLAlchemyChunkRepository",
    "SQLAlchemyDocumentRepository",
    "SQLAlchemyServiceRequestLogRepository",
]
