from .base import Base
from .session import create_engine_from_settings, create_session_factory, get_async_url
from .models import DocumentChunkModel, DocumentModel, ServiceRequestLogModel, VectorRecordModel

__all__ = [
    "Base",
    "create_engine_from_settings",
    "create_session_factory",
    "get_async_url",
    "DocumentChunkModel",
    "DocumentModel",
    "ServiceRequestLogModel",
    "VectorRecordModel",
]
