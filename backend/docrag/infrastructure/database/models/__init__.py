from .document_models import DocumentChunkModel, DocumentModel
from .service_request_log import ServiceRequestLogModel
from .vector_models import VectorRecordModel

__all__ = [
    "DocumentChunkModel",
    "DocumentModel",
    "ServiceRequestLogModel",
    "VectorRecordModel",
]
