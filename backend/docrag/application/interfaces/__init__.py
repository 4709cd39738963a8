from .chat_provider import ChatProvider
from .chunk_repository import ChunkRepository
from .chunker import Chunker
from .document_repository import DocumentRepository
from .embedding_provider import EmbeddingProvider
from .service_request_log_repository import ServiceRequestLogRepository
from .structure_analyzer import StructureAnalyzer
from .text_extractor import TextExtractionResult, TextExtractor
from .vector_index import VectorIndex

__all__ = [
    "ChatProvider",
    "ChunkRepository",
    "Chunker",
    "DocumentRepository",
    "EmbeddingProvider",
    "ServiceRequestLogRepository",
    "StructureAnalyzer",
    "TextExtractionResult",
    "TextExtractor",
    "VectorIndex",
]
