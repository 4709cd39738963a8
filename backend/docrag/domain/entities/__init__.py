from .chat_message import ChatMessage, TokenUsage, ChatCompletionResult
from .chunk import (
    Chunk,
    ChunkMetadata,
    ChunkResult,
    ChunkStrategy,
    ChunkType,
    FixedChunkConfig,
    SemanticChunkConfig,
    SourceMetadata,
    estimate_token_count,
)
from .document import (
    Document,
    DocumentChunk,
    DocumentStatus,
    DocumentSummary,
    DocumentType,
    get_document_type,
)
from .prompt import PromptDomain, PromptPayload
from .rag import RAGContext, RankedChunk, RetrievalStats
from .service_request_log import ServiceRequestLog
from .structure import DocumentStructure, Heading, Paragraph
from .vector_record import VectorFilter, VectorMatch, VectorMetadata, VectorRecord

__all__ = [
    "ChatMessage",
    "TokenUsage",
    "ChatCompletionResult",
    "Chunk",
    "ChunkMetadata",
    "ChunkResult",
    "ChunkStrategy",
    "ChunkType",
    "FixedChunkConfig",
    "SemanticChunkConfig",
    "SourceMetadata",
    "estimate_token_count",
    "Document",
    "DocumentChunk",
    "DocumentStatus",
    "DocumentSummary",
    "DocumentType",
    "get_document_type",
    "PromptDomain",
    "PromptPayload",
    "RAGContext",
    "RankedChunk",
    "RetrievalStats",
    "ServiceRequestLog",
    "DocumentStructure",
    "Heading",
    "Paragraph",
    "VectorFilter",
    "VectorMatch",
    "VectorMetadata",
    "VectorRecord",
]
