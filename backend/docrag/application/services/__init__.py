from .chunker_factory import build_chunker, build_chunker_from_settings
from .document_processing_service import DocumentProcessingService
from .embedding_service import EmbeddingService
from .fixed_chunker import SentencePackingChunker
from .llm_usage_logger import LLMUsageLogger
from .prompt_builder import PromptAssembler, detect_domain
from .rag_chat_service import RAGChatService
from .retrieval_service import RetrievalService, calculate_confidence
from .semantic_chunker import SemanticChunker
from .structure_analyzer import RegexStructureAnalyzer

__all__ = [
    "build_chunker",
    "build_chunker_from_settings",
    "DocumentProcessingService",
    "EmbeddingService",
    "SentencePackingChunker",
    "LLMUsageLogger",
    "PromptAssembler",
    "detect_domain",
    "RAGChatService",
    "RetrievalService",
    "calculate_confidence",
    "SemanticChunker",
    "RegexStructureAnalyzer",
]
