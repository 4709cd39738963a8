from .rag import ChatAnswer, ChatQuestion, HistoryMessage, RAGQueryInput

__all__ = [
    "ChatAnswer",
    "ChatQuestion",
    "HistoryMessage",
    "RAGQueryInput",
]
