"""Domain entities for prompt assembly."""

from dataclasses import dataclass, field
from enum import Enum

from docrag.domain.entities.chat_message import ChatMessage
from docrag.domain.entities.rag import RetrievalStats


class PromptDomain(str, Enum):
    LEGAL = "legal"
    BUSINESS = "business"
    TECHNICAL = "technical"
    GENERAL = "general"


@dataclass
class PromptPayload:
    """Everything the completion step needs, in send order.

    ``messages`` starts with the system prompt, then the truncated history,
    then the new user query.
    """

    system_prompt: str
    messages: list[ChatMessage] = field(default_factory=list)
    retrieval: RetrievalStats = field(default_factory=RetrievalStats)
