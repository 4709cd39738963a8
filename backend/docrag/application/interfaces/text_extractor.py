"""Abstract interface (port) for text extraction from uploaded files."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

from docrag.domain.entities import DocumentType


@dataclass
class TextExtractionResult:
    """Result of extracting text from a file."""

    text: str
    page_count: int | None = None
    word_count: int = 0
    character_count: int = 0


class TextExtractor(ABC):
    """Port for text extraction — implemented in the infrastructure layer."""

    @abstractmethod
    async def extract(self, file_path: str | Path, file_type: DocumentType) -> TextExtractionResult:
        """Extract text content from a file.

        Args:
            file_path: Absolute path to the file on disk.
            file_type: Type of the document.

        Returns:
            TextExtractionResult with the raw text and simple counts.
        """
        ...

    @abstractmethod
    def supports(self, file_type: DocumentType) -> bool:
        """Check if the extractor supports the given document type."""
        ...
