"""Abstract interface (port) for sentence and layout detection.

The chunkers only depend on this port, so the regex heuristics can be
replaced (e.g. by a model-based boundary detector) without touching the
packing algorithms.
"""

from abc import ABC, abstractmethod

from docrag.domain.entities import DocumentStructure


class StructureAnalyzer(ABC):

    @abstractmethod
    def split_sentences(self, text: str) -> list[str]:
        """Split text into trimmed, non-empty sentences in order."""
        ...

    @abstractmethod
    def analyze_structure(self, text: str) -> DocumentStructure:
        """Detect headings and paragraphs with their source offsets."""
        ...
