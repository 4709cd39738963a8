"""Domain entities for text chunks and chunker configuration."""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from docrag.domain.exceptions import ChunkingConfigError

# Rough 4:1 char-to-token ratio used for token-based sizing
CHARS_PER_TOKEN = 4


class ChunkType(str, Enum):
    """How a chunk was assembled from the source text."""

    PARAGRAPH = "paragraph"
    SECTION = "section"
    MIXED = "mixed"


class ChunkStrategy(str, Enum):
    """Selectable chunking strategies."""

    FIXED = "fixed"
    SEMANTIC = "semantic"


@dataclass
class SourceMetadata:
    """Caller-supplied facts about the document being chunked."""

    file_name: str = ""
    file_type: str = ""
    page_number: int | None = None
    section: str | None = None
    extensions: dict[str, Any] = field(default_factory=dict)


@dataclass
class ChunkMetadata:
    """Closed, typed metadata attached to every chunk.

    ``extensions`` is the only open map and is reserved for
    provider-specific passthrough fields.
    """

    source_file_name: str = ""
    source_file_type: str = ""
    type: ChunkType = ChunkType.PARAGRAPH
    heading_text: str | None = None
    page_number: int | None = None
    section: str | None = None
    word_count: int = 0
    sentence_count: int = 0
    extensions: dict[str, Any] = field(default_factory=dict)

    @property
    def has_heading(self) -> bool:
        return self.heading_text is not None


@dataclass
class Chunk:
    """A contiguous, bounded span of a document's text."""

    text: str
    index: int
    start_char: int
    end_char: int
    metadata: ChunkMetadata = field(default_factory=ChunkMetadata)


@dataclass
class ChunkResult:
    """Output of a chunker run, with observability counters."""

    chunks: list[Chunk] = field(default_factory=list)
    total_chunks: int = 0
    total_chars: int = 0
    avg_chunk_size: float = 0.0
    paragraphs_detected: int = 0
    headings_detected: int = 0


@dataclass(frozen=True)
class FixedChunkConfig:
    """Sizing for the sentence-packing chunker, in characters."""

    chunk_size: int = 800
    chunk_overlap: int = 150
    min_chunk_size: int = 100

    def __post_init__(self) -> None:
        if self.chunk_size <= 0:
            raise ChunkingConfigError(f"chunk_size must be positive, got {self.chunk_size}")
        if self.chunk_overlap < 0 or self.min_chunk_size < 0:
            raise ChunkingConfigError("chunk_overlap and min_chunk_size must not be negative")
        if self.chunk_overlap >= self.chunk_size:
            raise ChunkingConfigError(
                f"chunk_overlap ({self.chunk_overlap}) must be smaller than "
                f"chunk_size ({self.chunk_size})"
            )
        if self.min_chunk_size > self.chunk_size:
            raise ChunkingConfigError(
                f"min_chunk_size ({self.min_chunk_size}) must not exceed "
                f"chunk_size ({self.chunk_size})"
            )

    @classmethod
    def from_token_budget(
        cls, max_tokens: int = 200, overlap_tokens: int = 40
    ) -> "FixedChunkConfig":
        """Build a config from token sizes using the 4:1 char ratio."""
        return cls(
            chunk_size=max_tokens * CHARS_PER_TOKEN,
            chunk_overlap=overlap_tokens * CHARS_PER_TOKEN,
            min_chunk_size=50,
        )


@dataclass(frozen=True)
class SemanticChunkConfig:
    """Sizing for the structure-aware chunker, in characters.

    Paragraphs are always the unit of accumulation and sentences are never
    split for overlap, so both ``respect_*`` flags are honored regardless
    of their value.
    """

    target_chunk_size: int = 800
    min_chunk_size: int = 200
    max_chunk_size: int = 1200
    overlap_size: int = 150
    respect_paragraphs: bool = True
    respect_sentences: bool = True

    def __post_init__(self) -> None:
        if self.target_chunk_size <= 0 or self.max_chunk_size <= 0:
            raise ChunkingConfigError("target_chunk_size and max_chunk_size must be positive")
        if self.min_chunk_size < 0 or self.overlap_size < 0:
            raise ChunkingConfigError("min_chunk_size and overlap_size must not be negative")
        if self.min_chunk_size > self.max_chunk_size:
            raise ChunkingConfigError(
                f"min_chunk_size ({self.min_chunk_size}) must not exceed "
                f"max_chunk_size ({self.max_chunk_size})"
            )
        if self.target_chunk_size > self.max_chunk_size:
            raise ChunkingConfigError(
                f"target_chunk_size ({self.target_chunk_size}) must not exceed "
                f"max_chunk_size ({self.max_chunk_size})"
            )
        if self.overlap_size >= self.target_chunk_size:
            raise ChunkingConfigError(
                f"overlap_size ({self.overlap_size}) must be smaller than "
                f"target_chunk_size ({self.target_chunk_size})"
            )

    @property
    def overlap_budget(self) -> int:
        """Upper bound for the sentence-aligned overlap carried between chunks."""
        return int(self.overlap_size * 1.5)


def estimate_token_count(text: str) -> int:
    """Estimate tokens with the rough 4:1 char-to-token ratio."""
    return math.ceil(len(text) / CHARS_PER_TOKEN)
