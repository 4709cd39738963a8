"""Explicit chunking strategy selection."""

from docrag.application.interfaces.chunker import Chunker
from docrag.application.interfaces.structure_analyzer import StructureAnalyzer
from docrag.application.services.fixed_chunker import SentencePackingChunker
from docrag.application.services.semantic_chunker import SemanticChunker
from docrag.config import Settings
from docrag.domain.entities import ChunkStrategy, FixedChunkConfig, SemanticChunkConfig
from docrag.domain.exceptions import ChunkingConfigError


def build_chunker(
    strategy: ChunkStrategy | str,
    config: FixedChunkConfig | SemanticChunkConfig | None = None,
    analyzer: StructureAnalyzer | None = None,
) -> Chunker:
    """Create the chunker for ``strategy``.

    Raises:
        ChunkingConfigError: Unknown strategy, or a config that belongs to
            the other strategy.
    """
    try:
        strategy = ChunkStrategy(strategy)
    except ValueError as e:
        raise ChunkingConfigError(f"Unknown chunking strategy: {strategy!r}") from e

    if strategy is ChunkStrategy.FIXED:
        if config is not None and not isinstance(config, FixedChunkConfig):
            raise ChunkingConfigError("The fixed strategy needs a FixedChunkConfig")
        return SentencePackingChunker(config, analyzer)

    if config is not None and not isinstance(config, SemanticChunkConfig):
        raise ChunkingConfigError("The semantic strategy needs a SemanticChunkConfig")
    return SemanticChunker(config, analyzer)


def build_chunker_from_settings(
    settings: Settings, analyzer: StructureAnalyzer | None = None
) -> Chunker:
    config: FixedChunkConfig | SemanticChunkConfig | None = None
    if settings.chunk_strategy == ChunkStrategy.FIXED.value:
        config = FixedChunkConfig(
            chunk_size=settings.chunk_size,
            chunk_overlap=settings.chunk_overlap,
            min_chunk_size=settings.min_chunk_size,
        )
    elif settings.chunk_strategy == ChunkStrategy.SEMANTIC.value:
        config = SemanticChunkConfig(
            target_chunk_size=settings.semantic_target_chunk_size,
            min_chunk_size=settings.semantic_min_chunk_size,
            max_chunk_size=settings.semantic_max_chunk_size,
            overlap_size=settings.semantic_overlap_size,
        )
    return build_chunker(settings.chunk_strategy, config, analyzer)
