"""Fixed-size chunking: greedy sentence packing with character overlap."""

import logging
from collections import deque

from docrag.application.interfaces.chunker import Chunker
from docrag.application.interfaces.structure_analyzer import StructureAnalyzer
from docrag.application.services.chunk_assembly import (
    ChunkDraft,
    assemble_result,
    bound_spans,
    locate_spans,
    split_head,
)
from docrag.application.services.structure_analyzer import RegexStructureAnalyzer
from docrag.domain.entities import (
    ChunkResult,
    ChunkStrategy,
    ChunkType,
    FixedChunkConfig,
    SourceMetadata,
)

logger = logging.getLogger(__name__)


class SentencePackingChunker(Chunker):
    """Packs whole sentences into chunks of at most ``chunk_size`` chars.

    Each new chunk is seeded with the trailing ``chunk_overlap`` characters
    of the previous one. Sentences too long to fit are cut on whitespace
    first.
    """

    def __init__(
        self,
        config: FixedChunkConfig | None = None,
        analyzer: StructureAnalyzer | None = None,
    ):
        self._config = config or FixedChunkConfig()
        self._analyzer = analyzer or RegexStructureAnalyzer()

    @property
    def strategy(self) -> ChunkStrategy:
        return ChunkStrategy.FIXED

    @property
    def config(self) -> FixedChunkConfig:
        return self._config

    def chunk(self, text: str, metadata: SourceMetadata | None = None) -> ChunkResult:
        if not text or not text.strip():
            return ChunkResult()

        if len(text) <= self._config.chunk_size:
            drafts = [ChunkDraft(text=text.strip(), end=len(text))]
        else:
            drafts = self._pack(text)

        result = assemble_result(
            drafts,
            text,
            chunk_type=ChunkType.MIXED,
            analyzer=self._analyzer,
            metadata=metadata,
        )
        logger.debug(
            "Fixed chunking produced %d chunks (avg %.0f chars) from %d chars",
            result.total_chunks,
            result.avg_chunk_size,
            len(text),
        )
        return result

    def _pack(self, text: str) -> list[ChunkDraft]:
        cfg = self._config
        # Leave room for a full overlap plus separator in front of every unit
        unit_limit = max(cfg.chunk_size - cfg.chunk_overlap - 1, 1)
        sentences = locate_spans(text, self._analyzer.split_sentences(text))
        queue = deque(bound_spans(sentences, unit_limit))

        drafts: list[ChunkDraft] = []
        buffer = ""
        overlap = 0
        last_end = 0

        while queue:
            unit = queue.popleft()

            if not buffer:
                buffer, last_end = unit.text, unit.end
                continue

            if len(buffer) + 1 + len(unit.text) <= cfg.chunk_size:
                buffer = f"{buffer} {unit.text}"
                last_end = unit.end
                continue

            if len(buffer) < cfg.min_chunk_size:
                # Too small to close: top it up with the head of the unit
                head, rest = split_head(unit, cfg.chunk_size - len(buffer) - 1)
                if head is not None:
                    buffer = f"{buffer} {head.text}"
                    last_end = head.end
                    if rest is not None:
                        queue.appendleft(rest)
                    continue

            drafts.append(ChunkDraft(buffer, last_end, overlap))
            tail = self._overlap_tail(buffer, cfg.chunk_size - len(unit.text) - 1)
            buffer = f"{tail} {unit.text}" if tail else unit.text
            overlap = len(tail) + 1 if tail else 0
            last_end = unit.end

        if drafts and len(buffer) < cfg.min_chunk_size:
            remainder = buffer[overlap:].strip()
            if remainder:
                previous = drafts[-1]
                drafts[-1] = ChunkDraft(
                    f"{previous.text} {remainder}", last_end, previous.overlap, previous.heading
                )
        elif buffer:
            drafts.append(ChunkDraft(buffer, last_end, overlap))

        return drafts

    def _overlap_tail(self, buffer: str, room: int) -> str:
        size = min(self._config.chunk_overlap, room)
        if size <= 0:
            return ""
        return buffer[-size:].lstrip()
