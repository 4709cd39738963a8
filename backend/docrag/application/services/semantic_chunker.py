"""Structure-aware chunking.

Paragraphs are the unit of accumulation. Every paragraph carries the most
recent heading before it, which is prefixed to the paragraph when the
chunk being built does not contain that heading yet. When a chunk closes,
the next one is seeded with whole trailing sentences of the closed chunk.
"""

import logging
from typing import NamedTuple

from docrag.application.interfaces.chunker import Chunker
from docrag.application.interfaces.structure_analyzer import StructureAnalyzer
from docrag.application.services.chunk_assembly import (
    ChunkDraft,
    TextSpan,
    assemble_result,
    bound_spans,
    locate_spans,
    pack_spans,
)
from docrag.application.services.structure_analyzer import RegexStructureAnalyzer
from docrag.domain.entities import (
    ChunkResult,
    ChunkStrategy,
    ChunkType,
    DocumentStructure,
    SemanticChunkConfig,
    SourceMetadata,
)

logger = logging.getLogger(__name__)

# Longer "headings" are usually numbered body lines, not titles
_MAX_PREFIX_HEADING = 100


class _Unit(NamedTuple):
    span: TextSpan
    heading: str | None


class SemanticChunker(Chunker):
    def __init__(
        self,
        config: SemanticChunkConfig | None = None,
        analyzer: StructureAnalyzer | None = None,
    ):
        self._config = config or SemanticChunkConfig()
        self._analyzer = analyzer or RegexStructureAnalyzer()

    @property
    def strategy(self) -> ChunkStrategy:
        return ChunkStrategy.SEMANTIC

    @property
    def config(self) -> SemanticChunkConfig:
        return self._config

    def chunk(self, text: str, metadata: SourceMetadata | None = None) -> ChunkResult:
        if not text or not text.strip():
            return ChunkResult()

        structure = self._analyzer.analyze_structure(text)
        drafts = self._accumulate(self._build_units(text, structure))

        result = assemble_result(
            drafts,
            text,
            chunk_type=ChunkType.PARAGRAPH,
            analyzer=self._analyzer,
            metadata=metadata,
            paragraphs_detected=len(structure.paragraphs),
            headings_detected=len(structure.headings),
        )
        logger.debug(
            "Semantic chunking produced %d chunks (avg %.0f chars) from %d paragraphs, %d headings",
            result.total_chunks,
            result.avg_chunk_size,
            result.paragraphs_detected,
            result.headings_detected,
        )
        return result

    # ── Units ────────────────────────────────────────────────────────

    def _build_units(self, text: str, structure: DocumentStructure) -> list[_Unit]:
        paragraphs = [TextSpan(p.text, p.start, p.end) for p in structure.paragraphs]
        if not paragraphs:
            stripped = text.strip()
            start = text.index(stripped)
            paragraphs = [TextSpan(stripped, start, start + len(stripped))]

        headings = sorted(structure.headings, key=lambda h: h.position)
        units: list[_Unit] = []
        next_heading = 0
        current: str | None = None

        for paragraph in paragraphs:
            while next_heading < len(headings) and headings[next_heading].position <= paragraph.start:
                current = headings[next_heading].text
                next_heading += 1
            heading = current if current and len(current) < _MAX_PREFIX_HEADING else None

            limit = self._unit_limit(heading)
            if len(paragraph.text) <= limit:
                pieces = [paragraph]
            else:
                sentences = locate_spans(
                    text, self._analyzer.split_sentences(paragraph.text), paragraph.start
                )
                pieces = pack_spans(text, bound_spans(sentences, limit), limit)

            units.extend(_Unit(piece, heading) for piece in pieces)

        return units

    def _unit_limit(self, heading: str | None) -> int:
        """Largest paragraph piece that still fits behind a buffer below ``min_chunk_size``."""
        cfg = self._config
        reserve = len(heading) + 2 if heading else 0
        room = cfg.max_chunk_size - cfg.min_chunk_size - 2 - reserve
        return max(room, cfg.max_chunk_size // 4, 1)

    # ── Accumulation ─────────────────────────────────────────────────

    def _accumulate(self, units: list[_Unit]) -> list[ChunkDraft]:
        cfg = self._config
        drafts: list[ChunkDraft] = []
        buffer = ""
        overlap = 0
        last_end = 0
        heading: str | None = None

        for unit in units:
            if not buffer:
                buffer = self._compose(unit, "")
                heading = unit.heading
                last_end = unit.span.end
                continue

            piece = self._compose(unit, buffer)
            potential = len(buffer) + 2 + len(piece)
            overflow = potential > cfg.max_chunk_size or (
                potential > cfg.target_chunk_size and len(buffer) >= cfg.min_chunk_size
            )
            if not overflow:
                buffer = f"{buffer}\n\n{piece}"
                last_end = unit.span.end
                continue

            drafts.append(ChunkDraft(buffer, last_end, overlap, heading))

            fresh = self._compose(unit, "")
            tail = self._sentence_overlap(buffer, cfg.max_chunk_size - len(fresh) - 2)
            piece = self._compose(unit, tail)
            buffer = f"{tail}\n\n{piece}" if tail else piece
            overlap = len(tail) + 2 if tail else 0
            heading = unit.heading
            last_end = unit.span.end

        if drafts and len(buffer) < cfg.min_chunk_size:
            remainder = buffer[overlap:].strip()
            if remainder:
                previous = drafts[-1]
                drafts[-1] = ChunkDraft(
                    f"{previous.text}\n\n{remainder}", last_end, previous.overlap, previous.heading
                )
        elif buffer:
            drafts.append(ChunkDraft(buffer, last_end, overlap, heading))

        return drafts

    def _compose(self, unit: _Unit, buffer: str) -> str:
        text = unit.span.text
        heading = unit.heading
        if (
            heading
            and heading not in buffer
            and heading not in text
            and len(heading) + 2 + len(text) <= self._config.max_chunk_size
        ):
            return f"{heading}\n\n{text}"
        return text

    def _sentence_overlap(self, buffer: str, room: int) -> str:
        """Whole trailing sentences of ``buffer`` up to the overlap budget."""
        budget = min(self._config.overlap_budget, room)
        if self._config.overlap_size == 0 or budget <= 0:
            return ""

        picked: list[str] = []
        length = 0
        for sentence in reversed(self._analyzer.split_sentences(buffer)):
            extra = len(sentence) + (1 if picked else 0)
            if length + extra > budget:
                break
            picked.insert(0, sentence)
            length += extra

        return " ".join(picked)
