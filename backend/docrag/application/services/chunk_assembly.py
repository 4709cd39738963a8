"""Span bookkeeping shared by the chunking strategies.

Chunkers work on ``TextSpan`` units (a piece of text plus its source
offsets) so every emitted chunk can report where it came from, and turn
their closed buffers into ``ChunkDraft`` objects that ``assemble_result``
converts into the final ``ChunkResult``.
"""

import re
from dataclasses import dataclass
from typing import NamedTuple

from docrag.application.interfaces.structure_analyzer import StructureAnalyzer
from docrag.domain.entities import (
    Chunk,
    ChunkMetadata,
    ChunkResult,
    ChunkType,
    SourceMetadata,
)

_WORD = re.compile(r"\S+")


class TextSpan(NamedTuple):
    text: str
    start: int
    end: int


@dataclass
class ChunkDraft:
    """A closed buffer, not yet numbered or placed in the source."""

    text: str
    end: int  # source offset where the last consumed unit ends
    overlap: int = 0  # leading chars carried over from the previous chunk
    heading: str | None = None


def _sub(span: TextSpan, start: int, end: int) -> TextSpan:
    return TextSpan(span.text[start:end], span.start + start, span.start + end)


def locate_spans(source: str, pieces: list[str], start: int = 0) -> list[TextSpan]:
    """Find each piece in ``source`` in order, starting at ``start``.

    A piece the analyzer rewrote (so it is no longer a substring) is placed
    at the cursor.
    """
    spans: list[TextSpan] = []
    cursor = start
    for piece in pieces:
        position = source.find(piece, cursor)
        if position < 0:
            position = cursor
            end = min(len(source), cursor + len(piece))
        else:
            end = position + len(piece)
        spans.append(TextSpan(piece, position, end))
        cursor = end
    return spans


def split_on_words(span: TextSpan, limit: int) -> list[TextSpan]:
    """Cut a span into pieces of at most ``limit`` chars on whitespace.

    A single word longer than ``limit`` is hard-cut.
    """
    if len(span.text) <= limit:
        return [span]

    pieces: list[TextSpan] = []
    piece_start: int | None = None
    piece_end = 0

    for match in _WORD.finditer(span.text):
        word_start, word_end = match.span()
        if word_end - word_start > limit:
            if piece_start is not None:
                pieces.append(_sub(span, piece_start, piece_end))
                piece_start = None
            for cut in range(word_start, word_end, limit):
                pieces.append(_sub(span, cut, min(cut + limit, word_end)))
            continue
        if piece_start is None:
            piece_start, piece_end = word_start, word_end
        elif word_end - piece_start <= limit:
            piece_end = word_end
        else:
            pieces.append(_sub(span, piece_start, piece_end))
            piece_start, piece_end = word_start, word_end

    if piece_start is not None:
        pieces.append(_sub(span, piece_start, piece_end))
    return pieces


def bound_spans(spans: list[TextSpan], limit: int) -> list[TextSpan]:
    return [piece for span in spans for piece in split_on_words(span, limit)]


def split_head(span: TextSpan, limit: int) -> tuple[TextSpan | None, TextSpan | None]:
    """Split off the longest whole-word prefix of at most ``limit`` chars.

    Returns ``(None, span)`` when not even the first word fits and
    ``(span, None)`` when everything fits.
    """
    cut = 0
    for match in _WORD.finditer(span.text):
        if match.end() > limit:
            break
        cut = match.end()

    if cut == 0:
        return None, span

    rest = span.text[cut:]
    if not rest.strip():
        return span, None
    rest_start = cut + len(rest) - len(rest.lstrip())
    return _sub(span, 0, cut), _sub(span, rest_start, len(span.text))


def pack_spans(source: str, spans: list[TextSpan], limit: int) -> list[TextSpan]:
    """Merge consecutive spans into source slices of at most ``limit`` chars."""
    packed: list[TextSpan] = []
    first: TextSpan | None = None
    last: TextSpan | None = None

    for span in spans:
        if first is not None and span.end - first.start <= limit:
            last = span
            continue
        if first is not None:
            packed.append(_join(source, first, last))
        first = last = span

    if first is not None:
        packed.append(_join(source, first, last))
    return packed


def _join(source: str, first: TextSpan, last: TextSpan) -> TextSpan:
    if first is last:
        return first
    return TextSpan(source[first.start : last.end], first.start, last.end)


def resolve_offsets(drafts: list[ChunkDraft], text_length: int) -> list[tuple[int, int]]:
    """Place drafts in the source.

    The first chunk starts at 0 and the last ends at ``text_length``. A
    chunk starts where its carried-over overlap begins, so consecutive
    ranges touch or overlap and never move backwards.
    """
    offsets: list[tuple[int, int]] = []
    start = 0
    prev_end = 0
    last = len(drafts) - 1

    for i, draft in enumerate(drafts):
        if i:
            start = max(start, prev_end - draft.overlap)
        end = text_length if i == last else min(max(draft.end, start, prev_end), text_length)
        offsets.append((start, end))
        prev_end = end

    return offsets


def assemble_result(
    drafts: list[ChunkDraft],
    text: str,
    *,
    chunk_type: ChunkType,
    analyzer: StructureAnalyzer,
    metadata: SourceMetadata | None = None,
    paragraphs_detected: int = 0,
    headings_detected: int = 0,
) -> ChunkResult:
    source = metadata or SourceMetadata()
    chunks: list[Chunk] = []

    for index, (draft, (start, end)) in enumerate(zip(drafts, resolve_offsets(drafts, len(text)))):
        chunks.append(
            Chunk(
                text=draft.text,
                index=index,
                start_char=start,
                end_char=end,
                metadata=ChunkMetadata(
                    source_file_name=source.file_name,
                    source_file_type=source.file_type,
                    type=chunk_type,
                    heading_text=draft.heading,
                    page_number=source.page_number,
                    section=source.section,
                    word_count=len(draft.text.split()),
                    sentence_count=len(analyzer.split_sentences(draft.text)),
                    extensions=dict(source.extensions),
                ),
            )
        )

    total_chars = sum(len(chunk.text) for chunk in chunks)
    return ChunkResult(
        chunks=chunks,
        total_chunks=len(chunks),
        total_chars=total_chars,
        avg_chunk_size=total_chars / len(chunks) if chunks else 0.0,
        paragraphs_detected=paragraphs_detected,
        headings_detected=headings_detected,
    )
