"""Unit tests for the SemanticChunker (structure-aware strategy)."""

import itertools

import pytest

from docrag.application.services.semantic_chunker import SemanticChunker
from docrag.application.services.structure_analyzer import RegexStructureAnalyzer
from docrag.domain.entities import ChunkStrategy, ChunkType, SemanticChunkConfig, SourceMetadata
from docrag.domain.exceptions import ChunkingConfigError


# ── Helpers ──


def _sentence(label: str, length: int) -> str:
    """A sentence of exactly ``length`` characters ending in a period."""
    filler = itertools.cycle(["records", "are", "kept", "and", "reviewed", "every", "year"])
    text = f"Clause {label} explains how archived customer data"
    while len(text) < length - 1:
        text += " " + next(filler)
    text = text[: length - 1]
    if text.endswith(" "):
        text = text[:-1] + "s"
    return text + "."


def _paragraph(label: str) -> str:
    return f"{_sentence(label + 'a', 110)} {_sentence(label + 'b', 150)}"


def _synthetic_document() -> str:
    """Nine two-sentence paragraphs plus a short closing one, about 2500 chars."""
    paragraphs = [_paragraph(f"p{i}") for i in range(9)]
    paragraphs.append(_sentence("closing", 100))
    return "\n\n".join(paragraphs)


@pytest.fixture
def chunker() -> SemanticChunker:
    return SemanticChunker(
        SemanticChunkConfig(target_chunk_size=800, max_chunk_size=1200, overlap_size=150)
    )


# ── Tests ──


def test_strategy_is_semantic(chunker):
    assert chunker.strategy is ChunkStrategy.SEMANTIC


def test_empty_text_produces_no_chunks(chunker):
    result = chunker.chunk("")
    assert result.chunks == []
    assert result.total_chunks == 0


def test_synthetic_document_scenario(chunker):
    text = _synthetic_document()
    assert 2400 <= len(text) <= 2600

    result = chunker.chunk(text, SourceMetadata(file_name="policy.txt", file_type="txt"))

    assert 3 <= result.total_chunks <= 4
    assert all(c.metadata.type is ChunkType.PARAGRAPH for c in result.chunks)
    assert all(c.metadata.source_file_name == "policy.txt" for c in result.chunks)

    last_sentence = RegexStructureAnalyzer().split_sentences(result.chunks[0].text)[-1]
    assert result.chunks[1].text.startswith(last_sentence)


def test_chunks_respect_size_bounds(chunker):
    chunks = chunker.chunk(_synthetic_document()).chunks

    for chunk in chunks[:-1]:
        assert 200 <= len(chunk.text) <= 1200


def test_overlap_is_made_of_whole_sentences(chunker):
    analyzer = RegexStructureAnalyzer()
    chunks = chunker.chunk(_synthetic_document()).chunks

    for previous, following in zip(chunks, chunks[1:]):
        carried = following.text.split("\n\n", 1)[0]
        assert carried in analyzer.split_sentences(previous.text)
        assert len(carried) <= 225


def test_offsets_cover_the_whole_text(chunker):
    text = _synthetic_document()
    chunks = chunker.chunk(text).chunks

    assert chunks[0].start_char == 0
    assert chunks[-1].end_char == len(text)
    for previous, following in zip(chunks, chunks[1:]):
        assert previous.start_char <= following.start_char <= previous.end_char
        assert previous.end_char <= following.end_char


def test_paragraph_counts_are_reported(chunker):
    result = chunker.chunk(_synthetic_document())
    assert result.paragraphs_detected == 10
    assert result.headings_detected == 0


def test_short_document_keeps_its_heading(chunker):
    text = "Overview\n\nThe service stores documents. It indexes them."
    result = chunker.chunk(text)

    assert result.total_chunks == 1
    chunk = result.chunks[0]
    assert chunk.text == text
    assert chunk.metadata.heading_text == "Overview"
    assert (chunk.start_char, chunk.end_char) == (0, len(text))
    assert result.paragraphs_detected == 2
    assert result.headings_detected == 1


def test_heading_is_repeated_in_a_new_chunk():
    chunker = SemanticChunker(
        SemanticChunkConfig(
            target_chunk_size=200, min_chunk_size=50, max_chunk_size=300, overlap_size=0
        )
    )
    first = _sentence("first", 150)
    second = _sentence("second", 150)
    chunks = chunker.chunk(f"Scope\n\n{first}\n\n{second}").chunks

    assert [c.text for c in chunks] == [f"Scope\n\n{first}", f"Scope\n\n{second}"]
    assert all(c.metadata.heading_text == "Scope" for c in chunks)


def test_long_paragraph_is_split_on_sentences(chunker):
    text = " ".join(_sentence(f"s{i}", 100) for i in range(30))
    chunks = chunker.chunk(text).chunks

    assert len(chunks) > 1
    for chunk in chunks:
        assert len(chunk.text) <= 1200
    for chunk in chunks[:-1]:
        assert len(chunk.text) >= 200
    assert chunks[-1].end_char == len(text)


def test_chunking_is_deterministic(chunker):
    text = _synthetic_document()
    assert chunker.chunk(text) == chunker.chunk(text)


def test_overlap_budget():
    assert SemanticChunkConfig(overlap_size=100).overlap_budget == 150


@pytest.mark.parametrize(
    "kwargs",
    [
        {"min_chunk_size": 1300},
        {"target_chunk_size": 1500},
        {"overlap_size": 800},
        {"max_chunk_size": 0},
    ],
)
def test_invalid_config_is_rejected(kwargs):
    with pytest.raises(ChunkingConfigError):
        SemanticChunkConfig(**kwargs)


def test_small_trailing_paragraph_is_merged_into_previous_chunk():
    config = SemanticChunkConfig(
        target_chunk_size=250, min_chunk_size=200, max_chunk_size=400, overlap_size=50
    )
    carried = _sentence("rb", 60)
    body = "\n\n".join(
        [
            f"{_sentence('ra', 180)} {_sentence('rz', 60)}",
            f"{_sentence('rs', 120)} {carried}",
        ]
    )
    text = f"{body}\n\nThanks."
    chunker = SemanticChunker(config)

    result = chunker.chunk(text)
    chunks = result.chunks

    assert result.total_chunks == chunker.chunk(body).total_chunks == 2
    assert chunks[-1].text.endswith(f"{carried}\n\nThanks.")
    # only the part after the carried overlap is appended
    assert chunks[-1].text.count(carried) == 1
    assert all(len(chunk.text) >= 200 for chunk in chunks)
    assert chunks[-1].end_char == len(text)
