"""Unit tests for the SentencePackingChunker (fixed strategy)."""

import pytest

from docrag.application.services.fixed_chunker import SentencePackingChunker
from docrag.domain.entities import ChunkStrategy, ChunkType, FixedChunkConfig, SourceMetadata
from docrag.domain.exceptions import ChunkingConfigError

_NAMES = [
    "alpha", "bravo", "charlie", "delta", "echo", "foxtrot", "golf", "hotel",
    "india", "juliet", "kilo", "lima", "mike", "november", "oscar", "papa",
    "quebec", "romeo", "sierra", "tango",
]


def _long_text() -> str:
    return " ".join(
        f"Section {name} explains one small part of the retention policy." for name in _NAMES
    )


@pytest.fixture
def chunker() -> SentencePackingChunker:
    return SentencePackingChunker(
        FixedChunkConfig(chunk_size=200, chunk_overlap=40, min_chunk_size=50)
    )


def test_strategy_is_fixed(chunker):
    assert chunker.strategy is ChunkStrategy.FIXED


@pytest.mark.parametrize("text", ["", "   ", "\n\t"])
def test_empty_text_produces_no_chunks(chunker, text):
    result = chunker.chunk(text)
    assert result.chunks == []
    assert result.total_chunks == 0


def test_short_text_is_a_single_chunk(chunker):
    text = "  A short note about invoices. Nothing else.  "
    result = chunker.chunk(text, SourceMetadata(file_name="note.txt", file_type="txt"))

    assert result.total_chunks == 1
    chunk = result.chunks[0]
    assert chunk.text == text.strip()
    assert (chunk.start_char, chunk.end_char) == (0, len(text))
    assert chunk.metadata.source_file_name == "note.txt"
    assert chunk.metadata.type is ChunkType.MIXED
    assert chunk.metadata.sentence_count == 2
    assert chunk.metadata.word_count == 7


def test_chunks_respect_size_bounds(chunker):
    result = chunker.chunk(_long_text())

    assert result.total_chunks > 1
    for chunk in result.chunks[:-1]:
        assert 50 <= len(chunk.text) <= 200


def test_consecutive_chunks_overlap(chunker):
    chunks = chunker.chunk(_long_text()).chunks

    for previous, following in zip(chunks, chunks[1:]):
        assert following.text[:30] in previous.text[-40:]


def test_sentences_are_not_cut(chunker):
    """Every sentence appears whole in at least one chunk."""
    text = _long_text()
    chunks = chunker.chunk(text).chunks

    for name in _NAMES:
        sentence = f"Section {name} explains one small part of the retention policy."
        assert any(sentence in chunk.text for chunk in chunks)


def test_offsets_cover_the_whole_text(chunker):
    text = _long_text()
    chunks = chunker.chunk(text).chunks

    assert chunks[0].start_char == 0
    assert chunks[-1].end_char == len(text)
    for previous, following in zip(chunks, chunks[1:]):
        assert previous.start_char <= following.start_char
        assert following.start_char <= previous.end_char <= following.end_char
    assert [c.index for c in chunks] == list(range(len(chunks)))


def test_overlong_word_is_hard_cut(chunker):
    text = "x" * 500
    chunks = chunker.chunk(text).chunks

    assert len(chunks) > 1
    assert all(len(c.text) <= 200 for c in chunks)
    assert set("".join(c.text for c in chunks)) <= {"x", " "}


def test_small_trailing_buffer_is_merged():
    chunker = SentencePackingChunker(
        FixedChunkConfig(chunk_size=80, chunk_overlap=0, min_chunk_size=40)
    )
    text = (
        "The first sentence of this text is long enough to fill a chunk by itself alone. "
        "The second sentence is just as long and also fills most of one chunk here. "
        "Tiny end."
    )
    chunks = chunker.chunk(text).chunks

    assert len(chunks) == 2
    assert chunks[-1].text.endswith("here. Tiny end.")
    assert len(chunks[-1].text) > 80
    assert chunks[-1].end_char == len(text)


def test_chunking_is_deterministic(chunker):
    text = _long_text()
    assert chunker.chunk(text) == chunker.chunk(text)


def test_result_statistics(chunker):
    result = chunker.chunk(_long_text())

    assert result.total_chunks == len(result.chunks)
    assert result.total_chars == sum(len(c.text) for c in result.chunks)
    assert result.avg_chunk_size == pytest.approx(result.total_chars / result.total_chunks)


def test_token_budget_config():
    config = FixedChunkConfig.from_token_budget(max_tokens=100, overlap_tokens=20)
    assert (config.chunk_size, config.chunk_overlap) == (400, 80)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"chunk_size": 0},
        {"chunk_size": 100, "chunk_overlap": 100},
        {"chunk_size": 100, "chunk_overlap": 10, "min_chunk_size": 150},
        {"chunk_overlap": -1},
    ],
)
def test_invalid_config_is_rejected(kwargs):
    with pytest.raises(ChunkingConfigError):
        FixedChunkConfig(**kwargs)
