"""Unit tests for the vector table width and the chunk repository's bulk writes."""

import pytest
from sqlalchemy.dialects import postgresql
from sqlalchemy.schema import CreateTable

from docrag.infrastructure.database.models.vector_models import (
    DEFAULT_EMBEDDING_DIMENSIONS,
    VectorRecordModel,
    embedding_dimensions,
    set_embedding_dimensions,
)
from docrag.infrastructure.database.repositories.chunk_repository import (
    SQLAlchemyChunkRepository,
)
from docrag.infrastructure.vector_index.pgvector_index import PgVectorIndex


class RecordingSession:
    def __init__(self):
        self.executed: list[tuple[object, object]] = []
        self.flushes = 0

    async def execute(self, statement, params=None):
        self.executed.append((statement, params))

    async def flush(self):
        self.flushes += 1


@pytest.fixture(autouse=True)
def default_width():
    yield
    set_embedding_dimensions(DEFAULT_EMBEDDING_DIMENSIONS)


def _create_table_ddl() -> str:
    return str(CreateTable(VectorRecordModel.__table__).compile(dialect=postgresql.dialect()))


# ── Embedding column width ──


def test_column_uses_default_width_until_configured():
    assert embedding_dimensions() == DEFAULT_EMBEDDING_DIMENSIONS
    assert f"VECTOR({DEFAULT_EMBEDDING_DIMENSIONS})" in _create_table_ddl()


def test_configured_width_reaches_the_ddl():
    set_embedding_dimensions(768)

    assert embedding_dimensions() == 768
    assert "VECTOR(768)" in _create_table_ddl()


def test_index_defaults_to_the_configured_width():
    set_embedding_dimensions(4)

    assert PgVectorIndex(RecordingSession())._dimensions == 4
    assert PgVectorIndex(RecordingSession(), dimensions=8)._dimensions == 8


@pytest.mark.parametrize("dimensions", [0, -1, 2001])
def test_width_outside_hnsw_range_is_rejected(dimensions):
    with pytest.raises(ValueError, match="between 1 and 2000"):
        set_embedding_dimensions(dimensions)
    assert embedding_dimensions() == DEFAULT_EMBEDDING_DIMENSIONS


# ── Chunk repository ──


@pytest.mark.asyncio
async def test_set_vector_ids_issues_a_single_bulk_update():
    session = RecordingSession()
    repository = SQLAlchemyChunkRepository(session)

    await repository.set_vector_ids({"c1": "v1", "c2": "v2", "c3": "v3"})

    assert len(session.executed) == 1
    statement, params = session.executed[0]
    assert statement.table.name == "document_chunks"
    assert params == [
        {"id": "c1", "vector_id": "v1"},
        {"id": "c2", "vector_id": "v2"},
        {"id": "c3", "vector_id": "v3"},
    ]
    assert session.flushes == 1


@pytest.mark.asyncio
async def test_set_vector_ids_with_nothing_to_record_skips_the_database():
    session = RecordingSession()

    await SQLAlchemyChunkRepository(session).set_vector_ids({})

    assert session.executed == []
    assert session.flushes == 0
