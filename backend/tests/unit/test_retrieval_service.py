"""Unit tests for the RetrievalService."""

from datetime import datetime, timezone

import httpx
import pytest

from docrag.application.interfaces.document_repository import DocumentRepository
from docrag.application.interfaces.embedding_provider import EmbeddingProvider
from docrag.application.interfaces.vector_index import VectorIndex
from docrag.application.schemas.rag import RAGQueryInput
from docrag.application.services.retrieval_service import (
    RetrievalService,
    calculate_confidence,
)
from docrag.domain.entities import (
    Document,
    DocumentStatus,
    DocumentType,
    RankedChunk,
    VectorFilter,
    VectorMatch,
    VectorMetadata,
)
from docrag.domain.exceptions import EmbeddingProviderError, RetrievalError, VectorIndexError
from docrag.infrastructure.openrouter.openrouter_embedding_provider import (
    OpenRouterEmbeddingProvider,
)


# ── Fakes ──


class FakeEmbeddingProvider(EmbeddingProvider):
    def __init__(self, error: Exception | None = None):
        self._error = error
        self.queries: list[str] = []

    @property
    def dimensions(self) -> int:
        return 3

    async def generate_embeddings(self, texts: list[str]) -> list[list[float]]:
        return [[0.1, 0.2, 0.3] for _ in texts]

    async def generate_query_embedding(self, query: str) -> list[float]:
        if self._error:
            raise self._error
        self.queries.append(query)
        return [0.1, 0.2, 0.3]


class FakeVectorIndex(VectorIndex):
    """Returns canned matches; does not apply ``min_score`` itself."""

    def __init__(self, matches: list[VectorMatch] | None = None, error: Exception | None = None):
        self._matches = matches or []
        self._error = error
        self.queries: list[dict] = []

    async def upsert(self, records) -> None:
        pass

    async def query(self, vector, *, top_k, filter, min_score=0.0) -> list[VectorMatch]:
        if self._error:
            raise self._error
        self.queries.append({"top_k": top_k, "filter": filter, "min_score": min_score})
        return self._matches[:top_k]

    async def delete_many(self, filter: VectorFilter) -> int:
        return 0


class FakeDocumentRepository(DocumentRepository):
    def __init__(self, documents: list[Document] | None = None, *, fail_names: bool = False):
        self._documents = {d.id: d for d in documents or []}
        self._fail_names = fail_names

    async def get_by_id(self, document_id, *, owner_id=None):
        document = self._documents.get(document_id)
        if document is None or (owner_id is not None and document.owner_id != owner_id):
            return None
        return document

    async def create(self, document):
        self._documents[document.id] = document
        return document

    async def update(self, document):
        return document

    async def claim_for_processing(self, document_id):
        return document_id in self._documents

    async def delete(self, document_id):
        return self._documents.pop(document_id, None) is not None

    async def find_names_by_ids(self, document_ids):
        if self._fail_names:
            raise ConnectionError("database unavailable")
        return {i: self._documents[i].display_name for i in document_ids if i in self._documents}

    async def list_by_owner(self, owner_id, *, vectorized_only=False):
        return [
            d
            for d in self._documents.values()
            if d.owner_id == owner_id and (d.vectorized or not vectorized_only)
        ]

    async def count_accessible(self, owner_id, document_ids):
        return sum(
            1
            for i in document_ids
            if i in self._documents
            and self._documents[i].owner_id == owner_id
            and self._documents[i].vectorized
        )

    async def delete_by_owner(self, owner_id):
        return 0


# ── Helpers ──


def _document(document_id: str, name: str, *, owner_id: str = "u1", vectorized: bool = True):
    return Document(
        id=document_id,
        owner_id=owner_id,
        file_name=f"{document_id}.pdf",
        original_name=name,
        file_type=DocumentType.PDF,
        status=DocumentStatus.READY if vectorized else DocumentStatus.UPLOADED,
        vectorized=vectorized,
        chunk_count=3,
        created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
    )


def _match(score: float, *, document_id: str = "d1", index: int = 0, vid: str | None = None):
    return VectorMatch(
        id=vid or f"{document_id}-{index}",
        score=score,
        metadata=VectorMetadata(
            document_id=document_id,
            owner_id="u1",
            chunk_index=index,
            text=f"chunk {index} of {document_id}",
            file_name=f"{document_id}.pdf",
            file_type="pdf",
        ),
    )


_SCENARIO_SCORES = [0.95, 0.9, 0.85, 0.8, 0.75, 0.69, 0.6, 0.5]


def _scenario_service(**repo_kwargs) -> tuple[RetrievalService, FakeVectorIndex]:
    matches = [_match(score, index=i) for i, score in enumerate(_SCENARIO_SCORES)]
    index = FakeVectorIndex(matches)
    service = RetrievalService(
        FakeEmbeddingProvider(),
        index,
        FakeDocumentRepository([_document("d1", "Refund Policy.pdf")], **repo_kwargs),
    )
    return service, index


# ── perform_query ──


@pytest.mark.asyncio
async def test_refund_policy_scenario():
    service, index = _scenario_service()

    context = await service.perform_query(
        RAGQueryInput(query="refund policy", owner_id="u1", top_k=5, min_score=0.7)
    )

    assert [c.score for c in context.relevant_chunks] == [0.95, 0.9, 0.85, 0.8, 0.75]
    assert all(c.document_name == "Refund Policy.pdf" for c in context.relevant_chunks)
    assert index.queries[0]["top_k"] == 10
    assert index.queries[0]["min_score"] == 0.7
    assert index.queries[0]["filter"] == VectorFilter(owner_id="u1", document_ids=None)
    assert context.total_candidates == 8


@pytest.mark.asyncio
async def test_results_are_capped_and_filtered():
    service, _ = _scenario_service()

    context = await service.perform_query(
        RAGQueryInput(query="refund policy", owner_id="u1", top_k=3, min_score=0.8)
    )

    assert len(context.relevant_chunks) == 3
    assert all(c.score >= 0.8 for c in context.relevant_chunks)


@pytest.mark.asyncio
async def test_results_are_sorted_and_deduplicated():
    matches = [_match(0.8, index=1), _match(0.9, index=2), _match(0.8, index=1)]
    service = RetrievalService(
        FakeEmbeddingProvider(), FakeVectorIndex(matches), FakeDocumentRepository()
    )

    context = await service.perform_query(RAGQueryInput(query="q", owner_id="u1"))

    assert [c.chunk_index for c in context.relevant_chunks] == [2, 1]


@pytest.mark.asyncio
async def test_document_scope_is_passed_to_the_index():
    index = FakeVectorIndex()
    service = RetrievalService(FakeEmbeddingProvider(), index, FakeDocumentRepository())

    await service.perform_query(
        RAGQueryInput(query="q", owner_id="u1", document_ids=["d1", "d2"])
    )

    assert index.queries[0]["filter"] == VectorFilter(owner_id="u1", document_ids=("d1", "d2"))


@pytest.mark.asyncio
async def test_no_matches_returns_empty_context():
    service = RetrievalService(
        FakeEmbeddingProvider(), FakeVectorIndex([]), FakeDocumentRepository()
    )

    context = await service.perform_query(RAGQueryInput(query="anything", owner_id="u1"))

    assert context.relevant_chunks == []
    assert context.context_text == ""
    assert context.query == "anything"


@pytest.mark.asyncio
async def test_unknown_document_name_falls_back():
    service, _ = _scenario_service(fail_names=True)

    context = await service.perform_query(RAGQueryInput(query="refund", owner_id="u1"))

    assert context.relevant_chunks
    assert all(c.document_name == "Unknown" for c in context.relevant_chunks)


@pytest.mark.asyncio
async def test_context_text_names_documents():
    service, _ = _scenario_service()

    context = await service.perform_query(RAGQueryInput(query="refund", owner_id="u1", top_k=2))

    blocks = context.context_text.split("\n\n---\n\n")
    assert len(blocks) == 2
    assert blocks[0] == "[Document: Refund Policy.pdf, Chunk 1, Relevance: 95.0%]\nchunk 0 of d1"
    assert context.relevant_chunks[0].metadata["vector_id"] == "d1-0"


@pytest.mark.asyncio
async def test_token_budget_keeps_best_chunks():
    service, _ = _scenario_service()

    context = await service.perform_query(
        RAGQueryInput(query="refund", owner_id="u1", top_k=5, max_context_tokens=30)
    )

    assert len(context.relevant_chunks) == 1
    assert context.relevant_chunks[0].score == 0.95


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error",
    [
        EmbeddingProviderError("openrouter", "embeddings", "timeout"),
        VectorIndexError("pgvector", "query", "connection lost"),
    ],
)
async def test_provider_failure_raises_retrieval_error(error):
    if isinstance(error, EmbeddingProviderError):
        service = RetrievalService(
            FakeEmbeddingProvider(error), FakeVectorIndex(), FakeDocumentRepository()
        )
    else:
        service = RetrievalService(
            FakeEmbeddingProvider(), FakeVectorIndex(error=error), FakeDocumentRepository()
        )

    with pytest.raises(RetrievalError) as exc_info:
        await service.perform_query(RAGQueryInput(query="q", owner_id="u1"))

    assert exc_info.value.cause is error
    assert exc_info.value.__cause__ is error


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(200, text="<html>gateway</html>"),
        httpx.Response(200, json={"data": [{"index": 0}]}),
    ],
)
async def test_undecodable_embedding_response_raises_retrieval_error(response):
    provider = OpenRouterEmbeddingProvider(
        api_key="test-key",
        model_dimensions=3,
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(lambda request: response)),
    )
    index = FakeVectorIndex([_match(0.9)])
    service = RetrievalService(provider, index, FakeDocumentRepository())

    with pytest.raises(RetrievalError) as exc_info:
        await service.perform_query(RAGQueryInput(query="refund policy", owner_id="u1"))

    assert isinstance(exc_info.value.cause, EmbeddingProviderError)
    assert index.queries == []


def test_query_input_validation():
    with pytest.raises(ValueError):
        RAGQueryInput(query="", owner_id="u1")
    with pytest.raises(ValueError):
        RAGQueryInput(query="q", owner_id="u1", min_score=1.5)


# ── Confidence ──


def _ranked(scores: list[float]) -> list[RankedChunk]:
    return [
        RankedChunk(document_id="d1", document_name="Doc", chunk_index=i, content="", score=s)
        for i, s in enumerate(scores)
    ]


def test_confidence_with_several_chunks():
    assert calculate_confidence(_ranked([0.9, 0.8, 0.7])) == pytest.approx(1.0)


def test_confidence_without_chunks():
    assert calculate_confidence([]) == 0.2


def test_confidence_bonus_is_capped():
    assert calculate_confidence(_ranked([0.5])) == pytest.approx(0.7)
    assert calculate_confidence(_ranked([0.5, 0.5])) == pytest.approx(0.7)


# ── Documents ──


@pytest.mark.asyncio
async def test_get_available_documents_lists_vectorized_only():
    repo = FakeDocumentRepository(
        [_document("d1", "A.pdf"), _document("d2", "B.pdf", vectorized=False)]
    )
    service = RetrievalService(FakeEmbeddingProvider(), FakeVectorIndex(), repo)

    documents = await service.get_available_documents("u1")

    assert [d.id for d in documents] == ["d1"]
    assert documents[0].name == "A.pdf"


@pytest.mark.asyncio
async def test_validate_document_access():
    repo = FakeDocumentRepository(
        [_document("d1", "A.pdf"), _document("d2", "B.pdf", owner_id="someone-else")]
    )
    service = RetrievalService(FakeEmbeddingProvider(), FakeVectorIndex(), repo)

    assert await service.validate_document_access("u1", ["d1"]) is True
    assert await service.validate_document_access("u1", ["d1", "d1"]) is True
    assert await service.validate_document_access("u1", ["d1", "d2"]) is False
    assert await service.validate_document_access("u1", []) is True
