"""Unit tests for the OpenRouterEmbeddingProvider."""

import json

import httpx
import pytest

from docrag.domain.exceptions import EmbeddingProviderError
from docrag.infrastructure.openrouter.openrouter_embedding_provider import (
    OpenRouterEmbeddingProvider,
)


def _embedding_transport(
    *,
    shuffle: bool = False,
    drop: int = 0,
    status_code: int = 200,
    requests: list[dict] | None = None,
) -> httpx.MockTransport:
    """Answer each input with the vector [index, len(text)]."""

    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        if requests is not None:
            requests.append(body)
        if status_code != 200:
            return httpx.Response(status_code, text="upstream overloaded")
        data = [
            {"object": "embedding", "index": i, "embedding": [float(i), float(len(text))]}
            for i, text in enumerate(body["input"])
        ]
        if shuffle:
            data.reverse()
        return httpx.Response(200, json={"data": data[drop:], "model": body["model"]})

    return httpx.MockTransport(handler)


def _provider(transport: httpx.MockTransport, model: str = "openai/text-embedding-3-small"):
    return OpenRouterEmbeddingProvider(
        api_key="test-key",
        model=model,
        model_dimensions=2,
        http_client=httpx.AsyncClient(transport=transport),
    )


@pytest.mark.asyncio
async def test_generate_embeddings_in_input_order():
    provider = _provider(_embedding_transport(shuffle=True))

    vectors = await provider.generate_embeddings(["a", "bb", "ccc"])

    assert vectors == [[0.0, 1.0], [1.0, 2.0], [2.0, 3.0]]


@pytest.mark.asyncio
async def test_generate_embeddings_sends_model_and_dimensions():
    requests: list[dict] = []
    provider = _provider(_embedding_transport(requests=requests))

    await provider.generate_embeddings(["hello"])

    assert requests[0] == {
        "model": "openai/text-embedding-3-small",
        "input": ["hello"],
        "dimensions": 2,
    }
    assert provider.dimensions == 2


@pytest.mark.asyncio
async def test_nomic_models_get_task_prefixes():
    requests: list[dict] = []
    provider = _provider(_embedding_transport(requests=requests), model="nomic-ai/nomic-embed-text-v1.5")

    await provider.generate_embeddings(["chunk text"])
    await provider.generate_query_embedding("question")

    assert requests[0]["input"] == ["search_document: chunk text"]
    assert requests[1]["input"] == ["search_query: question"]


@pytest.mark.asyncio
async def test_generate_query_embedding_returns_single_vector():
    provider = _provider(_embedding_transport())

    assert await provider.generate_query_embedding("abcd") == [0.0, 4.0]


@pytest.mark.asyncio
async def test_empty_input_makes_no_request():
    requests: list[dict] = []
    provider = _provider(_embedding_transport(requests=requests))

    assert await provider.generate_embeddings([]) == []
    assert requests == []


@pytest.mark.asyncio
async def test_error_status_raises_with_context():
    provider = _provider(_embedding_transport(status_code=503))

    with pytest.raises(EmbeddingProviderError) as exc_info:
        await provider.generate_embeddings(["a", "b"])

    error = exc_info.value
    assert error.status_code == 503
    assert error.operation == "embeddings"
    assert error.context["text_count"] == 2


@pytest.mark.asyncio
async def test_missing_items_raise():
    provider = _provider(_embedding_transport(drop=1))

    with pytest.raises(EmbeddingProviderError, match="Expected 2 embeddings, got 1"):
        await provider.generate_embeddings(["a", "b"])


@pytest.mark.asyncio
async def test_transport_error_raises():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out")

    provider = _provider(httpx.MockTransport(handler))

    with pytest.raises(EmbeddingProviderError, match="ReadTimeout"):
        await provider.generate_embeddings(["a"])


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(200, text="<html>gateway</html>"),
        httpx.Response(200, json={"data": [{"index": 0}]}),
        httpx.Response(200, json={"object": "list"}),
        httpx.Response(200, json=["not", "an", "object"]),
    ],
)
async def test_malformed_success_body_raises(response):
    provider = _provider(httpx.MockTransport(lambda request: response))

    with pytest.raises(EmbeddingProviderError, match="Malformed response body") as exc_info:
        await provider.generate_embeddings(["a"])

    assert exc_info.value.status_code == 200
    assert exc_info.value.context["text_count"] == 1
