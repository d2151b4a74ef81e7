import json

import httpx
import pytest
# mypy: ignore-errors

from domain.knowledge.errors import EmbeddingError
from services.ollama_client import OllamaClient


def _client(handler) -> OllamaClient:
    return OllamaClient("http://ollama.test/", transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_embed_posts_model_and_input() -> None:
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"model": "nomic-embed-text", "embeddings": [[0.1, 0.2, 0.3]]})

    client = _client(handler)
    vec = await client.embed("nomic-embed-text", "hello")
    await client.aclose()

    assert vec == [0.1, 0.2, 0.3]
    assert seen["path"] == "/api/embed"
    assert seen["body"] == {"model": "nomic-embed-text", "input": "hello"}


@pytest.mark.asyncio
async def test_embed_http_error_becomes_embedding_error() -> None:
    client = _client(lambda request: httpx.Response(500, json={"error": "boom"}))
    with pytest.raises(EmbeddingError) as exc:
        await client.embed("nomic-embed-text", "x" * 300)
    await client.aclose()
    assert exc.value.model == "nomic-embed-text"
    assert len(exc.value.text) == 100


@pytest.mark.asyncio
async def test_embed_without_vectors_is_an_error() -> None:
    client = _client(lambda request: httpx.Response(200, json={"embeddings": []}))
    with pytest.raises(EmbeddingError):
        await client.embed("nomic-embed-text", "hello")
    await client.aclose()


@pytest.mark.asyncio
async def test_health_check() -> None:
    client = _client(lambda request: httpx.Response(200, json={"models": []}))
    assert await client.health_check() == (True, "ok")
    await client.aclose()

    client = _client(lambda request: httpx.Response(503))
    assert await client.health_check() == (False, "http 503")
    await client.aclose()
