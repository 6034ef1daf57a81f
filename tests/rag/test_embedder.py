"""Tests for batched embedding generation."""

from __future__ import annotations

import asyncio
import json
from typing import List

import httpx
import pytest

from repobrief.cancellation import CancellationToken
from repobrief.errors import Cancelled, EmbeddingDegraded
from repobrief.models import CandidateFile
from repobrief.rag.clients import HashingEmbeddingClient, HttpEmbeddingClient
from repobrief.rag.embedder import EmbeddingGenerator, truncate


class _RecordingClient:
    dimension = 4

    def __init__(self, fail_on: str | None = None, wrong_size_on: str | None = None) -> None:
        self.fail_on = fail_on
        self.wrong_size_on = wrong_size_on
        self.texts: List[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def embed(self, text: str) -> List[float]:
        self.texts.append(text)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        await asyncio.sleep(0)
        self.in_flight -= 1
        if self.fail_on and self.fail_on in text:
            raise EmbeddingDegraded("service unavailable")
        if self.wrong_size_on and self.wrong_size_on in text:
            return [1.0, 2.0]
        return [1.0, 0.0, 0.0, float(len(text))]


def _files(count: int) -> List[CandidateFile]:
    return [CandidateFile(path=f"src/mod{index}.py", content=f"x = {index}\n") for index in range(count)]


def test_embed_files_preserves_order_and_batches_requests() -> None:
    client = _RecordingClient()
    generator = EmbeddingGenerator(client, batch_size=5)

    embedded = asyncio.run(generator.embed_files(_files(12), CancellationToken()))

    assert [file.path for file in embedded] == [f"src/mod{index}.py" for index in range(12)]
    assert all(len(file.vector) == 4 for file in embedded)
    assert client.max_in_flight <= 5


def test_failed_file_gets_zero_vector_and_others_survive() -> None:
    client = _RecordingClient(fail_on="mod1.py")
    generator = EmbeddingGenerator(client)

    embedded = asyncio.run(generator.embed_files(_files(3), CancellationToken()))

    assert embedded[1].vector == (0.0, 0.0, 0.0, 0.0)
    assert embedded[0].vector != embedded[1].vector
    assert embedded[2].vector[0] == 1.0


def test_wrong_dimension_is_treated_as_failure() -> None:
    client = _RecordingClient(wrong_size_on="mod0.py")
    generator = EmbeddingGenerator(client)

    embedded = asyncio.run(generator.embed_files(_files(2), CancellationToken()))

    assert embedded[0].vector == generator.zero_vector()


def test_file_text_is_prefixed_and_truncated() -> None:
    client = _RecordingClient()
    generator = EmbeddingGenerator(client, max_chars=10)
    big = CandidateFile(path="big.py", content="a" * 50)

    asyncio.run(generator.embed_files([big], CancellationToken()))

    assert client.texts == ["File: big.py\n\n" + "a" * 10 + "\n... (truncated)"]


def test_cancelled_token_stops_before_next_batch() -> None:
    client = _RecordingClient()
    generator = EmbeddingGenerator(client, batch_size=2)
    token = CancellationToken()
    token.cancel()

    with pytest.raises(Cancelled):
        asyncio.run(generator.embed_files(_files(4), token))
    assert client.texts == []


def test_embed_query_propagates_failures() -> None:
    generator = EmbeddingGenerator(_RecordingClient(fail_on="query"))

    with pytest.raises(EmbeddingDegraded):
        asyncio.run(generator.embed_query("query text"))


def test_truncate_leaves_short_content_alone() -> None:
    assert truncate("short", 10) == "short"


def test_hashing_client_is_deterministic_and_normalised() -> None:
    client = HashingEmbeddingClient(dimension=16)

    first = client.embed_sync("parse config files")
    second = asyncio.run(client.embed("parse config files"))

    assert first == second
    assert abs(sum(value * value for value in first) - 1.0) < 1e-9
    assert client.embed_sync("...") == [0.0] * 16


def test_http_client_posts_to_embeddings_endpoint() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"data": [{"embedding": [0.1, 0.2, 0.3]}]})

    client = HttpEmbeddingClient(
        "http://embed.local/v1/",
        api_key="k",
        dimension=3,
        transport=httpx.MockTransport(handler),
    )

    vector = asyncio.run(client.embed("hello"))

    assert vector == [0.1, 0.2, 0.3]
    assert str(seen[0].url) == "http://embed.local/v1/embeddings"
    assert seen[0].headers["Authorization"] == "Bearer k"


def test_http_client_wraps_errors() -> None:
    client = HttpEmbeddingClient(
        "http://embed.local/v1",
        transport=httpx.MockTransport(lambda request: httpx.Response(503)),
    )

    with pytest.raises(EmbeddingDegraded):
        asyncio.run(client.embed("hello"))


def test_default_http_client_requests_configured_dimension() -> None:
    requested: list[int] = []

    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        requested.append(body["dimensions"])
        return httpx.Response(200, json={"data": [{"embedding": [0.5] * body["dimensions"]}]})

    client = HttpEmbeddingClient("http://embed.local/v1", transport=httpx.MockTransport(handler))
    generator = EmbeddingGenerator(client)

    vector = asyncio.run(generator.embed_query("readme overview"))

    assert requested == [768]
    assert len(vector) == 768
