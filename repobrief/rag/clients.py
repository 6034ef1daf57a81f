"""Embedding service clients: remote HTTP and an offline hashing fallback."""

from __future__ import annotations

import hashlib
import math
import re
from collections import Counter
from typing import List, Protocol, Sequence

import httpx

from ..errors import EmbeddingDegraded

DEFAULT_DIMENSION = 768

_WORD_PATTERN = re.compile(r"[A-Za-z0-9_]+")


class EmbeddingClient(Protocol):
    """Maps text to a fixed-length vector."""

    dimension: int

    async def embed(self, text: str) -> Sequence[float]:
        ...


class HashingEmbeddingClient:
    """Bag-of-words embeddings hashed into a fixed number of buckets.

    Needs no network access; identical text always yields an identical vector.
    """

    def __init__(self, *, dimension: int = DEFAULT_DIMENSION) -> None:
        self.dimension = max(1, dimension)

    async def embed(self, text: str) -> List[float]:
        return self.embed_sync(text)

    def embed_sync(self, text: str) -> List[float]:
        vector = [0.0] * self.dimension
        tokens = [token.lower() for token in _WORD_PATTERN.findall(text)]
        if not tokens:
            return vector
        for token, count in Counter(tokens).items():
            digest = hashlib.blake2b(token.encode("utf-8"), digest_size=8).digest()
            bucket = int.from_bytes(digest[:4], "big") % self.dimension
            sign = 1.0 if digest[4] & 1 else -1.0
            vector[bucket] += sign * count
        norm = math.sqrt(sum(value * value for value in vector)) or 1.0
        return [value / norm for value in vector]


class HttpEmbeddingClient:
    """Calls an OpenAI-compatible ``/embeddings`` endpoint."""

    DEFAULT_MODEL = "text-embedding-3-small"

    def __init__(
        self,
        base_url: str,
        *,
        model: str | None = None,
        api_key: str | None = None,
        dimension: int = DEFAULT_DIMENSION,
        request_timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.model = model or self.DEFAULT_MODEL
        self.api_key = api_key
        self.dimension = dimension
        self.request_timeout = request_timeout
        self._transport = transport

    async def embed(self, text: str) -> List[float]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        payload = {"model": self.model, "input": text, "dimensions": self.dimension}
        try:
            async with httpx.AsyncClient(
                timeout=self.request_timeout, transport=self._transport
            ) as client:
                response = await client.post(f"{self.base_url}/embeddings", json=payload, headers=headers)
                response.raise_for_status()
                data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise EmbeddingDegraded(f"Embedding request failed: {exc}") from exc
        return _extract_vector(data)


def _extract_vector(payload: object) -> List[float]:
    if not isinstance(payload, dict):
        raise EmbeddingDegraded("Embedding response is not an object")
    items = payload.get("data")
    if not isinstance(items, list) or not items or not isinstance(items[0], dict):
        raise EmbeddingDegraded("Embedding response has no data")
    values = items[0].get("embedding")
    if not isinstance(values, list) or not all(isinstance(value, (int, float)) for value in values):
        raise EmbeddingDegraded("Embedding response has no vector")
    return [float(value) for value in values]


__all__ = [
    "DEFAULT_DIMENSION",
    "EmbeddingClient",
    "HashingEmbeddingClient",
    "HttpEmbeddingClient",
]
