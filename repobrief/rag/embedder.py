"""Batched embedding generation for candidate files."""

from __future__ import annotations

import asyncio
from typing import List, Sequence, Tuple

from ..cancellation import CancellationToken
from ..errors import EmbeddingDegraded
from ..logging import get_logger
from ..models import CandidateFile, EmbeddedFile
from .clients import DEFAULT_DIMENSION, EmbeddingClient

DEFAULT_BATCH_SIZE = 5
DEFAULT_MAX_CHARS = 4000
TRUNCATION_MARKER = "\n... (truncated)"


class EmbeddingGenerator:
    """Embeds files in fixed-size concurrent batches with per-file fallback."""

    def __init__(
        self,
        client: EmbeddingClient,
        *,
        batch_size: int = DEFAULT_BATCH_SIZE,
        max_chars: int = DEFAULT_MAX_CHARS,
        dimension: int | None = None,
    ) -> None:
        self.client = client
        self.batch_size = max(1, batch_size)
        self.max_chars = max(1, max_chars)
        self.dimension = dimension or getattr(client, "dimension", DEFAULT_DIMENSION)
        self.logger = get_logger("rag.embedder")

    async def embed_files(
        self, files: Sequence[CandidateFile], token: CancellationToken
    ) -> List[EmbeddedFile]:
        """Return embedded files in input order.

        Raises ``Cancelled`` if the token fires before a batch starts; no partial
        result is returned in that case.
        """
        embedded: List[EmbeddedFile] = []
        for start in range(0, len(files), self.batch_size):
            token.raise_if_cancelled()
            batch = files[start : start + self.batch_size]
            vectors = await asyncio.gather(*(self._embed_file(file) for file in batch))
            embedded.extend(
                EmbeddedFile(path=file.path, content=file.content, vector=vector)
                for file, vector in zip(batch, vectors)
            )
        return embedded

    async def embed_query(self, query: str) -> Tuple[float, ...]:
        """Embed the selection query; failures propagate to the caller."""
        return self._checked(await self.client.embed(query))

    def zero_vector(self) -> Tuple[float, ...]:
        return (0.0,) * self.dimension

    async def _embed_file(self, file: CandidateFile) -> Tuple[float, ...]:
        text = f"File: {file.path}\n\n{truncate(file.content, self.max_chars)}"
        try:
            return self._checked(await self.client.embed(text))
        except Exception as exc:
            self.logger.warning("Embedding failed for %s, using zero vector: %s", file.path, exc)
            return self.zero_vector()

    def _checked(self, values: Sequence[float]) -> Tuple[float, ...]:
        vector = tuple(float(value) for value in values)
        if len(vector) != self.dimension:
            raise EmbeddingDegraded(
                f"Expected a {self.dimension}-dimension vector, got {len(vector)}"
            )
        return vector


def truncate(content: str, max_chars: int) -> str:
    if len(content) <= max_chars:
        return content
    return content[:max_chars] + TRUNCATION_MARKER


__all__ = ["DEFAULT_BATCH_SIZE", "DEFAULT_MAX_CHARS", "EmbeddingGenerator", "truncate"]
