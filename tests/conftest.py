from __future__ import annotations

import asyncio
import logging
from typing import Dict, List, Optional, Sequence

import pytest

from repobrief.errors import SourceUnavailable
from repobrief.jobs.pipeline import SummaryPipeline
from repobrief.models import TreeEntry
from repobrief.rag.clients import HashingEmbeddingClient
from repobrief.rag.embedder import EmbeddingGenerator
from repobrief.sources.fetcher import RepoTreeFetcher


class FakeHostingClient:
    """In-memory stand-in for the hosting API keyed by repository path."""

    def __init__(
        self,
        files: Dict[str, str | bytes],
        *,
        dirs: Sequence[str] = (),
        unavailable: Sequence[str] = (),
        listing_error: Optional[Exception] = None,
    ) -> None:
        self.files = dict(files)
        self.dirs = list(dirs)
        self.unavailable = set(unavailable)
        self.listing_error = listing_error
        self.fetched: List[str] = []

    async def list_tree(self, owner: str, repo: str) -> List[TreeEntry]:
        if self.listing_error is not None:
            raise self.listing_error
        entries = [TreeEntry(path=path, is_dir=True) for path in self.dirs]
        entries.extend(
            TreeEntry(path=path, is_dir=False, content_ref=f"mem://{path}") for path in self.files
        )
        return entries

    async def fetch_content(self, content_ref: str) -> bytes:
        path = content_ref[len("mem://") :]
        self.fetched.append(path)
        if path in self.unavailable:
            raise SourceUnavailable(f"cannot fetch {path}")
        data = self.files[path]
        return data.encode("utf-8") if isinstance(data, str) else data


class FakeGenerator:
    """Records prompts and answers with a canned summary."""

    def __init__(self, reply: str = "# Summary\n\nGenerated.", *, delay: float = 0.0) -> None:
        self.reply = reply
        self.delay = delay
        self.prompts: List[str] = []
        self.started = asyncio.Event()

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        self.started.set()
        if self.delay:
            await asyncio.sleep(self.delay)
        return self.reply


SAMPLE_FILES: Dict[str, str | bytes] = {
    "README.md": "Sample project. It fetches data. It prints reports.",
    "src/main.py": "def main():\n    print('hello')\n",
    "assets/logo.png": b"\x89PNG\r\n\x1a\n\x00\x00",
}


@pytest.fixture
def hosting() -> FakeHostingClient:
    """Three-file repository where the image is excluded by extension."""
    return FakeHostingClient(SAMPLE_FILES, dirs=["src", "assets"])


@pytest.fixture
def generator() -> FakeGenerator:
    return FakeGenerator()


@pytest.fixture
def make_pipeline():
    """Build a pipeline around a hosting fake with offline hashing embeddings."""

    def _make(
        client: FakeHostingClient,
        generator: FakeGenerator,
        *,
        embeddings: bool = True,
        **kwargs: object,
    ) -> SummaryPipeline:
        embedder = EmbeddingGenerator(HashingEmbeddingClient(dimension=32)) if embeddings else None
        return SummaryPipeline(
            RepoTreeFetcher(client),
            generator,
            embedder=embedder,
            **kwargs,  # type: ignore[arg-type]
        )

    return _make


@pytest.fixture
def hosting_factory():
    """Return the hosting fake class for tests that need a custom tree."""
    return FakeHostingClient


@pytest.fixture
def generator_factory():
    """Return the generator fake class for tests that need a slow generation step."""
    return FakeGenerator


@pytest.fixture(autouse=True)
def _reset_logging():
    """Drop handlers installed by configure_logging so they do not outlive capsys."""
    yield
    logger = logging.getLogger("repobrief")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
