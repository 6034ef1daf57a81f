"""Repository tree fetching with exclusion filtering and bounded content pulls."""

from __future__ import annotations

import asyncio
from typing import List, Optional, Sequence

from ..cancellation import CancellationToken
from ..errors import SourceUnavailable
from ..logging import get_logger
from ..models import CandidateFile, TreeEntry
from ..prompting.assembler import file_priority
from .exclusions import DEFAULT_POLICY, ExclusionPolicy
from .github import HostingClient
from .locator import RepoLocator

DEFAULT_MAX_FILES = 25


class RepoTreeFetcher:
    """Lists eligible repository files and pulls a bounded set of contents.

    Listing and content retrieval are separate calls so the caller decides how
    many contents to download.
    """

    def __init__(
        self,
        client: HostingClient,
        *,
        policy: ExclusionPolicy | None = None,
        max_files: int = DEFAULT_MAX_FILES,
    ) -> None:
        self.client = client
        self.policy = policy or DEFAULT_POLICY
        self.max_files = max(1, max_files)
        self.logger = get_logger("sources.fetcher")

    async def list_files(self, locator: RepoLocator) -> List[TreeEntry]:
        """Return every non-directory entry that survives the exclusion policy."""
        entries = await self.client.list_tree(locator.owner, locator.repo)
        files = [
            entry
            for entry in entries
            if not entry.is_dir and not self.policy.is_excluded(entry.path)
        ]
        self.logger.debug(
            "Listed %d entries for %s, %d eligible files", len(entries), locator.slug, len(files)
        )
        return files

    def choose_candidates(
        self, entries: Sequence[TreeEntry], limit: Optional[int] = None
    ) -> List[TreeEntry]:
        """Rank listed files by static priority and keep at most ``limit``."""
        cap = self.max_files if limit is None else max(0, limit)
        ranked = sorted(entries, key=lambda entry: file_priority(entry.path), reverse=True)
        return ranked[:cap]

    async def fetch_contents(
        self, entries: Sequence[TreeEntry], token: CancellationToken
    ) -> List[CandidateFile]:
        """Download contents concurrently; unreadable or binary files are dropped."""
        token.raise_if_cancelled()
        results = await asyncio.gather(*(self._fetch_one(entry) for entry in entries))
        token.raise_if_cancelled()
        return [candidate for candidate in results if candidate is not None]

    async def _fetch_one(self, entry: TreeEntry) -> Optional[CandidateFile]:
        if not entry.content_ref:
            return None
        try:
            raw = await self.client.fetch_content(entry.content_ref)
        except SourceUnavailable as exc:
            self.logger.warning("Skipping %s: %s", entry.path, exc)
            return None
        if b"\x00" in raw:
            self.logger.debug("Skipping binary file %s", entry.path)
            return None
        text = raw.decode("utf-8", errors="replace")
        if not text.strip():
            return None
        return CandidateFile(path=entry.path, content=text)


__all__ = ["DEFAULT_MAX_FILES", "RepoTreeFetcher"]
