"""Parsing of repository locators such as ``https://github.com/owner/repo``."""

from __future__ import annotations

import re
from dataclasses import dataclass
from urllib.parse import urlparse

from ..errors import InvalidReference

_SEGMENT_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")


@dataclass(frozen=True)
class RepoLocator:
    """Owner/repository pair addressed on a hosting service."""

    host: str
    owner: str
    repo: str

    @property
    def slug(self) -> str:
        return f"{self.owner}/{self.repo}"


def parse_locator(url: str) -> RepoLocator:
    """Return the owner and repository named by ``url`` or raise ``InvalidReference``."""
    if not isinstance(url, str) or not url.strip():
        raise InvalidReference("Repository URL is required")
    parsed = urlparse(url.strip())
    if parsed.scheme not in {"http", "https"} or not parsed.hostname:
        raise InvalidReference(f"Invalid repository URL: {url}")

    parts = [part for part in parsed.path.split("/") if part]
    if len(parts) < 2:
        raise InvalidReference(f"Repository URL must include owner and name: {url}")

    owner, repo = parts[0], parts[1]
    if repo.endswith(".git"):
        repo = repo[: -len(".git")]
    if not _valid_segment(owner) or not _valid_segment(repo):
        raise InvalidReference(f"Invalid repository format: {url}")
    return RepoLocator(host=parsed.hostname.lower(), owner=owner, repo=repo)


def _valid_segment(value: str) -> bool:
    return bool(value) and value not in {".", ".."} and bool(_SEGMENT_PATTERN.match(value))


__all__ = ["RepoLocator", "parse_locator"]
