"""Async client for the GitHub REST and raw-content endpoints."""

from __future__ import annotations

from typing import List, Optional, Protocol
from urllib.parse import quote

import httpx

from ..errors import SourceUnavailable
from ..logging import get_logger
from ..models import TreeEntry


class HostingClient(Protocol):
    """Repository hosting collaborator used by the tree fetcher."""

    async def list_tree(self, owner: str, repo: str) -> List[TreeEntry]:
        ...

    async def fetch_content(self, content_ref: str) -> bytes:
        ...


class GitHubClient:
    """Lists repository trees and downloads raw file contents from GitHub."""

    DEFAULT_API_BASE_URL = "https://api.github.com"
    DEFAULT_RAW_BASE_URL = "https://raw.githubusercontent.com"
    USER_AGENT = "repobrief"

    def __init__(
        self,
        token: str | None = None,
        *,
        api_base_url: str | None = None,
        raw_base_url: str | None = None,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.token = token
        self.api_base_url = (api_base_url or self.DEFAULT_API_BASE_URL).rstrip("/")
        self.raw_base_url = (raw_base_url or self.DEFAULT_RAW_BASE_URL).rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self.logger = get_logger("sources.github")

    async def list_tree(self, owner: str, repo: str) -> List[TreeEntry]:
        async with self._client() as client:
            branch = await self._default_branch(client, owner, repo)
            if branch is None:
                return []
            url = f"{self.api_base_url}/repos/{owner}/{repo}/git/trees/{quote(branch, safe='')}"
            response = await self._get(client, url, params={"recursive": "1"})
            if response.status_code == 409:
                # GitHub answers 409 for repositories without any commits.
                return []
            self._raise_for_status(response, f"{owner}/{repo}")
            payload = _json_or_raise(response)

        if payload.get("truncated"):
            self.logger.warning("Tree listing for %s/%s was truncated by the API", owner, repo)

        entries: List[TreeEntry] = []
        for item in payload.get("tree") or []:
            if not isinstance(item, dict):
                continue
            path = item.get("path")
            if not isinstance(path, str) or not path:
                continue
            is_dir = item.get("type") == "tree"
            content_ref = None if is_dir else self._raw_url(owner, repo, branch, path)
            entries.append(TreeEntry(path=path, is_dir=is_dir, content_ref=content_ref))
        return entries

    async def fetch_content(self, content_ref: str) -> bytes:
        async with self._client() as client:
            response = await self._get(client, content_ref)
            self._raise_for_status(response, content_ref)
            return response.content

    # ------------------------------------------------------------------
    # Internal helpers

    def _client(self) -> httpx.AsyncClient:
        headers = {"User-Agent": self.USER_AGENT, "Accept": "application/vnd.github+json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return httpx.AsyncClient(
            headers=headers,
            timeout=self.timeout,
            follow_redirects=True,
            transport=self._transport,
        )

    async def _default_branch(self, client: httpx.AsyncClient, owner: str, repo: str) -> Optional[str]:
        response = await self._get(client, f"{self.api_base_url}/repos/{owner}/{repo}")
        self._raise_for_status(response, f"{owner}/{repo}")
        payload = _json_or_raise(response)
        branch = payload.get("default_branch")
        return branch if isinstance(branch, str) and branch else None

    @staticmethod
    async def _get(
        client: httpx.AsyncClient, url: str, *, params: dict[str, str] | None = None
    ) -> httpx.Response:
        try:
            return await client.get(url, params=params)
        except httpx.HTTPError as exc:
            raise SourceUnavailable(f"GitHub API request failed: {exc}") from exc

    @staticmethod
    def _raise_for_status(response: httpx.Response, subject: str) -> None:
        if response.is_success:
            return
        if response.status_code == 404:
            raise SourceUnavailable(f"Repository not found: {subject}")
        message = _error_message(response)
        raise SourceUnavailable(f"GitHub API error {response.status_code} for {subject}: {message}")

    def _raw_url(self, owner: str, repo: str, branch: str, path: str) -> str:
        return f"{self.raw_base_url}/{owner}/{repo}/{quote(branch)}/{quote(path)}"


def _json_or_raise(response: httpx.Response) -> dict:
    try:
        payload = response.json()
    except ValueError as exc:
        raise SourceUnavailable("GitHub API returned invalid JSON") from exc
    if not isinstance(payload, dict):
        raise SourceUnavailable("Unexpected response structure from GitHub API")
    return payload


def _error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.reason_phrase or "unknown error"
    if isinstance(payload, dict) and isinstance(payload.get("message"), str):
        return payload["message"]
    return response.reason_phrase or "unknown error"


__all__ = ["GitHubClient", "HostingClient"]
