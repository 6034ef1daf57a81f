"""Remote repository listing, filtering and content retrieval."""

from .locator import RepoLocator, parse_locator
from .exclusions import DEFAULT_POLICY, ExclusionPolicy
from .github import GitHubClient, HostingClient
from .fetcher import RepoTreeFetcher

__all__ = [
    "DEFAULT_POLICY",
    "ExclusionPolicy",
    "GitHubClient",
    "HostingClient",
    "RepoLocator",
    "RepoTreeFetcher",
    "parse_locator",
]
