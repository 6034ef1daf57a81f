"""Error taxonomy shared by the repobrief pipeline and job controller."""

from __future__ import annotations


class RepoBriefError(RuntimeError):
    """Base class for repobrief failures."""


class InvalidReference(RepoBriefError):
    """Raised when a repository locator cannot be parsed; no job is created."""


class SourceUnavailable(RepoBriefError):
    """Raised when the hosting API is unreachable or the repository is missing."""


class EmbeddingDegraded(RepoBriefError):
    """Raised for a single file whose embedding could not be produced."""


class PersistenceTransient(RepoBriefError):
    """Raised by job stores when a read or write fails and may succeed on retry."""


class GenerationError(RepoBriefError):
    """Raised when the generation service fails to return a summary."""


class Cancelled(RepoBriefError):
    """Raised by pipeline stages once the job's cancellation token fires."""


class TimedOut(RepoBriefError):
    """Raised when a job exceeds its wall-clock budget."""


__all__ = [
    "Cancelled",
    "EmbeddingDegraded",
    "GenerationError",
    "InvalidReference",
    "PersistenceTransient",
    "RepoBriefError",
    "SourceUnavailable",
    "TimedOut",
]
