"""Core data models shared across repobrief components."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


def utc_timestamp() -> str:
    return datetime.now(UTC).isoformat().replace("+00:00", "Z")


class JobStatus(str, Enum):
    """Lifecycle states of a summary job."""

    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)


@dataclass
class Job:
    """Persisted record of one summary job.

    Once the status is terminal exactly one of ``content`` (completed) or
    ``error`` (failed) is set and the record is never written again.
    """

    id: str
    repo_url: str
    status: JobStatus = JobStatus.PENDING
    progress: float = 0.0
    content: Optional[str] = None
    error: Optional[str] = None
    created_at: str = field(default_factory=utc_timestamp)
    updated_at: str = field(default_factory=utc_timestamp)

    @classmethod
    def new(cls, repo_url: str) -> "Job":
        now = utc_timestamp()
        return cls(id=uuid.uuid4().hex, repo_url=repo_url, created_at=now, updated_at=now)

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    def with_changes(self, **changes: Any) -> "Job":
        changes.setdefault("updated_at", utc_timestamp())
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "repo_url": self.repo_url,
            "status": self.status.value,
            "progress": self.progress,
            "content": self.content,
            "error": self.error,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "Job":
        return cls(
            id=str(payload["id"]),
            repo_url=str(payload["repo_url"]),
            status=JobStatus(payload.get("status", JobStatus.PENDING.value)),
            progress=float(payload.get("progress") or 0.0),
            content=payload.get("content"),
            error=payload.get("error"),
            created_at=str(payload.get("created_at") or utc_timestamp()),
            updated_at=str(payload.get("updated_at") or utc_timestamp()),
        )


@dataclass(frozen=True)
class JobReport:
    """Status object handed back to callers of ``JobController.status``."""

    job_id: str
    status: JobStatus
    progress: float
    content: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def from_job(cls, job: Job) -> "JobReport":
        return cls(
            job_id=job.id,
            status=job.status,
            progress=job.progress,
            content=job.content,
            error=job.error,
        )

    @classmethod
    def not_found(cls, job_id: str, error: str = "Job not found") -> "JobReport":
        return cls(job_id=job_id, status=JobStatus.FAILED, progress=0.0, error=error)


@dataclass(frozen=True)
class TreeEntry:
    """One item of a recursive repository listing."""

    path: str
    is_dir: bool
    content_ref: Optional[str] = None


@dataclass
class CandidateFile:
    """Repository file pulled for a single pipeline run."""

    path: str
    content: str

    @property
    def length(self) -> int:
        return len(self.content)


@dataclass
class EmbeddedFile(CandidateFile):
    """Candidate file paired with its embedding vector."""

    vector: Tuple[float, ...] = ()


@dataclass(frozen=True)
class SelectionConfig:
    """MMR settings: subset size and relevance/diversity trade-off."""

    top_k: int = 8
    lam: float = 0.65

    def __post_init__(self) -> None:
        if self.top_k < 1:
            raise ValueError("top_k must be at least 1")
        if not 0.0 <= self.lam <= 1.0:
            raise ValueError("lam must be within [0, 1]")


@dataclass(frozen=True)
class ContextBudget:
    """Character limits applied when packing file contents into a context."""

    max_chars_per_file: int = 4000
    max_total_chars: int = 50000

    def __post_init__(self) -> None:
        if self.max_chars_per_file <= 0 or self.max_total_chars <= 0:
            raise ValueError("context budgets must be positive")


@dataclass
class AssembledContext:
    """Packed file contents plus the full listing for traceability."""

    text: str
    file_listing: str
    included_paths: List[str] = field(default_factory=list)


__all__ = [
    "AssembledContext",
    "CandidateFile",
    "ContextBudget",
    "EmbeddedFile",
    "Job",
    "JobReport",
    "JobStatus",
    "SelectionConfig",
    "TreeEntry",
    "utc_timestamp",
]
