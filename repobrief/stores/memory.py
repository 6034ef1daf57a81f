"""In-process job store backed by a dict."""

from __future__ import annotations

import asyncio
from typing import Any, Dict, Optional

from ..models import Job
from .base import JobStore


class InMemoryJobStore(JobStore):
    """Keeps jobs in memory; state is lost when the process exits."""

    def __init__(self) -> None:
        self._jobs: Dict[str, Job] = {}
        self._lock = asyncio.Lock()

    async def insert(self, job: Job) -> None:
        async with self._lock:
            self._jobs[job.id] = job

    async def get(self, job_id: str) -> Optional[Job]:
        async with self._lock:
            return self._jobs.get(job_id)

    async def update(self, job_id: str, **changes: Any) -> Optional[Job]:
        async with self._lock:
            current = self._jobs.get(job_id)
            if current is None or current.is_terminal:
                return None
            updated = current.with_changes(**changes)
            self._jobs[job_id] = updated
            return updated

    def __len__(self) -> int:
        return len(self._jobs)


__all__ = ["InMemoryJobStore"]
