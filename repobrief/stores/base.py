"""Job store interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Optional

from ..models import Job


class JobStore(ABC):
    """Durable record store for jobs, keyed by job id.

    ``update`` is conditional: it applies only while the stored job is in a
    non-terminal state, which makes the first terminal write final. Backends
    raise ``PersistenceTransient`` for I/O failures.
    """

    @abstractmethod
    async def insert(self, job: Job) -> None:
        """Persist a new job; an existing id is overwritten."""

    @abstractmethod
    async def get(self, job_id: str) -> Optional[Job]:
        """Return the stored job or ``None``."""

    @abstractmethod
    async def update(self, job_id: str, **changes: Any) -> Optional[Job]:
        """Apply ``changes`` unless the job is missing or terminal.

        Returns the updated job, or ``None`` when nothing was written.
        """


__all__ = ["JobStore"]
