"""Durable job store writing one JSON document per job."""

from __future__ import annotations

import asyncio
import json
import os
import re
import tempfile
from pathlib import Path
from typing import Any, Optional

from ..errors import PersistenceTransient
from ..models import Job
from .base import JobStore

_STORE_VERSION = 1
_JOB_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")


class FileJobStore(JobStore):
    """Stores jobs under ``root/<job id>.json`` with atomic replace on write.

    Conditional updates are serialised by an in-process lock, so a directory
    must be owned by a single controller process. Writes run shielded: a
    cancelled caller stops waiting, but the lock stays held until the file
    is on disk, so a later terminal write always lands last.
    """

    def __init__(self, root: Path) -> None:
        self.root = Path(root)
        self._lock = asyncio.Lock()

    async def insert(self, job: Job) -> None:
        await asyncio.shield(self._locked_insert(job))

    async def get(self, job_id: str) -> Optional[Job]:
        if not _JOB_ID_PATTERN.match(job_id):
            return None
        return await asyncio.to_thread(self._read, job_id)

    async def update(self, job_id: str, **changes: Any) -> Optional[Job]:
        if not _JOB_ID_PATTERN.match(job_id):
            return None
        return await asyncio.shield(self._locked_update(job_id, changes))

    # ------------------------------------------------------------------
    # Internal helpers

    async def _locked_insert(self, job: Job) -> None:
        async with self._lock:
            await asyncio.to_thread(self._write, job)

    async def _locked_update(self, job_id: str, changes: dict[str, Any]) -> Optional[Job]:
        async with self._lock:
            current = await asyncio.to_thread(self._read, job_id)
            if current is None or current.is_terminal:
                return None
            updated = current.with_changes(**changes)
            await asyncio.to_thread(self._write, updated)
            return updated

    def _path(self, job_id: str) -> Path:
        return self.root / f"{job_id}.json"

    def _read(self, job_id: str) -> Optional[Job]:
        path = self._path(job_id)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return None
        except (OSError, json.JSONDecodeError) as exc:
            raise PersistenceTransient(f"Failed to read job {job_id}: {exc}") from exc
        if not isinstance(data, dict) or data.get("version") != _STORE_VERSION:
            return None
        payload = data.get("job")
        if not isinstance(payload, dict):
            return None
        try:
            return Job.from_dict(payload)
        except (KeyError, TypeError, ValueError):
            return None

    def _write(self, job: Job) -> None:
        path = self._path(job.id)
        payload = {"version": _STORE_VERSION, "job": job.to_dict()}
        tmp_name: str | None = None
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self.root,
                prefix=f"{job.id}.",
                suffix=".tmp",
                delete=False,
            ) as handle:
                tmp_name = handle.name
                json.dump(payload, handle, indent=2, sort_keys=True)
            os.replace(tmp_name, path)
        except OSError as exc:
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)
            raise PersistenceTransient(f"Failed to write job {job.id}: {exc}") from exc


__all__ = ["FileJobStore"]
