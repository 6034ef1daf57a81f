"""Cooperative cancellation tokens and the in-process registry that tracks them."""

from __future__ import annotations

import threading
from typing import Dict, Optional

from .errors import Cancelled


class CancellationToken:
    """Signal threaded through every pipeline stage.

    Stages call ``raise_if_cancelled`` before expensive work; in-flight network
    calls are allowed to finish and their results are discarded.
    """

    def __init__(self) -> None:
        self._event = threading.Event()
        self._reason: Optional[str] = None

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> Optional[str]:
        return self._reason

    def cancel(self, reason: str = "cancelled") -> None:
        if not self._event.is_set():
            self._reason = reason
            self._event.set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise Cancelled(self._reason or "cancelled")


class CancellationRegistry:
    """Maps live job ids to their tokens. Not durable across restarts."""

    def __init__(self) -> None:
        self._tokens: Dict[str, CancellationToken] = {}
        self._lock = threading.Lock()

    def register(self, job_id: str) -> CancellationToken:
        token = CancellationToken()
        with self._lock:
            self._tokens[job_id] = token
        return token

    def get(self, job_id: str) -> Optional[CancellationToken]:
        with self._lock:
            return self._tokens.get(job_id)

    def discard(self, job_id: str) -> None:
        with self._lock:
            self._tokens.pop(job_id, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._tokens)


__all__ = ["CancellationRegistry", "CancellationToken"]
