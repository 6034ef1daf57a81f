"""Retry policy shared by every job-store write."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Tuple, Type, TypeVar

from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from .errors import PersistenceTransient
from .logging import get_logger

T = TypeVar("T")

_LOGGER = get_logger("retry")


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded exponential backoff around an async operation.

    After ``attempts`` failures the last exception propagates unchanged.
    """

    attempts: int = 3
    backoff: float = 0.2
    max_backoff: float = 5.0
    retry_on: Tuple[Type[BaseException], ...] = (PersistenceTransient,)

    async def call(self, operation: Callable[..., Awaitable[T]], *args: object, **kwargs: object) -> T:
        retrying = AsyncRetrying(
            stop=stop_after_attempt(max(1, self.attempts)),
            wait=wait_exponential(multiplier=self.backoff, max=self.max_backoff),
            retry=retry_if_exception_type(self.retry_on),
            before_sleep=before_sleep_log(_LOGGER, logging.WARNING),
            reraise=True,
        )
        return await retrying(operation, *args, **kwargs)


__all__ = ["RetryPolicy"]
