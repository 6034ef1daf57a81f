"""Logging utilities for repobrief jobs and commands.

Records emitted while a job task runs carry that job's id, so interleaved
output from concurrent jobs can be told apart.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from contextvars import ContextVar
from pathlib import Path
from typing import Iterator

_LOGGER_NAME = "repobrief"
_CURRENT_JOB: ContextVar[str | None] = ContextVar("repobrief_job", default=None)

CONSOLE_FORMAT = "[repobrief] %(levelname)s%(job_tag)s %(message)s"
FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s [%(job_id)s]: %(message)s"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a module-scoped logger under the repobrief hierarchy."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


@contextmanager
def job_context(job_id: str) -> Iterator[None]:
    """Tag log records emitted inside the block with ``job_id``."""
    token = _CURRENT_JOB.set(job_id)
    try:
        yield
    finally:
        _CURRENT_JOB.reset(token)


def current_job() -> str | None:
    return _CURRENT_JOB.get()


class JobContextFilter(logging.Filter):
    """Adds ``job_id`` and a printable ``job_tag`` to every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        job_id = _CURRENT_JOB.get()
        record.job_id = job_id or "-"
        record.job_tag = f" job={job_id}" if job_id else ""
        return True


def configure_logging(
    *, verbose: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Configure the repobrief logger with console output and optional file sink."""
    level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    # Reset handlers so repeated CLI/service starts do not duplicate output.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    job_filter = JobContextFilter()

    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(level)
    stream_handler.addFilter(job_filter)
    stream_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    logger.addHandler(stream_handler)

    if log_file is not None:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.addFilter(job_filter)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
        logger.addHandler(file_handler)

    return logger


__all__ = ["configure_logging", "current_job", "get_logger", "job_context"]
