"""Tests for the logging helpers."""

from __future__ import annotations

import asyncio
from pathlib import Path

from repobrief.logging import configure_logging, current_job, get_logger, job_context


def test_records_inside_job_context_carry_the_job_id(capsys) -> None:
    configure_logging()
    logger = get_logger("jobs.controller")

    with job_context("abc123"):
        logger.info("Starting job")
    logger.info("Idle")

    lines = capsys.readouterr().err.splitlines()
    assert lines == ["[repobrief] INFO job=abc123 Starting job", "[repobrief] INFO Idle"]


def test_job_context_is_isolated_per_task() -> None:
    seen: dict[str, str | None] = {}

    async def worker(job_id: str) -> None:
        with job_context(job_id):
            await asyncio.sleep(0)
            seen[job_id] = current_job()

    async def scenario() -> None:
        await asyncio.gather(worker("first"), worker("second"))

    asyncio.run(scenario())

    assert seen == {"first": "first", "second": "second"}
    assert current_job() is None


def test_file_sink_records_job_id(tmp_path: Path) -> None:
    log_file = tmp_path / "repobrief.log"
    logger = configure_logging(verbose=True, log_file=log_file)

    with job_context("job-7"):
        get_logger("stores").debug("Wrote job")
    for handler in logger.handlers:
        handler.flush()

    text = log_file.read_text(encoding="utf-8")
    assert "repobrief.stores [job-7]: Wrote job" in text
