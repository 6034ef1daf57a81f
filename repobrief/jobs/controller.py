"""Job lifecycle controller: submit, execute, cancel and query summary jobs."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Dict, Optional

from ..cancellation import CancellationRegistry, CancellationToken
from ..errors import Cancelled, GenerationError, PersistenceTransient, SourceUnavailable, TimedOut
from ..logging import get_logger, job_context
from ..models import Job, JobReport, JobStatus
from ..retry import RetryPolicy
from ..sources.locator import RepoLocator, parse_locator
from ..stores import FileJobStore, InMemoryJobStore, JobStore
from .pipeline import PipelineResult, SummaryPipeline
from .progress import Checkpoint

if TYPE_CHECKING:
    from ..config import RepoBriefConfig

DEFAULT_TIMEOUT_SECONDS = 600.0
CANCELLED_MESSAGE = "Job cancelled by user"
INTERRUPTED_MESSAGE = "Job interrupted by shutdown"


class JobController:
    """Owns the job state machine ``PENDING -> PROCESSING -> COMPLETED | FAILED``.

    Each job runs as its own asyncio task. Every store write goes through the
    retry policy; terminal writes are conditional on a non-terminal stored
    status, so whichever of completion, failure, cancellation or timeout
    lands first is final.
    """

    def __init__(
        self,
        pipeline: SummaryPipeline,
        store: JobStore | None = None,
        *,
        registry: CancellationRegistry | None = None,
        retry_policy: RetryPolicy | None = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self.pipeline = pipeline
        self.store = store or InMemoryJobStore()
        self.registry = registry or CancellationRegistry()
        self.retry_policy = retry_policy or RetryPolicy()
        self.timeout = timeout
        self.logger = get_logger("jobs.controller")
        self._tasks: Dict[str, asyncio.Task[None]] = {}
        self._last_progress: Dict[str, float] = {}

    @classmethod
    def from_config(cls, config: "RepoBriefConfig") -> "JobController":
        from ..llm.runner import LLMRunner
        from ..models import ContextBudget, SelectionConfig
        from ..rag.clients import HashingEmbeddingClient, HttpEmbeddingClient
        from ..rag.embedder import EmbeddingGenerator
        from ..sources.exclusions import DEFAULT_POLICY
        from ..sources.fetcher import RepoTreeFetcher
        from ..sources.github import GitHubClient

        github = GitHubClient(
            config.github.token,
            api_base_url=config.github.api_base_url,
            raw_base_url=config.github.raw_base_url,
            timeout=config.github.timeout,
        )
        policy = DEFAULT_POLICY.extend(
            names=config.fetch.exclude_paths,
            extensions=config.fetch.exclude_extensions,
        )
        fetcher = RepoTreeFetcher(github, policy=policy, max_files=config.fetch.max_files)

        embeddings = config.embeddings
        embedder: EmbeddingGenerator | None = None
        if embeddings.provider == "http" and embeddings.base_url:
            client = HttpEmbeddingClient(
                embeddings.base_url,
                model=embeddings.model,
                api_key=embeddings.api_key,
                dimension=embeddings.dimension,
            )
            embedder = EmbeddingGenerator(
                client, batch_size=embeddings.batch_size, max_chars=embeddings.max_chars
            )
        elif embeddings.provider == "local":
            embedder = EmbeddingGenerator(
                HashingEmbeddingClient(dimension=embeddings.dimension),
                batch_size=embeddings.batch_size,
                max_chars=embeddings.max_chars,
            )

        llm = config.llm
        generator = LLMRunner(
            llm.model,
            base_url=llm.base_url,
            api_key=llm.api_key,
            temperature=llm.temperature,
            max_tokens=llm.max_tokens,
            request_timeout=llm.request_timeout,
        )

        pipeline = SummaryPipeline(
            fetcher,
            generator,
            embedder=embedder,
            selection=SelectionConfig(top_k=config.selection.top_k, lam=config.selection.lam),
            budget=ContextBudget(
                max_chars_per_file=config.context.max_chars_per_file,
                max_total_chars=config.context.max_total_chars,
            ),
        )

        jobs = config.jobs
        store: JobStore
        if jobs.store == "file":
            store = FileJobStore(jobs.store_path or config.root / ".repobrief" / "jobs")
        else:
            store = InMemoryJobStore()
        return cls(
            pipeline,
            store,
            retry_policy=RetryPolicy(attempts=jobs.retry_attempts, backoff=jobs.retry_backoff),
            timeout=jobs.timeout_seconds,
        )

    # ------------------------------------------------------------------
    # Public surface

    async def submit(self, repo_url: str, caller: str = "anonymous") -> str:
        """Create a pending job and start it in the background.

        Raises ``InvalidReference`` for malformed locators; no job is written.
        Raises ``PersistenceTransient`` when the job cannot be recorded after
        retries; nothing is started in that case.
        """
        locator = parse_locator(repo_url)
        job = Job.new(repo_url.strip())
        await self.retry_policy.call(self.store.insert, job)
        token = self.registry.register(job.id)
        task = asyncio.create_task(self._execute(job.id, locator, token), name=f"repobrief-{job.id}")
        self._tasks[job.id] = task
        task.add_done_callback(lambda _task, job_id=job.id: self._tasks.pop(job_id, None))
        self.logger.info("Submitted job %s for %s (caller=%s)", job.id, locator.slug, caller)
        return job.id

    async def status(self, job_id: str) -> JobReport:
        """Return the stored job state; missing jobs yield a synthesized failure."""
        try:
            job = await self.retry_policy.call(self.store.get, job_id)
        except PersistenceTransient as exc:
            self.logger.warning("Status read failed for job %s: %s", job_id, exc)
            return JobReport.not_found(job_id, error="Job status unavailable")
        if job is None:
            return JobReport.not_found(job_id)
        return JobReport.from_job(job)

    async def cancel(self, job_id: str) -> bool:
        """Signal a live job and mark it failed; returns False for unknown or finished jobs."""
        token = self.registry.get(job_id)
        if token is None:
            return False
        token.cancel(CANCELLED_MESSAGE)
        try:
            updated = await self.retry_policy.call(
                self.store.update, job_id, status=JobStatus.FAILED, error=CANCELLED_MESSAGE
            )
        except PersistenceTransient as exc:
            # The running pipeline observes the token and records the failure itself.
            self.logger.warning("Cancellation write failed for job %s: %s", job_id, exc)
            return True
        if updated is None:
            return False
        self.logger.info("Cancelled job %s", job_id)
        return True

    async def wait(self, job_id: str) -> None:
        """Wait for a job's background task to finish, if it is still running."""
        task = self._tasks.get(job_id)
        if task is not None:
            await asyncio.wait({task})

    async def shutdown(self) -> None:
        """Cancel every in-flight job task and wait for them to unwind."""
        tasks = list(self._tasks.values())
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    # ------------------------------------------------------------------
    # Execution

    async def _execute(self, job_id: str, locator: RepoLocator, token: CancellationToken) -> None:
        with job_context(job_id):
            await self._execute_job(job_id, locator, token)

    async def _execute_job(
        self, job_id: str, locator: RepoLocator, token: CancellationToken
    ) -> None:
        try:
            try:
                result = await asyncio.wait_for(self._run(job_id, locator, token), timeout=self.timeout)
            except asyncio.TimeoutError:
                raise TimedOut(f"Job timed out after {self.timeout:g} seconds") from None
        except TimedOut as exc:
            token.cancel(str(exc))
            self.logger.warning("Job %s timed out", job_id)
            await self._fail(job_id, str(exc))
        except Cancelled:
            self.logger.info("Job %s stopped after cancellation", job_id)
            await self._fail(job_id, CANCELLED_MESSAGE)
        except (SourceUnavailable, GenerationError, PersistenceTransient) as exc:
            self.logger.warning("Job %s failed: %s", job_id, exc)
            await self._fail(job_id, str(exc))
        except asyncio.CancelledError:
            await self._fail(job_id, INTERRUPTED_MESSAGE)
            raise
        except Exception as exc:
            self.logger.exception("Job %s failed unexpectedly", job_id)
            await self._fail(job_id, f"Unexpected error: {exc}")
        else:
            await self._complete(job_id, result)
        finally:
            self.registry.discard(job_id)
            self._last_progress.pop(job_id, None)

    async def _run(
        self, job_id: str, locator: RepoLocator, token: CancellationToken
    ) -> PipelineResult:
        self.logger.info("Starting job %s for %s", job_id, locator.slug)
        await self._advance(job_id, Checkpoint.PROCESSING)

        async def report(checkpoint: Checkpoint) -> None:
            await self._advance(job_id, checkpoint)

        return await self.pipeline.run(locator, token, report)

    async def _advance(self, job_id: str, checkpoint: Checkpoint) -> None:
        """Persist a progress checkpoint unless the job already reached a terminal state."""
        percent = checkpoint.percent
        if percent <= self._last_progress.get(job_id, 0.0):
            return
        current = await self.retry_policy.call(self.store.get, job_id)
        if current is None or current.is_terminal:
            raise Cancelled("Job is no longer active")
        updated = await self.retry_policy.call(
            self.store.update, job_id, status=JobStatus.PROCESSING, progress=percent
        )
        if updated is None:
            raise Cancelled("Job is no longer active")
        self._last_progress[job_id] = percent
        self.logger.debug("Job %s reached %s (%.0f%%)", job_id, checkpoint.name, percent)

    async def _complete(self, job_id: str, result: PipelineResult) -> None:
        written = await self._terminal_write(
            job_id,
            status=JobStatus.COMPLETED,
            progress=Checkpoint.COMPLETED.percent,
            content=result.content,
            error=None,
        )
        if written:
            self.logger.info(
                "Completed job %s with %d files in context",
                job_id,
                len(result.context.included_paths),
            )

    async def _fail(self, job_id: str, message: str) -> None:
        await self._terminal_write(job_id, status=JobStatus.FAILED, content=None, error=message)

    async def _terminal_write(self, job_id: str, **changes: object) -> bool:
        try:
            updated: Optional[Job] = await self.retry_policy.call(self.store.update, job_id, **changes)
        except PersistenceTransient as exc:
            self.logger.error("Could not record final state of job %s: %s", job_id, exc)
            return False
        return updated is not None


def build_controller(config: "RepoBriefConfig") -> JobController:
    """Wire a controller from loaded configuration."""
    return JobController.from_config(config)


__all__ = ["CANCELLED_MESSAGE", "DEFAULT_TIMEOUT_SECONDS", "JobController", "build_controller"]
