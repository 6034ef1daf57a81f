"""FastAPI application entrypoint for repobrief service mode."""

from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator, Callable, Optional

from fastapi import Depends, FastAPI, Header
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ..config import load_config
from ..errors import InvalidReference, PersistenceTransient
from ..jobs.controller import JobController
from ..logging import get_logger


class JobSubmitRequest(BaseModel):
    repo_url: str


class JobSubmitResponse(BaseModel):
    job_id: str


class JobStatusResponse(BaseModel):
    job_id: str
    status: str
    progress: float
    content: Optional[str] = None
    error: Optional[str] = None


class CancelResponse(BaseModel):
    cancelled: bool


class HealthResponse(BaseModel):
    status: str


def _default_controller() -> JobController:
    return JobController.from_config(load_config())


def create_app(
    controller_factory: Callable[[], JobController] = _default_controller,
) -> FastAPI:
    """Create the FastAPI application exposing job submission and status."""

    logger = get_logger("service")
    holder: dict[str, JobController] = {}

    def controller() -> JobController:
        # One controller per app: it owns the running job tasks.
        if "controller" not in holder:
            holder["controller"] = controller_factory()
        return holder["controller"]

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        yield
        active = holder.get("controller")
        if active is not None:
            logger.info("Shutting down; cancelling in-flight jobs")
            await active.shutdown()

    app = FastAPI(title="RepoBrief Service", version="1.0.0", lifespan=lifespan)

    async def get_controller() -> JobController:
        return controller()

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.post("/jobs", response_model=JobSubmitResponse, status_code=202)
    async def submit_job(
        payload: JobSubmitRequest,
        x_caller_id: Optional[str] = Header(default=None),
        jobs: JobController = Depends(get_controller),
    ) -> JobSubmitResponse:
        job_id = await jobs.submit(payload.repo_url, caller=x_caller_id or "anonymous")
        return JobSubmitResponse(job_id=job_id)

    @app.get("/jobs/{job_id}", response_model=JobStatusResponse)
    async def job_status(
        job_id: str,
        jobs: JobController = Depends(get_controller),
    ) -> JobStatusResponse:
        report = await jobs.status(job_id)
        return JobStatusResponse(
            job_id=report.job_id,
            status=report.status.value,
            progress=report.progress,
            content=report.content,
            error=report.error,
        )

    @app.post("/jobs/{job_id}/cancel", response_model=CancelResponse)
    async def cancel_job(
        job_id: str,
        jobs: JobController = Depends(get_controller),
    ) -> CancelResponse:
        return CancelResponse(cancelled=await jobs.cancel(job_id))

    @app.exception_handler(InvalidReference)
    async def invalid_reference_handler(_: Any, exc: InvalidReference) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(PersistenceTransient)
    async def persistence_handler(_: Any, exc: PersistenceTransient) -> JSONResponse:
        logger.warning("Job store unavailable: %s", exc)
        return JSONResponse(status_code=503, content={"detail": "Job store unavailable"})

    return app


def run_service(
    host: str = "127.0.0.1", port: int = 8000, config_path: Path | None = None
) -> None:  # pragma: no cover - integration path
    import uvicorn

    config = load_config(config_path)
    app = create_app(lambda: JobController.from_config(config))
    uvicorn.run(app, host=host, port=port)
