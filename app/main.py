"""FastAPI application entry point."""

from __future__ import annotations

import math
from dataclasses import dataclass
from functools import lru_cache

import structlog
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from core import verbose
from core.config import CleaningMethod, PipelineSettings, ProviderConfig, load_config
from core.errors import PipelineError
from evidence.runs import FileRunStore
from orchestration.runner import PipelineInfo, PipelineOrchestrator

logger = structlog.get_logger()

app = FastAPI(
    title="Job Extractor API",
    description="Turns job posting URLs or pasted postings into structured job records",
    version="0.1.0",
)

# CORS middleware for dashboard
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request bodies


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ExtractRequest(_CamelModel):
    url: str | None = None
    html_content: str | None = None
    selected_model: ProviderConfig | None = None
    pipeline_settings: PipelineSettings | None = None
    job_id: str | None = None


class ReprocessRequest(_CamelModel):
    job_id: str | None = None
    selected_model: ProviderConfig | None = None
    pipeline_settings: PipelineSettings | None = None


# Access gate


@dataclass
class AccessDecision:
    allowed: bool = True
    retry_after_seconds: float | None = None


class AccessGate:
    """Authentication and rate limiting collaborator.

    Admits every request. Deployments override get_access_gate with a real
    implementation.
    """

    async def check(self, request: Request) -> AccessDecision:
        return AccessDecision()


class AccessDenied(Exception):
    def __init__(self, retry_after_seconds: float | None):
        self.retry_after = math.ceil(retry_after_seconds or 1)
        super().__init__(
            f"Rate limit exceeded. Try again in {self.retry_after} seconds."
        )


def get_access_gate() -> AccessGate:
    return AccessGate()


async def require_access(
    request: Request, gate: AccessGate = Depends(get_access_gate)
) -> None:
    decision = await gate.check(request)
    if not decision.allowed:
        raise AccessDenied(decision.retry_after_seconds)


@lru_cache
def get_orchestrator() -> PipelineOrchestrator:
    settings, defaults = load_config()
    verbose.configure(settings.verbose)
    return PipelineOrchestrator(
        store=FileRunStore(settings.runs_dir), settings=settings, defaults=defaults
    )


# Error mapping


@app.exception_handler(PipelineError)
async def pipeline_error_handler(request: Request, exc: PipelineError) -> JSONResponse:
    logger.info(
        "pipeline_error_response",
        path=request.url.path,
        kind=exc.kind,
        status=exc.status_code,
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(AccessDenied)
async def access_denied_handler(request: Request, exc: AccessDenied) -> JSONResponse:
    return JSONResponse(
        status_code=429,
        content={"error": str(exc)},
        headers={"Retry-After": str(exc.retry_after)},
    )


# Routes


@app.post("/api/ai/job/extract", dependencies=[Depends(require_access)])
async def extract_job(
    body: ExtractRequest,
    orchestrator: PipelineOrchestrator = Depends(get_orchestrator),
):
    """Extract a job from a URL or from pasted posting content."""
    if body.html_content:
        job = await orchestrator.extract_from_pasted_text(
            body.html_content, body.selected_model, job_id=body.job_id
        )
    else:
        job = await orchestrator.extract_from_url(
            body.url, body.selected_model, body.pipeline_settings, job_id=body.job_id
        )
    return job.to_output()


@app.post("/api/ai/job/reprocess", dependencies=[Depends(require_access)])
async def reprocess_job(
    body: ReprocessRequest,
    orchestrator: PipelineOrchestrator = Depends(get_orchestrator),
):
    """Re-run cleaning and extraction over a job's stored raw content."""
    job = await orchestrator.reprocess_job(
        body.job_id, body.selected_model, body.pipeline_settings
    )
    return job.to_output()


@app.get("/api/jobs/{job_id}/pipeline-info", response_model=PipelineInfo)
async def pipeline_info(
    job_id: str,
    provider: str | None = None,
    model: str = "",
    num_ctx: int | None = None,
    cleaning_method: CleaningMethod | None = None,
    orchestrator: PipelineOrchestrator = Depends(get_orchestrator),
):
    """Latest run summary for a job, and whether the given settings differ."""
    selected = (
        ProviderConfig(provider=provider, model=model, context_window=num_ctx)
        if provider
        else None
    )
    settings = (
        PipelineSettings(cleaning_method=cleaning_method) if cleaning_method else None
    )
    return await orchestrator.pipeline_info(job_id, selected, settings)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": "Job Extractor API",
        "version": "0.1.0",
        "docs": "/docs",
    }
