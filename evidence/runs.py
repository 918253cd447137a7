"""Pipeline run models and storage abstraction."""

from __future__ import annotations

import json
import os
import tempfile
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from enum import StrEnum
from pathlib import Path
from typing import Any

import structlog
from pydantic import BaseModel, Field, ValidationError, model_validator

from core import verbose
from core.ids import generate_run_id

logger = structlog.get_logger()


class RunStatus(StrEnum):
    """Status of a pipeline run."""

    PENDING = "pending"
    CLEANED = "cleaned"
    EXTRACTED = "extracted"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (RunStatus.EXTRACTED, RunStatus.FAILED)

    def can_transition_to(self, target: RunStatus) -> bool:
        return target in _TRANSITIONS[self]


_TRANSITIONS: dict[RunStatus, set[RunStatus]] = {
    RunStatus.PENDING: {RunStatus.CLEANED, RunStatus.FAILED},
    RunStatus.CLEANED: {RunStatus.EXTRACTED, RunStatus.FAILED},
    RunStatus.EXTRACTED: set(),
    RunStatus.FAILED: set(),
}


class InvalidRunTransition(Exception):
    """Raised when a run is moved along an edge the lifecycle does not allow."""

    def __init__(self, run_id: str, current: RunStatus, target: RunStatus):
        super().__init__(f"Run {run_id}: cannot move from {current} to {target}")
        self.run_id = run_id
        self.current = current
        self.target = target


class PipelineRun(BaseModel):
    """One processing attempt - an append-only audit record."""

    # Identity
    run_id: str = Field(default_factory=generate_run_id)
    job_id: str | None = None
    resume_id: str | None = None

    # Source
    source_url: str | None = None
    raw_content: str
    cleaned_content: str = ""

    # Configuration identity
    config_hash: str
    pipeline_config: str

    # Outcome
    extracted_data: str | None = None
    error: str | None = None
    status: RunStatus = RunStatus.PENDING

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime | None = None

    @model_validator(mode="after")
    def _single_owner(self) -> PipelineRun:
        if self.job_id and self.resume_id:
            raise ValueError("A pipeline run belongs to a job or a resume, not both")
        return self

    def transition(self, target: RunStatus) -> None:
        """Move to the target status or raise InvalidRunTransition."""
        if not self.status.can_transition_to(target):
            raise InvalidRunTransition(self.run_id, self.status, target)
        self.status = target
        self.updated_at = datetime.now(timezone.utc)


class RunStore(ABC):
    """Persistence collaborator for pipeline runs."""

    @abstractmethod
    def find_latest_run_for_job(self, job_id: str) -> PipelineRun | None:
        """Most recent run for a job, if any."""

    @abstractmethod
    def create_run(self, run: PipelineRun) -> PipelineRun:
        """Persist a new pending run."""

    @abstractmethod
    def update_run_cleaned(self, run_id: str, cleaned_content: str) -> None:
        """Record cleaned text and move to cleaned."""

    @abstractmethod
    def update_run_extracted(self, run_id: str, extracted_data: dict[str, Any]) -> None:
        """Record extracted data and move to extracted."""

    @abstractmethod
    def update_run_failed(self, run_id: str, error: str) -> None:
        """Record the error and move to failed."""

    @abstractmethod
    def get_run(self, run_id: str) -> PipelineRun | None:
        """Get a run by ID."""

    @abstractmethod
    def list_runs_for_job(self, job_id: str) -> list[PipelineRun]:
        """All runs for a job, oldest first."""


class FileRunStore(RunStore):
    """File-based run storage.

    Structure:
        base_dir/
            {run_id}.json   (one PipelineRun per file)
    """

    def __init__(self, base_dir: str | Path):
        self.base_dir = Path(base_dir)
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def _path(self, run_id: str) -> Path:
        return self.base_dir / f"{run_id}.json"

    def _write(self, run: PipelineRun) -> None:
        # Readers only ever see a complete file
        fd, tmp_path = tempfile.mkstemp(dir=self.base_dir, suffix=".tmp")
        try:
            with os.fdopen(fd, "w") as f:
                json.dump(run.model_dump(mode="json"), f, indent=2, default=str)
            os.replace(tmp_path, self._path(run.run_id))
        except BaseException:
            Path(tmp_path).unlink(missing_ok=True)
            raise

    def _load(self, run_id: str) -> PipelineRun:
        run = self.get_run(run_id)
        if run is None:
            raise KeyError(f"Pipeline run not found: {run_id}")
        return run

    def get_run(self, run_id: str) -> PipelineRun | None:
        path = self._path(run_id)
        if not path.exists():
            return None
        with open(path) as f:
            return PipelineRun(**json.load(f))

    def create_run(self, run: PipelineRun) -> PipelineRun:
        if self._path(run.run_id).exists():
            raise ValueError(f"Pipeline run already exists: {run.run_id}")
        self._write(run)
        verbose.detail(f"Run created → {run.run_id} ({len(run.raw_content) / 1024:.1f}kb raw)")
        return run

    def update_run_cleaned(self, run_id: str, cleaned_content: str) -> None:
        run = self._load(run_id)
        run.transition(RunStatus.CLEANED)
        run.cleaned_content = cleaned_content
        self._write(run)

    def update_run_extracted(self, run_id: str, extracted_data: dict[str, Any]) -> None:
        run = self._load(run_id)
        run.transition(RunStatus.EXTRACTED)
        run.extracted_data = json.dumps(extracted_data)
        self._write(run)

    def update_run_failed(self, run_id: str, error: str) -> None:
        run = self._load(run_id)
        run.transition(RunStatus.FAILED)
        run.error = error
        self._write(run)

    def list_runs_for_job(self, job_id: str) -> list[PipelineRun]:
        runs = []
        for path in self.base_dir.glob("*.json"):
            try:
                with open(path) as f:
                    data = json.load(f)
                if data.get("job_id") == job_id:
                    runs.append(PipelineRun(**data))
            except (OSError, AttributeError, ValueError, ValidationError) as e:
                logger.warning("run_file_unreadable", path=str(path), error=str(e))
        return sorted(runs, key=lambda r: r.created_at)

    def find_latest_run_for_job(self, job_id: str) -> PipelineRun | None:
        runs = self.list_runs_for_job(job_id)
        return runs[-1] if runs else None
