"""Per-request pipeline context and stage timing."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field

from core.ids import generate_run_id


class RequestOrigin(StrEnum):
    """Where the raw content of a request comes from."""

    URL = "url"
    PASTED = "pasted"
    REPROCESS = "reprocess"


class StageLog(BaseModel):
    """Log entry for a pipeline stage."""

    stage: str
    started_at: datetime
    completed_at: datetime | None = None
    status: str = "running"
    errors: list[str] = Field(default_factory=list)
    notes: dict[str, Any] = Field(default_factory=dict)
    duration_seconds: float | None = None


class PipelineContext(BaseModel):
    """Context for a single extraction request - travels through all stages."""

    request_id: str = Field(default_factory=generate_run_id)
    origin: RequestOrigin
    started_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    completed_at: datetime | None = None
    outcome: str | None = None

    stage_logs: list[StageLog] = Field(default_factory=list)

    def start_stage(self, stage: str) -> StageLog:
        """Record start of a stage."""
        log = StageLog(stage=stage, started_at=datetime.now(timezone.utc))
        self.stage_logs.append(log)
        return log

    def complete_stage(
        self,
        stage: str,
        errors: list[str] | None = None,
        status: str = "completed",
        **notes: Any,
    ) -> None:
        """Record completion of a stage."""
        for log in self.stage_logs:
            if log.stage == stage and log.completed_at is None:
                log.completed_at = datetime.now(timezone.utc)
                log.status = status
                if errors:
                    log.errors = errors
                log.notes.update(notes)
                log.duration_seconds = (
                    log.completed_at - log.started_at
                ).total_seconds()
                break

    def fail_open_stages(self, error: str) -> None:
        """Close any stage still running with a failure."""
        for log in self.stage_logs:
            if log.completed_at is None:
                self.complete_stage(log.stage, errors=[error], status="failed")

    def finish(self, outcome: str) -> None:
        """Mark the request as complete."""
        self.outcome = outcome
        self.completed_at = datetime.now(timezone.utc)

    def summary(self) -> dict[str, Any]:
        """Get a summary of the request for logging."""
        return {
            "request_id": self.request_id,
            "origin": self.origin.value,
            "outcome": self.outcome,
            "duration": (
                (self.completed_at - self.started_at).total_seconds()
                if self.completed_at
                else None
            ),
            "stages": [
                {
                    "stage": log.stage,
                    "status": log.status,
                    "duration": log.duration_seconds,
                    "errors": len(log.errors),
                    **log.notes,
                }
                for log in self.stage_logs
            ],
        }
