"""Evidence layer: auditable pipeline runs and their storage."""

from evidence.runs import (
    FileRunStore,
    InvalidRunTransition,
    PipelineRun,
    RunStatus,
    RunStore,
)
from evidence.tracker import PipelineRunTracker, RunHandle

__all__ = [
    "FileRunStore",
    "InvalidRunTransition",
    "PipelineRun",
    "PipelineRunTracker",
    "RunHandle",
    "RunStatus",
    "RunStore",
]
