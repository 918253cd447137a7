"""PipelineRunTracker: advisory, fire-and-forget run state writes.

Every write is spawned as a detached task. Writes for the same run are
chained so they land in order; failures are logged and discarded and
never reach the caller.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import structlog

from core.config import PipelineConfig
from core.ids import config_fingerprint, content_hash
from evidence.runs import PipelineRun, RunStatus, RunStore

logger = structlog.get_logger()


@dataclass
class RunHandle:
    """Caller-side view of a run's lifecycle."""

    run_id: str
    config_hash: str
    status: RunStatus = RunStatus.PENDING


class PipelineRunTracker:
    """Drives run state through the persistence collaborator."""

    def __init__(self, store: RunStore):
        self.store = store
        self._tasks: set[asyncio.Task[None]] = set()
        self._chains: dict[str, asyncio.Task[None]] = {}

    def open(
        self,
        raw_content: str,
        config: PipelineConfig,
        job_id: str | None = None,
        resume_id: str | None = None,
        source_url: str | None = None,
    ) -> RunHandle | None:
        """Start a pending run for freshly obtained raw content."""
        try:
            run = PipelineRun(
                job_id=job_id,
                resume_id=resume_id,
                source_url=source_url,
                raw_content=raw_content,
                config_hash=config_fingerprint(config),
                pipeline_config=config.serialize(),
            )
        except Exception as e:
            logger.warning("pipeline_run_not_created", error=str(e))
            return None

        handle = RunHandle(run_id=run.run_id, config_hash=run.config_hash)
        logger.info(
            "pipeline_run_opened",
            run_id=run.run_id,
            job_id=job_id,
            config_hash=run.config_hash[:8],
            content_hash=content_hash(raw_content),
        )
        self._spawn(handle.run_id, self.store.create_run, run)
        return handle

    def mark_cleaned(self, handle: RunHandle | None, cleaned_content: str) -> None:
        if handle is not None and self._advance(handle, RunStatus.CLEANED):
            self._spawn(
                handle.run_id, self.store.update_run_cleaned, handle.run_id, cleaned_content
            )

    def mark_extracted(self, handle: RunHandle | None, extracted_data: dict[str, Any]) -> None:
        if handle is not None and self._advance(handle, RunStatus.EXTRACTED):
            self._spawn(
                handle.run_id, self.store.update_run_extracted, handle.run_id, extracted_data
            )

    def mark_failed(self, handle: RunHandle | None, error: str) -> None:
        if handle is not None and self._advance(handle, RunStatus.FAILED):
            self._spawn(handle.run_id, self.store.update_run_failed, handle.run_id, error)

    async def drain(self) -> None:
        """Wait for every outstanding write. Used at shutdown and in tests."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    @property
    def pending_writes(self) -> int:
        return len(self._tasks)

    def _advance(self, handle: RunHandle, target: RunStatus) -> bool:
        if not handle.status.can_transition_to(target):
            logger.warning(
                "pipeline_run_transition_ignored",
                run_id=handle.run_id,
                current=handle.status.value,
                target=target.value,
            )
            return False
        handle.status = target
        return True

    def _spawn(self, run_id: str, fn: Callable[..., Any], *args: Any) -> None:
        previous = self._chains.get(run_id)
        task = asyncio.get_running_loop().create_task(self._write(run_id, previous, fn, *args))
        self._chains[run_id] = task
        self._tasks.add(task)
        task.add_done_callback(lambda t: self._forget(run_id, t))

    def _forget(self, run_id: str, task: asyncio.Task[None]) -> None:
        self._tasks.discard(task)
        if self._chains.get(run_id) is task:
            del self._chains[run_id]

    async def _write(
        self,
        run_id: str,
        previous: asyncio.Task[None] | None,
        fn: Callable[..., Any],
        *args: Any,
    ) -> None:
        if previous is not None:
            await asyncio.wait([previous])
        try:
            await asyncio.to_thread(fn, *args)
        except Exception as e:
            logger.warning(
                "pipeline_run_write_failed",
                run_id=run_id,
                operation=getattr(fn, "__name__", str(fn)),
                error=str(e),
            )
