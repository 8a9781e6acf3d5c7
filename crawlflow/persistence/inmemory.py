"""In-memory implementation of the run repository."""

from __future__ import annotations

from datetime import datetime
from typing import Dict

from .models import TERMINAL_STATUSES, RunInstance, StepRecord
from .repository import RunRepository


class InMemoryRunRepository(RunRepository):
    """Store run history in local memory.

    Useful for tests or when no database is configured. Data is not
    persisted across process restarts.
    """

    def __init__(self) -> None:
        self._runs: Dict[str, RunInstance] = {}
        self._step_id = 0

    # ------------------------------------------------------------------
    async def create_run(self, run_id: str, workflow: dict | None = None) -> None:
        self._runs[run_id] = RunInstance(
            run_id=run_id,
            workflow=workflow or {},
            status="queued",
            created_at=datetime.utcnow(),
        )

    async def mark_run_status(
        self, run_id: str, status: str, error: str | None = None
    ) -> None:
        run = self._runs.get(run_id)
        if not run or run.status in TERMINAL_STATUSES:
            return
        run.status = status
        if error is not None:
            run.error = error
        if status in TERMINAL_STATUSES:
            run.finished_at = datetime.utcnow()

    async def mark_step_started(
        self,
        run_id: str,
        index: int,
        step_id: str | None = None,
        step_type: str | None = None,
    ) -> None:
        run = self._runs.get(run_id)
        if not run:
            return
        # ordinals are unique per run, ignore duplicate starts
        if any(step.index == index for step in run.steps):
            return
        self._step_id += 1
        run.steps.append(
            StepRecord(
                id=self._step_id,
                run_id=run_id,
                index=index,
                step_id=step_id,
                step_type=step_type,
                started_at=datetime.utcnow(),
            )
        )

    async def mark_step_completed(
        self, run_id: str, index: int, ok: bool, error: str | None = None
    ) -> None:
        run = self._runs.get(run_id)
        if not run:
            return
        for step in run.steps:
            if step.index == index and step.completed_at is None:
                step.completed_at = datetime.utcnow()
                step.ok = ok
                step.error = error
                break

    async def get_run(self, run_id: str) -> RunInstance | None:
        return self._runs.get(run_id)

    async def list_runs(self) -> list[RunInstance]:
        return list(self._runs.values())
