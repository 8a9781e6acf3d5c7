"""Repository abstraction for run history persistence."""

from __future__ import annotations

from typing import Protocol

from .models import RunInstance


class RunRepository(Protocol):
    """Protocol for run history persistence backends.

    ``mark_run_status`` never moves a run out of a terminal status.
    """

    async def create_run(self, run_id: str, workflow: dict | None = None) -> None:
        """Persist a newly admitted run."""

    async def mark_run_status(
        self, run_id: str, status: str, error: str | None = None
    ) -> None:
        """Record a status transition."""

    async def mark_step_started(
        self,
        run_id: str,
        index: int,
        step_id: str | None = None,
        step_type: str | None = None,
    ) -> None:
        """Record start of a step execution."""

    async def mark_step_completed(
        self, run_id: str, index: int, ok: bool, error: str | None = None
    ) -> None:
        """Record completion of a step execution."""

    async def get_run(self, run_id: str) -> RunInstance | None:
        """Retrieve the run by id."""

    async def list_runs(self) -> list[RunInstance]:
        """Return all persisted runs."""
