"""Data models for persisted run history."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field

TERMINAL_STATUSES = frozenset({"succeeded", "failed"})


class StepRecord(BaseModel):
    """Record of one step execution, identified by its ordinal."""

    id: Optional[int] = None
    run_id: str
    index: int
    step_id: Optional[str] = None
    step_type: Optional[str] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    ok: Optional[bool] = None
    error: Optional[str] = None


class RunInstance(BaseModel):
    """Persisted run data."""

    run_id: str
    workflow: dict[str, Any] = Field(default_factory=dict)
    status: str = "queued"
    error: Optional[str] = None
    created_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None
    steps: list[StepRecord] = Field(default_factory=list)
