"""Wire contracts for workflows, steps and run events."""

from __future__ import annotations

import time
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictInt


class StepKind(str, Enum):
    """Every step kind the interpreter knows how to execute."""

    NAVIGATE = "navigate"
    CLICK = "click"
    FILL = "fill"
    PRESS = "press"
    SCROLL = "scroll"
    WAIT = "wait"
    WAIT_ELEMENT = "wait_element"
    SCRIPT = "script"
    EXTRACT_TEXT = "extract_text"
    LOG = "log"
    IF = "if"
    LOOP = "loop"


class Condition(BaseModel):
    """Structured predicate shared by success checks, ``if`` branches and loops.

    Every key that is present must hold. An empty condition is true.
    """

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    url_includes: Optional[str] = Field(default=None, alias="urlIncludes")
    url_equals: Optional[str] = Field(default=None, alias="urlEquals")
    text_includes: Optional[str] = Field(default=None, alias="textIncludes")
    visible: Optional[str] = None
    exists: Optional[str] = None
    variable: Optional[str] = None
    equals: Any = None
    script: Optional[str] = None
    delay: Optional[float] = None
    all_: Optional[List[Condition]] = Field(default=None, alias="all")
    any_: Optional[List[Condition]] = Field(default=None, alias="any")
    not_: Optional[Condition] = Field(default=None, alias="not")

    @property
    def checks_equality(self) -> bool:
        return "equals" in self.model_fields_set


class SuccessSpec(BaseModel):
    timeout: Optional[float] = None
    condition: Optional[Condition] = None


class Branch(BaseModel):
    next: Optional[str] = None
    condition: Optional[Condition] = None


class Step(BaseModel):
    """One unit of work. ``type`` selects which of the other fields matter."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: Optional[str] = None
    type: Optional[str] = None
    config: Dict[str, Any] = Field(default_factory=dict)
    input_values: Dict[str, Any] = Field(default_factory=dict, alias="inputValues")
    success: Optional[SuccessSpec] = None
    next: Optional[str] = None
    branches: List[Branch] = Field(default_factory=list)
    times: Optional[StrictInt] = None
    exit: Optional[str] = None
    as_: Optional[str] = Field(default=None, alias="as")
    condition: Optional[Condition] = None

    @property
    def clean_id(self) -> str:
        return self.id.strip() if isinstance(self.id, str) else ""

    def meta(self) -> Dict[str, Any]:
        meta: Dict[str, Any] = {"type": self.type}
        if self.id:
            meta["stepId"] = self.id
        return meta


class Workflow(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    name: Optional[str] = None
    start: Optional[str] = None
    steps: List[Step] = Field(default_factory=list)


class EventType(str, Enum):
    STEP_START = "stepStart"
    STEP_END = "stepEnd"
    RUN_STATUS = "runStatus"
    SAMPLE = "sample"
    DONE = "done"


class RunStatus(str, Enum):
    QUEUED = "queued"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (RunStatus.SUCCEEDED, RunStatus.FAILED)


def now_ms() -> int:
    return int(time.time() * 1000)


class RunEvent(BaseModel):
    """Immutable event posted to the event sink for one run."""

    model_config = ConfigDict(frozen=True)

    type: EventType
    index: Optional[int] = None
    meta: Optional[Dict[str, Any]] = None
    ok: Optional[bool] = None
    error: Optional[str] = None
    status: Optional[RunStatus] = None
    data: Optional[Dict[str, Any]] = None
    ts: int = Field(default_factory=now_ms)

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


class RunRecord(BaseModel):
    """Run manager's view of an admitted run."""

    run_id: str = Field(alias="runId")
    status: RunStatus = RunStatus.QUEUED
    active_slot: bool = Field(default=True, alias="activeSlot")
    error: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)

    def advance(self, status: RunStatus, error: Optional[str] = None) -> bool:
        """Move to ``status`` unless the record is already terminal."""
        if self.status.is_terminal:
            return False
        self.status = status
        if error is not None:
            self.error = error
        return True
