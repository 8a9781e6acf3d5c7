"""Exception types raised by the workflow engine and the run manager."""

from __future__ import annotations

from typing import Any, Dict, List, Optional


class CrawlflowError(Exception):
    """Base class for all crawlflow errors."""


class StepError(CrawlflowError):
    """A step could not be executed. Always fatal to the run."""


class InvalidStep(StepError):
    pass


class UnsupportedStepType(StepError):
    def __init__(self, step_type: str):
        self.step_type = step_type
        super().__init__(f"unsupported step type: {step_type}")


class UnknownStepId(StepError):
    def __init__(self, step_id: str):
        self.step_id = step_id
        super().__init__(f"unknown step id: {step_id}")


class UnknownNextStepId(StepError):
    def __init__(self, step_id: str):
        self.step_id = step_id
        super().__init__(f"unknown next step id: {step_id}")


class NoMatchingBranch(StepError):
    def __init__(self, step_id: Optional[str]):
        self.step_id = step_id
        super().__init__(f"no matching branch for if step {step_id or '<unknown>'}")


class SuccessTimeout(StepError):
    def __init__(self, timeout: float, step_id: Optional[str] = None):
        self.timeout = timeout
        self.step_id = step_id
        where = f" for step {step_id}" if step_id else ""
        super().__init__(f"success condition timed out after {timeout:g}s{where}")


class StepConfigError(StepError):
    """A step's ``config`` does not match what its kind requires."""


class ConditionError(StepError):
    """A condition could not be evaluated."""


class AdmissionError(CrawlflowError):
    """A run was rejected before it started."""

    status_code = 400
    error = "rejected"

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.error}


class WorkflowRequired(AdmissionError):
    error = "workflow_required"

    def __init__(self) -> None:
        super().__init__("workflow is required")


class InvalidWorkflow(AdmissionError):
    error = "invalid_workflow"

    def __init__(self, details: List[str]):
        self.details = list(details)
        super().__init__("invalid workflow: " + "; ".join(self.details))

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.error, "details": self.details}


class RunIdRequired(AdmissionError):
    error = "runId required"

    def __init__(self) -> None:
        super().__init__("runId is required")


class RunAlreadyActive(AdmissionError):
    status_code = 409
    error = "run_already_active"

    def __init__(self, run_id: str):
        self.run_id = run_id
        super().__init__(f"run {run_id} is already active")

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.error, "runId": self.run_id}


class RunnerBusy(AdmissionError):
    status_code = 429
    error = "runner busy"

    def __init__(self, active: int, maximum: int):
        self.active = active
        self.max = maximum
        super().__init__(f"runner busy ({active}/{maximum} runs active)")

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.error, "busy": True, "active": self.active, "max": self.max}
