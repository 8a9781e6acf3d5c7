from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..contracts import RunStatus
from ..steps import StepResult


def error_message(error: BaseException) -> str:
    return str(error) or type(error).__name__


@dataclass(frozen=True)
class StepOutcome:
    ok: bool
    result: Optional[StepResult] = None
    error: Optional[str] = None

    @classmethod
    def succeeded(cls, result: StepResult) -> "StepOutcome":
        return cls(ok=True, result=result)

    @classmethod
    def failed(cls, error: BaseException | str) -> "StepOutcome":
        message = error if isinstance(error, str) else error_message(error)
        return cls(ok=False, error=message)


@dataclass(frozen=True)
class RunOutcome:
    """Structured result of a run. ``WorkflowRunner.run`` never raises one."""

    ok: bool
    error: Optional[str] = None

    @classmethod
    def succeeded(cls) -> "RunOutcome":
        return cls(ok=True)

    @classmethod
    def failed(cls, error: BaseException | str) -> "RunOutcome":
        message = error if isinstance(error, str) else error_message(error)
        return cls(ok=False, error=message)

    @property
    def status(self) -> RunStatus:
        return RunStatus.SUCCEEDED if self.ok else RunStatus.FAILED
