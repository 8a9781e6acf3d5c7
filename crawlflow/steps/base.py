"""Types shared between the interpreter and the step handlers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, Mapping, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from ..contracts import Step, Workflow
from ..errors import StepConfigError

if TYPE_CHECKING:
    from ..automation import BaseDriver
    from ..context import ExecutionContext
    from ..engine.evaluator import SuccessEvaluator

ConfigT = TypeVar("ConfigT", bound=BaseModel)


@dataclass(frozen=True)
class StepResult:
    """What a handler tells the interpreter after it ran.

    ``handled=False`` asks for the step's success condition to be evaluated.
    ``redirect=True`` carries an explicit next step id, where ``None`` means
    halt the run cleanly.
    """

    handled: bool = False
    redirect: bool = False
    next_step_id: Optional[str] = None
    outputs: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def not_handled(cls, **outputs: Any) -> "StepResult":
        return cls(handled=False, outputs=outputs)

    @classmethod
    def complete(cls) -> "StepResult":
        return cls(handled=True)

    @classmethod
    def goto(cls, step_id: Optional[str]) -> "StepResult":
        return cls(handled=True, redirect=True, next_step_id=step_id)

    @classmethod
    def halt(cls) -> "StepResult":
        return cls.goto(None)


@dataclass
class LoopState:
    count: int = 0


@dataclass
class RunFrame:
    """State owned by a single run for as long as it executes."""

    run_id: str
    workflow: Workflow
    context: "ExecutionContext"
    driver: "BaseDriver"
    evaluator: "SuccessEvaluator"
    loop_states: Dict[str, LoopState] = field(default_factory=dict)


@dataclass
class StepCall:
    """Arguments passed to every handler."""

    frame: RunFrame
    step: Step
    meta: Dict[str, Any]
    index: int

    @property
    def run_id(self) -> str:
        return self.frame.run_id

    @property
    def driver(self) -> "BaseDriver":
        return self.frame.driver

    @property
    def context(self) -> "ExecutionContext":
        return self.frame.context

    @property
    def evaluator(self) -> "SuccessEvaluator":
        return self.frame.evaluator

    def variables(self) -> Mapping[str, Any]:
        return self.frame.context.get_variables_snapshot()

    def parse_config(self, model: Type[ConfigT]) -> ConfigT:
        try:
            return model.model_validate(self.step.config or {})
        except ValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or 'config'}: {err['msg']}"
                for err in e.errors()
            )
            raise StepConfigError(
                f"{self.step.type} step {self.step.id or '<unnamed>'} has invalid config: {problems}"
            ) from e
