"""Workflow engine: step indexing, interpretation, conditions and events."""

from .dispatcher import RunEventDispatcher
from .evaluator import SuccessEvaluator
from .index import IndexEntry, StepIndex, build_step_index
from .outcome import RunOutcome, StepOutcome
from .runner import WorkflowRunner

__all__ = [
    "IndexEntry",
    "RunEventDispatcher",
    "RunOutcome",
    "StepIndex",
    "StepOutcome",
    "SuccessEvaluator",
    "WorkflowRunner",
    "build_step_index",
]
