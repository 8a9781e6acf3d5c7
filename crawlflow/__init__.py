"""Crawlflow: declarative browser-automation workflows with streamed run events."""

from .automation import get_driver
from .contracts import RunEvent, RunStatus, Step, StepKind, Workflow
from .engine import RunOutcome, WorkflowRunner
from .manager import RunManager
from .persistence import get_repository
from .sinks import get_event_sink
from .validation import WorkflowValidator

__version__ = "0.1.0"
__all__ = [
    "RunEvent",
    "RunManager",
    "RunOutcome",
    "RunStatus",
    "Step",
    "StepKind",
    "Workflow",
    "WorkflowRunner",
    "WorkflowValidator",
    "get_driver",
    "get_event_sink",
    "get_repository",
]
