"""Id-based lookup over a workflow's steps."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Sequence

from ..contracts import Step, Workflow


@dataclass(frozen=True)
class IndexEntry:
    step: Step
    position: int


@dataclass(frozen=True)
class StepIndex:
    entries: Dict[str, IndexEntry]
    start_id: str
    steps: Sequence[Step]

    def __contains__(self, step_id: object) -> bool:
        return step_id in self.entries

    def get(self, step_id: str) -> Optional[IndexEntry]:
        return self.entries.get(step_id)

    def successor(self, position: int) -> Optional[str]:
        """Id of the step declared right after ``position``, if any."""
        if position + 1 >= len(self.steps):
            return None
        next_id = self.steps[position + 1].clean_id
        return next_id if next_id in self.entries else None


def build_step_index(workflow: Workflow) -> Optional[StepIndex]:
    """Index ``workflow.steps`` by id.

    Returns ``None`` when the list is empty or any step lacks a non-empty id;
    the caller then executes the steps in array order instead.
    """
    steps = workflow.steps
    if not steps:
        return None

    entries: Dict[str, IndexEntry] = {}
    for position, step in enumerate(steps):
        step_id = step.clean_id
        if not step_id:
            return None
        entries[step_id] = IndexEntry(step=step, position=position)

    requested = workflow.start.strip() if isinstance(workflow.start, str) else ""
    start_id = requested if requested and requested in entries else steps[0].clean_id
    return StepIndex(entries=entries, start_id=start_id, steps=tuple(steps))
