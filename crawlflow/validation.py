"""Structural validation of workflow definitions before admission."""

from __future__ import annotations

from typing import Any, List, Mapping, Optional, Set

from pydantic import BaseModel, Field, ValidationError

from .contracts import Step, StepKind, Workflow
from .steps.configs import CONFIG_MODELS


class ValidationResult(BaseModel):
    valid: bool
    errors: List[str] = Field(default_factory=list)


def _format_errors(prefix: str, error: ValidationError) -> List[str]:
    return [
        f"{prefix}{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
        for err in error.errors()
    ]


class WorkflowValidator:
    """Rejects malformed workflows so that they never start a run."""

    async def validate(self, workflow: Any) -> ValidationResult:
        errors = self.check(workflow)
        return ValidationResult(valid=not errors, errors=errors)

    def check(self, workflow: Any) -> List[str]:
        if isinstance(workflow, Workflow):
            parsed = workflow
        elif isinstance(workflow, Mapping):
            raw_steps = workflow.get("steps")
            if not isinstance(raw_steps, list) or not raw_steps:
                return ["steps must be a non-empty list"]
            for position, raw in enumerate(raw_steps):
                if not isinstance(raw, Mapping):
                    return [f"steps[{position}] must be an object"]
            try:
                parsed = Workflow.model_validate(workflow)
            except ValidationError as e:
                return _format_errors("", e)
        else:
            return ["workflow must be an object"]

        if not parsed.steps:
            return ["steps must be a non-empty list"]

        errors: List[str] = []
        for position, step in enumerate(parsed.steps):
            errors.extend(self._check_step(position, step))
        errors.extend(self._check_references(parsed))
        return errors

    def _check_step(self, position: int, step: Step) -> List[str]:
        label = f"steps[{position}]"
        if not isinstance(step.type, str) or not step.type:
            return [f"{label}.type is required"]
        try:
            kind = StepKind(step.type)
        except ValueError:
            return [f"{label}.type: unsupported step type {step.type!r}"]

        errors: List[str] = []
        model = CONFIG_MODELS.get(kind)
        if model is not None:
            try:
                model.model_validate(step.config or {})
            except ValidationError as e:
                errors.extend(_format_errors(f"{label}.config.", e))

        if kind is StepKind.IF and not step.branches:
            errors.append(f"{label}.branches: if step needs at least one branch")
        if kind is StepKind.LOOP and step.times is not None and step.times < 0:
            errors.append(f"{label}.times must be a non-negative integer")
        if kind is StepKind.FILL and "value" not in (step.config or {}) and "value" not in step.input_values:
            errors.append(f"{label}: fill step requires a value")
        return errors

    def _check_references(self, workflow: Workflow) -> List[str]:
        ids = [step.clean_id for step in workflow.steps]
        if not all(ids):
            # array-order execution ignores navigation fields
            return []

        errors: List[str] = []
        seen: Set[str] = set()
        for step_id in ids:
            if step_id in seen:
                errors.append(f"duplicate step id {step_id!r}")
            seen.add(step_id)

        def check_target(label: str, target: Optional[str]) -> None:
            if target and target.strip() and target.strip() not in seen:
                errors.append(f"{label} references unknown step id {target!r}")

        if isinstance(workflow.start, str) and workflow.start.strip():
            check_target("start", workflow.start)
        for step in workflow.steps:
            check_target(f"step {step.clean_id}.next", step.next)
            check_target(f"step {step.clean_id}.exit", step.exit)
            for number, branch in enumerate(step.branches):
                check_target(f"step {step.clean_id}.branches[{number}].next", branch.next)
        return errors
