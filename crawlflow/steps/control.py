"""Branching and looping handlers."""

from __future__ import annotations

from ..errors import NoMatchingBranch
from .base import LoopState, StepCall, StepResult


async def handle_if(call: StepCall) -> StepResult:
    """Take the first branch, in declaration order, whose condition holds.

    A branch without a condition always matches. There is no implicit
    fallthrough when nothing matches.
    """
    for branch in call.step.branches:
        matches = True
        if branch.condition is not None:
            matches = await call.evaluator.evaluate(branch.condition)
        if not matches:
            continue
        if branch.next:
            return StepResult.goto(branch.next)
        if "next" in branch.model_fields_set and branch.next is None:
            return StepResult.halt()
        return StepResult.complete()

    raise NoMatchingBranch(call.step.id or call.meta.get("stepId"))


def _loop_key(call: StepCall) -> str:
    return call.step.clean_id or f"@{id(call.step)}"


async def handle_loop(call: StepCall) -> StepResult:
    """Re-enter ``next`` while the loop continues, otherwise go to ``exit``.

    ``times`` and ``condition`` combine with AND.
    """
    step = call.step
    key = _loop_key(call)
    state = call.frame.loop_states.get(key) or LoopState()

    should_continue = True
    if step.times is not None:
        should_continue = state.count < step.times
    if should_continue and step.condition is not None:
        should_continue = await call.evaluator.evaluate(step.condition)

    if should_continue:
        if step.as_:
            call.context.set_var(step.as_, state.count)
        state.count += 1
        call.frame.loop_states[key] = state
        return StepResult.goto(step.next) if step.next else StepResult.complete()

    call.frame.loop_states.pop(key, None)
    return StepResult.goto(step.exit or None)
