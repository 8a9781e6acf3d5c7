"""Step handlers and their dispatch over ``StepKind``."""

from __future__ import annotations

from ..contracts import StepKind
from ..errors import UnsupportedStepType
from .base import LoopState, RunFrame, StepCall, StepResult
from .browser import (
    handle_click,
    handle_fill,
    handle_navigate,
    handle_press,
    handle_scroll,
    handle_wait,
    handle_wait_element,
)
from .control import handle_if, handle_loop
from .data import handle_extract_text, handle_log, handle_script


def step_kind(step_type: object) -> StepKind:
    try:
        return StepKind(step_type)
    except ValueError:
        raise UnsupportedStepType(str(step_type)) from None


async def dispatch_step(call: StepCall) -> StepResult:
    """Run the handler for ``call.step``'s kind."""
    kind = step_kind(call.step.type)
    match kind:
        case StepKind.NAVIGATE:
            return await handle_navigate(call)
        case StepKind.CLICK:
            return await handle_click(call)
        case StepKind.FILL:
            return await handle_fill(call)
        case StepKind.PRESS:
            return await handle_press(call)
        case StepKind.SCROLL:
            return await handle_scroll(call)
        case StepKind.WAIT:
            return await handle_wait(call)
        case StepKind.WAIT_ELEMENT:
            return await handle_wait_element(call)
        case StepKind.SCRIPT:
            return await handle_script(call)
        case StepKind.EXTRACT_TEXT:
            return await handle_extract_text(call)
        case StepKind.LOG:
            return await handle_log(call)
        case StepKind.IF:
            return await handle_if(call)
        case StepKind.LOOP:
            return await handle_loop(call)
    raise UnsupportedStepType(kind.value)


__all__ = [
    "LoopState",
    "RunFrame",
    "StepCall",
    "StepResult",
    "dispatch_step",
    "step_kind",
]
