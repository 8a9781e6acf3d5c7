"""Handlers that read from the page or the run's variables."""

from __future__ import annotations

import logging

from ..utils.templating import render_template
from .base import StepCall, StepResult
from .configs import ExtractTextConfig, LogConfig, ScriptConfig

logger = logging.getLogger(__name__)

DEFAULT_SCRIPT_VARIABLE = "result"


async def handle_script(call: StepCall) -> StepResult:
    config = call.parse_config(ScriptConfig)
    bindings = dict(call.variables())
    bindings.update(call.step.input_values)
    result = await call.driver.evaluate(config.code, bindings)
    call.context.set_var(config.as_ or call.step.as_ or DEFAULT_SCRIPT_VARIABLE, result)
    return StepResult.not_handled(result=result)


async def handle_extract_text(call: StepCall) -> StepResult:
    config = call.parse_config(ExtractTextConfig)
    text = await call.driver.text_content(config.xpath)
    call.context.set_var(config.as_, text)
    return StepResult.not_handled(text=text)


async def handle_log(call: StepCall) -> StepResult:
    config = call.parse_config(LogConfig)
    template = config.message
    if template is None:
        template = call.step.input_values.get("value", "")
    message = render_template(template, call.variables())
    logger.log(logging.getLevelName(config.level.upper()), f"[{call.run_id}] {message}")
    return StepResult.not_handled(message=message)
