"""Handlers that drive the page through the automation driver."""

from __future__ import annotations

import asyncio

from ..errors import StepConfigError
from ..utils.templating import render_template
from .base import StepCall, StepResult
from .configs import (
    ClickConfig,
    FillConfig,
    NavigateConfig,
    PressConfig,
    ScrollConfig,
    WaitConfig,
    WaitElementConfig,
)

_MISSING = object()


async def handle_navigate(call: StepCall) -> StepResult:
    config = call.parse_config(NavigateConfig)
    url = render_template(config.url, call.variables())
    await call.driver.navigate(url, config.wait_until)
    return StepResult.not_handled()


async def handle_click(call: StepCall) -> StepResult:
    config = call.parse_config(ClickConfig)
    await call.driver.click(
        config.xpath,
        button=config.button,
        click_count=config.click_count,
        delay=config.delay,
        timeout=config.timeout,
    )
    return StepResult.not_handled()


def _fill_value(call: StepCall, config: FillConfig):
    if "value" in config.model_fields_set:
        return config.value
    bound = call.step.input_values.get("value", _MISSING)
    if isinstance(bound, list):
        return bound[0] if bound else _MISSING
    return bound


async def handle_fill(call: StepCall) -> StepResult:
    config = call.parse_config(FillConfig)
    value = _fill_value(call, config)
    if value is _MISSING:
        raise StepConfigError(f'fill step "{call.step.id}" requires a value')
    text = "" if value is None else str(render_template(value, call.variables()))
    await call.driver.fill(config.xpath, text, clear=config.clear, timeout=config.timeout)
    return StepResult.not_handled()


async def handle_press(call: StepCall) -> StepResult:
    config = call.parse_config(PressConfig)
    key = render_template(config.key, call.variables())
    await call.driver.press(key, xpath=config.xpath, timeout=config.timeout)
    return StepResult.not_handled()


async def handle_scroll(call: StepCall) -> StepResult:
    config = call.parse_config(ScrollConfig)
    await call.driver.scroll(config.x, config.y, xpath=config.xpath)
    return StepResult.not_handled()


async def handle_wait(call: StepCall) -> StepResult:
    config = call.parse_config(WaitConfig)
    await asyncio.sleep(config.timeout)
    return StepResult.not_handled()


async def handle_wait_element(call: StepCall) -> StepResult:
    config = call.parse_config(WaitElementConfig)
    await call.driver.wait_for_element(config.xpath, state=config.type, timeout=config.timeout)
    return StepResult.not_handled()
