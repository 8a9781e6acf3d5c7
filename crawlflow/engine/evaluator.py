"""Condition evaluation and success polling."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Callable, Mapping, Optional

from ..automation import BaseDriver
from ..constants import DEFAULT_POLL_INTERVAL_SEC, DEFAULT_SUCCESS_TIMEOUT_SEC
from ..context import ExecutionContext
from ..contracts import Condition, SuccessSpec
from ..errors import ConditionError, SuccessTimeout
from ..utils.templating import normalize_timeout, render_template

logger = logging.getLogger(__name__)


def script_body(expression: str) -> str:
    """Wrap a JS expression so the driver evaluates it as a function body."""
    return f"return ({expression});"


class SuccessEvaluator:
    """Checks conditions against the page and the run's variables.

    ``evaluate`` is a single instant check (used by ``if`` and ``loop``);
    ``wait_for`` polls the same predicate until it holds or the timeout
    elapses.
    """

    def __init__(
        self,
        driver: BaseDriver,
        context: ExecutionContext,
        poll_interval: float = DEFAULT_POLL_INTERVAL_SEC,
        default_timeout: float = DEFAULT_SUCCESS_TIMEOUT_SEC,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.driver = driver
        self.context = context
        self.poll_interval = poll_interval
        self.default_timeout = default_timeout
        self._clock = clock

    async def evaluate(self, condition: Optional[Condition], elapsed: float = 0.0) -> bool:
        """Return whether ``condition`` holds right now.

        ``elapsed`` is the time already spent polling, which is what
        ``delay`` conditions compare against.
        """
        if condition is None:
            return True
        variables = self.context.get_variables_snapshot()
        try:
            return await self._check(condition, variables, elapsed)
        except ConditionError:
            raise
        except Exception as e:
            raise ConditionError(f"condition check failed: {e}") from e

    async def _check(
        self, condition: Condition, variables: Mapping[str, Any], elapsed: float
    ) -> bool:
        if condition.delay is not None and elapsed < condition.delay:
            return False

        if condition.url_includes is not None or condition.url_equals is not None:
            url = await self.driver.current_url()
            if condition.url_includes is not None:
                if render_template(condition.url_includes, variables) not in url:
                    return False
            if condition.url_equals is not None:
                if render_template(condition.url_equals, variables) != url:
                    return False

        if condition.text_includes is not None:
            text = await self.driver.page_text()
            if render_template(condition.text_includes, variables) not in (text or ""):
                return False

        if condition.exists is not None and not await self.driver.exists(condition.exists):
            return False

        if condition.visible is not None and not await self.driver.is_visible(condition.visible):
            return False

        if condition.variable is not None:
            if condition.variable not in variables:
                return False
            if condition.checks_equality and variables[condition.variable] != condition.equals:
                return False

        if condition.script is not None:
            result = await self.driver.evaluate(script_body(condition.script), variables)
            if not result:
                return False

        if condition.all_ is not None:
            for nested in condition.all_:
                if not await self._check(nested, variables, elapsed):
                    return False

        if condition.any_ is not None:
            for nested in condition.any_:
                if await self._check(nested, variables, elapsed):
                    break
            else:
                return False

        if condition.not_ is not None and await self._check(condition.not_, variables, elapsed):
            return False

        return True

    async def wait_for(self, success: Optional[SuccessSpec], step_id: Optional[str] = None) -> None:
        """Poll ``success.condition`` until it holds.

        Raises:
            SuccessTimeout: if the condition is still false once the timeout
                has elapsed.
        """
        if success is None or success.condition is None:
            await asyncio.sleep(0)
            return

        timeout = normalize_timeout(success.timeout, self.default_timeout)
        started = self._clock()
        last_error: Optional[Exception] = None
        while True:
            elapsed = self._clock() - started
            # at least one poll interval so the final check can still run
            budget = max(timeout - elapsed, self.poll_interval)
            try:
                if await asyncio.wait_for(self.evaluate(success.condition, elapsed), budget):
                    return
                last_error = None
            except asyncio.TimeoutError:
                logger.debug(f"Condition check for step {step_id} did not finish within {budget:g}s")
                last_error = None
            except ConditionError as e:
                # the page may be mid-navigation, keep polling
                logger.debug(f"Condition check for step {step_id} failed: {e}")
                last_error = e
            if elapsed >= timeout:
                break
            remaining = timeout - (self._clock() - started)
            await asyncio.sleep(min(self.poll_interval, max(remaining, 0)))

        error = SuccessTimeout(timeout, step_id)
        if last_error is not None:
            raise error from last_error
        raise error
