"""Condition language and success polling."""

import asyncio
import time

import pytest

from crawlflow.automation import FakeElement, InMemoryDriver
from crawlflow.context import ExecutionContext
from crawlflow.contracts import Condition, SuccessSpec
from crawlflow.engine import SuccessEvaluator
from crawlflow.engine.evaluator import script_body
from crawlflow.errors import ConditionError, SuccessTimeout


def _evaluator(driver=None, variables=None, **kwargs):
    driver = driver or InMemoryDriver(
        url="https://shop.test/cart",
        elements={
            "//h1": FakeElement(text="Your cart"),
            "//div[@id='modal']": FakeElement(text="hidden promo", visible=False),
        },
    )
    kwargs.setdefault("poll_interval", 0.01)
    return SuccessEvaluator(driver, ExecutionContext(variables), **kwargs)


def _cond(**data):
    return Condition.model_validate(data)


@pytest.mark.asyncio
async def test_url_and_text_checks():
    ev = _evaluator()
    assert await ev.evaluate(_cond(urlIncludes="/cart"))
    assert not await ev.evaluate(_cond(urlIncludes="/checkout"))
    assert await ev.evaluate(_cond(urlEquals="https://shop.test/cart"))
    assert await ev.evaluate(_cond(textIncludes="Your cart"))
    assert not await ev.evaluate(_cond(textIncludes="hidden promo"))


@pytest.mark.asyncio
async def test_element_checks():
    ev = _evaluator()
    assert await ev.evaluate(_cond(exists="//div[@id='modal']"))
    assert not await ev.evaluate(_cond(visible="//div[@id='modal']"))
    assert await ev.evaluate(_cond(visible="//h1"))
    assert not await ev.evaluate(_cond(exists="//footer"))


@pytest.mark.asyncio
async def test_variable_checks_and_templates():
    ev = _evaluator(variables={"section": "cart", "count": 0})
    assert await ev.evaluate(_cond(urlIncludes="/{{section}}"))
    assert await ev.evaluate(_cond(variable="count"))
    assert await ev.evaluate(_cond(variable="count", equals=0))
    assert not await ev.evaluate(_cond(variable="count", equals=1))
    assert not await ev.evaluate(_cond(variable="missing"))


@pytest.mark.asyncio
async def test_explicit_null_equality_is_checked():
    ev = _evaluator(variables={"token": "abc"})
    assert not await ev.evaluate(_cond(variable="token", equals=None))
    assert await ev.evaluate(_cond(variable="token"))


@pytest.mark.asyncio
async def test_combinators():
    ev = _evaluator()
    assert await ev.evaluate(_cond(all=[{"exists": "//h1"}, {"urlIncludes": "cart"}]))
    assert not await ev.evaluate(_cond(all=[{"exists": "//h1"}, {"urlIncludes": "nope"}]))
    assert await ev.evaluate(_cond(any=[{"exists": "//nope"}, {"urlIncludes": "cart"}]))
    assert not await ev.evaluate(_cond(any=[{"exists": "//nope"}]))
    assert await ev.evaluate(_cond(**{"not": {"exists": "//nope"}}))


@pytest.mark.asyncio
async def test_empty_condition_holds():
    assert await _evaluator().evaluate(Condition())
    assert await _evaluator().evaluate(None)


@pytest.mark.asyncio
async def test_script_condition_receives_variables():
    driver = InMemoryDriver(scripts={script_body("variables.total > 10"): lambda b: b["total"] > 10})
    ev = _evaluator(driver=driver, variables={"total": 12})
    assert await ev.evaluate(_cond(script="variables.total > 10"))
    assert driver.actions[-1][1]["variables"] == {"total": 12}


@pytest.mark.asyncio
async def test_driver_errors_become_condition_errors():
    def explode(_):
        raise RuntimeError("page crashed")

    driver = InMemoryDriver(scripts={script_body("boom"): explode})
    with pytest.raises(ConditionError):
        await _evaluator(driver=driver).evaluate(_cond(script="boom"))


def test_unknown_condition_keys_are_rejected():
    with pytest.raises(ValueError):
        Condition.model_validate({"urlContains": "x"})


@pytest.mark.asyncio
async def test_delay_condition_is_false_until_elapsed():
    ev = _evaluator()
    assert not await ev.evaluate(_cond(delay=1), elapsed=0.5)
    assert await ev.evaluate(_cond(delay=1), elapsed=1.0)


@pytest.mark.asyncio
async def test_wait_for_returns_once_condition_holds():
    ev = _evaluator()
    await ev.wait_for(SuccessSpec(timeout=1, condition=_cond(delay=0.05)))


@pytest.mark.asyncio
async def test_wait_for_without_condition_returns_immediately():
    await _evaluator().wait_for(None)
    await _evaluator().wait_for(SuccessSpec(timeout=1))


@pytest.mark.asyncio
async def test_wait_for_times_out():
    ev = _evaluator()
    with pytest.raises(SuccessTimeout) as excinfo:
        await ev.wait_for(SuccessSpec(timeout=0.1, condition=_cond(exists="//never")), step_id="s1")
    assert "0.1s" in str(excinfo.value)
    assert "s1" in str(excinfo.value)


@pytest.mark.asyncio
async def test_wait_for_uses_default_timeout_for_invalid_values():
    ev = _evaluator(default_timeout=0.05)
    with pytest.raises(SuccessTimeout) as excinfo:
        await ev.wait_for(SuccessSpec(timeout=-3, condition=_cond(exists="//never")))
    assert excinfo.value.timeout == 0.05


@pytest.mark.asyncio
async def test_wait_for_bounds_hung_driver_calls():
    class HangingDriver(InMemoryDriver):
        async def current_url(self):
            await asyncio.sleep(3600)
            return self.url

    ev = _evaluator(driver=HangingDriver())
    started = time.monotonic()
    with pytest.raises(SuccessTimeout):
        await ev.wait_for(SuccessSpec(timeout=0.2, condition=_cond(urlIncludes="x")))
    assert time.monotonic() - started < 1.0
