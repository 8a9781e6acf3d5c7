"""Run event dispatcher ordering and sampling."""

import asyncio

import pytest

from crawlflow.automation import InMemoryDriver
from crawlflow.contracts import RunStatus
from crawlflow.engine import RunEventDispatcher
from crawlflow.sinks import InMemoryEventSink


@pytest.mark.asyncio
async def test_events_carry_expected_fields():
    sink = InMemoryEventSink()
    events = RunEventDispatcher("r", sink)

    await events.run_status(RunStatus.RUNNING)
    await events.step_start(0, {"type": "log", "stepId": "a"})
    await events.step_end(0, ok=True, meta={"type": "log", "stepId": "a"}, outputs={"message": "hi"})
    await events.done(True)

    posted = sink.events("r")
    assert posted[0]["status"] == "running"
    assert posted[1]["index"] == 0 and posted[1]["meta"]["stepId"] == "a"
    assert posted[2]["ok"] is True
    assert posted[2]["data"] == {"outputs": {"message": "hi"}}
    assert all(isinstance(e["ts"], int) for e in posted)
    assert "error" not in posted[3]


@pytest.mark.asyncio
async def test_step_end_requires_matching_start():
    events = RunEventDispatcher("r", InMemoryEventSink())
    with pytest.raises(RuntimeError):
        await events.step_end(3, ok=True, meta={})


@pytest.mark.asyncio
async def test_nothing_is_posted_after_done():
    sink = InMemoryEventSink()
    events = RunEventDispatcher("r", sink)
    await events.done(False, error="boom")
    await events.run_status(RunStatus.FAILED)
    assert sink.types("r") == ["done"]
    assert events.finished


@pytest.mark.asyncio
async def test_sampler_survives_capture_errors_and_stops():
    sink = InMemoryEventSink()
    driver = InMemoryDriver(fail_samples=True)
    events = RunEventDispatcher("r", sink, sample_interval=0.01)
    events.attach_driver(driver)
    events.start_sampling()
    await asyncio.sleep(0.05)
    driver.fail_samples = False
    await asyncio.sleep(0.05)
    await events.stop_sampling()

    count = sink.types("r").count("sample")
    assert count >= 1
    await asyncio.sleep(0.03)
    assert sink.types("r").count("sample") == count
    assert sink.events("r")[0]["data"]["kind"] == "snapshot"


@pytest.mark.asyncio
async def test_sampler_survives_malformed_samples():
    class OddDriver(InMemoryDriver):
        malformed = True

        async def capture_sample(self):
            if self.malformed:
                return "not a mapping"
            return await super().capture_sample()

    sink = InMemoryEventSink()
    driver = OddDriver()
    events = RunEventDispatcher("r", sink, sample_interval=0.01)
    events.attach_driver(driver)
    events.start_sampling()
    await asyncio.sleep(0.05)
    assert sink.types("r") == []
    driver.malformed = False
    await asyncio.sleep(0.05)
    await events.stop_sampling()

    assert "sample" in sink.types("r")
