"""Run admission and background execution."""

import asyncio

import pytest

from crawlflow import RunManager
from crawlflow.automation import InMemoryDriver
from crawlflow.config import RunnerConfig
from crawlflow.contracts import RunStatus
from crawlflow.engine import RunOutcome, WorkflowRunner
from crawlflow.errors import (
    InvalidWorkflow,
    RunAlreadyActive,
    RunIdRequired,
    RunnerBusy,
    WorkflowRequired,
)
from crawlflow.persistence import InMemoryRunRepository
from crawlflow.sinks import InMemoryEventSink

WORKFLOW = {"steps": [{"id": "a", "type": "log", "config": {"message": "hi"}}]}


class GatedRunner:
    """Runner that blocks until released."""

    def __init__(self, gate, outcome=None):
        self.gate = gate
        self.outcome = outcome or RunOutcome.succeeded()
        self.started = asyncio.Event()

    async def run(self):
        self.started.set()
        await self.gate.wait()
        return self.outcome


def _gated_manager(max_concurrency=1, outcome=None, **kwargs):
    gate = asyncio.Event()
    runners = {}

    def factory(run_id, workflow):
        runners[run_id] = GatedRunner(gate, outcome)
        return runners[run_id]

    manager = RunManager(max_concurrency=max_concurrency, runner_factory=factory, **kwargs)
    return manager, gate, runners


@pytest.mark.asyncio
async def test_admission_errors_in_order():
    manager, _, _ = _gated_manager()

    with pytest.raises(WorkflowRequired):
        await manager.enqueue("r", None)
    with pytest.raises(InvalidWorkflow) as excinfo:
        await manager.enqueue("r", {"steps": []})
    assert excinfo.value.to_dict()["error"] == "invalid_workflow"
    with pytest.raises(RunIdRequired):
        await manager.enqueue("", WORKFLOW)
    assert manager.active_runs == 0


@pytest.mark.asyncio
async def test_busy_runner_rejects_and_recovers():
    manager, gate, runners = _gated_manager()

    record = await manager.enqueue("r1", WORKFLOW)
    assert record.run_id == "r1"
    assert manager.get_metrics() == {"activeRuns": 1, "maxConcurrency": 1}

    with pytest.raises(RunnerBusy) as excinfo:
        await manager.enqueue("r2", WORKFLOW)
    assert excinfo.value.status_code == 429
    assert excinfo.value.to_dict() == {"error": "runner busy", "busy": True, "active": 1, "max": 1}

    gate.set()
    await manager.wait_idle()
    assert manager.active_runs == 0
    assert record.status is RunStatus.SUCCEEDED

    await manager.enqueue("r2", WORKFLOW)
    await manager.wait_idle()
    assert set(runners) == {"r1", "r2"}


@pytest.mark.asyncio
async def test_duplicate_active_run_id_is_rejected():
    manager, gate, _ = _gated_manager(max_concurrency=2)
    await manager.enqueue("same", WORKFLOW)
    with pytest.raises(RunAlreadyActive) as excinfo:
        await manager.enqueue("same", WORKFLOW)
    assert excinfo.value.status_code == 409
    assert manager.active_runs == 1
    gate.set()
    await manager.wait_idle()


@pytest.mark.asyncio
async def test_concurrent_enqueues_never_exceed_capacity():
    manager, gate, _ = _gated_manager(max_concurrency=2)

    results = await asyncio.gather(
        *(manager.enqueue(f"r{i}", WORKFLOW) for i in range(5)), return_exceptions=True
    )

    admitted = [r for r in results if not isinstance(r, Exception)]
    rejected = [r for r in results if isinstance(r, RunnerBusy)]
    assert len(admitted) == 2
    assert len(rejected) == 3
    gate.set()
    await manager.wait_idle()
    assert manager.active_runs == 0


@pytest.mark.asyncio
async def test_failed_outcome_releases_slot():
    manager, gate, _ = _gated_manager(outcome=RunOutcome.failed("step exploded"))
    record = await manager.enqueue("r", WORKFLOW)
    gate.set()
    await manager.wait_idle()
    assert record.status is RunStatus.FAILED
    assert record.error == "step exploded"
    assert manager.active_runs == 0


@pytest.mark.asyncio
async def test_runner_exception_releases_slot():
    class Exploding:
        async def run(self):
            raise RuntimeError("unexpected")

    manager = RunManager(runner_factory=lambda run_id, workflow: Exploding())
    record = await manager.enqueue("r", WORKFLOW)
    await manager.wait_idle()
    assert record.status is RunStatus.FAILED
    assert manager.active_runs == 0


@pytest.mark.asyncio
async def test_cancel_active_run():
    manager, _, runners = _gated_manager()
    record = await manager.enqueue("r", WORKFLOW)
    await runners["r"].started.wait()

    assert manager.cancel("r")
    await manager.wait_idle()

    assert record.status is RunStatus.FAILED
    assert record.error == "run cancelled"
    assert manager.active_runs == 0
    assert not manager.cancel("r")


@pytest.mark.asyncio
async def test_cancel_before_start_releases_slot():
    manager, _, _ = _gated_manager()
    record = await manager.enqueue("r", WORKFLOW)
    manager.cancel("r")
    await manager.wait_idle()
    assert record.status is RunStatus.FAILED
    assert manager.active_runs == 0


@pytest.mark.asyncio
async def test_shutdown_cancels_everything():
    manager, _, _ = _gated_manager(max_concurrency=3)
    for i in range(3):
        await manager.enqueue(f"r{i}", WORKFLOW)
    await manager.shutdown()
    assert manager.active_runs == 0


@pytest.mark.asyncio
async def test_real_runner_records_history():
    sink = InMemoryEventSink()
    repo = InMemoryRunRepository()

    def factory(run_id, workflow):
        return WorkflowRunner(
            workflow,
            run_id=run_id,
            sink=sink,
            driver=InMemoryDriver(),
            repository=repo,
            config=RunnerConfig(sampling=False),
        )

    manager = RunManager(runner_factory=factory, repository=repo)
    await manager.enqueue("real", WORKFLOW)
    await manager.wait_idle()

    run = await repo.get_run("real")
    assert run.status == "succeeded"
    assert sink.types("real")[-1] == "done"


def test_max_concurrency_must_be_positive():
    with pytest.raises(ValueError):
        RunManager(max_concurrency=0, runner_factory=lambda run_id, workflow: None)


@pytest.mark.asyncio
async def test_history_failure_still_reports_through_events():
    class BrokenRepo(InMemoryRunRepository):
        async def create_run(self, run_id, workflow=None):
            raise RuntimeError("db down")

    sink = InMemoryEventSink()
    repo = BrokenRepo()

    def factory(run_id, workflow):
        return WorkflowRunner(
            workflow,
            run_id=run_id,
            sink=sink,
            driver=InMemoryDriver(),
            repository=repo,
            config=RunnerConfig(sampling=False),
        )

    manager = RunManager(runner_factory=factory, repository=repo)
    record = await manager.enqueue("r1", WORKFLOW)
    await manager.wait_idle()

    assert sink.types("r1")[-2:] == ["runStatus", "done"]
    assert sink.events("r1")[-1]["ok"] is True
    assert record.status is RunStatus.SUCCEEDED
    assert manager.active_runs == 0


@pytest.mark.asyncio
async def test_shutdown_disconnects_sink():
    class ClosingSink(InMemoryEventSink):
        disconnected = False

        async def disconnect(self):
            self.disconnected = True

    sink = ClosingSink()
    manager, _, _ = _gated_manager(sink=sink)
    await manager.enqueue("r", WORKFLOW)

    await manager.shutdown()

    assert sink.disconnected
    assert manager.active_runs == 0
