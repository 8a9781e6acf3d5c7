"""Admission control and background execution of runs."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Dict, Mapping, Optional, Protocol, Set

from .automation import get_driver
from .config import CrawlflowConfig, load_config
from .contracts import RunRecord, RunStatus
from .engine import RunOutcome, WorkflowRunner
from .errors import (
    InvalidWorkflow,
    RunAlreadyActive,
    RunIdRequired,
    RunnerBusy,
    WorkflowRequired,
)
from .persistence import RunRepository, get_repository
from .sinks import BaseEventSink, get_event_sink
from .validation import ValidationResult, WorkflowValidator

logger = logging.getLogger(__name__)


class Validator(Protocol):
    async def validate(self, workflow: Any) -> ValidationResult: ...


class Runner(Protocol):
    async def run(self) -> RunOutcome: ...


RunnerFactory = Callable[[str, Mapping[str, Any]], Runner]


def default_runner_factory(
    config: CrawlflowConfig,
    sink: BaseEventSink,
    repository: Optional[RunRepository] = None,
) -> RunnerFactory:
    """Runners with a fresh driver per run and a shared sink."""

    def factory(run_id: str, workflow: Mapping[str, Any]) -> WorkflowRunner:
        return WorkflowRunner(
            workflow,
            run_id=run_id,
            sink=sink,
            driver=get_driver(config=config),
            repository=repository,
            config=config.runner,
        )

    return factory


class RunManager:
    """Bounded-concurrency gate in front of the workflow runner.

    ``enqueue`` either admits a run and returns immediately, or rejects it.
    There is no waiting queue: once ``max_concurrency`` runs are active every
    further request is rejected with ``RunnerBusy``.
    """

    def __init__(
        self,
        max_concurrency: int = 1,
        validator: Optional[Validator] = None,
        runner_factory: Optional[RunnerFactory] = None,
        repository: Optional[RunRepository] = None,
        sink: Optional[BaseEventSink] = None,
    ) -> None:
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        self.max_concurrency = max_concurrency
        self.validator = validator or WorkflowValidator()
        self.repository = repository
        self.sink = sink
        if runner_factory is None:
            config = load_config()
            self.sink = sink or get_event_sink(config=config)
            runner_factory = default_runner_factory(config, self.sink, repository)
        self._runner_factory = runner_factory
        self._active_runs = 0
        self._records: Dict[str, RunRecord] = {}
        self._tasks: Dict[str, asyncio.Task] = {}
        self._background: Set[asyncio.Task] = set()

    @classmethod
    def from_config(
        cls,
        config: Optional[CrawlflowConfig] = None,
        sink: Optional[BaseEventSink] = None,
        repository: Optional[RunRepository] = None,
    ) -> "RunManager":
        """Build a manager whose runs use the configured driver and sink."""
        config = config or load_config()
        sink = sink or get_event_sink(config=config)
        repository = repository or get_repository(config=config)
        return cls(
            max_concurrency=config.runner.max_concurrency,
            runner_factory=default_runner_factory(config, sink, repository),
            repository=repository,
            sink=sink,
        )

    @property
    def active_runs(self) -> int:
        return self._active_runs

    def get_metrics(self) -> Dict[str, int]:
        return {"activeRuns": self._active_runs, "maxConcurrency": self.max_concurrency}

    def get_record(self, run_id: str) -> Optional[RunRecord]:
        return self._records.get(run_id)

    async def enqueue(self, run_id: str, workflow: Optional[Mapping[str, Any]]) -> RunRecord:
        """Admit ``workflow`` as run ``run_id`` and start it in the background.

        Raises:
            WorkflowRequired, InvalidWorkflow, RunIdRequired: malformed request.
            RunAlreadyActive: a run with the same id is still in flight.
            RunnerBusy: ``max_concurrency`` runs are already active.
        """
        if not workflow or not isinstance(workflow, Mapping):
            raise WorkflowRequired()

        result = await self.validator.validate(workflow)
        if not result.valid:
            raise InvalidWorkflow(result.errors)

        if not run_id:
            raise RunIdRequired()

        # no awaits between the capacity check and the increment
        if run_id in self._tasks:
            raise RunAlreadyActive(run_id)
        if self._active_runs >= self.max_concurrency:
            raise RunnerBusy(self._active_runs, self.max_concurrency)

        self._active_runs += 1
        record = RunRecord(run_id=run_id)
        self._records[run_id] = record
        try:
            runner = self._runner_factory(run_id, workflow)
            task = asyncio.create_task(
                self._execute(record, runner, workflow), name=f"crawlflow-run-{run_id}"
            )
        except Exception:
            self._release(record)
            raise
        self._tasks[run_id] = task
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        task.add_done_callback(lambda t: self._settle(record, t))
        logger.info(f"Admitted run {run_id} ({self._active_runs}/{self.max_concurrency} active)")
        return record

    async def _execute(
        self, record: RunRecord, runner: Runner, workflow: Mapping[str, Any]
    ) -> None:
        try:
            await self._record_history(record.run_id, workflow)
            record.advance(RunStatus.RUNNING)
            outcome = await runner.run()
            record.advance(outcome.status, outcome.error)
            if not outcome.ok:
                logger.error(f"Workflow execution failed for run {record.run_id}: {outcome.error}")
        except asyncio.CancelledError:
            record.advance(RunStatus.FAILED, "run cancelled")
            raise
        except Exception as e:
            record.advance(RunStatus.FAILED, str(e))
            logger.exception(f"Workflow execution failed for run {record.run_id}")
        finally:
            self._release(record)

    async def _record_history(self, run_id: str, workflow: Mapping[str, Any]) -> None:
        if self.repository is None:
            return
        try:
            await self.repository.create_run(run_id, dict(workflow))
        except Exception as e:
            # best-effort
            logger.warning(f"Failed to record run {run_id}: {e}")

    def _settle(self, record: RunRecord, task: asyncio.Task) -> None:
        # a task cancelled before it first ran never enters _execute
        if task.cancelled():
            record.advance(RunStatus.FAILED, "run cancelled")
        self._release(record)

    def _release(self, record: RunRecord) -> None:
        if not record.active_slot:
            return
        record.active_slot = False
        self._active_runs -= 1
        self._tasks.pop(record.run_id, None)
        self._records.pop(record.run_id, None)

    def cancel(self, run_id: str) -> bool:
        """Cancel an in-flight run. Returns ``False`` when it is not active."""
        task = self._tasks.get(run_id)
        if task is None or task.done():
            return False
        logger.info(f"Cancelling run {run_id}")
        return task.cancel()

    async def wait_idle(self) -> None:
        """Wait until every admitted run has settled."""
        while self._background:
            await asyncio.wait(list(self._background))

    async def shutdown(self) -> None:
        """Cancel in-flight runs, then close the event sink."""
        for task in list(self._background):
            task.cancel()
        await self.wait_idle()
        if self.sink is not None:
            await self.sink.disconnect()
