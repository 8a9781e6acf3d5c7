"""Workflow interpreter: walks the step graph for one run."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Mapping, Optional

from ..automation import BaseDriver
from ..config import RunnerConfig
from ..context import ExecutionContext
from ..contracts import RunStatus, Step, Workflow
from ..errors import InvalidStep, StepError, UnknownNextStepId, UnknownStepId
from ..persistence import RunRepository
from ..sinks import BaseEventSink
from ..steps import RunFrame, StepCall, StepResult, dispatch_step
from .dispatcher import RunEventDispatcher
from .evaluator import SuccessEvaluator
from .index import IndexEntry, StepIndex, build_step_index
from .outcome import RunOutcome, StepOutcome, error_message

logger = logging.getLogger(__name__)

CANCELLED_MESSAGE = "run cancelled"


class WorkflowRunner:
    """Executes a single run of a workflow.

    The runner moves from ``queued`` to ``running`` to a terminal status and
    cannot be reused. Steps execute strictly one after another. Whatever
    happens, the sampler is stopped, ``runStatus`` and ``done`` are emitted
    and the driver is released before ``run`` returns.
    """

    def __init__(
        self,
        workflow: Workflow | Mapping[str, Any],
        run_id: str,
        sink: BaseEventSink,
        driver: BaseDriver,
        repository: Optional[RunRepository] = None,
        config: Optional[RunnerConfig] = None,
        variables: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self.workflow = (
            workflow if isinstance(workflow, Workflow) else Workflow.model_validate(workflow)
        )
        self.run_id = run_id
        self.sink = sink
        self.driver = driver
        self.repository = repository
        self.config = config or RunnerConfig()
        self.context = ExecutionContext(variables)
        self.status = RunStatus.QUEUED
        self.events = RunEventDispatcher(
            run_id,
            sink,
            repository=repository,
            sample_interval=self.config.sample_interval,
        )

    async def run(self) -> RunOutcome:
        if self.status is not RunStatus.QUEUED:
            raise RuntimeError(f"run {self.run_id} has already been started")
        self.status = RunStatus.RUNNING
        logger.info(f"Run {self.run_id} started ({len(self.workflow.steps)} steps)")

        outcome = RunOutcome.failed("run did not complete")
        try:
            await self.events.run_status(RunStatus.RUNNING)
            await self.driver.init()
            self.events.attach_driver(self.driver)
            if self.config.sampling:
                self.events.start_sampling()
            frame = RunFrame(
                run_id=self.run_id,
                workflow=self.workflow,
                context=self.context,
                driver=self.driver,
                evaluator=SuccessEvaluator(
                    self.driver,
                    self.context,
                    poll_interval=self.config.poll_interval,
                    default_timeout=self.config.default_success_timeout,
                ),
            )
            outcome = await self._execute(frame)
        except asyncio.CancelledError:
            outcome = RunOutcome.failed(CANCELLED_MESSAGE)
            raise
        except Exception as e:
            logger.exception(f"Run {self.run_id} aborted by an unexpected error")
            outcome = RunOutcome.failed(e)
        finally:
            await self.events.stop_sampling()
            self.status = outcome.status
            await self.events.run_status(outcome.status, error=outcome.error)
            await self.events.done(outcome.ok, error=outcome.error)
            await self._release_driver()
            logger.info(
                f"Run {self.run_id} {outcome.status.value}"
                + (f": {outcome.error}" if outcome.error else "")
            )
        return outcome

    async def _release_driver(self) -> None:
        try:
            await self.driver.cleanup()
        except Exception as e:
            logger.warning(f"Failed to release automation session for run {self.run_id}: {e}")

    async def _execute(self, frame: RunFrame) -> RunOutcome:
        index = build_step_index(self.workflow)
        if index is None:
            return await self._execute_sequential(frame)
        return await self._execute_graph(frame, index)

    async def _execute_sequential(self, frame: RunFrame) -> RunOutcome:
        for step in self.workflow.steps:
            outcome = await self._execute_step(frame, step)
            if not outcome.ok:
                return RunOutcome.failed(outcome.error)
        return RunOutcome.succeeded()

    async def _execute_graph(self, frame: RunFrame, index: StepIndex) -> RunOutcome:
        current_id: Optional[str] = index.start_id
        while current_id:
            entry = index.get(current_id)
            if entry is None:
                return RunOutcome.failed(UnknownStepId(current_id))
            outcome = await self._execute_step(frame, entry.step)
            if not outcome.ok:
                return RunOutcome.failed(outcome.error)
            next_id = self._resolve_next(index, entry, outcome.result)
            if not next_id:
                break
            if next_id not in index:
                return RunOutcome.failed(UnknownNextStepId(next_id))
            current_id = next_id
        return RunOutcome.succeeded()

    @staticmethod
    def _resolve_next(index: StepIndex, entry: IndexEntry, result: StepResult) -> Optional[str]:
        """Handler directive first, then ``step.next``, then array order."""
        if result.redirect:
            if result.next_step_id is None:
                return None
            if result.next_step_id != "":
                return result.next_step_id
        declared = entry.step.next.strip() if isinstance(entry.step.next, str) else ""
        if declared:
            return declared
        return index.successor(entry.position)

    async def _execute_step(self, frame: RunFrame, step: Step) -> StepOutcome:
        if not isinstance(step.type, str) or not step.type:
            return StepOutcome.failed(InvalidStep(f"invalid step: {step.model_dump_json(by_alias=True)}"))

        ordinal = frame.context.next_step_index()
        meta: Dict[str, Any] = step.meta()
        await self.events.step_start(ordinal, meta)
        try:
            result = await dispatch_step(StepCall(frame=frame, step=step, meta=meta, index=ordinal))
            if not result.handled:
                await frame.evaluator.wait_for(step.success, step_id=step.id)
        except asyncio.CancelledError:
            await self.events.step_end(ordinal, ok=False, meta=meta, error=CANCELLED_MESSAGE)
            raise
        except StepError as e:
            failure = e
        except Exception as e:
            logger.debug(f"Step {step.id or ordinal} of run {self.run_id} raised", exc_info=True)
            failure = e
        else:
            await self.events.step_end(
                ordinal, ok=True, meta=meta, outputs=dict(result.outputs) or None
            )
            return StepOutcome.succeeded(result)

        message = error_message(failure)
        logger.warning(f"Step {step.id or ordinal} of run {self.run_id} failed: {message}")
        await self.events.step_end(ordinal, ok=False, meta=meta, error=message)
        return StepOutcome.failed(message)
