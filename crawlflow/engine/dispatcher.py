"""Ordered event emission for a single run."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Optional, Set

from ..automation import BaseDriver
from ..constants import DEFAULT_SAMPLE_INTERVAL_SEC
from ..contracts import EventType, RunEvent, RunStatus
from ..persistence import RunRepository
from ..sinks import BaseEventSink

logger = logging.getLogger(__name__)


class RunEventDispatcher:
    """Posts one run's events to the sink in emission order.

    Posts are serialised through a lock so the periodic sampler cannot
    interleave with step events. Sink failures are logged and never reach the
    run. After ``done`` nothing else is posted.
    """

    def __init__(
        self,
        run_id: str,
        sink: BaseEventSink,
        repository: Optional[RunRepository] = None,
        sample_interval: float = DEFAULT_SAMPLE_INTERVAL_SEC,
    ) -> None:
        self.run_id = run_id
        self.sink = sink
        self.repository = repository
        self.sample_interval = sample_interval
        self._lock = asyncio.Lock()
        self._driver: Optional[BaseDriver] = None
        self._sampler: Optional[asyncio.Task] = None
        self._open_steps: Set[int] = set()
        self._finished = False
        self.failed_posts = 0

    @property
    def finished(self) -> bool:
        return self._finished

    async def _post(self, event: RunEvent) -> bool:
        async with self._lock:
            if self._finished:
                return False
            if event.type is EventType.DONE:
                self._finished = True
            try:
                await self.sink.post_event(self.run_id, event.to_payload())
            except Exception as e:
                self.failed_posts += 1
                logger.warning(f"Failed to post {event.type.value} event for run {self.run_id}: {e}")
            return True

    async def _record(self, method: str, *args: Any, **kwargs: Any) -> None:
        if self.repository is None:
            return
        try:
            await getattr(self.repository, method)(self.run_id, *args, **kwargs)
        except Exception as e:
            logger.warning(f"Failed to record {method} for run {self.run_id}: {e}")

    # ------------------------------------------------------------------
    # Lifecycle events
    async def run_status(self, status: RunStatus, error: Optional[str] = None) -> None:
        await self._post(RunEvent(type=EventType.RUN_STATUS, status=status, error=error))
        await self._record("mark_run_status", status.value, error=error)

    async def step_start(self, index: int, meta: Dict[str, Any]) -> None:
        self._open_steps.add(index)
        await self._post(RunEvent(type=EventType.STEP_START, index=index, meta=meta))
        await self._record(
            "mark_step_started", index, step_id=meta.get("stepId"), step_type=meta.get("type")
        )

    async def step_end(
        self,
        index: int,
        ok: bool,
        meta: Dict[str, Any],
        error: Optional[str] = None,
        outputs: Optional[Dict[str, Any]] = None,
    ) -> None:
        if index not in self._open_steps:
            raise RuntimeError(f"stepEnd for step {index} that was never started")
        self._open_steps.discard(index)
        data = {"outputs": outputs} if outputs else None
        await self._post(
            RunEvent(type=EventType.STEP_END, index=index, ok=ok, error=error, meta=meta, data=data)
        )
        await self._record("mark_step_completed", index, ok, error=error)

    async def done(self, ok: bool, error: Optional[str] = None) -> None:
        await self._post(RunEvent(type=EventType.DONE, ok=ok, error=error))

    # ------------------------------------------------------------------
    # Periodic sampling
    def attach_driver(self, driver: BaseDriver) -> None:
        self._driver = driver

    def start_sampling(self) -> None:
        if self._sampler is not None or self._driver is None:
            return
        self._sampler = asyncio.create_task(
            self._sample_loop(), name=f"crawlflow-sampler-{self.run_id}"
        )

    async def stop_sampling(self) -> None:
        sampler, self._sampler = self._sampler, None
        if sampler is None:
            return
        sampler.cancel()
        await asyncio.wait([sampler])

    async def _sample_loop(self) -> None:
        while not self._finished:
            await asyncio.sleep(self.sample_interval)
            try:
                data = await self._driver.capture_sample()
                event = RunEvent(type=EventType.SAMPLE, data=data) if data else None
            except Exception as e:
                logger.debug(f"Sample capture failed for run {self.run_id}: {e}")
                continue
            if event is not None:
                await self._post(event)
