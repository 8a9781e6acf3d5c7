"""In-memory event sink for testing."""

from __future__ import annotations

import asyncio
from collections import defaultdict
from typing import Any, Dict, List

from .base import BaseEventSink


class InMemoryEventSink(BaseEventSink):
    """Keeps every posted payload in a per-run list."""

    def __init__(self) -> None:
        self._events: Dict[str, List[Dict[str, Any]]] = defaultdict(list)
        self._lock = asyncio.Lock()

    async def post_event(self, run_id: str, payload: Dict[str, Any]) -> None:
        async with self._lock:
            self._events[run_id].append(dict(payload))

    def events(self, run_id: str) -> List[Dict[str, Any]]:
        return list(self._events.get(run_id, []))

    def types(self, run_id: str) -> List[str]:
        return [event["type"] for event in self.events(run_id)]

    @property
    def run_ids(self) -> List[str]:
        return list(self._events)
