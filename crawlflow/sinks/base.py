"""Base interface for run event sinks."""

from __future__ import annotations

import abc
from typing import Any, Dict


class BaseEventSink(metaclass=abc.ABCMeta):
    """Abstract destination for run events, keyed by run id."""

    async def connect(self) -> None:
        """Open connection to the sink (no-op by default)."""
        pass

    async def disconnect(self) -> None:
        """Close connection to the sink (no-op by default)."""
        pass

    @abc.abstractmethod
    async def post_event(self, run_id: str, payload: Dict[str, Any]) -> None:
        """Deliver one event payload for ``run_id``."""
        raise NotImplementedError
