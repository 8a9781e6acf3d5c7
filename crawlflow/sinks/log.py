"""Event sink that writes events to the log."""

from __future__ import annotations

import logging
from typing import Any, Dict

from .base import BaseEventSink

logger = logging.getLogger(__name__)


class LogEventSink(BaseEventSink):
    """Logs each event; samples are reduced to their kind."""

    def __init__(self, level: int = logging.INFO) -> None:
        self.level = level

    async def post_event(self, run_id: str, payload: Dict[str, Any]) -> None:
        if payload.get("type") == "sample":
            logger.debug(f"[{run_id}] sample {payload.get('data', {}).get('kind')}")
            return
        details = {k: v for k, v in payload.items() if k not in ("type", "ts")}
        logger.log(self.level, f"[{run_id}] {payload.get('type')} {details}")
