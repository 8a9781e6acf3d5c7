"""Redis pub/sub event sink for cross-process fan-out."""

from __future__ import annotations

import json
from typing import Any, Dict, Optional

try:
    import redis.asyncio as redis
except ImportError:
    redis = None

from .base import BaseEventSink

CHANNEL_PREFIX = "crawlflow:runs"


def channel_for(run_id: str) -> str:
    return f"{CHANNEL_PREFIX}:{run_id}"


class RedisEventSink(BaseEventSink):
    """Publish each event on the run's Redis channel."""

    def __init__(
        self,
        host: str = "localhost",
        port: int = 6379,
        db: int = 0,
        password: Optional[str] = None,
    ) -> None:
        if redis is None:
            raise ImportError("redis package is required for RedisEventSink")

        self.host = host
        self.port = port
        self.db = db
        self.password = password
        self._redis: Optional[Any] = None

    async def connect(self) -> None:
        """Connect to Redis."""
        self._redis = redis.Redis(
            host=self.host,
            port=self.port,
            db=self.db,
            password=self.password,
            decode_responses=True,
        )
        await self._redis.ping()

    async def disconnect(self) -> None:
        """Disconnect from Redis."""
        if self._redis:
            await self._redis.aclose()
            self._redis = None

    async def post_event(self, run_id: str, payload: Dict[str, Any]) -> None:
        if not self._redis:
            await self.connect()
        body = json.dumps({**payload, "runId": run_id})
        await self._redis.publish(channel_for(run_id), body)
