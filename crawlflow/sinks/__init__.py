"""Event sink factory and initialization."""

from __future__ import annotations

import os
from typing import Optional

from ..config import CrawlflowConfig, load_config
from .base import BaseEventSink
from .inmemory import InMemoryEventSink
from .log import LogEventSink


def get_event_sink(
    backend: Optional[str] = None, config: Optional[CrawlflowConfig] = None
) -> BaseEventSink:
    """Factory function to get the configured event sink."""

    config = config or load_config()
    backend = (
        backend
        or os.getenv("CRAWLFLOW_EVENTS")
        or config.events.backend
    ).lower()

    if backend == "inmemory":
        return InMemoryEventSink()
    elif backend == "log":
        return LogEventSink()
    elif backend == "http":
        from .http import HttpEventSink

        http_conf = config.events.http
        return HttpEventSink(
            base_url=http_conf.base_url,
            secret=http_conf.secret,
            timeout=http_conf.timeout,
        )
    elif backend == "redis":
        from .redis import RedisEventSink

        redis_conf = config.events.redis
        return RedisEventSink(
            host=redis_conf.host,
            port=redis_conf.port,
            db=redis_conf.db,
            password=redis_conf.password,
        )
    else:
        raise ValueError(f"Unsupported event sink backend: {backend}")


__all__ = ["BaseEventSink", "InMemoryEventSink", "LogEventSink", "get_event_sink"]
