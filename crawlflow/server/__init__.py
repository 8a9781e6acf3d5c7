"""FastAPI application exposing the runner API and the event relay."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from ..config import CrawlflowConfig, load_config
from ..manager import RunManager
from ..persistence import RunRepository, get_repository
from .api import create_runner_router
from .relay import RunEventHub, create_relay_router


def create_app(
    config: Optional[CrawlflowConfig] = None,
    manager: Optional[RunManager] = None,
    hub: Optional[RunEventHub] = None,
    repository: Optional[RunRepository] = None,
) -> FastAPI:
    config = config or load_config()
    repository = repository or get_repository(config=config)
    manager = manager or RunManager.from_config(config, repository=repository)
    hub = hub or RunEventHub()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        await manager.shutdown()

    app = FastAPI(title="crawlflow", lifespan=lifespan)
    app.state.manager = manager
    app.state.hub = hub
    app.state.repository = repository
    app.include_router(create_runner_router(manager, repository))
    app.include_router(create_relay_router(hub, secret=config.events.http.secret))
    return app


__all__ = ["RunEventHub", "create_app"]
