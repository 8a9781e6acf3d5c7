"""Automation driver factory and initialization."""

from __future__ import annotations

from typing import Optional

from ..config import CrawlflowConfig, load_config
from .base import BaseDriver
from .inmemory import FakeElement, InMemoryDriver


def get_driver(
    backend: Optional[str] = None, config: Optional[CrawlflowConfig] = None
) -> BaseDriver:
    """Factory function returning a fresh, uninitialised driver for one run."""

    config = config or load_config()
    backend = (backend or config.runner.driver).lower()

    if backend == "inmemory":
        return InMemoryDriver()
    elif backend == "playwright":
        from .playwright import PlaywrightDriver

        return PlaywrightDriver(config.browser)
    else:
        raise ValueError(f"Unsupported automation driver: {backend}")


__all__ = ["BaseDriver", "FakeElement", "InMemoryDriver", "get_driver"]
