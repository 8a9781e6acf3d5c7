from __future__ import annotations

import os
from typing import Literal, Optional

import yaml
from pydantic import BaseModel

from .constants import (
    DEFAULT_MAX_CONCURRENCY,
    DEFAULT_POLL_INTERVAL_SEC,
    DEFAULT_SAMPLE_INTERVAL_SEC,
    DEFAULT_SUCCESS_TIMEOUT_SEC,
)


class RedisConfig(BaseModel):
    """Configuration for the Redis event sink."""

    host: str = "localhost"
    port: int = 6379
    db: int = 0
    password: Optional[str] = None


class HttpSinkConfig(BaseModel):
    """Where the HTTP event sink relays run events."""

    base_url: str = "http://localhost:3000"
    secret: Optional[str] = None
    timeout: float = 5.0


class EventsConfig(BaseModel):
    """Event sink configuration settings."""

    backend: Literal["inmemory", "http", "redis", "log"] = "inmemory"
    http: HttpSinkConfig = HttpSinkConfig()
    redis: RedisConfig = RedisConfig()


class BrowserConfig(BaseModel):
    """Settings for the Playwright driver."""

    headless: bool = True
    browser_type: Literal["chromium", "firefox", "webkit"] = "chromium"
    viewport_width: int = 1280
    viewport_height: int = 720
    locale: str = "en-US"
    sample_quality: int = 60


class RunnerConfig(BaseModel):
    """Admission and execution settings."""

    max_concurrency: int = DEFAULT_MAX_CONCURRENCY
    poll_interval: float = DEFAULT_POLL_INTERVAL_SEC
    default_success_timeout: float = DEFAULT_SUCCESS_TIMEOUT_SEC
    sample_interval: float = DEFAULT_SAMPLE_INTERVAL_SEC
    sampling: bool = True
    driver: Literal["playwright", "inmemory"] = "playwright"


class CrawlflowConfig(BaseModel):
    """Top-level configuration model."""

    runner: RunnerConfig = RunnerConfig()
    events: EventsConfig = EventsConfig()
    browser: BrowserConfig = BrowserConfig()
    database_url: Optional[str] = None


def load_config(path: Optional[str] = None) -> CrawlflowConfig:
    """Load configuration from YAML file.

    Args:
        path: Optional path to config file. Falls back to CRAWLFLOW_CONFIG env
            variable or 'config.yaml' in the current directory.
    """

    config_path = path or os.getenv("CRAWLFLOW_CONFIG", "config.yaml")
    if os.path.exists(config_path):
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
        config = CrawlflowConfig(**data)
    else:
        config = CrawlflowConfig()

    max_concurrency = os.getenv("CRAWLFLOW_MAX_CONCURRENCY")
    if max_concurrency:
        config.runner.max_concurrency = int(max_concurrency)

    secret = os.getenv("CRAWLFLOW_INTERNAL_SECRET")
    if secret:
        config.events.http.secret = secret

    events_backend = os.getenv("CRAWLFLOW_EVENTS")
    if events_backend:
        config.events.backend = events_backend.lower()

    env_db_url = os.getenv("CRAWLFLOW_DATABASE_URL") or os.getenv("DATABASE_URL")
    if env_db_url:
        config.database_url = env_db_url
    return config
