"""Tests for configuration loading."""

from crawlflow.automation import InMemoryDriver, get_driver
from crawlflow.config import load_config
from crawlflow.sinks import get_event_sink
from crawlflow.sinks.http import HttpEventSink


def test_defaults_without_config_file(tmp_path, monkeypatch):
    monkeypatch.setenv("CRAWLFLOW_CONFIG", str(tmp_path / "missing.yaml"))
    monkeypatch.delenv("CRAWLFLOW_MAX_CONCURRENCY", raising=False)
    monkeypatch.delenv("CRAWLFLOW_EVENTS", raising=False)

    config = load_config()
    assert config.runner.max_concurrency == 1
    assert config.runner.default_success_timeout == 5.0
    assert config.events.backend == "inmemory"


def test_load_config_from_env(tmp_path, monkeypatch):
    config_path = tmp_path / "config.yaml"
    config_path.write_text(
        """
runner:
  max_concurrency: 3
  driver: inmemory
events:
  backend: http
  http:
    base_url: http://relay.test:9000
"""
    )
    monkeypatch.setenv("CRAWLFLOW_CONFIG", str(config_path))
    monkeypatch.delenv("CRAWLFLOW_MAX_CONCURRENCY", raising=False)
    monkeypatch.delenv("CRAWLFLOW_EVENTS", raising=False)
    monkeypatch.setenv("CRAWLFLOW_INTERNAL_SECRET", "s3cret")

    config = load_config()
    assert config.runner.max_concurrency == 3
    assert config.events.backend == "http"
    assert config.events.http.base_url == "http://relay.test:9000"
    assert config.events.http.secret == "s3cret"


def test_env_overrides_file(tmp_path, monkeypatch):
    config_path = tmp_path / "config.yaml"
    config_path.write_text("runner:\n  max_concurrency: 3\n")
    monkeypatch.setenv("CRAWLFLOW_CONFIG", str(config_path))
    monkeypatch.setenv("CRAWLFLOW_MAX_CONCURRENCY", "7")
    monkeypatch.setenv("CRAWLFLOW_EVENTS", "LOG")

    config = load_config()
    assert config.runner.max_concurrency == 7
    assert config.events.backend == "log"


def test_factories_use_config(tmp_path, monkeypatch):
    config_path = tmp_path / "config.yaml"
    config_path.write_text(
        """
runner:
  driver: inmemory
events:
  backend: http
  http:
    base_url: http://relay.test/
    secret: abc
"""
    )
    monkeypatch.setenv("CRAWLFLOW_CONFIG", str(config_path))
    monkeypatch.delenv("CRAWLFLOW_EVENTS", raising=False)
    monkeypatch.delenv("CRAWLFLOW_INTERNAL_SECRET", raising=False)

    sink = get_event_sink()
    assert isinstance(sink, HttpEventSink)
    assert sink.url_for("r1") == "http://relay.test/internal/runs/r1/events"
    assert sink.secret == "abc"
    assert isinstance(get_driver(), InMemoryDriver)
