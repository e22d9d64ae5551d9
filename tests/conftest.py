"""Pytest fixtures and configuration."""

import os
import sys
from concurrent.futures import Executor, Future
from datetime import datetime, timedelta, timezone

import pytest

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> datetime:
        self.current += timedelta(**kwargs)
        return self.current


class ImmediateExecutor(Executor):
    """Runs submitted work inline so background fetches are deterministic."""

    def __init__(self):
        self.submitted = 0

    def submit(self, fn, *args, **kwargs):
        self.submitted += 1
        future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except Exception as e:
            future.set_exception(e)
        return future


class DeferredExecutor(Executor):
    """Holds submitted work until run_all() so tests control completion order."""

    def __init__(self):
        self.queue = []

    def submit(self, fn, *args, **kwargs):
        future = Future()
        self.queue.append((future, fn, args, kwargs))
        return future

    def run_all(self) -> int:
        count = 0
        while self.queue:
            future, fn, args, kwargs = self.queue.pop(0)
            future.set_result(fn(*args, **kwargs))
            count += 1
        return count


@pytest.fixture
def clock():
    """Fake clock starting at a fixed UTC instant."""
    return FakeClock(datetime(2024, 6, 1, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def config_path(tmp_path):
    """Config file path inside a temporary directory (never the real home)."""
    return tmp_path / "nzi-cli" / "config.yaml"


@pytest.fixture
def store(config_path):
    from nzi.config.store import ConfigStore

    return ConfigStore(config_path)


@pytest.fixture
def sample_config():
    """Built-in default config."""
    from nzi.config.model import default_config

    return default_config()


@pytest.fixture
def settings(tmp_path):
    """Settings isolated from the environment and any .env file."""
    from nzi.config.settings import Settings

    return Settings(
        _env_file=None,
        config_path=str(tmp_path / "nzi-cli" / "config.yaml"),
        log_file=str(tmp_path / "nzi.log"),
        startup_attempts=2,
        startup_min_wait_s=0,
        startup_max_wait_s=0,
    )


@pytest.fixture
def immediate_executor():
    return ImmediateExecutor()


@pytest.fixture
def deferred_executor():
    return DeferredExecutor()


@pytest.fixture
def refresher(immediate_executor):
    """Background refresher whose fetches finish inline."""
    from nzi.cache.refresher import BackgroundRefresher

    return BackgroundRefresher(executor=immediate_executor, retry_min_wait=0, retry_max_wait=0)
