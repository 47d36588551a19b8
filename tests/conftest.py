"""
Pytest configuration for the QueryTrail test suite.

This conftest.py provides:
- Machine-mode logging (suppresses console output)
- Config isolation (no user or project config files leak into tests)
- Store, service and clock fixtures
"""

import os
from datetime import datetime, timedelta, timezone

import pytest

from querytrail import config
from querytrail.cli.config import CLIConfig
from querytrail.logging_config import reset_logging, setup_logging
from querytrail.paths import reset_paths
from querytrail.service import QueryService
from querytrail.storage import InMemoryQueryStore, SQLiteQueryStore


# ============================================================================
# GLOBAL CONFIGURATION
# ============================================================================

def pytest_configure(config):
    """Configure pytest for machine-mode operation."""
    os.environ.setdefault("QUERYTRAIL_MACHINE_MODE", "1")


# ============================================================================
# LOGGING & CONFIG FIXTURES
# ============================================================================

@pytest.fixture(autouse=True)
def setup_test_logging():
    """
    Machine mode by default - suppress console logs for clean test output.
    """
    reset_logging()
    setup_logging(level="DEBUG", suppress_console=True)


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Point config discovery at an empty temp dir and drop QUERYTRAIL_* overrides."""
    for key in list(os.environ):
        if key.startswith("QUERYTRAIL_") and key != "QUERYTRAIL_MACHINE_MODE":
            monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.chdir(tmp_path)
    config.reload()
    reset_paths()
    CLIConfig.reset()
    yield
    config.reload()
    reset_paths()
    CLIConfig.reset()


# ============================================================================
# CLOCK
# ============================================================================

class FakeClock:
    """Controllable UTC clock; call it to read, advance() to move forward."""

    def __init__(self, start=None):
        self.now = start or datetime(2025, 4, 15, 12, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock()


# ============================================================================
# STORE FIXTURES
# ============================================================================

@pytest.fixture
def memory_store(clock):
    return InMemoryQueryStore(clock=clock)


@pytest.fixture
def sqlite_store(tmp_path, clock):
    """SQLiteQueryStore in a fresh temp database."""
    store = SQLiteQueryStore(tmp_path / "data" / "test.db", clock=clock)
    yield store
    store.close()


@pytest.fixture(params=["memory", "sqlite"])
def store(request, clock, tmp_path):
    """Every backend; tests using this run once per QueryStore implementation."""
    if request.param == "memory":
        yield InMemoryQueryStore(clock=clock)
    else:
        store = SQLiteQueryStore(tmp_path / "data" / "param.db", clock=clock)
        yield store
        store.close()


@pytest.fixture
def service(store, clock):
    return QueryService(store, recency_minutes=30, serialize_per_user=True, clock=clock)
