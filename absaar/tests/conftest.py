"""
Shared test fixtures for the Absaar daemon tests.

Provides environment variable fixtures for AbsaarSettings tests, an
``httpx.MockTransport`` based API client, and a memory-backed publisher.
All ABSAAR_* env vars are cleaned before each test to ensure isolation.

CHANGELOG:
- 2026-10-19: Initial creation

TODO:
- None
"""

from __future__ import annotations

from collections.abc import Callable

import httpx
import pytest

from absaar.src.client import BASE_URL, DEFAULT_HEADERS, AbsaarClient
from absaar.src.publisher import StatePublisher
from absaar.src.store import MemoryStateStore

# All AbsaarSettings environment variable names, used for cleanup.
_ALL_ABSAAR_ENV_VARS = (
    "ABSAAR_USERNAME",
    "ABSAAR_PASSWORD",
    "ABSAAR_STATION_INDEX",
    "ABSAAR_STATE_BACKEND",
    "ABSAAR_REDIS_URL",
    "ABSAAR_STATE_PREFIX",
    "ABSAAR_HEALTH_PATH",
)


@pytest.fixture(autouse=True)
def _clean_absaar_env(monkeypatch: pytest.MonkeyPatch, tmp_path: str) -> None:
    """Remove all ABSAAR_* env vars and isolate from .env files before each test.

    Changes working directory to tmp_path so no .env file is accidentally
    loaded by Pydantic BaseSettings.
    """
    for var in _ALL_ABSAAR_ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture()
def env_vars_full(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Set every AbsaarSettings environment variable.

    Returns the dict of env var names to values for assertion convenience.
    """
    env = {
        "ABSAAR_USERNAME": "solar@example.com",
        "ABSAAR_PASSWORD": "hunter2",
        "ABSAAR_STATION_INDEX": "1",
        "ABSAAR_STATE_BACKEND": "memory",
        "ABSAAR_REDIS_URL": "redis://cache:6379/2",
        "ABSAAR_STATE_PREFIX": "absaar.1",
        "ABSAAR_HEALTH_PATH": "/tmp/absaar-health.json",
    }
    for key, value in env.items():
        monkeypatch.setenv(key, value)
    return env


Handler = Callable[[httpx.Request], httpx.Response]


@pytest.fixture()
def make_client() -> Callable[[Handler], AbsaarClient]:
    """Return a factory building an AbsaarClient over a mock transport."""

    def _make(handler: Handler) -> AbsaarClient:
        http = httpx.AsyncClient(
            base_url=BASE_URL,
            headers=DEFAULT_HEADERS,
            transport=httpx.MockTransport(handler),
        )
        return AbsaarClient(http_client=http)

    return _make


@pytest.fixture()
def store() -> MemoryStateStore:
    return MemoryStateStore()


@pytest.fixture()
def publisher(store: MemoryStateStore) -> StatePublisher:
    return StatePublisher(store)
