"""
pytest Fixtures for Species Proxy Tests

Shared fixtures used across all test files.

STORE DOUBLE
============
InMemoryStore implements the same async interface as SpeciesStore
(get, set_if_absent, increment_with_expiry, ttl, ping) on a dict, with
TTLs driven by a FakeClock. Tests move time forward with clock.advance()
instead of sleeping. Every operation yields to the event loop once, the way
a real network round-trip would, so concurrent requests interleave.

UPSTREAM
========
The species API is mocked with respx (the respx_mock fixture), which
intercepts the application's shared httpx.AsyncClient.
"""

# =============================================================================
# TEST ENVIRONMENT SETUP
# =============================================================================
# Set environment variables BEFORE importing the app
import os

os.environ["UPSTREAM_BASE_URL"] = "https://fishwatch.test"

import asyncio
from collections.abc import Generator
from typing import Optional

import pytest
from fastapi.testclient import TestClient

from species_proxy.config import Settings, get_settings
from species_proxy.exceptions import StoreUnavailable
from species_proxy.main import app

UPSTREAM_BASE_URL = "https://fishwatch.test"


def species_url(species: str) -> str:
    """Upstream URL the proxy calls for a species."""
    return f"{UPSTREAM_BASE_URL}/api/species/{species}"


# =============================================================================
# STORE DOUBLE
# =============================================================================
class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class InMemoryStore:
    """Dict-backed stand-in for SpeciesStore with clock-driven expiry."""

    def __init__(self, clock: FakeClock):
        self.clock = clock
        self.data: dict[str, tuple[object, Optional[float]]] = {}
        self.is_ready = True
        self.available = True

    async def _round_trip(self) -> None:
        await asyncio.sleep(0)
        if not self.available:
            raise StoreUnavailable("store is down")

    def _purge(self, key: str) -> None:
        entry = self.data.get(key)
        if entry is not None and entry[1] is not None and entry[1] <= self.clock():
            del self.data[key]

    def value(self, key: str):
        """Read a key synchronously, honouring expiry (for assertions)."""
        self._purge(key)
        entry = self.data.get(key)
        return entry[0] if entry else None

    async def start(self) -> None:
        if not self.available:
            raise StoreUnavailable("store is down")
        self.is_ready = True

    async def stop(self) -> None:
        self.is_ready = False

    async def ping(self) -> bool:
        return self.available

    async def get(self, key: str) -> Optional[str]:
        await self._round_trip()
        return self.value(key)

    async def set_if_absent(self, key: str, value: str, ttl: int) -> bool:
        await self._round_trip()
        self._purge(key)
        if key in self.data:
            return False
        self.data[key] = (value, self.clock() + ttl)
        return True

    async def increment_with_expiry(self, key: str, window: int) -> int:
        await self._round_trip()
        self._purge(key)
        value, expires_at = self.data.get(key, (0, None))
        value = int(value) + 1
        if value == 1:
            expires_at = self.clock() + window
        self.data[key] = (value, expires_at)
        return value

    async def ttl(self, key: str) -> int:
        await self._round_trip()
        self._purge(key)
        if key not in self.data:
            return -2
        expires_at = self.data[key][1]
        if expires_at is None:
            return -1
        return int(expires_at - self.clock())


# =============================================================================
# FIXTURES
# =============================================================================
@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(clock: FakeClock) -> InMemoryStore:
    return InMemoryStore(clock)


@pytest.fixture
def client(store: InMemoryStore, monkeypatch) -> Generator[TestClient, None, None]:
    """
    Test client wired to the in-memory store.

    The lifespan runs as in production (it also creates the shared httpx
    client), but builds the InMemoryStore instead of a Redis connection.
    Requests reach the store through the real readiness gate.
    """
    monkeypatch.setattr("species_proxy.main.SpeciesStore", lambda *args, **kwargs: store)

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def override_settings():
    """Return a function that replaces settings for the request pipeline."""

    def _override(**changes) -> Settings:
        new_settings = get_settings().model_copy(update=changes)
        app.dependency_overrides[get_settings] = lambda: new_settings
        return new_settings

    return _override
