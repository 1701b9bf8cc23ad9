"""Shared test fixtures for the knucklebones test suite.

block_real_random_org  (session scope, autouse)
    Fails fast if a TrueRandomSource without an injected client tries to
    reach RANDOM.ORG. Provider tests pass an httpx.MockTransport client.

fixed_source / unavailable_source
    Deterministic RandomSource fakes for evaluator, pipeline and route tests.

async_client
    AsyncClient wired to the FastAPI app. Route tests set
    app.dependency_overrides[get_source] to choose the random source.
"""

from __future__ import annotations

import unittest.mock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from knucklebones.dependencies import get_source
from knucklebones.main import app
from knucklebones.randomness import SourceUnavailable, TrueRandomSource


class FixedSource:
    """Returns preset values in order and records every request."""

    def __init__(self, values: list[int]) -> None:
        self._values = list(values)
        self.requests: list[tuple[int, int, int]] = []

    async def integers(self, count: int, low: int, high: int) -> list[int]:
        self.requests.append((count, low, high))
        batch, self._values = self._values[:count], self._values[count:]
        if len(batch) != count:
            raise AssertionError(f"FixedSource ran out of values (wanted {count})")
        return batch

    async def next_in_range(self, low: int, high: int) -> int:
        (value,) = await self.integers(1, low, high)
        return value


class UnavailableSource:
    """Always raises SourceUnavailable, like an unreachable provider."""

    def __init__(self) -> None:
        self.calls = 0

    async def integers(self, count: int, low: int, high: int) -> list[int]:
        self.calls += 1
        raise SourceUnavailable("provider down")

    async def next_in_range(self, low: int, high: int) -> int:
        self.calls += 1
        raise SourceUnavailable("provider down")


@pytest.fixture(autouse=True, scope="session")
def block_real_random_org():
    """Fail fast if any test reaches the real RANDOM.ORG endpoint."""
    original = TrueRandomSource._fetch

    async def _guarded(self, params):
        if self._client is None:
            raise RuntimeError(
                "Real RANDOM.ORG call attempted in tests — "
                "inject an httpx.MockTransport client or override get_source"
            )
        return await original(self, params)

    with unittest.mock.patch.object(TrueRandomSource, "_fetch", new=_guarded):
        yield


@pytest.fixture
def fixed_source():
    """Factory for a FixedSource returning the given values in order."""
    return FixedSource


@pytest.fixture
def unavailable_source():
    return UnavailableSource()


@pytest_asyncio.fixture
async def async_client():
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.pop(get_source, None)
