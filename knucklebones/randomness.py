"""Random number sources for dice rolls.

Two implementations share the RandomSource interface:

- TrueRandomSource asks RANDOM.ORG for a batch of integers over HTTP.
- PseudoRandomSource uses a local ``random.Random`` and never fails.

Rolls draw whole batches with ``integers``; ``next_in_range`` is the
single-die convenience built on it.

Sources do not fall back on their own. TrueRandomSource raises
SourceUnavailable and the evaluator decides what to do about it.
"""

from __future__ import annotations

import logging
import random
import re
from typing import Protocol

import httpx

from knucklebones.config import settings
from knucklebones.dice import DiceError

logger = logging.getLogger(__name__)

_MAX_RETRIES = 1
_LINE_RE = re.compile(r"^\d{1,9}$", re.ASCII)


class SourceUnavailable(DiceError):
    """Raised when the true-random provider cannot produce a valid batch."""


class RandomSource(Protocol):
    """Interface for producing uniformly distributed integers."""

    async def integers(self, count: int, low: int, high: int) -> list[int]:
        """Return ``count`` integers, each in [low, high].

        Raises:
            SourceUnavailable: If the source cannot produce them.
        """
        ...

    async def next_in_range(self, low: int, high: int) -> int:
        """Return a single integer in [low, high]."""
        ...


class PseudoRandomSource:
    """Local generator with no external dependency.

    Args:
        seed: Optional seed for reproducible sequences.
    """

    def __init__(self, seed: int | None = None) -> None:
        self._rng = random.Random(seed)

    async def integers(self, count: int, low: int, high: int) -> list[int]:
        return [self._rng.randint(low, high) for _ in range(count)]

    async def next_in_range(self, low: int, high: int) -> int:
        return self._rng.randint(low, high)


class TrueRandomSource:
    """RANDOM.ORG plain-text integer generator client.

    Args:
        url: Integer generator endpoint.
        timeout: Seconds allowed for each attempt.
        retries: Extra attempts after a failure, capped at 1.
        client: Optional shared ``httpx.AsyncClient``. When omitted, one is
            created per request and closed afterwards.
    """

    def __init__(
        self,
        url: str,
        timeout: float,
        retries: int = _MAX_RETRIES,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._url = url
        self._timeout = httpx.Timeout(timeout)
        self._retries = max(0, min(retries, _MAX_RETRIES))
        self._client = client

    async def integers(self, count: int, low: int, high: int) -> list[int]:
        """Fetch ``count`` integers in [low, high] in a single request.

        Raises:
            SourceUnavailable: On network errors, timeouts, non-2xx responses,
                error or challenge pages, and batches of the wrong length or
                with out-of-range values.
        """
        if count == 0:
            return []
        params = {
            "num": count,
            "min": low,
            "max": high,
            "col": 1,
            "base": 10,
            "format": "plain",
            "rnd": "new",
        }
        last_error: Exception | None = None
        for attempt in range(self._retries + 1):
            try:
                text = await self._fetch(params)
                return _parse_batch(text, count, low, high)
            except (httpx.HTTPError, SourceUnavailable) as exc:
                last_error = exc
                logger.debug("RANDOM.ORG attempt %d failed: %s", attempt + 1, exc)
        raise SourceUnavailable(f"RANDOM.ORG unavailable: {last_error}") from last_error

    async def next_in_range(self, low: int, high: int) -> int:
        (value,) = await self.integers(1, low, high)
        return value

    async def _fetch(self, params: dict) -> str:
        if self._client is not None:
            response = await self._client.get(self._url, params=params, timeout=self._timeout)
        else:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.get(self._url, params=params)
        response.raise_for_status()
        return response.text


def _parse_batch(text: str, count: int, low: int, high: int) -> list[int]:
    """Validate a plain-text RANDOM.ORG response: one integer per line."""
    if not text[:1].isdigit():
        # "Error: ..." payloads and anti-abuse challenge pages land here.
        raise SourceUnavailable(f"Unexpected RANDOM.ORG response: {text[:80]!r}")
    lines = text.splitlines()
    if any(not _LINE_RE.match(line) for line in lines):
        raise SourceUnavailable("Non-numeric line in RANDOM.ORG response")
    values = [int(line) for line in lines]
    if len(values) != count:
        raise SourceUnavailable(f"Expected {count} values from RANDOM.ORG, got {len(values)}")
    if any(not low <= v <= high for v in values):
        raise SourceUnavailable(f"RANDOM.ORG value out of range [{low}, {high}]")
    return values


def get_random_source() -> TrueRandomSource | PseudoRandomSource:
    """Return the configured primary random source.

    Returns a :class:`PseudoRandomSource` when ``true_random_enabled`` is
    ``False``, otherwise a :class:`TrueRandomSource` using settings from config.
    """
    if not settings.true_random_enabled:
        return get_fallback_source()
    return TrueRandomSource(
        url=settings.random_org_url,
        timeout=settings.random_org_timeout_seconds,
        retries=settings.random_org_retries,
    )


def get_fallback_source() -> PseudoRandomSource:
    """Return a fresh pseudo-random source seeded from settings."""
    return PseudoRandomSource(seed=settings.pseudo_random_seed)
