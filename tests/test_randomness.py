"""Tests for the RANDOM.ORG client and the pseudo-random source."""

from __future__ import annotations

import asyncio

import httpx
import pytest

from knucklebones.config import settings
from knucklebones.randomness import (
    PseudoRandomSource,
    SourceUnavailable,
    TrueRandomSource,
    get_random_source,
)

_URL = "https://random.test/integers/"


def _source(handler, retries: int = 1) -> TrueRandomSource:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return TrueRandomSource(url=_URL, timeout=1.0, retries=retries, client=client)


class _Counter:
    def __init__(self, *responses) -> None:
        self._responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self._responses.pop(0)
        if isinstance(response, BaseException):
            raise response
        status, text = response
        return httpx.Response(status, text=text)


# ---------------------------------------------------------------------------
# TrueRandomSource
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_batch_request_parameters():
    handler = _Counter((200, "5\n3\n"))
    values = await _source(handler).integers(2, 1, 8)
    assert values == [5, 3]
    (request,) = handler.requests
    params = request.url.params
    assert params["num"] == "2"
    assert params["min"] == "1"
    assert params["max"] == "8"
    assert params["format"] == "plain"


@pytest.mark.asyncio
async def test_next_in_range():
    handler = _Counter((200, "17\n"))
    assert await _source(handler).next_in_range(1, 20) == 17


@pytest.mark.asyncio
async def test_zero_count_makes_no_request():
    handler = _Counter()
    assert await _source(handler).integers(0, 1, 6) == []
    assert handler.requests == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [
        (503, "Service Unavailable"),
        (200, "Error: You have used your quota of random bits for today."),
        (200, "<html><body>Please verify you are human</body></html>"),
        (200, "5\n"),
        (200, "5\n9\n"),
        (200, "5\nx\n"),
        (200, "5 3\n"),
        (200, "5\n+3\n"),
        (200, "0_5\n3\n"),
    ],
    ids=[
        "non-2xx",
        "error-payload",
        "challenge",
        "short-batch",
        "out-of-range",
        "non-numeric",
        "two-per-line",
        "signed",
        "underscore",
    ],
)
async def test_bad_responses_are_unavailable(response):
    handler = _Counter(response, response)
    with pytest.raises(SourceUnavailable):
        await _source(handler).integers(2, 1, 8)


@pytest.mark.asyncio
async def test_network_error_is_unavailable():
    handler = _Counter(httpx.ConnectError("refused"), httpx.ConnectTimeout("slow"))
    with pytest.raises(SourceUnavailable):
        await _source(handler).integers(1, 1, 6)


@pytest.mark.asyncio
async def test_retries_once_then_succeeds():
    handler = _Counter(httpx.ConnectTimeout("slow"), (200, "4\n"))
    assert await _source(handler).integers(1, 1, 6) == [4]
    assert len(handler.requests) == 2


@pytest.mark.asyncio
async def test_retry_is_capped_at_one():
    failure = (500, "")
    handler = _Counter(failure, failure, failure, failure)
    with pytest.raises(SourceUnavailable):
        await _source(handler, retries=5).integers(1, 1, 6)
    assert len(handler.requests) == 2


@pytest.mark.asyncio
async def test_cancellation_is_not_retried():
    handler = _Counter(asyncio.CancelledError(), (200, "4\n"))
    with pytest.raises(asyncio.CancelledError):
        await _source(handler).integers(1, 1, 6)
    assert len(handler.requests) == 1


@pytest.mark.asyncio
async def test_no_retry_when_disabled():
    handler = _Counter((500, ""))
    with pytest.raises(SourceUnavailable):
        await _source(handler, retries=0).integers(1, 1, 6)
    assert len(handler.requests) == 1


# ---------------------------------------------------------------------------
# PseudoRandomSource and factory
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_pseudo_random_in_range():
    source = PseudoRandomSource()
    values = await source.integers(100, 1, 6)
    assert len(values) == 100
    assert all(1 <= v <= 6 for v in values)
    assert 1 <= await source.next_in_range(1, 6) <= 6


@pytest.mark.asyncio
async def test_pseudo_random_seed_is_reproducible():
    a = await PseudoRandomSource(seed=7).integers(10, 1, 20)
    b = await PseudoRandomSource(seed=7).integers(10, 1, 20)
    assert a == b


def test_factory_respects_true_random_switch(monkeypatch):
    monkeypatch.setattr(settings, "true_random_enabled", False)
    assert isinstance(get_random_source(), PseudoRandomSource)
    monkeypatch.setattr(settings, "true_random_enabled", True)
    assert isinstance(get_random_source(), TrueRandomSource)
