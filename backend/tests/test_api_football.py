"""Tests for the API-Football client against a mock transport."""

import asyncio
from types import SimpleNamespace

import httpx
import pytest

from api_football.client import (
    APIFootballClient,
    APIFootballError,
    APIFootballNonRetryableError,
)


def _config(**overrides):
    values = dict(
        api_football_key="test-key",
        api_football_base_url="https://api.test",
        max_retries=2,
        retry_backoff_base=0.001,
        max_retry_delay=0.01,
        max_requests_per_minute=600,
        min_request_interval=0.0,
    )
    values.update(overrides)
    return SimpleNamespace(**values)


def _run(handler, ids, **overrides):
    async def scenario():
        async with APIFootballClient(_config(**overrides), transport=httpx.MockTransport(handler)) as client:
            return await client.get_fixtures_by_ids(ids)
    return asyncio.run(scenario())


def _body(ids):
    return {"errors": [], "response": [
        {"fixture": {"id": int(i), "status": {"short": "NS"}}, "goals": {"home": None, "away": None}}
        for i in ids
    ]}


def test_ids_are_batched_twenty_per_request():
    seen = []

    def handler(request):
        assert request.headers["x-apisports-key"] == "test-key"
        ids = request.url.params["ids"].split("-")
        seen.append(ids)
        return httpx.Response(200, json=_body(ids))

    fixtures = _run(handler, range(1, 26))

    assert [len(batch) for batch in seen] == [20, 5]
    assert len(fixtures) == 25


def test_server_error_is_retried():
    calls = []

    def handler(request):
        calls.append(request)
        if len(calls) == 1:
            return httpx.Response(503, text="busy")
        return httpx.Response(200, json=_body(["7"]))

    fixtures = _run(handler, [7])

    assert len(calls) == 2
    assert fixtures[0]["fixture"]["id"] == 7


def test_persistent_server_error_gives_up():
    def handler(request):
        return httpx.Response(500, text="boom")

    with pytest.raises(APIFootballError):
        _run(handler, [1])


def test_client_error_is_not_retried():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(403, text="forbidden")

    with pytest.raises(APIFootballNonRetryableError):
        _run(handler, [1])
    assert len(calls) == 1


def test_errors_in_success_body_raise():
    def handler(request):
        return httpx.Response(200, json={"errors": {"requests": "limit reached"}, "response": []})

    with pytest.raises(APIFootballNonRetryableError):
        _run(handler, [1])


def test_missing_key_is_rejected():
    with pytest.raises(ValueError):
        APIFootballClient(_config(api_football_key=""))
