"""Unit tests for the OpenAlex HTTP client retry policy."""

from __future__ import annotations

from datetime import datetime, timezone
from unittest.mock import AsyncMock

import httpx
import pytest

from src.openalex.client import OpenAlexClient, parse_retry_after
from src.utils.exceptions import (
    ApiError,
    ClientRequestError,
    RateLimitedError,
    UpstreamNetworkError,
)


def _client(settings, responses, sleep=None):
    """Client whose transport replays ``responses`` in order and records requests."""
    seen: list[httpx.Request] = []
    queue = list(responses)

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        item = queue.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    client = OpenAlexClient(
        settings,
        transport=httpx.MockTransport(handler),
        sleep=sleep or AsyncMock(),
    )
    return client, seen


@pytest.mark.asyncio
async def test_call_appends_mailto_and_returns_json(settings):
    client, seen = _client(settings, [httpx.Response(200, json={"group_by": []})])
    async with client:
        data = await client.call("/works?filter=topics.id:T1")

    assert data == {"group_by": []}
    assert seen[0].url.params["mailto"] == "test@example.org"
    assert seen[0].url.params["filter"] == "topics.id:T1"
    assert seen[0].url.host == "api.openalex.test"
    assert seen[0].headers["accept"] == "application/json"


@pytest.mark.asyncio
async def test_mailto_uses_question_mark_without_query(settings):
    client, seen = _client(settings, [httpx.Response(200, json={})])
    async with client:
        await client.call("/funders/F1")

    assert seen[0].url.path == "/funders/F1"
    assert seen[0].url.params["mailto"] == "test@example.org"


@pytest.mark.asyncio
async def test_three_rate_limits_exhaust_attempts(settings):
    sleep = AsyncMock()
    client, seen = _client(
        settings,
        [
            httpx.Response(429, headers={"Retry-After": "3"}),
            httpx.Response(429),
            httpx.Response(429),
        ],
        sleep=sleep,
    )
    async with client:
        with pytest.raises(ApiError, match="Failed after 3 attempts: HTTP 429") as excinfo:
            await client.call("/works")

    assert len(seen) == 3
    # Retry-After honoured first, then 2s x attempt; nothing after the last try.
    assert [c.args[0] for c in sleep.await_args_list] == [3.0, 4.0]
    assert isinstance(excinfo.value.__cause__, RateLimitedError)


@pytest.mark.asyncio
async def test_server_error_then_success(settings):
    sleep = AsyncMock()
    client, seen = _client(
        settings,
        [httpx.Response(503), httpx.Response(200, json={"ok": True})],
        sleep=sleep,
    )
    async with client:
        assert await client.call("/works") == {"ok": True}

    assert len(seen) == 2
    sleep.assert_awaited_once_with(1.0)


@pytest.mark.asyncio
async def test_client_error_is_not_retried(settings):
    sleep = AsyncMock()
    client, seen = _client(settings, [httpx.Response(404)], sleep=sleep)
    async with client:
        with pytest.raises(ClientRequestError, match="HTTP 404") as excinfo:
            await client.call("/funders/F0")

    assert excinfo.value.status_code == 404
    assert len(seen) == 1
    sleep.assert_not_awaited()


@pytest.mark.asyncio
async def test_network_errors_retry_then_fail(settings):
    sleep = AsyncMock()
    client, seen = _client(
        settings,
        [httpx.ConnectError("boom"), httpx.ConnectError("boom"), httpx.ConnectError("boom")],
        sleep=sleep,
    )
    async with client:
        with pytest.raises(ApiError, match="boom") as excinfo:
            await client.call("/works")

    assert len(seen) == 3
    assert [c.args[0] for c in sleep.await_args_list] == [1.0, 2.0]
    assert isinstance(excinfo.value.__cause__, UpstreamNetworkError)


@pytest.mark.asyncio
async def test_invalid_json_is_not_retried(settings):
    client, seen = _client(settings, [httpx.Response(200, text="<html>")])
    async with client:
        with pytest.raises(ApiError, match="Invalid JSON"):
            await client.call("/works")
    assert len(seen) == 1


@pytest.mark.asyncio
async def test_max_attempts_from_settings(settings):
    settings.OPENALEX_MAX_ATTEMPTS = 1
    client, seen = _client(settings, [httpx.Response(500)])
    async with client:
        with pytest.raises(ApiError, match="Failed after 1 attempts"):
            await client.call("/works")
    assert len(seen) == 1


def test_parse_retry_after_seconds_and_dates():
    now = datetime(2025, 1, 1, 12, 0, 0, tzinfo=timezone.utc)
    assert parse_retry_after("5", now=now) == 5.0
    assert parse_retry_after("Wed, 01 Jan 2025 12:00:30 GMT", now=now) == 30.0
    assert parse_retry_after("Wed, 01 Jan 2025 11:00:00 GMT", now=now) == 0.0
    assert parse_retry_after(None) is None
    assert parse_retry_after("soon") is None
    assert parse_retry_after("inf") is None
    assert parse_retry_after("nan") is None
    assert parse_retry_after("1e9") == 60.0
    assert parse_retry_after("90", max_seconds=30.0) == 30.0
    assert parse_retry_after("Thu, 01 Jan 2026 12:00:00 GMT", now=now) == 60.0


@pytest.mark.asyncio
async def test_retry_after_is_capped_by_settings(settings):
    settings.OPENALEX_MAX_RETRY_AFTER_SECONDS = 10.0
    sleep = AsyncMock()
    client, seen = _client(
        settings,
        [httpx.Response(429, headers={"Retry-After": "1e9"}), httpx.Response(200, json={})],
        sleep=sleep,
    )
    async with client:
        assert await client.call("/works") == {}

    assert len(seen) == 2
    sleep.assert_awaited_once_with(10.0)
