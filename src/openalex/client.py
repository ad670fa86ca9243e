"""Async OpenAlex HTTP client with retry, backoff and polite-pool contact."""

from __future__ import annotations

import asyncio
import math
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any
from urllib.parse import quote

import httpx

from src.config import Settings
from src.utils.exceptions import (
    ApiError,
    ClientRequestError,
    RateLimitedError,
    UpstreamNetworkError,
    UpstreamServerError,
)
from src.utils.logging import get_logger
from src.utils.rate_limiter import TokenBucketRateLimiter, create_rate_limiter
from src.utils.retry import SleepFunc, call_with_retry

logger = get_logger(__name__)

USER_AGENT = "FunderScape/1.0"
DEFAULT_MAX_RETRY_AFTER = 60.0


class OpenAlexClient:
    """Issues ``GET`` requests against the OpenAlex REST API.

    The transport and the sleep coroutine are injectable so tests can
    replay canned responses without touching the network or the clock.
    """

    def __init__(
        self,
        settings: Settings,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: SleepFunc = asyncio.sleep,
        rate_limiter: TokenBucketRateLimiter | None = None,
    ) -> None:
        self._mailto = settings.OPENALEX_MAILTO
        self._max_attempts = settings.OPENALEX_MAX_ATTEMPTS
        self._max_retry_after = settings.OPENALEX_MAX_RETRY_AFTER_SECONDS
        self._sleep = sleep
        self._limiter = rate_limiter or create_rate_limiter(settings.OPENALEX_REQUESTS_PER_SECOND)
        self._http = httpx.AsyncClient(
            base_url=settings.OPENALEX_BASE_URL.rstrip("/"),
            transport=transport,
            timeout=settings.OPENALEX_TIMEOUT_SECONDS,
            headers={"Accept": "application/json", "User-Agent": USER_AGENT},
        )

    async def __aenter__(self) -> OpenAlexClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    def with_contact(self, path_and_query: str) -> str:
        sep = "&" if "?" in path_and_query else "?"
        return f"{path_and_query}{sep}mailto={quote(self._mailto, safe='')}"

    async def call(self, path_and_query: str) -> Any:
        """Fetch ``path_and_query`` and return the decoded JSON body.

        Raises ``ApiError`` once the retry budget is spent or on a
        non-transient response.
        """
        url = self.with_contact(path_and_query)
        return await call_with_retry(
            lambda: self._request_once(url),
            max_attempts=self._max_attempts,
            sleep=self._sleep,
            label=path_and_query.split("?", 1)[0],
        )

    async def _request_once(self, url: str) -> Any:
        if self._limiter is not None:
            await self._limiter.acquire()

        try:
            resp = await self._http.get(url)
        except httpx.TransportError as exc:
            raise UpstreamNetworkError(f"{type(exc).__name__}: {exc}") from exc

        status = resp.status_code
        if resp.is_success:
            try:
                return resp.json()
            except ValueError as exc:
                raise ApiError(f"Invalid JSON from OpenAlex: {exc}", status_code=status) from exc

        message = f"HTTP {status}: {resp.reason_phrase}"
        if status == 429:
            raise RateLimitedError(
                message,
                status_code=status,
                retry_after=parse_retry_after(
                    resp.headers.get("Retry-After"), max_seconds=self._max_retry_after
                ),
            )
        if status >= 500:
            raise UpstreamServerError(message, status_code=status)

        logger.warning("openalex_client_error", status=status, url=str(resp.request.url))
        raise ClientRequestError(message, status_code=status)


def parse_retry_after(
    value: str | None,
    now: datetime | None = None,
    max_seconds: float = DEFAULT_MAX_RETRY_AFTER,
) -> float | None:
    """Seconds to wait from a ``Retry-After`` header (delta-seconds or HTTP-date).

    Non-finite values are ignored and the result is capped at ``max_seconds``.
    """
    if not value:
        return None
    value = value.strip()
    try:
        seconds = float(value)
    except ValueError:
        try:
            when = parsedate_to_datetime(value)
        except (TypeError, ValueError):
            return None
        if when.tzinfo is None:
            when = when.replace(tzinfo=timezone.utc)
        now = now or datetime.now(timezone.utc)
        seconds = (when - now).total_seconds()
    if not math.isfinite(seconds):
        return None
    return min(max(0.0, seconds), max_seconds)
