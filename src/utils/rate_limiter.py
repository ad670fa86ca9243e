"""Token bucket rate limiter for outbound OpenAlex requests."""

from __future__ import annotations

import asyncio
import time

from src.utils.logging import get_logger

logger = get_logger(__name__)


class TokenBucketRateLimiter:
    """In-process token bucket rate limiter.

    Shared by every call made through one client, so concurrent neighbor
    and enrichment fetches draw from the same budget.
    """

    def __init__(self, rate: float, capacity: int) -> None:
        if rate <= 0:
            raise ValueError("rate must be positive")
        self._rate = rate  # tokens per second
        self._capacity = capacity
        self._tokens = float(capacity)
        self._last_refill = time.monotonic()
        self._lock = asyncio.Lock()

    async def acquire(self) -> None:
        """Wait until a token is available, then consume it."""
        async with self._lock:
            self._refill()
            while self._tokens < 1.0:
                wait = (1.0 - self._tokens) / self._rate
                logger.debug("rate_limiter_wait", wait=round(wait, 3))
                await asyncio.sleep(wait)
                self._refill()
            self._tokens -= 1.0

    def _refill(self) -> None:
        now = time.monotonic()
        elapsed = now - self._last_refill
        self._tokens = min(self._capacity, self._tokens + elapsed * self._rate)
        self._last_refill = now


def create_rate_limiter(requests_per_second: float) -> TokenBucketRateLimiter | None:
    if requests_per_second <= 0:
        return None
    return TokenBucketRateLimiter(
        rate=requests_per_second,
        capacity=max(1, int(requests_per_second)),
    )
