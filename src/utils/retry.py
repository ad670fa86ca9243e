"""Async retry loop for transient OpenAlex failures."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, TypeVar

from src.utils.exceptions import ApiError, TransientApiError
from src.utils.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

SleepFunc = Callable[[float], Awaitable[None]]


async def call_with_retry(
    func: Callable[[], Awaitable[T]],
    *,
    max_attempts: int = 3,
    sleep: SleepFunc = asyncio.sleep,
    label: str = "",
) -> T:
    """Await ``func`` until it succeeds or the attempt budget runs out.

    Only ``TransientApiError`` is retried. Its ``delay_for(attempt)`` picks
    the wait: a server supplied ``Retry-After`` when present, otherwise a
    linear backoff keyed on the error kind. Anything else propagates on the
    first failure. No sleep happens after the final attempt.
    """
    last_exc: TransientApiError | None = None
    for attempt in range(1, max_attempts + 1):
        try:
            return await func()
        except TransientApiError as exc:
            last_exc = exc
            if attempt == max_attempts:
                break

            delay = exc.delay_for(attempt)
            logger.warning(
                "openalex_retry",
                target=label,
                kind=exc.kind,
                attempt=attempt,
                delay=round(delay, 2),
                error=str(exc),
            )
            await sleep(delay)

    if last_exc is None:
        raise RuntimeError(f"Exhausted retries for {label or func} without an attempt")
    raise ApiError(
        f"Failed after {max_attempts} attempts: {last_exc.message}",
        status_code=last_exc.status_code,
    ) from last_exc
