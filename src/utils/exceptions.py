"""Custom exception hierarchy for the funder graph service."""

from __future__ import annotations


class FunderScapeError(Exception):
    """Base exception for all funder graph errors."""


class ApiError(FunderScapeError):
    """OpenAlex request failure."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    @property
    def kind(self) -> str:
        return type(self).__name__


class TransientApiError(ApiError):
    """Failure worth retrying (rate limiting, server errors, network)."""

    backoff_seconds: float = 1.0

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        retry_after: float | None = None,
    ) -> None:
        super().__init__(message, status_code)
        self.retry_after = retry_after

    def delay_for(self, attempt: int) -> float:
        if self.retry_after is not None:
            return self.retry_after
        return self.backoff_seconds * attempt


class RateLimitedError(TransientApiError):
    """HTTP 429 from OpenAlex."""

    backoff_seconds = 2.0


class UpstreamServerError(TransientApiError):
    """HTTP 5xx from OpenAlex."""


class UpstreamNetworkError(TransientApiError):
    """Connection, DNS or timeout failure before a response arrived."""


class ClientRequestError(ApiError):
    """Non-transient 4xx response (anything but 429)."""


class GraphBuildError(FunderScapeError):
    """The seed funder query failed, so no graph can be built."""


class InvalidGraphRequestError(FunderScapeError, ValueError):
    """Graph build parameters out of range."""
