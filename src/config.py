from __future__ import annotations

from datetime import date

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # OpenAlex
    OPENALEX_BASE_URL: str = "https://api.openalex.org"
    OPENALEX_MAILTO: str = "you@example.org"
    OPENALEX_TIMEOUT_SECONDS: float = 30.0
    OPENALEX_MAX_ATTEMPTS: int = Field(default=3, ge=1)
    OPENALEX_MAX_RETRY_AFTER_SECONDS: float = Field(default=60.0, ge=0)
    OPENALEX_REQUESTS_PER_SECOND: float = Field(
        default=10.0, ge=0, description="Token bucket rate; 0 disables the limiter"
    )

    # Graph build
    FUNDER_YEARS: int = Field(default=5, ge=1)
    PANEL_YEARS: int = Field(default=5, ge=1)
    TOPK_FUNDERS: int = Field(default=25, gt=0)
    MIN_EDGE: int = Field(default=2, ge=1)
    NEIGHBOR_BATCH_SIZE: int = Field(default=3, gt=0)
    NEIGHBOR_BATCH_DELAY_SECONDS: float = Field(default=1.0, ge=0)
    PROFILE_DELAY_SECONDS: float = Field(default=0.2, ge=0)
    ENRICHMENT_TOP_N: int = Field(default=5, gt=0)

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = Field(default="json", description="'json' for production, 'console' for dev")


def get_settings() -> Settings:
    return Settings()


def calculate_from_year(years_back: int, today: date | None = None) -> int:
    """First year of a lookback window of ``years_back`` years ending this year."""
    current = (today or date.today()).year
    return current - (years_back - 1)
