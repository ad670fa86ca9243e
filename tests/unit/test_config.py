"""Unit tests for settings and lookback-window helpers."""

from __future__ import annotations

from datetime import date

from src.config import Settings, calculate_from_year


def test_from_year_counts_current_year():
    assert calculate_from_year(5, today=date(2025, 3, 1)) == 2021
    assert calculate_from_year(1, today=date(2025, 3, 1)) == 2025


def test_settings_read_environment(monkeypatch):
    monkeypatch.setenv("TOPK_FUNDERS", "40")
    monkeypatch.setenv("MIN_EDGE", "3")
    monkeypatch.setenv("NEIGHBOR_BATCH_SIZE", "5")

    settings = Settings(_env_file=None)

    assert settings.TOPK_FUNDERS == 40
    assert settings.MIN_EDGE == 3
    assert settings.NEIGHBOR_BATCH_SIZE == 5
    assert settings.FUNDER_YEARS == 5
    assert settings.OPENALEX_MAILTO == "test@example.org"
