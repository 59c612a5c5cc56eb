"""Tests for environment-driven settings."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from larder.config import Settings, get_settings


def test_defaults():
    settings = Settings()

    assert settings.low_stock_threshold == 0.25
    assert settings.activity_retention_days == 28
    assert settings.activity_max_entries == 100
    assert settings.api_token is None


def test_environment_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv("LARDER_API_TOKEN", "abc")
    monkeypatch.setenv("LARDER_LOW_STOCK_THRESHOLD", "0.4")
    monkeypatch.setenv("LARDER_ACTIVITY_MAX_ENTRIES", "10")
    monkeypatch.setenv("LARDER_LOG_REQUESTS", "no")
    get_settings.cache_clear()

    settings = get_settings()

    assert settings.database_path == tmp_path / "test_larder.db"
    assert settings.api_token == "abc"
    assert settings.low_stock_threshold == 0.4
    assert settings.activity_max_entries == 10
    assert settings.log_requests is False


def test_unparseable_numbers_fall_back_to_defaults(monkeypatch):
    monkeypatch.setenv("LARDER_ACTIVITY_RETENTION_DAYS", "a month")
    get_settings.cache_clear()

    assert get_settings().activity_retention_days == 28


def test_env_file_is_read(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("LARDER_DATABASE_PATH", raising=False)
    Path(".env").write_text("# local\nLARDER_DATABASE_PATH=/tmp/from-env-file.db\n", encoding="utf-8")
    get_settings.cache_clear()

    assert get_settings().database_path == Path("/tmp/from-env-file.db")


def test_threshold_must_be_positive():
    with pytest.raises(ValidationError):
        Settings(low_stock_threshold=0)
