from __future__ import annotations

import pytest

from coursetrack.core.config import load_settings

_ENV_VARS = (
    "APP_ENV",
    "LOG_LEVEL",
    "LOG_JSON",
    "PORT",
    "REDIS_URL",
    "API_BASE_URL",
    "CLOCK_TICK_SECONDS",
    "PERSIST_INTERVAL_SECONDS",
    "CHAPTER_SUPPRESS_SECONDS",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


# ---- valid values ----


def test_load_settings_defaults() -> None:
    settings = load_settings()
    assert settings.app_env == "dev"
    assert settings.log_level == "info"
    assert settings.log_json is False
    assert settings.port == 8000
    assert settings.redis_url is None
    assert settings.api_base_url == "http://localhost:8000"
    assert settings.clock_tick_seconds == 1.0
    assert settings.persist_interval_seconds == 5.0
    assert settings.chapter_suppress_seconds == 1.25
    assert settings.is_dev and not settings.is_prod


def test_load_settings_normalizes_case_and_whitespace(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("APP_ENV", "  PROD ")
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    monkeypatch.setenv("LOG_JSON", "True")
    settings = load_settings()
    assert settings.app_env == "prod"
    assert settings.log_level == "debug"
    assert settings.log_json is True


def test_playback_timings_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CLOCK_TICK_SECONDS", "0.5")
    monkeypatch.setenv("PERSIST_INTERVAL_SECONDS", "10")
    monkeypatch.setenv("CHAPTER_SUPPRESS_SECONDS", "2")
    settings = load_settings()
    assert settings.clock_tick_seconds == 0.5
    assert settings.persist_interval_seconds == 10.0
    assert settings.chapter_suppress_seconds == 2.0


def test_api_base_url_trailing_slash_dropped(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("API_BASE_URL", "https://api.example.com/")
    assert load_settings().api_base_url == "https://api.example.com"


# ---- invalid values ----


def test_rejects_invalid_app_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("APP_ENV", "staging")
    with pytest.raises(ValueError, match="APP_ENV must be dev|test|prod"):
        load_settings()


def test_rejects_invalid_log_level(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LOG_LEVEL", "verbose")
    with pytest.raises(ValueError, match="LOG_LEVEL must be"):
        load_settings()


def test_rejects_invalid_log_json(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LOG_JSON", "yes")
    with pytest.raises(ValueError, match="LOG_JSON must be true|false"):
        load_settings()


def test_rejects_non_integer_port(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PORT", "eighty")
    with pytest.raises(ValueError, match="PORT must be an integer"):
        load_settings()


@pytest.mark.parametrize("raw", ["0", "-1", "nan"])
def test_rejects_non_positive_interval(monkeypatch: pytest.MonkeyPatch, raw: str) -> None:
    monkeypatch.setenv("PERSIST_INTERVAL_SECONDS", raw)
    with pytest.raises(ValueError, match="PERSIST_INTERVAL_SECONDS must be positive"):
        load_settings()


def test_rejects_non_numeric_interval(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CLOCK_TICK_SECONDS", "fast")
    with pytest.raises(ValueError, match="CLOCK_TICK_SECONDS must be a number"):
        load_settings()
