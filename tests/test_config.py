from __future__ import annotations

import pytest

from stealthmail.config import DEVELOPMENT_ORIGINS, PRODUCTION_ORIGINS, Settings


ENV_KEYS = [
    "MAIL_API_BASE_URL",
    "MAIL_API_TIMEOUT",
    "NOTION_TOKEN",
    "NOTION_DATABASE_ID",
    "APP_ENV",
    "ALLOWED_ORIGINS",
    "RATE_LIMIT_MAX",
    "PORT",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def test_defaults() -> None:
    settings = Settings.load()
    assert settings.mail_api_base_url == "https://api.mail.tm"
    assert settings.mail_api_timeout == 30.0
    assert settings.environment == "development"
    assert settings.allowed_origins == DEVELOPMENT_ORIGINS
    assert settings.rate_limit_window_seconds == 900
    assert settings.rate_limit_max == 100
    assert settings.port == 3001
    assert settings.notion_configured is False


def test_values_are_stripped(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("NOTION_TOKEN", "  secret\n")
    monkeypatch.setenv("NOTION_DATABASE_ID", "db-1 ")
    monkeypatch.setenv("MAIL_API_BASE_URL", "https://mirror.test/ ")
    settings = Settings.load()
    assert settings.notion_token == "secret"
    assert settings.notion_configured is True
    assert settings.mail_api_base_url == "https://mirror.test"


def test_production_origins(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("APP_ENV", "Production")
    settings = Settings.load()
    assert settings.is_production is True
    assert settings.allowed_origins == PRODUCTION_ORIGINS


def test_explicit_origins_and_bad_numbers(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ALLOWED_ORIGINS", "https://a.test, https://b.test,")
    monkeypatch.setenv("RATE_LIMIT_MAX", "lots")
    monkeypatch.setenv("MAIL_API_TIMEOUT", "soon")
    settings = Settings.load()
    assert settings.allowed_origins == ["https://a.test", "https://b.test"]
    assert settings.rate_limit_max == 100
    assert settings.mail_api_timeout == 30.0
