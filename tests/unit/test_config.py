"""Unit tests for environment-driven settings."""

import pytest

from app.config import Settings


@pytest.mark.unit
def test_defaults_when_unset(monkeypatch):
    for name in ("CACHE_TTL_SECONDS", "CACHE_MAX_ITEMS", "RATE_LIMITED_CACHE_TTL_SECONDS"):
        monkeypatch.delenv(name, raising=False)

    settings = Settings(_env_file=None)

    assert settings.cache_ttl_seconds == 21600
    assert settings.cache_max_items == 200
    assert settings.rate_limited_cache_ttl_seconds == 30
    assert settings.rate_limited_cache_ttl_seconds < settings.cache_ttl_seconds


@pytest.mark.unit
def test_valid_environment_values(monkeypatch):
    monkeypatch.setenv("CACHE_TTL_SECONDS", "600")
    monkeypatch.setenv("CACHE_MAX_ITEMS", "25")
    monkeypatch.setenv("UPSTREAM_TIMEOUT_SECONDS", "2.5")

    settings = Settings(_env_file=None)

    assert settings.cache_ttl_seconds == 600
    assert settings.cache_max_items == 25
    assert settings.upstream_timeout_seconds == 2.5


@pytest.mark.unit
@pytest.mark.parametrize("raw", ["abc", "-5", "0", ""])
def test_invalid_environment_values_fall_back(monkeypatch, raw):
    monkeypatch.setenv("CACHE_TTL_SECONDS", raw)
    monkeypatch.setenv("RATE_LIMITED_CACHE_TTL_SECONDS", raw)
    monkeypatch.setenv("CACHE_MAX_ITEMS", raw)

    settings = Settings(_env_file=None)

    assert settings.cache_ttl_seconds == 21600
    assert settings.rate_limited_cache_ttl_seconds == 30
    assert settings.cache_max_items == 200


@pytest.mark.unit
def test_api_key_and_cors_helpers(monkeypatch):
    monkeypatch.setenv("RAPIDAPI_KEY", "  ")
    monkeypatch.setenv("CORS_ALLOW_ORIGINS", "https://a.example, https://b.example")

    settings = Settings(_env_file=None)

    assert settings.has_api_key is False
    assert settings.cors_origins == ["https://a.example", "https://b.example"]
