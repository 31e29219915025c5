"""Tests for environment-driven settings."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from launchdeck.orchestrator.settings import LaunchdeckSettings, get_settings


def test_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("LAUNCHDECK_REDIS_URL", "LAUNCHDECK_AUTH_TOKEN", "LAUNCHDECK_RECONNECT_BUDGET"):
        monkeypatch.delenv(name, raising=False)

    settings = LaunchdeckSettings(_env_file=None)

    assert settings.reconnect_budget == 50
    assert settings.retry_delay == 1.0
    assert settings.agent_url_strategy == "link"
    assert settings.redis_url is None
    assert settings.auth_token is None


def test_env_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LAUNCHDECK_API_URL", "https://che.example")
    monkeypatch.setenv("LAUNCHDECK_RECONNECT_BUDGET", "7")
    monkeypatch.setenv("LAUNCHDECK_AGENT_URL_STRATEGY", "fixed_port")
    monkeypatch.setenv("LAUNCHDECK_AUTH_TOKEN", "t0ken")

    settings = get_settings()

    assert settings.api_url == "https://che.example"
    assert settings.reconnect_budget == 7
    assert settings.agent_url_strategy == "fixed_port"
    assert settings.auth_token is not None
    assert settings.auth_token.get_secret_value() == "t0ken"
    assert "t0ken" not in repr(settings)


def test_settings_are_cached(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LAUNCHDECK_RETRY_DELAY", "0.5")
    first = get_settings()
    monkeypatch.setenv("LAUNCHDECK_RETRY_DELAY", "2")

    assert get_settings() is first
    get_settings.cache_clear()
    assert get_settings().retry_delay == 2.0


def test_invalid_strategy(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LAUNCHDECK_AGENT_URL_STRATEGY", "guess")
    with pytest.raises(ValidationError):
        LaunchdeckSettings(_env_file=None)


def test_reconnect_budget_must_be_positive(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LAUNCHDECK_RECONNECT_BUDGET", "0")
    with pytest.raises(ValidationError):
        LaunchdeckSettings(_env_file=None)
