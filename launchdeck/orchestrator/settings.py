"""Orchestrator configuration loaded from LAUNCHDECK_* environment variables."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class LaunchdeckSettings(BaseSettings):
    """Launchdeck settings.

    All fields are read from environment variables with the ``LAUNCHDECK_``
    prefix.  For example, ``LAUNCHDECK_RETRY_DELAY=0.5`` maps to
    ``retry_delay``.
    """

    model_config = SettingsConfigDict(
        env_prefix="LAUNCHDECK_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # -- Logging ---------------------------------------------------------------
    log_level: str = "INFO"
    log_json: bool = False
    """Write log records as JSON lines instead of the coloured text format."""

    # -- Workspace Control -----------------------------------------------------
    api_url: str = "http://localhost:8080"
    """Base URL of the Workspace Control service (``/api/workspace`` lives under it)."""

    auth_token: SecretStr | None = None
    """Bearer token sent with every control-plane request, if set."""

    request_timeout: float = 30.0
    status_poll_interval: float = 1.0
    """Seconds between status reads while waiting for RUNNING / ERROR."""

    # -- Bus -------------------------------------------------------------------
    redis_url: str | None = None
    """Redis connection string for status/output channels.  Unset means in-process bus."""

    # -- Agent connection ------------------------------------------------------
    reconnect_budget: int = Field(default=50, ge=1)
    retry_delay: float = Field(default=1.0, ge=0)
    agent_url_strategy: Literal["link", "fixed_port"] = "link"
    agent_port: int = 8080
    agent_path: str = "/wsagent/ws"
    """Only used when ``agent_url_strategy`` is ``fixed_port``."""


@lru_cache(maxsize=1)
def get_settings() -> LaunchdeckSettings:
    """Return a cached settings instance.

    Call ``get_settings.cache_clear()`` in tests after overriding env vars.
    """
    return LaunchdeckSettings()
