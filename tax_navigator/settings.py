"""
Runtime configuration.

Values are read from environment variables prefixed with ``TAX_NAVIGATOR_``,
e.g. ``TAX_NAVIGATOR_API_URL=https://research.example.com/api/v1``.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings for the research client and CLI defaults."""

    model_config = SettingsConfigDict(env_prefix="TAX_NAVIGATOR_")

    api_url: str = "http://localhost:8000/api/v1"
    request_timeout: float = 30.0
    default_state: str = "NY"
    log_level: str = "WARNING"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
