""" Runtime configuration loaded from the environment (and an optional .env file). """

import logging
from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # n8n API
    n8n_url: str = Field(default="http://localhost:5678", description="Base URL of the n8n instance")
    n8n_api_key: str = Field(default="", description="Value sent as X-N8N-API-KEY")
    n8n_timeout: float = Field(default=30.0, description="HTTP timeout in seconds")

    # Session store
    redis_url: Optional[str] = Field(default=None, description="Redis URL; enables the shared store")
    session_store: Literal["auto", "memory", "redis"] = "auto"
    session_ttl_seconds: int = Field(default=30 * 60, gt=0)
    cleanup_interval_seconds: int = Field(default=5 * 60, ge=0)
    expired_retention_seconds: int = Field(default=24 * 60 * 60, ge=0)

    commit_retry_escalation: int = Field(default=3, ge=1)

    log_level: str = "INFO"


@lru_cache()
def get_settings() -> Settings:
    return Settings()


def reset_settings() -> None:
    """Drop the cached settings (tests that change the environment call this)."""
    get_settings.cache_clear()


def configure_logging(level: Optional[str] = None) -> None:
    logging.basicConfig(
        level=(level or get_settings().log_level).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
