"""
Configuration for pacer, read from PACER_* environment variables.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class PacerSettings(BaseSettings):
    """Library-wide defaults."""

    model_config = SettingsConfigDict(
        env_prefix="PACER_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    log_level: str = Field(default="info")

    # Backend used when a factory is given no scheduler
    scheduler: Literal["threading", "asyncio"] = Field(default="threading")

    # Metrics
    metrics_enabled: bool = Field(default=False)
    metrics_namespace: str = Field(default="pacer")


@lru_cache(maxsize=None)
def get_settings() -> PacerSettings:
    """Get the process-wide settings."""
    return PacerSettings()


def reset_settings() -> None:
    """Drop cached settings so the next get_settings() re-reads the environment."""
    get_settings.cache_clear()
