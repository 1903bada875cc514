"""
Runtime configuration.

Settings are read from environment variables prefixed with
``TAX_RESOLVER_`` (or a ``.env`` file) and validated by Pydantic.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

BUNDLED_RESOURCE_PATH = Path(__file__).resolve().parent / "data"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class Settings(BaseSettings):
    """Library settings."""

    model_config = SettingsConfigDict(
        env_prefix="TAX_RESOLVER_",
        env_file=".env",
        extra="ignore",
    )

    resource_path: Optional[Path] = Field(
        default=None,
        description="Directory holding tax_type/ and zone/ records",
    )
    log_level: str = Field(default="WARNING", description="Minimum log level")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}")
        return level

    @property
    def definition_path(self) -> Path:
        """The resource root to load records from."""
        return self.resource_path or BUNDLED_RESOURCE_PATH


@lru_cache
def get_settings() -> Settings:
    return Settings()
