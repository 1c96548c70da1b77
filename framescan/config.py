"""
Runtime settings.

Values come from FRAMESCAN_* environment variables or a local .env file.
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

MAX_CONCURRENCY_LIMIT = 8


class Settings(BaseSettings):
    """Scanner settings loaded from environment."""

    model_config = SettingsConfigDict(
        env_prefix="FRAMESCAN_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Recognition engine: "paddle" or "mock"
    engine: str = "paddle"
    default_language: str = "en"
    min_score: float = Field(default=0.5, ge=0.0, le=1.0)

    # Number of frame recognitions allowed in flight at once.
    # PaddleOCR is not reliably thread-safe, so the default stays at 1.
    max_concurrency: int = 1

    @field_validator("engine")
    @classmethod
    def _normalize_engine(cls, value: str) -> str:
        return value.strip().lower()

    @field_validator("max_concurrency")
    @classmethod
    def _clamp_concurrency(cls, value: int) -> int:
        # Clamp to keep memory usage predictable.
        return max(1, min(MAX_CONCURRENCY_LIMIT, value))


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
