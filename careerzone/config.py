"""Application configuration settings."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_FILE = ".env"
ENV_FILE_ENCODING = "utf-8"


class Settings(BaseSettings):
    """Application configuration values loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=ENV_FILE, env_file_encoding=ENV_FILE_ENCODING, extra="ignore"
    )

    database_url: str = Field(
        description="Database connection URL used by SQLAlchemy to connect to the DB",
        min_length=1,
    )
    secret_key: str = Field(
        description="Secret key used to verify bearer tokens", min_length=1
    )
    internal_api_key: str | None = Field(
        default=None,
        description="Shared key required by internal endpoints (X-Internal-Key header)",
    )
    app_timezone: str = Field(
        default="UTC",
        description="Timezone used to localize timestamps stored in the database",
    )
    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:3000"],
        description="Origins allowed to call the API from a browser",
    )
    notification_retention_days: int = Field(
        default=30,
        description="Days a notification is kept before the sweep deletes it",
        gt=0,
    )
    notification_sweep_interval_seconds: int = Field(
        default=3600,
        description="Seconds between retention sweeps; 0 disables the sweep",
        ge=0,
    )
    notification_max_attempts: int = Field(
        default=3,
        description="Attempts made to merge a rollup after losing an insert race",
        ge=1,
    )
    ledger_max_attempts: int = Field(
        default=3,
        description="Attempts made to apply a credit transaction on balance conflicts",
        ge=1,
    )
    ledger_retry_backoff_seconds: float = Field(
        default=0.05,
        description="Base delay between credit ledger retries, multiplied by the attempt",
        ge=0,
    )

    @model_validator(mode="after")
    def _validate_internal_key(self) -> "Settings":
        if self.internal_api_key is not None and not self.internal_api_key.strip():
            raise ValueError("INTERNAL_API_KEY must not be blank when provided")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings instance."""

    return Settings()


__all__ = ["Settings", "get_settings"]
