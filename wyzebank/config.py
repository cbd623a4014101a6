"""Application configuration settings."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, field_validator
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
        description="Shared secret used to sign and verify session tokens",
        min_length=1,
    )
    session_token_expire_minutes: int = Field(
        default=24 * 60,
        description="Number of minutes before a session token expires",
        gt=0,
    )
    session_cookie_name: str = Field(
        default="wzb_lg",
        description="Cookie carrying the signed session token",
        min_length=1,
    )
    session_expiry_cookie_name: str = Field(
        default="wzb_lg_e",
        description="Companion cookie carrying the longer lived session token",
        min_length=1,
    )
    protected_prefix: str = Field(
        default="/app",
        description="Path prefix gated behind the session cookie",
    )
    login_path: str = Field(
        default="/login",
        description="Page anonymous visitors are redirected to",
    )
    activity_stream_queue_size: int = Field(
        default=100,
        description="Pending records buffered per live activity stream",
        gt=0,
    )
    activity_streams_per_user: int = Field(
        default=3,
        description="Maximum simultaneous live activity streams per user",
        gt=0,
    )
    activity_stream_open_rate_capacity: int = Field(
        default=6,
        description="Stream openings a user may burst before being throttled",
        gt=0,
    )
    activity_stream_open_rate_refill_seconds: float = Field(
        default=1.0,
        description="Seconds needed to earn back one stream opening",
        gt=0,
    )
    activity_stream_heartbeat_seconds: float = Field(
        default=20.0,
        description="Interval between heartbeat frames on idle activity streams",
        gt=0,
    )
    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:3000", "https://wyzebank.com"],
        description="Origins allowed to call the API with credentials",
    )
    log_level: str = Field(default="INFO", description="Root logging level")

    @field_validator("protected_prefix", "login_path")
    @classmethod
    def _validate_absolute_path(cls, value: str) -> str:
        if not value.startswith("/"):
            raise ValueError("Paths must start with '/'")
        if len(value) > 1:
            value = value.rstrip("/")
        return value

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        return value.strip().upper() or "INFO"


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings instance."""

    return Settings()


def reset_settings_cache() -> None:
    """Clear the settings cache to force reloading from the environment."""

    get_settings.cache_clear()


__all__ = ["Settings", "get_settings", "reset_settings_cache"]
