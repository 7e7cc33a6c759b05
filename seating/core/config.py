"""Application configuration via pydantic settings."""

from functools import lru_cache
from pathlib import Path

from typing import Any

from pydantic import Field
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Typed application configuration."""

    app_env: str = Field("local", alias="APP_ENV")
    app_name: str = "Seating Reservations API"
    api_v1_prefix: str = "/api/v1"

    database_url: str = Field(
        "sqlite+aiosqlite:///./seating.db", alias="DATABASE_URL"
    )
    sync_database_url: str | None = Field(default=None, alias="SYNC_DATABASE_URL")

    venue_name: str = Field("Seating Bistro", alias="VENUE_NAME")
    venue_timezone: str = Field("UTC", alias="VENUE_TIMEZONE")

    slot_granularity_minutes: int = Field(15, alias="BOOKING_SLOT_GRANULARITY_MINUTES")
    max_duration_minutes: int = Field(120, alias="BOOKING_MAX_DURATION_MINUTES")
    min_advance_minutes: int = Field(60, alias="BOOKING_MIN_ADVANCE_MINUTES")
    max_advance_days: int = Field(30, alias="BOOKING_MAX_ADVANCE_DAYS")
    buffer_minutes: int = Field(15, alias="BOOKING_BUFFER_MINUTES")
    max_party_size_online: int = Field(6, alias="BOOKING_MAX_PARTY_SIZE_ONLINE")
    max_capacity_threshold_percent: int = Field(
        90, alias="BOOKING_MAX_CAPACITY_THRESHOLD_PERCENT"
    )
    late_grace_minutes: int = Field(15, alias="BOOKING_LATE_GRACE_MINUTES")

    status_transitions_strict: bool = Field(True, alias="STATUS_TRANSITIONS_STRICT")
    booking_timeout_seconds: float = Field(10.0, alias="BOOKING_TIMEOUT_SECONDS")

    cors_allow_origins: list[str] = Field(
        default_factory=lambda: [
            "http://localhost:3000",
            "http://localhost:5173",
        ],
        alias="CORS_ALLOW_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=False, alias="CORS_ALLOW_CREDENTIALS")

    redis_url: str | None = Field(default=None, alias="REDIS_URL")
    rate_limit_default: str = Field("100/minute", alias="RATE_LIMIT_DEFAULT")
    rate_limit_booking: str = Field("20/minute", alias="RATE_LIMIT_BOOKING")

    model_config = SettingsConfigDict(
        env_file=Path(__file__).resolve().parents[2] / ".env",
        case_sensitive=False,
        populate_by_name=True,
    )

    @field_validator("cors_allow_origins", mode="before")
    @classmethod
    def _split_origins(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value


@lru_cache
def get_settings() -> Settings:
    """Return a cached settings instance."""
    return Settings()  # type: ignore[call-arg]
