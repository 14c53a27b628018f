"""Configuration settings using Pydantic Settings."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Database
    database_url: str

    environment: Literal["development", "production"] = "development"
    api_docs_enabled: bool | None = None

    # CORS
    cors_allow_origins: list[str] = ["http://localhost:3000"]
    cors_allow_methods: list[str] = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]
    cors_allow_headers: list[str] = [
        "Accept",
        "Authorization",
        "Content-Type",
        "X-Request-ID",
        "X-Company-ID",
        "X-Actor-ID",
        "X-Metrics-Token",
    ]
    cors_allow_credentials: bool = True

    # Respondent portal
    portal_base_url: str = "https://avaliacao.localhost"
    access_token_ttl_days: int = 7
    portal_rate_limit_per_minute: int = 30

    # Risk classification defaults (used when no stored settings are valid)
    default_low_risk_threshold: int = 30
    default_medium_risk_threshold: int = 60

    # Reminder pipeline
    reminder_dispatch_interval_minutes: int = 5
    reminder_batch_size: int = 100
    reminder_fire_hour_utc: int = 9
    reminder_max_attempts: int = 3
    reminder_retry_delays_seconds: list[int] = [300, 1800]
    notification_channel: Literal["log", "smtp"] = "log"

    # Metrics (required to expose /api/metrics in production)
    metrics_token: str | None = None

    @field_validator(
        "cors_allow_origins",
        "cors_allow_methods",
        "cors_allow_headers",
        mode="before",
    )
    @classmethod
    def _parse_csv_lists(cls, v):
        if v is None:
            return []
        if isinstance(v, str):
            return [item.strip() for item in v.split(",") if item.strip()]
        return v

    @field_validator("reminder_retry_delays_seconds", mode="before")
    @classmethod
    def _parse_delays(cls, v):
        if isinstance(v, str):
            return [int(item) for item in v.split(",") if item.strip()]
        return v

    # Email (reminder delivery)
    smtp_host: str = "localhost"
    smtp_port: int = 1025
    smtp_user: str = ""
    smtp_password: str = ""
    smtp_from: str = "noreply@psyrisk.local"
    smtp_starttls: bool = False
    smtp_timeout_seconds: float = 10.0

    @model_validator(mode="after")
    def _validate_settings(self) -> Settings:
        if not 0 <= self.reminder_fire_hour_utc <= 23:
            raise ValueError("REMINDER_FIRE_HOUR_UTC must be between 0 and 23")
        if self.reminder_max_attempts < 1:
            raise ValueError("REMINDER_MAX_ATTEMPTS must be at least 1")
        if self.access_token_ttl_days < 1:
            raise ValueError("ACCESS_TOKEN_TTL_DAYS must be at least 1")

        if self.environment != "production":
            return self

        if not self.portal_base_url.startswith("https://"):
            raise ValueError("PORTAL_BASE_URL must use https in production")
        if any(x == "*" for x in self.cors_allow_origins):
            raise ValueError("CORS_ALLOW_ORIGINS cannot contain '*' in production")
        if any(x == "*" for x in self.cors_allow_methods):
            raise ValueError("CORS_ALLOW_METHODS cannot contain '*' in production")

        return self


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
