"""Application configuration with environment variables."""

from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Environment
    ENV: str = "dev"

    # App Version (format: a.bc.de - major.feature.patch)
    VERSION: str = "0.01.00"

    # Database (only used by the "database" store backend)
    DATABASE_URL: str = "sqlite:///./slotbook.db"

    # Store backend, selected once at process start
    STORE_BACKEND: Literal["memory", "database"] = "database"

    # Notifications
    NOTIFIER_BACKEND: Literal["log", "webhook"] = "log"
    NOTIFY_WEBHOOK_URL: str = ""
    NOTIFY_WEBHOOK_TIMEOUT_SECONDS: float = 5.0

    # Public booking page base URL (booking links and embed codes)
    PUBLIC_APP_URL: str = "http://localhost:3000"

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000"

    # Availability requests are clamped to this many days
    AVAILABILITY_MAX_DAYS: int = 62

    # Rate Limiting
    RATE_LIMIT_BOOKING: str = "10/minute"  # Public booking submissions
    RATE_LIMIT_API: int = 120  # General API, requests per minute

    # Error Tracking (optional, set in production)
    SENTRY_DSN: str = ""

    LOG_LEVEL: str = "INFO"

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS_ORIGINS into a list."""
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    @property
    def public_app_url(self) -> str:
        return self.PUBLIC_APP_URL.rstrip("/")


settings = Settings()
