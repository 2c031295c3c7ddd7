"""Application configuration using pydantic-settings.

All environment variables should be accessed through the settings object
rather than using os.getenv() directly. Webhook endpoints in particular are
read once into ``webhook_routes`` and handed to the notifier, instead of
being looked up per request.
"""

from functools import lru_cache
from typing import Dict, List, Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database - SQLite file by default, any SQLAlchemy URL via DATABASE_URL
    database_url: str = "sqlite:///./data/gamespace.db"
    db_connect_timeout_seconds: int = 10

    # CORS - comma-separated origins or "*" for development only
    cors_origins: str = "http://localhost:3000,http://localhost:8000"

    # Business day boundary for token numbers
    timezone: str = "Asia/Kolkata"

    # ==========================================================================
    # Webhooks
    # ==========================================================================
    # JSON object, e.g.
    #   WEBHOOK_ROUTES='{"PS5_1_ACTIVE": "https://...", "ENDED": "https://..."}'
    # Keys are "{TYPE}_{COUNTER}_{STATUS}" or just "{STATUS}" for the fallback.
    webhook_routes: Dict[str, str] = {}
    webhook_timeout_seconds: float = 5.0
    webhook_retries: int = 1

    # Session-open serialization per device
    device_lock_timeout_seconds: float = 5.0

    # Insert the default device roster when the devices table is empty
    seed_devices_on_startup: bool = True

    # Server
    debug: bool = True
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # API
    api_v1_prefix: str = "/api/v1"

    # Rate limiting
    rate_limit_enabled: bool = True

    @field_validator("webhook_routes")
    @classmethod
    def normalize_webhook_keys(cls, v: Dict[str, str]) -> Dict[str, str]:
        """Upper-case route keys and drop empty URLs."""
        return {key.strip().upper(): url.strip() for key, url in v.items() if url and url.strip()}

    @field_validator("webhook_retries")
    @classmethod
    def validate_retries(cls, v: int) -> int:
        if v < 0 or v > 1:
            raise ValueError("webhook_retries must be 0 or 1")
        return v

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins into a list."""
        if self.cors_origins == "*":
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
