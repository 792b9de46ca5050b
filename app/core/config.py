# app/core/config.py
# All application settings loaded from environment variables / .env file
# In production (Cloud Run): values come from GCP Secret Manager via env injection
# In development: loaded from .env file via python-dotenv

from functools import lru_cache
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Single source of truth for all TutorLink configuration.
    pydantic-settings automatically reads from environment variables.
    Variable names are case-insensitive.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore unknown env vars (safe for Cloud Run)
    )

    # App
    app_env: str = "development"
    app_name: str = "TutorLink"
    app_version: str = "1.0.0"
    debug: bool = False
    log_level: str = "INFO"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    allowed_origins: str = "http://localhost:3000,http://localhost:5173"

    # Database
    database_url: str
    auto_migrate_on_startup: bool = False

    # JWT
    jwt_secret_key: str
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60

    # Razorpay
    razorpay_key_id: str = ""
    razorpay_key_secret: str = ""
    payment_currency: str = "INR"

    # Share of the gross tuition payment kept by the platform
    platform_fee_fraction: float = Field(default=0.6, ge=0.0, le=1.0)

    # Frontend base URL -- checkout callbacks land here
    client_url: str = "http://localhost:5173"

    # SendGrid
    sendgrid_api_key: str = ""
    email_from: str = "noreply@tutorlink.app"
    email_from_name: str = "TutorLink"

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    @property
    def cors_origins(self) -> List[str]:
        """Parse comma-separated ALLOWED_ORIGINS into a list."""
        return [o.strip() for o in self.allowed_origins.split(",") if o.strip()]


@lru_cache
def get_settings() -> Settings:
    """
    Returns a cached Settings instance.
    Use as a FastAPI dependency: settings = Depends(get_settings)
    Or import directly:         from app.core.config import settings
    """
    return Settings()


# Module-level singleton -- import this directly in most places
settings = get_settings()
