"""
Configuration management using Pydantic settings.
Handles database URL, JWT secrets and third-party vendor credentials.
"""

from pydantic import field_validator
from pydantic_settings import BaseSettings
from typing import Optional, List
from decimal import Decimal
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from the environment and `.env`."""

    # Application configuration
    app_name: str = "Credora API"
    app_version: str = "1.0.0"
    environment: str = "development"
    debug: bool = False

    # Database configuration
    database_url: str = "postgresql+asyncpg://postgres:postgres@db:5432/credora"

    # JWT configuration
    jwt_secret_key: str = "your-secret-key-change-in-production"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 30
    jwt_refresh_token_expire_days: int = 7
    email_token_expire_hours: int = 24
    password_reset_expire_minutes: int = 60
    require_email_verification: bool = True

    # API configuration
    api_v1_prefix: str = "/api/v1"
    cors_origins: List[str] = ["http://localhost:3000", "http://localhost:8000"]
    public_site_url: str = "https://credorainc.com"

    # Pagination defaults
    default_page_size: int = 6
    max_page_size: int = 50

    # Fees (USD)
    application_fee: Decimal = Decimal("55.00")
    apartment_finder_fee: Decimal = Decimal("250.00")

    # Stripe
    stripe_secret_key: Optional[str] = None
    stripe_webhook_secret: Optional[str] = None
    stripe_basic_price_id: Optional[str] = None
    stripe_premium_price_id: Optional[str] = None

    # Resend email
    resend_api_key: Optional[str] = None
    resend_api_url: str = "https://api.resend.com/emails"
    email_from: str = "Credora Inc <noreply@credorainc.com>"

    # HERE address autocomplete
    here_api_key: Optional[str] = None
    here_autosuggest_url: str = "https://autosuggest.search.hereapi.com/v1/autosuggest"

    # Persona identity verification
    persona_api_key: Optional[str] = None
    persona_api_url: str = "https://withpersona.com/api/v1"
    persona_template_id: Optional[str] = None
    persona_webhook_secret: Optional[str] = None

    # Veriff identity verification
    veriff_api_key: Optional[str] = None
    veriff_secret_key: Optional[str] = None
    veriff_base_url: str = "https://stationapi.veriff.com"

    # Outbound HTTP
    http_timeout_seconds: float = 10.0

    # Server configuration
    host: str = "0.0.0.0"
    port: int = 8000
    max_request_size: int = 10 * 1024 * 1024
    slow_request_seconds: float = 1.0

    @field_validator("database_url", mode="before")
    @classmethod
    def validate_database_url(cls, v):
        """Ensure an async driver is used."""
        if v and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        if v and v.startswith("sqlite://"):
            return v.replace("sqlite://", "sqlite+aiosqlite://", 1)
        return v

    @field_validator("jwt_secret_key", mode="before")
    @classmethod
    def validate_jwt_secret_key(cls, v):
        """Validate JWT secret key strength."""
        if not v:
            raise ValueError("JWT_SECRET_KEY is required")
        if len(v) < 32 and v != "your-secret-key-change-in-production":
            raise ValueError("JWT_SECRET_KEY must be at least 32 characters long")
        return v

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v):
        """Validate environment setting."""
        allowed_envs = ["development", "testing", "staging", "production"]
        if v not in allowed_envs:
            raise ValueError(f"Environment must be one of: {allowed_envs}")
        return v

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment == "production"

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    @property
    def stripe_configured(self) -> bool:
        return bool(self.stripe_secret_key)

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.
    This ensures we only create one instance of settings throughout the app lifecycle.
    """
    return Settings()


# Global settings instance
settings = get_settings()
