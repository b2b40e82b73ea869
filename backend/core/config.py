"""
Configuration management for the feedback portal.

Settings are read from environment variables (or a local ``.env`` file) so
secrets and deployment details never live in source control.
"""

from functools import lru_cache
from typing import List, Optional

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_JWT_SECRET = "dev-secret-change-in-production"


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database Configuration
    database_url: str = "sqlite:///./feedback_portal.db"
    log_sql_queries: bool = False
    db_pool_size: int = 10
    db_max_overflow: int = 20

    # Environment Settings
    environment: str = "development"
    debug: bool = True
    log_level: str = "INFO"

    # JWT Authentication - MUST be overridden in production
    jwt_secret_key: str = DEFAULT_JWT_SECRET
    jwt_algorithm: str = "HS256"
    jwt_access_token_expire_minutes: int = 60

    cors_origins: List[str] = ["http://localhost:3000"]

    # Email Configuration
    smtp_host: Optional[str] = None
    smtp_port: int = 587
    smtp_username: Optional[str] = None
    smtp_password: Optional[str] = None
    smtp_use_tls: bool = True
    from_email: str = "noreply@feedback-portal.local"
    from_name: str = "Feedback Portal"

    # Dispatch notification intents after a response is saved.
    # When disabled the intent is only returned to the caller.
    notifications_enabled: bool = True

    # Analytics
    analytics_trend_months: int = 6
    analytics_recent_limit: int = 5

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v):
        """Parse CORS origins from string or list."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @model_validator(mode="after")
    def validate_jwt_secret(self):
        """Ensure JWT secret is not using default in production."""
        if self.is_production and self.jwt_secret_key == DEFAULT_JWT_SECRET:
            raise ValueError(
                "JWT_SECRET_KEY must be set to a secure value in production"
            )
        return self

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment.lower() == "production"


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Returns:
        Settings instance with environment variables loaded
    """
    return Settings()


settings = get_settings()
