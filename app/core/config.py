"""
Application configuration management using Pydantic Settings.

This module covers configuration for the matchmaking backend:
- Environment-based configuration separation
- Type-safe configuration with validation
- Default values with environment variable overrides
- Secrets (database, SMTP) supplied through environment variables
"""

from functools import lru_cache
from typing import Optional, List, Any

from pydantic import validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Application settings with environment variable support.

    Every field can be overridden by an environment variable of the same name
    or by a `.env` file in the working directory.
    """

    # Application
    APP_NAME: str = "Matchmaking Backend"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    WORKERS: int = 4

    # Database; components must precede DATABASE_URL for the validator to see them
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = "postgres"
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str = "matchmaking"
    DATABASE_URL: Optional[str] = None
    DATABASE_POOL_SIZE: int = 10
    DATABASE_MAX_OVERFLOW: int = 20
    DATABASE_POOL_PRE_PING: bool = True

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "json"

    # API Configuration
    API_V1_STR: str = "/api/v1"
    CORS_ORIGINS: List[str] = ["*"]
    ACCESS_TOKEN_NAME: str = "auth-token"

    # Recommendations
    RECOMMENDATION_DEFAULT_PAGE_SIZE: int = 20
    RECOMMENDATION_MAX_PAGE_SIZE: int = 100

    # Popularity alerts
    POPULARITY_THRESHOLD: int = 50
    POPULARITY_SCAN_ENABLED: bool = False
    POPULARITY_SCAN_INTERVAL_MINUTES: int = 60
    ADMIN_EMAIL: str = "admin@example.com"

    # Outgoing mail; an empty SMTP_HOST routes alerts to the log instead
    MAIL_FROM: str = "no-reply@example.com"
    SMTP_HOST: Optional[str] = None
    SMTP_PORT: int = 587
    SMTP_USERNAME: Optional[str] = None
    SMTP_PASSWORD: Optional[str] = None
    SMTP_USE_TLS: bool = True
    SMTP_TIMEOUT: float = 10.0

    @validator("DATABASE_URL", pre=True, always=True)
    def build_database_url(cls, v: Optional[str], values: dict) -> Any:
        """
        Build database URL from components if not provided directly.
        This pattern allows both direct URL and component-based configuration.
        """
        if isinstance(v, str) and v:
            return v

        user = values.get("POSTGRES_USER", "postgres")
        password = values.get("POSTGRES_PASSWORD", "postgres")
        host = values.get("POSTGRES_HOST", "localhost")
        port = values.get("POSTGRES_PORT", 5432)
        db = values.get("POSTGRES_DB", "matchmaking")

        return f"postgresql+asyncpg://{user}:{password}@{host}:{port}/{db}"

    class Config:
        # Real environment variables take precedence over .env values
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"
        env_file_encoding = "utf-8"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Note: singleton per process, N workers means N settings instances.
    """
    return Settings()


# Global settings instance for convenience
settings = get_settings()
