"""
Configuration for the News Aggregator API.

Environment-based settings using Pydantic BaseSettings.
"""
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from src.utils.constants import AuthConstants, CacheConstants, NewsApiConstants


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Database
    database_url: str = "sqlite:///data/news_aggregator.db"

    # News provider
    news_api_key: Optional[str] = None
    news_api_base_url: str = NewsApiConstants.BASE_URL
    news_api_timeout_seconds: float = NewsApiConstants.DEFAULT_TIMEOUT_SECONDS

    # Article cache
    news_cache_ttl_seconds: float = CacheConstants.DEFAULT_TTL_SECONDS
    news_refresh_interval_minutes: int = CacheConstants.DEFAULT_REFRESH_INTERVAL_MINUTES

    # Security
    jwt_secret: str = "dev-secret-key-change-in-production-news-aggregator"
    jwt_expires_minutes: int = AuthConstants.DEFAULT_TOKEN_EXPIRY_MINUTES
    bcrypt_rounds: int = 10

    # Logging
    log_level: str = "INFO"
    log_file: Optional[str] = "logs/news-aggregator.log"

    # Disables the background refresh job during test runs
    testing: bool = False

    # Application
    app_title: str = "News Aggregator API"


# Global settings instance
settings = Settings()
