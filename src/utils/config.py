"""
Configuration Management

Uses Pydantic Settings for environment-based configuration.
Loads from .env file automatically.
"""

from typing import Optional
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # Google Custom Search (required to run an analysis, checked by the client)
    GOOGLE_SEARCH_API_KEY: Optional[str] = None
    GOOGLE_SEARCH_ENGINE_ID: Optional[str] = None

    # Application Settings
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # SERP lookups
    SERP_RESULTS_PER_QUERY: int = 10
    API_TIMEOUT: float = 30.0

    # Keyword limits (bounds external API spend per analysis)
    MAX_KEYWORDS: int = 15

    # Batch scheduling
    KEYWORD_BATCH_SIZE: int = 5
    BATCH_DELAY_SECONDS: float = 0.5

    # Retry policy
    MAX_RETRY_ATTEMPTS: int = 3
    RETRY_BASE_DELAY: float = 1.0
    RETRY_MAX_DELAY: float = 5.0

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # Ignore extra fields in .env file
        case_sensitive=False,  # Allow both UPPERCASE and lowercase
    )


@lru_cache
def get_settings() -> Settings:
    """Get or create cached settings instance."""
    return Settings()
