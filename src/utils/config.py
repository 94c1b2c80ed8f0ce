"""
Configuration Management

Uses Pydantic Settings for environment-based configuration.
Loads from .env file automatically.
"""

from typing import Optional
from functools import lru_cache
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # Database (falls back to SQLite in session.py when unset)
    DATABASE_URL: Optional[str] = None

    # Application Settings
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # Scan caching
    SCAN_CACHE_TTL_HOURS: int = 24

    # Prompt generation
    MAX_PROMPTS_PER_PROFILE: int = 60
    DEFAULT_SERVICE_RADIUS_MILES: int = 15

    # Model calls
    MODEL_CALL_TIMEOUT_SECONDS: float = 60.0
    MODEL_MAX_CONCURRENT: int = 4

    # Citation verification
    CITATION_TIMEOUT_SECONDS: float = 5.0
    CITATION_MAX_CONCURRENT: int = 5
    CITATION_RUN_TIMEOUT_SECONDS: float = 3.0
    CITATION_RUN_MAX_CONCURRENT: int = 3

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"  # Ignore extra fields in .env file
        case_sensitive = False  # Allow both UPPERCASE and lowercase


@lru_cache
def get_settings() -> Settings:
    """Get or create cached settings instance."""
    return Settings()
