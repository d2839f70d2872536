"""
Application configuration with environment-based settings.

Configuration is centralized here to allow easy swapping between
development, staging, and production environments. Identifiers never
read these settings themselves; core.dependencies passes the values in.
"""

from pydantic_settings import BaseSettings
from typing import Optional
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API Configuration
    app_name: str = "Field Species Identifier API"
    app_version: str = "0.1.0"
    debug: bool = False
    api_prefix: str = "/api/v1"

    # Server Configuration
    host: str = "0.0.0.0"
    port: int = 8000
    workers: int = 4

    # Remote identifier (iNaturalist computer vision)
    inaturalist_api_base_url: str = "https://api.inaturalist.org"
    inaturalist_api_token: Optional[str] = None
    request_timeout_seconds: float = 8.0

    # Secondary identifier used when the remote one fails
    enable_fallback: bool = True

    # Uploads
    max_image_size_mb: float = 10.0

    # Observations
    observation_list_limit: int = 50

    # Logging
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        env_prefix = "FIELD_IDENTIFIER_"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
