"""
Settings module for environment-aware configuration.

Holds API credentials for every external collaborator plus runtime knobs.
Agents receive a Settings instance in their constructor.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Research sources
    news_api_key: str = ""
    google_custom_search_api_key: str = ""
    google_custom_search_engine_id: str = ""

    # Generative model (Gemini)
    google_api_key: str = ""
    content_model: str = "gemini-2.0-flash-lite"
    llm_temperature: float = 0.7

    # Image search (Unsplash)
    unsplash_access_key: str = ""

    # Environment Configuration
    environment: Literal["dev", "test", "prod"] = "dev"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    # Pipeline limits
    research_max_results: int = 10
    images_per_query: int = 3
    image_search_page_size: int = 15

    # None means requests wait for the remote side indefinitely
    http_timeout: Optional[float] = None

    # File Paths
    output_dir: Path = Path("outputs")
    log_file: Optional[Path] = None


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings: Application settings
    """
    return Settings()
