# ABOUTME: Application configuration using Pydantic Settings for environment variables
# ABOUTME: Provides type-safe access to the refresh secret, store location, renderer and logging settings

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Config(BaseSettings):
    """Application configuration with environment variable support."""

    model_config = SettingsConfigDict(
        env_prefix="SCRAPE2API_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore unknown environment variables
    )

    # Refresh gate
    refresh_secret: str = Field(default="default-secret", description="Server secret used to derive refresh tokens")
    refresh_cooldown_seconds: int = Field(
        default=60 * 60, description="Minimum age of a cached entry before a refresh is attempted"
    )

    # Store Configuration
    store_backend: Literal["json", "database"] = Field(default="json", description="Durable backend for the store")
    store_path: Path = Field(default=Path(".cache.json"), description="JSON file used by the json store backend")
    database_url: str = Field(
        default="sqlite+aiosqlite:///./scrape2api.db", description="Database URL for the database store backend"
    )
    cache_ttl_seconds: int = Field(default=7 * 24 * 60 * 60, description="Lifetime of a cached extraction")
    sweep_interval_seconds: int = Field(default=24 * 60 * 60, description="Interval between expiration sweeps")

    # Serving
    response_max_age_seconds: int = Field(default=300, description="Cache-Control max-age for data responses")
    public_base_url: str | None = Field(
        default=None, description="Base URL used in generated artifacts (defaults to the request host)"
    )
    html_chunk_size: int = Field(default=50_000, description="Preview HTML chunk size in characters")

    # Renderer Configuration
    renderer: Literal["browser", "http"] = Field(default="browser", description="Page renderer implementation")
    headless: bool = Field(default=True, description="Run the browser renderer headless")
    navigation_timeout_ms: int = Field(default=15_000, description="Page navigation timeout in milliseconds")
    navigation_retries: int = Field(default=2, description="Navigation retries before the render stage fails")
    retry_delay_seconds: float = Field(default=1.0, description="Fixed delay between navigation attempts")
    settle_delay_seconds: float = Field(default=2.0, description="Extra wait after navigation for late content")

    # Logging Configuration
    log_mode: Literal["interactive", "production"] = Field(default="interactive", description="Logging output mode")

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO", description="Logging verbosity level"
    )

    log_file: Path | None = Field(default=None, description="Custom log file path (overrides default)")


# Global config instance - lazy loaded when first accessed
_config_instance: Config | None = None


def get_config() -> Config:
    """Get the global configuration instance.

    Creates the config on first access, subsequent calls return the same instance.

    Returns:
        Config: The application configuration instance
    """
    global _config_instance
    if _config_instance is None:
        _config_instance = Config()
    return _config_instance


def reload_config() -> Config:
    """Reload configuration from environment variables.

    Useful for testing or when environment variables change at runtime.

    Returns:
        Config: A fresh configuration instance
    """
    global _config_instance
    _config_instance = Config()
    return _config_instance
