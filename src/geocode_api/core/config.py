"""Application configuration via Pydantic Settings.

All configuration is loaded from environment variables following 12-factor principles.
"""

import re

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: str = Field(
        description="Async SQLAlchemy connection string (postgresql+asyncpg://...)",
    )
    database_schema: str | None = Field(
        default=None,
        description="PostgreSQL schema for isolated environments (e.g., pr_42)",
    )

    @field_validator("database_schema")
    @classmethod
    def validate_database_schema(cls, v: str | None) -> str | None:
        if v is None:
            return None
        if not re.match(r"^[a-z_][a-z0-9_]{0,62}$", v):
            msg = "Invalid database_schema: must match ^[a-z_][a-z0-9_]{0,62}$"
            raise ValueError(msg)
        return v

    # Geocoder: provider
    google_geocode_api_key: str | None = Field(
        default=None,
        description="Server-side Google Geocoding API key (fallback coordinates are used when unset)",
    )
    geocoder_region: str | None = Field(
        default=None,
        description="Optional ccTLD region bias passed to the provider (e.g., ca, fr)",
    )
    geocoder_timeout: float = Field(
        default=30.0,
        description="Upper bound in seconds for a single provider call",
        gt=0,
    )

    # Geocoder: rate limiting and batching
    geocoder_min_interval: float = Field(
        default=0.1,
        description="Minimum delay in seconds between outbound provider requests",
        ge=0,
    )
    geocoder_batch_concurrency: int = Field(
        default=10,
        description="Maximum cache-miss addresses resolved concurrently within one batch",
        gt=0,
    )
    geocoder_max_batch_size: int = Field(
        default=50,
        description="Maximum addresses accepted in a single batch request",
        gt=0,
        le=1000,
    )

    # Geocoder: fallback coordinate (Montreal city centre)
    geocoder_fallback_latitude: float = Field(
        default=45.5017,
        description="Latitude substituted when the provider fails",
    )
    geocoder_fallback_longitude: float = Field(
        default=-73.5673,
        description="Longitude substituted when the provider fails",
    )

    @field_validator("geocoder_fallback_latitude")
    @classmethod
    def validate_fallback_latitude(cls, v: float) -> float:
        if not (-90 <= v <= 90):
            msg = f"geocoder_fallback_latitude must be between -90 and 90, got {v}"
            raise ValueError(msg)
        return v

    @field_validator("geocoder_fallback_longitude")
    @classmethod
    def validate_fallback_longitude(cls, v: float) -> float:
        if not (-180 <= v <= 180):
            msg = f"geocoder_fallback_longitude must be between -180 and 180, got {v}"
            raise ValueError(msg)
        return v

    # Geocoder: in-memory cache
    geocoder_memory_cache_size: int = Field(
        default=10_000,
        description="Maximum entries held in the process-local cache (LRU eviction)",
        gt=0,
    )
    geocoder_memory_cache_ttl: float = Field(
        default=60 * 60 * 24,
        description="Seconds a process-local cache entry stays valid",
        gt=0,
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )
    log_dir: str | None = Field(
        default=None,
        description="Directory for log files (enables file logging with 24h rotation when set)",
    )
    log_json: bool = Field(
        default=False,
        description="Emit log records as JSON objects instead of formatted text",
    )

    # Environment
    environment: str = Field(
        default="production",
        description="Deployment environment name (e.g. production, dev, staging)",
    )

    # API
    api_v1_prefix: str = Field(
        default="/api/v1",
        description="API version prefix",
    )


def get_settings() -> Settings:
    """Create and return application settings."""
    return Settings()  # type: ignore[call-arg]
