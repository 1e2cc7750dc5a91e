"""Application settings using pydantic-settings."""

from functools import lru_cache
from typing import Literal

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from memeradar.core.exceptions import ConfigurationError


class Settings(BaseSettings):
    """MemeRadar configuration from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore extra env vars
    )

    # Application
    app_name: str = Field(default="MemeRadar", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO", description="Minimum log level"
    )

    # Server
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=3000, ge=1, le=65535, description="Server port")

    # Cache
    redis_url: str = Field(default="redis://localhost:6379", description="Redis URL")
    cache_ttl_seconds: int = Field(
        default=30, ge=1, description="TTL applied to every cached value"
    )

    # Primary source
    dexscreener_base_url: str = Field(
        default="https://api.dexscreener.com/latest/dex",
        description="DexScreener API base URL",
    )
    dexscreener_rate_limit_per_minute: int = Field(
        default=300, ge=1, description="DexScreener requests per minute"
    )

    # Secondary (enrichment) source
    geckoterminal_base_url: str = Field(
        default="https://api.geckoterminal.com/api/v2",
        description="GeckoTerminal API base URL",
    )
    geckoterminal_rate_limit_per_minute: int = Field(
        default=30, ge=1, description="GeckoTerminal requests per minute (free tier)"
    )

    # Retry
    retry_max_attempts: int = Field(
        default=3, ge=1, le=10, description="Attempts per upstream call"
    )
    retry_base_delay_seconds: float = Field(
        default=1.0, ge=0, description="First backoff delay"
    )
    retry_backoff_multiplier: float = Field(
        default=2.0, ge=1, description="Backoff growth factor per attempt"
    )

    # Circuit Breaker
    circuit_breaker_threshold: int = Field(
        default=5, ge=1, description="Failures before circuit opens"
    )
    circuit_breaker_cooldown: int = Field(
        default=30, ge=1, description="Seconds before half-open"
    )

    # Refresh scheduler
    refresh_scheduler_enabled: bool = Field(
        default=True, description="Enable the periodic refresh job"
    )
    refresh_interval_seconds: int = Field(
        default=10, ge=1, le=3600, description="Seconds between refresh cycles"
    )

    # WebSocket
    heartbeat_interval_seconds: float = Field(
        default=30.0, gt=0, description="Seconds between subscriber liveness probes"
    )

    @field_validator("redis_url")
    @classmethod
    def validate_redis_url(cls, v: str) -> str:
        """Validate Redis URL scheme."""
        if not v.startswith(("redis://", "rediss://", "unix://")):
            raise ValueError("Redis URL must start with redis://, rediss://, or unix://")
        return v

    @field_validator("dexscreener_base_url", "geckoterminal_base_url")
    @classmethod
    def validate_http_url(cls, v: str) -> str:
        """Validate upstream API URL format."""
        if not v.startswith(("http://", "https://")):
            raise ValueError("API base URL must start with http:// or https://")
        return v.rstrip("/")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Raises:
        ConfigurationError: If the environment holds invalid values.
    """
    try:
        return Settings()
    except ValidationError as e:
        fields = sorted({".".join(str(part) for part in err["loc"]) for err in e.errors()})
        raise ConfigurationError(f"Invalid settings: {', '.join(fields)}") from e
