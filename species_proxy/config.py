"""
Application Configuration Module

This module uses Pydantic Settings for type-safe configuration management.

WHY Pydantic Settings?
======================
1. Type Safety: All configuration values are validated against their types
2. Environment Variables: Automatically loads from environment variables
3. .env Support: Can load from .env files for local development
4. Validation: Catches configuration errors at startup, not runtime

PATTERN: Settings Singleton
===========================
A single Settings instance is cached using @lru_cache, so configuration is
loaded once and every module sees the same values.

Usage:
    from species_proxy.config import get_settings

    settings = get_settings()
    print(settings.port)
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Every field can be overridden with an environment variable of the same
    name (case-insensitive), e.g. PORT=8080 or CACHE_TTL=30.
    """

    # -------------------------------------------------------------------------
    # Application Settings
    # -------------------------------------------------------------------------
    app_name: str = Field(
        default="Species Proxy API",
        description="Application name displayed in docs and logs"
    )
    api_version: str = Field(
        default="0.1.0",
        description="Version reported in docs and the health check"
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode (detailed errors, auto-reload)"
    )
    host: str = Field(
        default="0.0.0.0",
        description="Host to bind the server to"
    )
    port: int = Field(
        default=3000,
        description="Port to bind the server to"
    )

    # -------------------------------------------------------------------------
    # Redis Settings
    # -------------------------------------------------------------------------
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL shared by the cache and rate limiter"
    )
    redis_socket_timeout: float = Field(
        default=5.0,
        description="Connect and read timeout for Redis operations in seconds"
    )

    # -------------------------------------------------------------------------
    # Upstream API Settings
    # -------------------------------------------------------------------------
    upstream_base_url: str = Field(
        default="https://www.fishwatch.gov",
        description="Base URL of the species API (path /api/species/{species})"
    )
    upstream_timeout: float = Field(
        default=10.0,
        gt=0,
        description="Timeout for a single upstream call in seconds"
    )

    # -------------------------------------------------------------------------
    # Caching Settings
    # -------------------------------------------------------------------------
    cache_ttl: int = Field(
        default=5,
        ge=1,
        description="Time-to-live of a cached species response in seconds"
    )

    # -------------------------------------------------------------------------
    # Rate Limiting Settings
    # -------------------------------------------------------------------------
    rate_limit_enabled: bool = Field(
        default=True,
        description="Enable per-client rate limiting"
    )
    rate_limit_window: int = Field(
        default=60,
        ge=1,
        description="Rate limit time window in seconds"
    )
    rate_limit_max_requests: int = Field(
        default=3,
        ge=1,
        description="Number of requests allowed per client per window"
    )
    store_failure_policy: str = Field(
        default="closed",
        description=(
            "What the rate limiter does when Redis is unreachable: "
            "'closed' rejects the request, 'open' lets it through"
        )
    )
    trust_proxy_headers: bool = Field(
        default=False,
        description="Use X-Forwarded-For / X-Real-IP to identify clients"
    )

    # -------------------------------------------------------------------------
    # Logging Settings
    # -------------------------------------------------------------------------
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # -------------------------------------------------------------------------
    # Computed Properties
    # -------------------------------------------------------------------------
    @property
    def fail_open(self) -> bool:
        """True when requests should bypass the rate limiter if Redis is down."""
        return self.store_failure_policy == "open"

    # -------------------------------------------------------------------------
    # Validators
    # -------------------------------------------------------------------------
    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """
        Validate that log_level is a valid Python logging level.

        Args:
            v: The value to validate

        Returns:
            The validated value (uppercase)

        Raises:
            ValueError: If log level is invalid
        """
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}")
        return v.upper()

    @field_validator("store_failure_policy")
    @classmethod
    def validate_store_failure_policy(cls, v: str) -> str:
        """Validate the store failure policy is 'open' or 'closed'."""
        valid_policies = {"open", "closed"}
        if v.lower() not in valid_policies:
            raise ValueError(f"store_failure_policy must be one of {valid_policies}")
        return v.lower()

    @field_validator("upstream_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    The first call builds the Settings instance (reading env vars and .env);
    later calls return the same object. Tests clear the cache with
    get_settings.cache_clear() after changing the environment.

    Returns:
        Cached Settings instance
    """
    return Settings()
