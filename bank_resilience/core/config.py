"""
Core configuration module for the banking resilience layer.

This module provides centralized configuration management using Pydantic Settings.
All configuration is loaded from environment variables with the
BANK_RESILIENCE_ prefix.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All fields use the BANK_RESILIENCE_ prefix for environment variables.
    Example: BANK_RESILIENCE_CIRCUIT_BREAKER_FAILURE_THRESHOLD=5
    """

    # =========================================================================
    # Service Configuration
    # =========================================================================
    service_name: str = Field(
        default="bank-resilience",
        description="Name of the service for logging and identification",
    )
    environment: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Deployment environment",
    )
    log_level: str = Field(
        default="INFO",
        description="Log level (DEBUG, INFO, WARNING, ERROR)",
    )
    cors_origins: str = Field(
        default="",
        description="Comma-separated allowed origins outside development",
    )

    # =========================================================================
    # Durable State Store (Redis)
    # =========================================================================
    redis_url: str = Field(
        default="redis://localhost:6379",
        description="Redis connection URL for persisted breaker/emergency state",
    )
    state_key_prefix: str = Field(
        default="bank_resilience:",
        description="Prefix for every key written to the state store",
    )

    # =========================================================================
    # Circuit Breaker Configuration
    # =========================================================================
    circuit_breaker_failure_threshold: int = Field(
        default=3,
        ge=1,
        le=100,
        description="Number of failures before the circuit opens",
    )
    circuit_breaker_reset_timeout_seconds: float = Field(
        default=300.0,
        gt=0,
        le=3600.0,
        description="Cooldown before a HALF_OPEN trial call is permitted",
    )

    # =========================================================================
    # Request Throttle Configuration
    # =========================================================================
    throttle_max_requests: int = Field(
        default=10,
        ge=1,
        description="Default maximum calls per operation per window",
    )
    throttle_window_seconds: float = Field(
        default=60.0,
        gt=0,
        description="Default throttle window length in seconds",
    )
    throttle_max_retries: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Default attempts for quota-error retries",
    )
    backoff_base_seconds: float = Field(
        default=1.0,
        gt=0,
        description="First quota backoff delay; doubles on each quota error",
    )
    backoff_max_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Upper bound for the quota backoff delay",
    )

    # =========================================================================
    # Emergency Mode Configuration
    # =========================================================================
    emergency_check_interval_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Interval between circuit breaker polls",
    )

    # =========================================================================
    # Notification Feed Configuration
    # =========================================================================
    notification_ttl_seconds: float = Field(
        default=10.0,
        gt=0,
        description="How long an error banner stays visible",
    )
    notification_dedup_window_seconds: float = Field(
        default=30.0,
        ge=0,
        description="Window in which duplicate quota banners are suppressed",
    )
    notification_max_visible: int = Field(
        default=3,
        ge=1,
        description="Maximum number of banners kept at once",
    )

    model_config = {
        "env_prefix": "BANK_RESILIENCE_",
        "case_sensitive": False,
        "extra": "ignore",
    }

    # =========================================================================
    # Field Validators
    # =========================================================================
    @field_validator("redis_url")
    @classmethod
    def validate_redis_url(cls, v: str) -> str:
        """Validate Redis URL format."""
        if not v.startswith(("redis://", "rediss://")):
            raise ValueError("Redis URL must start with redis:// or rediss://")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize and validate the log level."""
        level = v.upper()
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if level not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return level


# =============================================================================
# Settings Singleton
# =============================================================================


@lru_cache
def get_settings() -> Settings:
    """
    Get the application settings singleton.

    Uses functools.lru_cache to ensure only one Settings instance is created.

    Returns:
        Settings: The application settings instance.
    """
    return Settings()
