"""
Configuration for the health orchestrator.

Settings come from environment variables (and an optional ``.env`` file) through
pydantic-settings, with environment-specific defaults selected by ``ENVIRONMENT``.
"""

import os
from enum import Enum

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..observability.logging import LogFormat, LogLevel


class Environment(str, Enum):
    """Deployment environments."""

    DEVELOPMENT = "development"
    TESTING = "testing"
    STAGING = "staging"
    PRODUCTION = "production"


class PublisherSettings(BaseSettings):
    """Cadence of the background publisher scheduler (seconds)."""

    model_config = SettingsConfigDict(
        env_prefix="HEALTH_PUBLISHER_", env_file=".env", extra="ignore"
    )

    # Wait before the first run after start.
    delay: float = 5.0
    period: float = 30.0
    # Deadline for one run, checks and deliveries included.
    timeout: float = 30.0
    allow_overlapping_runs: bool = True
    # Only registrations carrying one of these tags are published; empty means all.
    tags: list[str] = Field(default_factory=list)

    @field_validator("delay")
    @classmethod
    def validate_delay(cls, v: float) -> float:
        if v < 0:
            raise ValueError("Publisher delay must not be negative")
        return v

    @field_validator("period", "timeout")
    @classmethod
    def validate_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("Publisher period and timeout must be positive")
        return v


class ObservabilitySettings(BaseSettings):
    """Observability configuration."""

    model_config = SettingsConfigDict(
        env_prefix="OBSERVABILITY_", env_file=".env", extra="ignore"
    )

    log_level: LogLevel = LogLevel.INFO
    log_format: LogFormat = LogFormat.JSON
    log_file: str | None = None

    metrics_enabled: bool = True
    metrics_namespace: str = ""


class ApplicationSettings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    app_name: str = "health-orchestrator"
    app_version: str = "0.1.0"

    environment: Environment = Environment.DEVELOPMENT
    debug: bool = False

    # Default per-probe timeout for registrations that do not set one.
    default_probe_timeout: float = 0.0

    publisher: PublisherSettings = Field(default_factory=PublisherSettings)
    observability: ObservabilitySettings = Field(default_factory=ObservabilitySettings)

    @field_validator("default_probe_timeout")
    @classmethod
    def validate_probe_timeout(cls, v: float) -> float:
        if v < 0:
            raise ValueError("Default probe timeout must not be negative")
        return v


class DevelopmentSettings(ApplicationSettings):
    """Development environment settings."""

    environment: Environment = Environment.DEVELOPMENT
    debug: bool = True

    observability: ObservabilitySettings = Field(
        default_factory=lambda: ObservabilitySettings(
            log_level=LogLevel.DEBUG, log_format=LogFormat.CONSOLE
        )
    )


class TestingSettings(ApplicationSettings):
    """Testing environment settings."""

    environment: Environment = Environment.TESTING
    debug: bool = True

    publisher: PublisherSettings = Field(
        default_factory=lambda: PublisherSettings(delay=0.0, period=0.05, timeout=1.0)
    )
    observability: ObservabilitySettings = Field(
        default_factory=lambda: ObservabilitySettings(
            log_level=LogLevel.WARNING, log_format=LogFormat.STRUCTURED
        )
    )


class StagingSettings(ApplicationSettings):
    """Staging environment settings."""

    environment: Environment = Environment.STAGING


class ProductionSettings(ApplicationSettings):
    """Production environment settings."""

    environment: Environment = Environment.PRODUCTION
    debug: bool = False

    # A probe without its own timeout should never hold up a publish run.
    default_probe_timeout: float = 10.0


def get_settings() -> ApplicationSettings:
    """Get application settings based on environment."""
    environment = os.getenv("ENVIRONMENT", "development").lower()

    if environment == "development":
        return DevelopmentSettings()
    elif environment == "production":
        return ProductionSettings()
    elif environment == "staging":
        return StagingSettings()
    elif environment == "testing":
        return TestingSettings()
    else:
        return ApplicationSettings()
