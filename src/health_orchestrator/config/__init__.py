"""Application configuration."""

from .settings import (
    ApplicationSettings,
    Environment,
    ObservabilitySettings,
    PublisherSettings,
    get_settings,
)

__all__ = [
    "ApplicationSettings",
    "Environment",
    "ObservabilitySettings",
    "PublisherSettings",
    "get_settings",
]
