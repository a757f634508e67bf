"""Structured logging configuration and utilities."""

from .config import LogFormat, LogLevel, build_processors, get_logger, setup_logging
from .correlation import CorrelationContext, CorrelationIDProcessor, get_correlation_id
from .formatters import ConsoleFormatter, JSONFormatter, StructuredFormatter

__all__ = [
    "setup_logging",
    "build_processors",
    "LogLevel",
    "LogFormat",
    "get_logger",
    "JSONFormatter",
    "ConsoleFormatter",
    "StructuredFormatter",
    "CorrelationContext",
    "CorrelationIDProcessor",
    "get_correlation_id",
]
