"""Logging configuration and setup."""

import logging
import sys
from collections.abc import Iterable
from enum import Enum
from typing import Any

import structlog
from structlog.stdlib import LoggerFactory

from .correlation import CorrelationIDProcessor
from .formatters import ConsoleFormatter, JSONFormatter, StructuredFormatter

# Client libraries used by probes and publishers log every request at INFO.
NOISY_LOGGERS = ("httpx", "httpcore")


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Logging formats."""

    JSON = "json"
    CONSOLE = "console"
    STRUCTURED = "structured"


def build_processors(
    format_type: LogFormat = LogFormat.JSON,
    enable_correlation: bool = True,
    enable_colors: bool = True,
    include_timestamps: bool = True,
) -> list[Any]:
    """Assemble the structlog processor chain, renderer last.

    Context variables come first so a ``health_check_name`` bound by the
    runner shows up on every line logged while that check is running.
    """
    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]
    if enable_correlation:
        processors.append(CorrelationIDProcessor())
    if include_timestamps:
        processors.append(structlog.processors.TimeStamper(fmt="ISO", key="timestamp"))

    renderers = {
        LogFormat.JSON: JSONFormatter,
        LogFormat.CONSOLE: lambda: ConsoleFormatter(colors=enable_colors),
        LogFormat.STRUCTURED: StructuredFormatter,
    }
    processors.append(renderers[format_type]())
    return processors


def setup_logging(
    level: LogLevel = LogLevel.INFO,
    format_type: LogFormat = LogFormat.JSON,
    log_file: str | None = None,
    enable_correlation: bool = True,
    enable_colors: bool = True,
    include_timestamps: bool = True,
    quiet_loggers: Iterable[str] = NOISY_LOGGERS,
) -> None:
    """Route structlog through stdlib logging with the chosen renderer."""
    handler: logging.Handler = (
        logging.FileHandler(log_file) if log_file else logging.StreamHandler(sys.stdout)
    )
    logging.basicConfig(
        level=getattr(logging, level.value),
        format="%(message)s",
        handlers=[handler],
        force=True,
    )
    for name in quiet_loggers:
        logging.getLogger(name).setLevel(max(logging.WARNING, getattr(logging, level.value)))

    structlog.configure(
        processors=build_processors(
            format_type, enable_correlation, enable_colors, include_timestamps
        ),
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)  # type: ignore[no-any-return]
