"""Final-stage structlog renderers: JSON, colored console and key=value."""

import json
from datetime import UTC, datetime
from typing import Any

from colorama import Back, Fore, Style, init

init(autoreset=True)

# Rendered in this order ahead of the free-form fields.
_LEADING_FIELDS = ("timestamp", "level", "logger", "correlation_id", "health_check_name", "event")

_LEVEL_COLORS = {
    "DEBUG": Fore.CYAN,
    "INFO": Fore.GREEN,
    "WARNING": Fore.YELLOW,
    "ERROR": Fore.RED,
    "CRITICAL": Fore.RED + Back.WHITE + Style.BRIGHT,
}

_STATUS_COLORS = {
    "healthy": Fore.GREEN,
    "degraded": Fore.YELLOW,
    "unhealthy": Fore.RED,
}


def _render_value(value: Any) -> Any:
    if isinstance(value, dict | list):
        return json.dumps(value, default=str)
    return value


def _timestamp_text(event_dict: dict[str, Any]) -> str | None:
    timestamp = event_dict.get("timestamp")
    if isinstance(timestamp, datetime):
        return timestamp.isoformat()
    return timestamp


def _extra_fields(event_dict: dict[str, Any]) -> list[tuple[str, Any]]:
    return [(k, _render_value(v)) for k, v in event_dict.items() if k not in _LEADING_FIELDS]


class JSONFormatter:
    """One JSON object per line, for log shippers."""

    def __init__(self, ensure_ascii: bool = False, indent: int | None = None):
        self.ensure_ascii = ensure_ascii
        self.indent = indent

    def __call__(
        self, logger: Any, method_name: str, event_dict: dict[str, Any]
    ) -> str:
        # timestamp and level always lead.
        record: dict[str, Any] = {
            "timestamp": _timestamp_text(event_dict) or datetime.now(UTC).isoformat(),
            "level": method_name.upper(),
        }
        if logger is not None and "logger" not in event_dict:
            record["logger"] = getattr(logger, "name", None)
        record.update((k, v) for k, v in event_dict.items() if k not in record)
        return json.dumps(record, ensure_ascii=self.ensure_ascii, indent=self.indent, default=str)


class ConsoleFormatter:
    """Human-readable single-line output for local runs.

    Per-check lines show the check name in angle brackets, and
    ``health_status`` values are colored by severity.
    """

    def __init__(self, colors: bool = True, show_timestamp: bool = True):
        self.colors = colors
        self.show_timestamp = show_timestamp

    def _paint(self, text: str, color: str) -> str:
        # Unknown levels and statuses map to "" and stay unpainted.
        return f"{color}{text}{Style.RESET_ALL}" if self.colors and color else text

    def __call__(
        self, logger: Any, method_name: str, event_dict: dict[str, Any]
    ) -> str:
        parts: list[str] = []
        timestamp = _timestamp_text(event_dict)
        # capture_logs and some pipelines run without a TimeStamper.
        if self.show_timestamp and timestamp:
            parts.append(f"[{timestamp}]")

        level = method_name.upper()
        parts.append(self._paint(level, _LEVEL_COLORS.get(level, "")))

        if "logger" in event_dict:
            parts.append(self._paint(f"[{event_dict['logger']}]", Fore.BLUE))
        if "correlation_id" in event_dict:
            parts.append(self._paint(f"[{event_dict['correlation_id']}]", Fore.MAGENTA))
        if "health_check_name" in event_dict:
            parts.append(self._paint(f"<{event_dict['health_check_name']}>", Fore.CYAN))

        if event_dict.get("event"):
            parts.append(str(event_dict["event"]))

        extras = []
        for key, value in _extra_fields(event_dict):
            text = f"{key}={value}"
            if key == "health_status":
                text = self._paint(text, _STATUS_COLORS.get(str(value), ""))
            extras.append(text)
        if extras:
            parts.append(", ".join(extras))

        return " ".join(parts)


class StructuredFormatter:
    """``key=value`` pairs joined by a separator, grep-friendly."""

    def __init__(self, separator: str = " | ", key_value_separator: str = "="):
        self.separator = separator
        self.key_value_separator = key_value_separator

    def __call__(
        self, logger: Any, method_name: str, event_dict: dict[str, Any]
    ) -> str:
        pairs: list[tuple[str, Any]] = []
        timestamp = _timestamp_text(event_dict)
        if timestamp:
            pairs.append(("timestamp", timestamp))
        pairs.append(("level", method_name.upper()))
        pairs.extend(
            (key, event_dict[key])
            for key in ("logger", "correlation_id", "health_check_name")
            if key in event_dict
        )
        # "event" is shown as "message" for readers outside structlog.
        if "event" in event_dict:
            pairs.append(("message", event_dict["event"]))
        pairs.extend(_extra_fields(event_dict))

        kv = self.key_value_separator
        return self.separator.join(f"{key}{kv}{value}" for key, value in pairs)
