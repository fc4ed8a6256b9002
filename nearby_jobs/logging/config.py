"""Root logger setup and the JSON / key-value formatters."""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Literal

from .context import get_log_context

LogFormat = Literal["json", "key-value"]

SERVICE_NAME = "nearby-jobs"

# Attributes every LogRecord has; anything else on a record came from extra= or the filter
_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime", "taskName"}


def _extra_fields(record: logging.LogRecord, skip: frozenset) -> Dict[str, Any]:
    return {
        key: value
        for key, value in vars(record).items()
        if key not in skip and not key.startswith("_")
    }


class ContextualFilter(logging.Filter):
    """Stamp records with service/environment labels and the bound log context.

    Fields passed explicitly through ``extra`` are left untouched.
    """

    def __init__(self, service: str = SERVICE_NAME, environment: str = "local"):
        super().__init__()
        self.labels = {"service": service, "environment": environment}

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in {**self.labels, **get_log_context()}.items():
            if key in self.labels or not hasattr(record, key):
                setattr(record, key, value)
        return True


class JSONFormatter(logging.Formatter):
    """One JSON object per line: timestamp, level, logger, message, then extras."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(
            (key, self._jsonable(value))
            for key, value in _extra_fields(record, _RECORD_ATTRS).items()
        )
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False, default=str)

    def formatTime(self, record: logging.LogRecord, datefmt=None) -> str:
        """ISO-8601 UTC, millisecond precision, 'Z' suffix."""
        moment = datetime.fromtimestamp(record.created, tz=timezone.utc)
        return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")

    @staticmethod
    def _jsonable(value: Any) -> Any:
        if isinstance(value, datetime):
            return value.isoformat()
        if value is None or isinstance(value, (str, int, float, bool, list, dict)):
            return value
        return str(value)


class KeyValueFormatter(logging.Formatter):
    """``<timestamp> [<level>] <logger>: <message> key=value ...`` for terminals."""

    SKIP_ATTRS = _RECORD_ATTRS | {"service", "environment"}

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        pairs = " ".join(
            f"{key}={self._format_value(value)}"
            for key, value in sorted(_extra_fields(record, self.SKIP_ATTRS).items())
        )
        return f"{line} {pairs}" if pairs else line

    @staticmethod
    def _format_value(value: Any) -> str:
        if value is None:
            return "null"
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, datetime):
            return value.isoformat()
        text = str(value)
        # Quote values that would split into several key=value tokens
        if isinstance(value, str) and any(ch in text for ch in " =,"):
            return f'"{text}"'
        return text


_FORMATTERS: Dict[str, Callable[[], logging.Formatter]] = {
    "json": JSONFormatter,
    "key-value": lambda: KeyValueFormatter(
        "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    ),
}


def configure_logging(
    level: str = "INFO",
    format_type: LogFormat = "key-value",
    environment: str = "local",
) -> None:
    """Route all logging to a single stderr handler.

    stdout is left free for command output (``suggest`` prints its results
    there).

    Args:
        level: DEBUG, INFO, WARNING, ERROR or CRITICAL (any case)
        format_type: 'json' or 'key-value'
        environment: Label stamped on every record

    Raises:
        ValueError: If level or format_type is not recognised
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        raise ValueError(f"Invalid log level: {level}")

    make_formatter = _FORMATTERS.get(format_type)
    if make_formatter is None:
        raise ValueError(f"Invalid log format: {format_type}. Must be one of: {', '.join(_FORMATTERS)}")

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(make_formatter())
    handler.addFilter(ContextualFilter(service=SERVICE_NAME, environment=environment))

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(numeric_level)

    logging.getLogger(__name__).debug(
        f"Logging configured at {level.upper()} ({format_type})",
        extra={"event": "logging.configured", "component": "logging"},
    )
