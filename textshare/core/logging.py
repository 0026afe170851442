"""
Logging configuration.

Provides a JSONFormatter for structured output (ELK/Loki friendly) and a
single ``configure_logging`` entry point used by the application at startup.
Engine modules log through ``logging.getLogger(__name__)`` and pass
structured context via ``extra={...}``.
"""
import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict

# Attributes present on every LogRecord; anything else came from ``extra``.
_RESERVED_ATTRS = frozenset({
    "name", "msg", "args", "created", "filename", "funcName",
    "levelname", "levelno", "lineno", "module", "msecs",
    "pathname", "process", "processName", "relativeCreated",
    "thread", "threadName", "exc_info", "exc_text", "stack_info",
    "message", "taskName",
})

TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class JSONFormatter(logging.Formatter):
    """
    Format log records as single-line JSON objects.

    Example output:
    {
        "timestamp": "2025-01-19T10:30:45.123456+00:00",
        "level": "INFO",
        "logger": "textshare.storage.cleanup",
        "message": "Sweep completed",
        "kind": "paste",
        "deleted": 12
    }
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "function": record.funcName,
            "line": record.lineno,
            "thread_name": record.threadName,
        }

        if record.exc_info:
            log_entry["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": self.formatException(record.exc_info),
            }

        if record.stack_info:
            log_entry["stack_info"] = record.stack_info

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and not key.startswith("_"):
                log_entry[key] = self._serialize_value(value)

        return json.dumps(log_entry, default=str, ensure_ascii=False)

    def _serialize_value(self, value: Any) -> Any:
        if isinstance(value, datetime):
            return value.isoformat()
        if isinstance(value, bytes):
            try:
                return value.decode("utf-8")
            except UnicodeDecodeError:
                return f"<binary data: {len(value)} bytes>"
        if isinstance(value, Exception):
            return {"type": type(value).__name__, "message": str(value)}
        return value


def configure_logging(level: str = "INFO", fmt: str = "text") -> None:
    """
    Configure the root logger once for the whole process.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        fmt: "json" for structured output, "text" for the plain format
    """
    handler = logging.StreamHandler(sys.stdout)
    if fmt == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper()))
