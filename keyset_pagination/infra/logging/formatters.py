"""Custom logging formatters with trace correlation."""
from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from typing import Any

from opentelemetry import trace

# LogRecord attributes that are never copied into the JSON payload.
_RESERVED = frozenset(
    {
        "name",
        "msg",
        "args",
        "created",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "message",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "thread",
        "threadName",
        "exc_info",
        "exc_text",
        "stack_info",
        "taskName",
    }
)


class JSONFormatter(logging.Formatter):
    """Structured JSON Lines (JSONL) formatter with UTC timestamps.

    Fields passed through ``extra=`` (``sort_key``, ``operation``, ...) are
    copied to the top level. When an OpenTelemetry span is active its
    trace and span ids are added for correlation.

    Example output:
        {"level": "INFO", "logger": "keyset_pagination.core.database.repository", "message": "Count executed", "timestamp": "2025-01-01T00:00:00.123Z", "entity": "Post"}
    """

    def __init__(self, static: dict[str, Any] | None = None) -> None:
        """Initialize JSON formatter.

        Args:
            static: Fields added to every record (e.g., {"service": "api"}).
        """
        super().__init__()
        self.static = static or {}

    def format(self, record: logging.LogRecord) -> str:
        data: dict[str, Any] = {
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC)
            .isoformat(timespec="milliseconds")
            .replace("+00:00", "Z"),
        }

        span = trace.get_current_span()
        ctx = span.get_span_context()
        if ctx.is_valid:
            data["trace_id"] = format(ctx.trace_id, "032x")
            data["span_id"] = format(ctx.span_id, "016x")

        # Keep one record per line.
        if record.exc_info:
            data["exception"] = self.formatException(record.exc_info).replace("\n", "\\n")
        if record.stack_info:
            data["stack_trace"] = record.stack_info.replace("\n", "\\n")

        data.update(self.static)
        for key, value in record.__dict__.items():
            if key not in _RESERVED and key not in data:
                data[key] = value

        return json.dumps(data, ensure_ascii=False, default=str)
