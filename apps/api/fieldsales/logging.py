"""JSON-lines logging for the API and the tracker agent.

Every record carries the correlation id bound in ``fieldsales.context``.
Only whitelisted ``extra=`` fields are emitted, under ``fields``.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any

from fieldsales.context import get_correlation_id


LOGGED_FIELDS = (
    "user_id",
    "interval_seconds",
    "outcome",
    "reason",
    "territory_id",
    "event_name",
    "method",
    "path",
    "status_code",
    "duration_ms",
    "error",
)
_MAX_ERROR_LENGTH = 500

_base_record_factory = logging.getLogRecordFactory()


def _correlated_record(*args: Any, **kwargs: Any) -> logging.LogRecord:
    record = _base_record_factory(*args, **kwargs)
    record.correlation_id = get_correlation_id()
    return record


class CorrelationIdFilter(logging.Filter):
    """Fills ``correlation_id`` on records created before the factory was installed."""

    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "correlation_id", None) is None:
            record.correlation_id = get_correlation_id()
        return True


class JsonLogFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        fields = {name: getattr(record, name) for name in LOGGED_FIELDS if hasattr(record, name)}
        if isinstance(fields.get("error"), str):
            fields["error"] = fields["error"][:_MAX_ERROR_LENGTH]
        if record.exc_info:
            fields["exception"] = self.formatException(record.exc_info)

        return json.dumps(
            {
                "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
                "level": record.levelname,
                "logger": record.name,
                "msg": record.getMessage(),
                "correlation_id": getattr(record, "correlation_id", None),
                "fields": fields,
            },
            default=str,
        )


def configure_logging() -> None:
    root = logging.getLogger()
    if getattr(root, "_fieldsales_configured", False):
        return

    level = logging.getLevelName(os.getenv("LOG_LEVEL", "INFO").upper())
    if not isinstance(level, int):
        level = logging.INFO

    handler = logging.StreamHandler(stream=sys.stdout)
    handler.setFormatter(JsonLogFormatter())
    handler.addFilter(CorrelationIdFilter())

    logging.setLogRecordFactory(_correlated_record)
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)
    # apscheduler logs every job run at INFO
    logging.getLogger("apscheduler").setLevel(max(level, logging.WARNING))
    root._fieldsales_configured = True  # type: ignore[attr-defined]
