"""Structured Logging — record-layer log formatting, scoped to the recordkit logger.

Invariants:
    - Every JSON line carries timestamp (the record's creation time), level, logger, message
    - Record-layer fields (RECORD_FIELDS) appear only when the call site passed them
    - setup_logging touches the "recordkit" logger only; root handlers stay as they are
    - A second setup_logging call swaps out the handler installed by the first

Design Decisions:
    - Hand-written formatter on stdlib logging: the executor and records log through
      `extra=`, nothing else is needed
    - propagate=False once configured, so an application that also logs to root does
      not print recordkit lines twice
"""

import json
import logging
from datetime import datetime, timezone
from typing import IO

LIBRARY_LOGGER = "recordkit"
RECORD_FIELDS = ("table", "operation", "record_pk", "row_count", "error_code")
TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s [%(table)s:%(operation)s] %(message)s"

_installed_handler: logging.Handler | None = None


class JSONFormatter(logging.Formatter):
    """One JSON object per log line."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(
            (key, record.__dict__[key])
            for key in RECORD_FIELDS
            if record.__dict__.get(key) is not None
        )
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


class RecordFieldDefaults(logging.Filter):
    """Fill absent record-layer fields with "-" so TEXT_FORMAT never raises KeyError."""

    def filter(self, record: logging.LogRecord) -> bool:
        for key in RECORD_FIELDS:
            if not hasattr(record, key):
                setattr(record, key, "-")
        return True


def setup_logging(
    level: str = "INFO", fmt: str = "json", stream: IO[str] | None = None,
) -> logging.Handler:
    """Attach a stream handler to the recordkit logger. Returns the handler."""
    global _installed_handler
    library_logger = logging.getLogger(LIBRARY_LOGGER)
    if _installed_handler is not None:
        library_logger.removeHandler(_installed_handler)

    handler = logging.StreamHandler(stream)
    if fmt == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.addFilter(RecordFieldDefaults())
        handler.setFormatter(logging.Formatter(TEXT_FORMAT))

    library_logger.addHandler(handler)
    library_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    library_logger.propagate = False
    _installed_handler = handler
    return handler
