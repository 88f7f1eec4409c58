"""
Structured JSON logging.

Every record is one JSON object. Fields passed through ``extra=`` are merged
into the object, so call sites log like::

    logger.info("Campaign update committed", extra={"campaign_urn": urn})
"""

import json
import logging
import os
import sys
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any

from ohmage.config import get_settings
from ohmage.shared.correlation import get_correlation_id

# Attributes every LogRecord carries; anything else came from ``extra=``.
_RECORD_ATTRIBUTES = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))
) | {"message", "asctime"}

_NOISY_LOGGERS = ("httpx", "httpcore", "uvicorn.access")
_SQLALCHEMY_LOGGERS = ("sqlalchemy.engine", "sqlalchemy.pool", "sqlalchemy.dialects")


def _to_json(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=str)
    return str(value)


class StructuredFormatter(logging.Formatter):
    """Formats log records as single-line JSON."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        correlation_id = get_correlation_id()
        if correlation_id:
            entry["correlation_id"] = correlation_id

        for key, value in record.__dict__.items():
            if key in _RECORD_ATTRIBUTES:
                continue
            # Base keys win; a colliding extra field is kept under a prefix.
            entry[f"extra_{key}" if key in entry else key] = value

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=_to_json)


def _stdout_handler() -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(StructuredFormatter())
    return handler


def get_logger(name: str) -> logging.Logger:
    """Get a logger that writes structured JSON.

    Args:
        name: Logger name (typically __name__).
    """
    logger = logging.getLogger(name)
    if not logger.handlers:
        logger.addHandler(_stdout_handler())
    logger.setLevel(get_settings().log_level.upper())
    return logger


def setup_logging() -> None:
    """Route the root logger through the JSON formatter and quiet library loggers."""
    root_logger = logging.getLogger()
    root_logger.setLevel(get_settings().log_level.upper())
    root_logger.handlers = [_stdout_handler()]

    # SQLAlchemy statement logging is opt-in through SQLALCHEMY_LOG_LEVEL.
    sqlalchemy_level = os.getenv("SQLALCHEMY_LOG_LEVEL", "").strip().upper() or "WARNING"
    for name in _SQLALCHEMY_LOGGERS:
        logging.getLogger(name).setLevel(sqlalchemy_level)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
