"""Structured logging utilities for kodoup."""
from __future__ import annotations

import json
import logging
import sys
from logging.handlers import RotatingFileHandler
from typing import Any, Dict, Optional, TextIO

from .config import LOG_TIME_FORMAT

_EXTRA_PREFIX = "_kodo_"


class JsonFormatter(logging.Formatter):
    """Simple JSON formatter for upload logs."""

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        payload: Dict[str, Any] = {
            "timestamp": self.formatTime(record, LOG_TIME_FORMAT),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        for key, value in record.__dict__.items():
            if key.startswith(_EXTRA_PREFIX):
                payload[key[len(_EXTRA_PREFIX):]] = value
        return json.dumps(payload, ensure_ascii=False, default=str)


def setup_logging(
    name: str,
    *,
    level: int = logging.INFO,
    log_file: Optional[str] = None,
    stream: Optional[TextIO] = None,
    max_bytes: int = 20 * 1024 * 1024,
    backup_count: int = 5,
) -> logging.Logger:
    """Configure and return a logger with JSON formatting."""

    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.propagate = False
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = JsonFormatter()
    stream_handler = logging.StreamHandler(stream or sys.stdout)
    stream_handler.setFormatter(formatter)
    logger.addHandler(stream_handler)

    if log_file:
        rotating = RotatingFileHandler(log_file, maxBytes=max_bytes, backupCount=backup_count)
        rotating.setFormatter(formatter)
        logger.addHandler(rotating)

    return logger


def extra(**fields: Any) -> Dict[str, Any]:
    """Prefix *fields* so that :class:`JsonFormatter` emits them."""

    return {f"{_EXTRA_PREFIX}{key}": value for key, value in fields.items()}


def log_progress(
    logger: logging.Logger,
    *,
    upload_id: str,
    bytes_uploaded: int,
    total_bytes: int,
    state: str,
    detail: Optional[str] = None,
) -> None:
    """Emit a structured progress log entry."""

    fields: Dict[str, Any] = {
        "upload_id": upload_id,
        "bytes_uploaded": bytes_uploaded,
        "total_bytes": total_bytes,
        "state": state,
    }
    if detail:
        fields["detail"] = detail
    logger.debug("progress", extra=extra(**fields))


__all__ = ["JsonFormatter", "extra", "log_progress", "setup_logging"]
