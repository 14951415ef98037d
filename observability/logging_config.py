"""Structured logging configuration."""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any, MutableMapping


class StructuredFormatter(logging.Formatter):
    """Formatter that outputs JSON-structured log records."""

    def format(self, record: logging.LogRecord) -> str:
        log_dict: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if hasattr(record, "extra_fields"):
            log_dict.update(record.extra_fields)

        if record.exc_info:
            log_dict["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_dict, default=str)


class StructuredLogger(logging.LoggerAdapter):
    """Logger adapter that folds keyword ``extra`` into the JSON payload."""

    def process(self, msg: str, kwargs: MutableMapping[str, Any]) -> tuple[str, MutableMapping[str, Any]]:
        extra = dict(self.extra or {})
        extra.update(kwargs.get("extra", {}))
        kwargs["extra"] = {"extra_fields": extra}
        return msg, kwargs

    def bind(self, **fields: Any) -> "StructuredLogger":
        """Child adapter that adds ``fields`` to every record it logs."""
        return StructuredLogger(self.logger, {**(self.extra or {}), **fields})


_configured = False


def configure_logging(level: int | str | None = None, structured: bool | None = None) -> None:
    """Configure the root logger once.

    INTAKE_LOG_LEVEL and INTAKE_LOG_FORMAT (``json`` or ``text``) supply the
    defaults when arguments are omitted.
    """
    global _configured
    if _configured:
        return

    if level is None:
        level = os.getenv("INTAKE_LOG_LEVEL", "INFO").upper()
    if structured is None:
        structured = os.getenv("INTAKE_LOG_FORMAT", "json").lower() != "text"

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    handler = logging.StreamHandler(sys.stderr)
    if structured:
        handler.setFormatter(StructuredFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )

    root_logger.addHandler(handler)
    _configured = True


def get_logger(name: str, **extra: Any) -> StructuredLogger:
    """Get a structured logger with optional default extra fields."""
    configure_logging()
    return StructuredLogger(logging.getLogger(name), extra)
