# -*- coding: utf-8 -*-
"""
Structured JSON logging configuration.
"""
import logging
import sys

from pythonjsonlogger.json import JsonFormatter

from .config import settings
from .middleware import get_request_id

# Loggers of HTTP libraries that log every outbound provider call
NOISY_LOGGERS = ("httpx", "httpcore", "multipart")


class RequestIDFilter(logging.Filter):
    """Attach the current request ID to every record."""

    def filter(self, record):
        record.request_id = get_request_id() or "-"
        return True


class IngestJsonFormatter(JsonFormatter):
    """JSON formatter with level, logger and request_id always present."""

    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)
        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        log_record["request_id"] = getattr(record, "request_id", "-")


def setup_logging(level: str | None = None) -> logging.Logger:
    """Install the JSON handler on the root logger (replacing existing ones)."""
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level or settings.LOG_LEVEL))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        IngestJsonFormatter(
            fmt="%(name)s %(request_id)s %(message)s",
            timestamp="@timestamp",
        )
    )
    handler.addFilter(RequestIDFilter())
    root_logger.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return root_logger
