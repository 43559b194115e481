# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
JSON-lines logging for the dashboard service.

Every record carries the id of the HTTP request that produced it, taken from
a context variable the request-id middleware sets.
"""
import json
import logging
import os
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Optional

SERVICE_NAME = "incident-dashboard"
PACKAGE_PREFIX = "incident_dashboard"

request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)


class RequestIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "request_id"):
            record.request_id = request_id_var.get()
        return True


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "service": SERVICE_NAME,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info and record.exc_info[1]:
            entry["exception"] = f"{type(record.exc_info[1]).__name__}: {record.exc_info[1]}"
        if getattr(record, "request_id", None):
            entry["request_id"] = record.request_id
        return json.dumps(entry, default=str)


def get_logger(name: str = SERVICE_NAME) -> logging.Logger:
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter())
    handler.addFilter(RequestIdFilter())
    logger.addHandler(handler)
    logger.setLevel(os.getenv("LOG_LEVEL", "INFO").upper())
    return logger


def set_level(level: str):
    """Re-level the service's loggers once settings are known."""
    for name, logger in list(logging.Logger.manager.loggerDict.items()):
        if not isinstance(logger, logging.Logger):
            continue
        if name == SERVICE_NAME or name.startswith(PACKAGE_PREFIX):
            logger.setLevel(level)
