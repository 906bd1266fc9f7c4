# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Structured JSON logging — machine-parseable, one JSON line per record.

``configure_logging(settings)`` applies the service name and level of the
settings the app was built with; loggers created earlier are updated too.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from app.core.config import Settings, settings as default_settings

_config: dict[str, Any] = {
    "service": default_settings.SERVICE_NAME,
    "level": default_settings.LOG_LEVEL,
}
_loggers: set[str] = set()


def _level(name: str) -> int:
    return getattr(logging, str(name).upper(), logging.INFO)


class JSONFormatter(logging.Formatter):
    """Emit every log record as a single JSON line for machine parsing."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "service": _config["service"],
            "logger": record.name,
            "message": record.getMessage(),
        }
        if hasattr(record, "request_id"):
            log_data["request_id"] = record.request_id  # type: ignore[attr-defined]
        if record.exc_info and record.exc_info[1]:
            log_data["error"] = str(record.exc_info[1])
            log_data["error_type"] = type(record.exc_info[1]).__name__
        return json.dumps(log_data)


def configure_logging(settings: Settings) -> None:
    """Point every service logger at ``settings``' name and level."""
    _config["service"] = settings.SERVICE_NAME
    _config["level"] = settings.LOG_LEVEL
    for name in _loggers:
        logging.getLogger(name).setLevel(_level(settings.LOG_LEVEL))


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a configured logger instance."""
    logger_name = name or _config["service"]
    logger = logging.getLogger(logger_name)
    if not logger.handlers:
        logger.setLevel(_level(_config["level"]))
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(JSONFormatter())
        logger.addHandler(handler)
        logger.propagate = False
    _loggers.add(logger_name)
    return logger
