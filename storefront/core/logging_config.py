"""
Logging configuration

Console output for development, optional rotating JSON file for
production log shipping. Modules log through logging.getLogger(__name__).
"""
import json
import logging
import logging.config
from datetime import datetime, timezone
from typing import Any, Dict

from .config import settings


class StructuredFormatter(logging.Formatter):
    """Formats records as one JSON object per line"""

    def format(self, record):
        log_entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "line": record.lineno,
            "service": "storefront-api",
        }

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, ensure_ascii=False)


def build_logging_config(level: str = None, log_file: str = None) -> Dict[str, Any]:
    """Build the dictConfig for the application loggers"""
    level = (level or settings.LOG_LEVEL).upper()
    log_file = settings.LOG_FILE if log_file is None else log_file

    handlers: Dict[str, Any] = {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "standard",
            "level": level,
        },
    }
    if log_file:
        handlers["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "formatter": "structured",
            "filename": log_file,
            "maxBytes": 10 * 1024 * 1024,
            "backupCount": 5,
            "encoding": "utf-8",
            "level": level,
        }

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
            "structured": {"()": StructuredFormatter},
        },
        "handlers": handlers,
        "loggers": {
            "storefront": {"handlers": list(handlers), "level": level, "propagate": False},
            "uvicorn.access": {"level": "WARNING"},
            "httpx": {"level": "WARNING"},
        },
        "root": {"handlers": ["console"], "level": "WARNING"},
    }


def setup_logging(level: str = None, log_file: str = None):
    """Configure logging once at application startup"""
    logging.config.dictConfig(build_logging_config(level, log_file))
    logging.getLogger(__name__).debug("Logging configured")
