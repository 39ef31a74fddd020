"""Structured key=value logging for the document engine."""

import logging
import sys
from typing import Any

# Ids lifted from ``extra`` onto every line that carries them
CONTEXT_FIELDS = ("session_id", "project_id", "artifact_id", "owner_id")

ENV_LEVELS = {
    "dev": logging.DEBUG,
    "test": logging.INFO,
}


def _format_value(value: Any) -> str:
    text = str(value)
    if not text or any(ch in text for ch in ' ="'):
        return '"' + text.replace('"', '\\"') + '"'
    return text


class StructuredFormatter(logging.Formatter):
    """One log line of key=value pairs; values with spaces are quoted."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "module": record.module,
            "function": record.funcName,
            "message": record.getMessage(),
        }

        for key in CONTEXT_FIELDS:
            value = getattr(record, key, None)
            if value is not None:
                log_data[key] = value

        if hasattr(record, "extra_data"):
            log_data.update(record.extra_data)

        if record.exc_info:
            # Keep tracebacks on the same line
            log_data["exception"] = self.formatException(record.exc_info).replace("\n", " | ")

        return " ".join(f"{k}={_format_value(v)}" for k, v in log_data.items())


def _level_for_env() -> int:
    try:
        from analyst_pro.core.config import get_settings

        return ENV_LEVELS.get(get_settings().DOCGEN_ENV, logging.INFO)
    except Exception:
        # Settings may be incomplete at import time (e.g. no API key yet)
        return logging.INFO


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger writing structured lines to stdout.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured logger instance; DEBUG in dev, INFO elsewhere
    """
    logger = logging.getLogger(name)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(StructuredFormatter())
        logger.addHandler(handler)
        logger.setLevel(_level_for_env())
        logger.propagate = False

    return logger


def log_with_context(logger: logging.Logger, level: int, msg: str, **kwargs: Any) -> None:
    """
    Log with context fields.

    Known ids (``CONTEXT_FIELDS``) are attached as record attributes; anything
    else goes into ``extra_data``.
    """
    extra: dict[str, Any] = {key: kwargs.pop(key) for key in CONTEXT_FIELDS if key in kwargs}
    extra["extra_data"] = kwargs
    logger.log(level, msg, extra=extra)
