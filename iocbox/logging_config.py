"""Logging setup for iocbox.

Library modules only create loggers under the ``iocbox`` namespace and never
configure handlers. ``setup_logging`` is called by the CLI; it attaches its
handlers to the ``iocbox`` logger alone, so an application that embeds the
container keeps its own root logging configuration.

Records about a registration or an autowire carry context attributes passed
with ``extra=`` (see ``CONTEXT_FIELDS``). Both formatters render them.
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

LOGGER_NAME = "iocbox"

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

CONTEXT_FIELDS = ("identifier", "target", "reason", "parameter", "chain")

_LEVEL_COLORS = {
    logging.WARNING: "\033[93m",
    logging.ERROR: "\033[91m",
    logging.CRITICAL: "\033[91m",
}


def log_context(context: Mapping[str, Any]) -> Dict[str, Any]:
    """Pick the container fields out of an error context, for ``extra=``."""
    return {key: context[key] for key in CONTEXT_FIELDS if context.get(key) is not None}


def record_context(record: logging.LogRecord) -> Dict[str, Any]:
    return {
        key: getattr(record, key)
        for key in CONTEXT_FIELDS
        if getattr(record, key, None) is not None
    }


class JSONFormatter(logging.Formatter):
    """One JSON object per record, with the container context as top-level keys."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "time": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(record_context(record))

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


class PlainFormatter(logging.Formatter):
    """Human-readable lines ending in ``[key=value ...]`` when context is present."""

    def __init__(self, use_color: bool = False):
        super().__init__(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)

        context = record_context(record)
        if context:
            pairs = " ".join(f"{key}={value}" for key, value in context.items())
            first, newline, rest = message.partition("\n")
            message = f"{first} [{pairs}]{newline}{rest}"

        color = _LEVEL_COLORS.get(record.levelno) if self.use_color else None
        if color:
            return f"{color}{message}\033[0m"
        return message


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    json_format: bool = False,
    verbose: bool = False,
) -> logging.Logger:
    """Configure the ``iocbox`` logger.

    Handlers from an earlier call are replaced. Records do not propagate to the
    root logger.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional path to a log file; parent directories are created
        json_format: Use JSONFormatter for every handler
        verbose: Force DEBUG regardless of level
    """
    numeric_level = logging.DEBUG if verbose else getattr(logging, level.upper(), logging.INFO)

    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler(sys.stderr)
    if json_format:
        console_handler.setFormatter(JSONFormatter())
    else:
        console_handler.setFormatter(PlainFormatter(use_color=sys.stderr.isatty()))
    logger.addHandler(console_handler)

    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            Path(log_dir).mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(JSONFormatter() if json_format else PlainFormatter())
        logger.addHandler(file_handler)

    logger.setLevel(numeric_level)
    logger.propagate = False
    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger with the iocbox namespace."""
    if name == LOGGER_NAME or name.startswith(LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{LOGGER_NAME}.{name}")


class LoggerMixin:
    """Gives instances a ``logger`` named after their module and class."""

    @property
    def logger(self) -> logging.Logger:
        if not hasattr(self, "_logger"):
            cls = type(self)
            self._logger = get_logger(f"{cls.__module__}.{cls.__name__}")
        return self._logger
