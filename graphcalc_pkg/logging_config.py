"""Structured logging configuration for Graphcalc.

All package loggers live under the ``graphcalc`` namespace and stay silent
until :func:`setup_logging` is called (the CLI does this from ``--log-level``).
"""

import logging
import sys
from datetime import datetime
from typing import Optional

# Attributes every LogRecord carries; anything else came in through ``extra=``
_RECORD_ATTRIBUTES = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__
) | {"message", "asctime"}


class StructuredFormatter(logging.Formatter):
    """One line per record: timestamp, level, logger, message, then ``key=value`` extras."""

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created).isoformat()
        message = f"{timestamp} [{record.levelname}] {record.name}: {record.getMessage()}"
        extras = sorted(
            (key, value)
            for key, value in record.__dict__.items()
            if key not in _RECORD_ATTRIBUTES
        )
        if extras:
            message += " " + " ".join(f"{key}={value!r}" for key, value in extras)
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"
        return message


def setup_logging(
    level: str = "WARNING", log_file: Optional[str] = None
) -> logging.Logger:
    """Attach stderr (and optionally file) handlers to the ``graphcalc`` logger.

    Calling it again replaces the previous handlers, so the CLI can reconfigure
    logging per invocation.

    Args:
        level: Logging level name; unknown names fall back to WARNING
        log_file: Optional path that receives the same records as stderr

    Returns:
        The ``graphcalc`` root logger
    """
    logger = logging.getLogger("graphcalc")
    logger.setLevel(getattr(logging, level.upper(), logging.WARNING))
    logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(StructuredFormatter())
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(StructuredFormatter())
        logger.addHandler(file_handler)

    return logger


def get_logger(name: str = "graphcalc") -> logging.Logger:
    """Return the ``graphcalc.<name>`` logger for one package module.

    What the package logs, by level:

    - DEBUG: expressions skipped because they do not compile, analyses that
      produced no result, compiled-expression cache fills
    - INFO: workspace files saved and loaded
    - WARNING: input blocked by the forbidden-token or function whitelist,
      with the offending name in the record's extras
    - ERROR: failed renders and unexpected exceptions caught at the API
      boundary, both with the traceback attached

    Args:
        name: Module name such as ``"parser"`` or ``"raster"``
    """
    return logging.getLogger(f"graphcalc.{name}")
