"""Logging setup for the ``ragengine`` logger tree.

Human-readable lines by default; one JSON object per record when
``json_format`` is set. Output goes to stderr so CLI results on stdout
stay clean.
"""

import json
import logging
import sys
from pathlib import Path
from typing import Any

ROOT_LOGGER = "ragengine"

TEXT_FORMAT = "%(asctime)s | %(levelname)-8s | %(module)s:%(funcName)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class JSONExceptionFormatter(logging.Formatter):
    """Render each record as a JSON object.

    Attached exceptions are included with their traceback, plus the
    ``error_code`` when they are engine errors.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": {
                "file": record.filename,
                "function": record.funcName,
                "line": record.lineno,
            },
        }
        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self._exception_entry(record)
        return json.dumps(entry, default=str)

    def _exception_entry(self, record: logging.LogRecord) -> dict[str, Any]:
        exc_type, exc, _ = record.exc_info
        data: dict[str, Any] = {
            "type": exc_type.__name__,
            "message": str(exc) if exc else None,
            "traceback": self.formatException(record.exc_info),
        }
        code = getattr(exc, "error_code", None)
        if code:
            data["code"] = code
        return data


def _handlers(log_file: Path | None) -> list[logging.Handler]:
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    return handlers


def setup_logging(
    level: str = "INFO",
    log_file: Path | None = None,
    json_format: bool = False,
) -> logging.Logger:
    """(Re)configure the ``ragengine`` logger.

    Calling it again replaces the handlers from the previous call.

    Args:
        level: Level name such as ``"DEBUG"``; unknown names fall back to INFO.
        log_file: Also write to this file, creating its directory.
        json_format: Emit JSON records instead of text lines.
    """
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    logger.handlers.clear()

    if json_format:
        formatter: logging.Formatter = JSONExceptionFormatter()
    else:
        formatter = logging.Formatter(TEXT_FORMAT, datefmt=DATE_FORMAT)

    for handler in _handlers(log_file):
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    return logger


def get_logger(name: str | None = None) -> logging.Logger:
    """Return the ``ragengine`` logger or its child ``ragengine.<name>``."""
    return logging.getLogger(f"{ROOT_LOGGER}.{name}" if name else ROOT_LOGGER)
