"""Exception handling utilities for consistent error formatting.

Formats engine and standard exceptions as structured JSON, logs them
consistently and extracts error codes for batch and CLI reporting.
"""

import json
import logging
import traceback
from typing import Any

from ..core.domain.exceptions import RagEngineError

logger = logging.getLogger(__name__)

PYTHON_ERROR_CODE = "PYTHON_ERR"


def format_exception_json(
    exc: Exception,
    include_trace: bool = False,
    extra_context: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Format any exception as structured JSON.

    Works with both RagEngineError and standard Python exceptions.

    Args:
        exc: The exception to format.
        include_trace: If True, include full stack trace.
        extra_context: Additional context to include in output.

    Returns:
        Dictionary with structured error information.
    """
    if isinstance(exc, RagEngineError):
        result = exc.to_dict(include_trace=include_trace)
        if extra_context:
            result["context"] = {**result.get("context", {}), **extra_context}
        return result

    tb = traceback.extract_tb(exc.__traceback__) if exc.__traceback__ else []
    last_frame = tb[-1] if tb else None

    result = {
        "error": {
            "type": type(exc).__name__,
            "code": PYTHON_ERROR_CODE,
            "message": str(exc),
        },
        "location": {
            "class": "<unknown>",
            "method": last_frame.name if last_frame else "<unknown>",
            "file": (
                last_frame.filename.split("\\")[-1].split("/")[-1] if last_frame else "<unknown>"
            ),
            "line": last_frame.lineno if last_frame else 0,
        },
    }

    if extra_context:
        result["context"] = extra_context

    if include_trace:
        result["stack_trace"] = [
            line.strip()
            for line in traceback.format_exception(type(exc), exc, exc.__traceback__)
            if line.strip()
        ]

    return result


def log_exception(
    exc: Exception,
    log: logging.Logger | None = None,
    level: int = logging.ERROR,
    extra_context: dict[str, Any] | None = None,
) -> None:
    """Log exception in structured JSON format.

    Args:
        exc: The exception to log.
        log: Logger instance to use (defaults to module logger).
        level: Logging level (default: ERROR).
        extra_context: Additional context to include.
    """
    log_instance = log or logger

    exc_data = format_exception_json(exc, include_trace=True, extra_context=extra_context)
    log_instance.log(level, json.dumps(exc_data, indent=2, default=str))


def get_error_code(exc: Exception) -> str:
    """Get the error code from an exception.

    Returns:
        Error code string (e.g., "RAG_VEC_003" or "PYTHON_ERR").
    """
    if isinstance(exc, RagEngineError):
        return exc.error_code
    return PYTHON_ERROR_CODE
