"""Root of the engine's exception hierarchy.

Each ``RagEngineError`` subclass has a stable ``error_code`` used in batch
reports and CLI output. Instances record where they were raised and can be
rendered as a JSON-ready dict for structured logs.
"""

import inspect
import os
import traceback
from dataclasses import dataclass, field
from datetime import UTC, datetime
from types import FrameType
from typing import Any


@dataclass
class RaiseSite:
    """Class, function, file and line of a raise statement."""

    class_name: str = "<unknown>"
    method_name: str = "<unknown>"
    file_name: str = "<unknown>"
    line_number: int = 0
    timestamp: str = field(default_factory=lambda: datetime.now(UTC).isoformat())

    @classmethod
    def from_frame(cls, frame: FrameType | None) -> "RaiseSite":
        if frame is None:
            return cls()
        owner = frame.f_locals.get("self")
        return cls(
            class_name=type(owner).__name__ if owner is not None else "<module>",
            method_name=frame.f_code.co_name,
            file_name=os.path.basename(frame.f_code.co_filename.replace("\\", "/")),
            line_number=frame.f_lineno,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "class": self.class_name,
            "method": self.method_name,
            "file": self.file_name,
            "line": self.line_number,
            "timestamp": self.timestamp,
        }


class RagEngineError(Exception):
    """Base exception for all engine errors.

    Example:
        try:
            client.query_points(...)
        except Exception as e:
            raise IndexUnavailableError(
                "Similarity search failed",
                cause=e,
                context={"collection": "passages"},
            ) from e
    """

    error_code: str = "RAG_ERR_001"

    def __init__(
        self,
        message: str,
        *,
        cause: Exception | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        """Wrap a message with an optional cause and logging context.

        Args:
            message: What went wrong, for people.
            cause: Lower-level exception being wrapped.
            context: Identifiers worth logging (collection, tenant, path...).
        """
        super().__init__(message)
        self.message = message
        self.cause = cause
        self.extra_context = context or {}
        self.location = RaiseSite.from_frame(self._raise_frame())
        self.stack_trace = "".join(traceback.format_exception(cause)) if cause else None

    def _raise_frame(self) -> FrameType | None:
        # First frame outside this exception's own constructors
        frame = inspect.currentframe()
        while frame is not None and frame.f_locals.get("self") is self:
            frame = frame.f_back
        return frame

    def to_dict(self, include_trace: bool = False) -> dict[str, Any]:
        """Render as ``{"error", "location", "context"?, "cause"?, "stack_trace"?}``.

        ``stack_trace`` is only added when ``include_trace`` is set and the
        error wraps a cause.
        """
        result: dict[str, Any] = {
            "error": {
                "type": type(self).__name__,
                "code": self.error_code,
                "message": self.message,
            },
            "location": self.location.to_dict(),
        }
        if self.extra_context:
            result["context"] = dict(self.extra_context)
        if self.cause:
            result["cause"] = {"type": type(self.cause).__name__, "message": str(self.cause)}
        if include_trace and self.stack_trace:
            result["stack_trace"] = [line for line in self.stack_trace.splitlines() if line.strip()]
        return result
