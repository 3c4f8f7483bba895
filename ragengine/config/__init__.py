"""Settings and logging configuration."""

from .logging import get_logger, setup_logging
from .settings import Settings

__all__ = ["Settings", "get_logger", "setup_logging"]
