"""Document registry adapters."""

from .sqlite_registry import SQLiteDocumentRegistry

__all__ = ["SQLiteDocumentRegistry"]
