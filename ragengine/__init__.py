"""Document ingestion and multi-tenant retrieval engine."""

__version__ = "0.1.0"
