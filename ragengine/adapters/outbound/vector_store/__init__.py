"""Vector store adapters."""

from .memory_adapter import InMemoryVectorStore
from .qdrant_adapter import QdrantVectorStore

__all__ = ["InMemoryVectorStore", "QdrantVectorStore"]
