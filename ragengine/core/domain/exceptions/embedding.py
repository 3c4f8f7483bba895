"""Embedding exceptions."""

from .base import RagEngineError


class EmbeddingError(RagEngineError):
    """Failed to generate embeddings."""

    error_code = "RAG_EMB_001"


class EmbeddingFailedError(EmbeddingError):
    """The embedder is unavailable or rejected the input."""

    error_code = "RAG_EMB_002"
