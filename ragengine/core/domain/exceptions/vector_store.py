"""Vector store exceptions."""

from .base import RagEngineError


class VectorStoreError(RagEngineError):
    """Base error for vector store operations."""

    error_code = "RAG_VEC_001"


class IndexUnavailableError(VectorStoreError):
    """The vector index could not be reached or reported a failure.

    Common causes:
    - Invalid URL or API key
    - Network connectivity issues
    - Collection is in an error state
    """

    error_code = "RAG_VEC_002"


class IndexTimeoutError(VectorStoreError):
    """The similarity index did not become ready within the polling budget."""

    error_code = "RAG_VEC_003"
