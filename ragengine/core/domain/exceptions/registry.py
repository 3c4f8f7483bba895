"""Document registry exceptions."""

from .base import RagEngineError


class RegistryError(RagEngineError):
    """Reading or writing the source registry failed."""

    error_code = "RAG_REG_001"
