"""Validation exceptions."""

from .base import RagEngineError


class ValidationError(RagEngineError):
    """Input validation failed."""

    error_code = "RAG_VAL_001"


class EmptyQueryError(ValidationError):
    """Query cannot be empty or whitespace only."""

    error_code = "RAG_VAL_002"


class MissingTenantError(ValidationError):
    """A passage or request arrived without a tenant identifier."""

    error_code = "RAG_VAL_003"


class UnsupportedContentTypeError(ValidationError):
    """Uploaded artifact has a content type the extractor cannot handle."""

    error_code = "RAG_VAL_004"
