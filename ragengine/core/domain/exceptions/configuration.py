"""Configuration-related exceptions."""

from .base import RagEngineError


class ConfigurationError(RagEngineError):
    """Configuration or environment variable errors.

    Raised when required configuration is missing or invalid.
    """

    error_code = "RAG_CFG_001"


class InvalidConfigurationError(ConfigurationError):
    """Configuration value is invalid or inconsistent with the deployment.

    Common causes:
    - Embedder output size differs from the index dimension
    - Existing collection was created for another vector name
    """

    error_code = "RAG_CFG_002"
