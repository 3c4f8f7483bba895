"""Exception hierarchy for the retrieval engine.

Each exception carries an error code, the location where it was raised,
an optional cause and a JSON representation. Import from this package:

    from ragengine.core.domain.exceptions import RagEngineError, IndexTimeoutError
"""

# Base classes
from .base import RagEngineError, RaiseSite

# Configuration exceptions
from .configuration import ConfigurationError, InvalidConfigurationError

# Data ingestion exceptions
from .data_ingestion import (
    DataIngestionError,
    EmptyContentError,
    ExtractionFailedError,
    FetchError,
    NoExtractableContentError,
    ScannedDocumentError,
)

# Embedding exceptions
from .embedding import EmbeddingError, EmbeddingFailedError

# Registry exceptions
from .registry import RegistryError

# Validation exceptions
from .validation import (
    EmptyQueryError,
    MissingTenantError,
    UnsupportedContentTypeError,
    ValidationError,
)

# Vector store exceptions
from .vector_store import IndexTimeoutError, IndexUnavailableError, VectorStoreError

__all__ = [
    # Base
    "RaiseSite",
    "RagEngineError",
    # Configuration
    "ConfigurationError",
    "InvalidConfigurationError",
    # Data Ingestion
    "DataIngestionError",
    "EmptyContentError",
    "FetchError",
    "ExtractionFailedError",
    "NoExtractableContentError",
    "ScannedDocumentError",
    # Embedding
    "EmbeddingError",
    "EmbeddingFailedError",
    # Registry
    "RegistryError",
    # Validation
    "ValidationError",
    "EmptyQueryError",
    "MissingTenantError",
    "UnsupportedContentTypeError",
    # Vector Store
    "VectorStoreError",
    "IndexUnavailableError",
    "IndexTimeoutError",
]
