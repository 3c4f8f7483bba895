"""Port interfaces implemented by the outbound adapters."""

from .embedding_port import EmbeddingPort
from .extraction_port import ExtractorPort, OpticalExtractorPort
from .registry_port import DocumentRegistryPort
from .vector_store_port import VectorStorePort

__all__ = [
    "EmbeddingPort",
    "ExtractorPort",
    "OpticalExtractorPort",
    "DocumentRegistryPort",
    "VectorStorePort",
]
