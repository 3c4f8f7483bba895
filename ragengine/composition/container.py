"""Composition root wiring adapters to the core services."""

from __future__ import annotations

import logging
from typing import Any

from ..adapters.outbound.embedding import SentenceTransformerEmbedder
from ..adapters.outbound.extraction import DocumentExtractor, OpticalExtractor
from ..adapters.outbound.registry import SQLiteDocumentRegistry
from ..adapters.outbound.vector_store import InMemoryVectorStore, QdrantVectorStore
from ..config.settings import Settings
from ..core.ports import DocumentRegistryPort, EmbeddingPort, VectorStorePort
from ..core.services import (
    Chunker,
    HeuristicReranker,
    IndexManager,
    IngestionService,
    RetrievalService,
    SemanticChunker,
)

logger = logging.getLogger(__name__)


def build_vector_store(settings: Settings) -> VectorStorePort:
    if settings.vector_backend == "memory":
        return InMemoryVectorStore()
    return QdrantVectorStore(
        collection_name=settings.collection_name,
        url=settings.qdrant_url,
        api_key=settings.qdrant_api_key,
        path=None if settings.qdrant_url else str(settings.qdrant_path),
    )


class Container:
    """Builds every engine component once and owns their lifecycle.

    Collaborators may be passed in to replace the defaults, which is how
    tests run the full stack without models or servers.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        embedder: EmbeddingPort | None = None,
        store: VectorStorePort | None = None,
        registry: DocumentRegistryPort | None = None,
    ) -> None:
        self.settings = settings or Settings()
        s = self.settings
        if registry is None:
            s.ensure_directories()

        logger.info("Initializing engine components (composition root)...")
        self.embedder = embedder or SentenceTransformerEmbedder(
            s.embedding_model, s.embedding_batch_size
        )
        self.store = store or build_vector_store(s)
        self.registry = registry or SQLiteDocumentRegistry(s.registry_path)

        optical = (
            OpticalExtractor(s.ocr_dpi, s.ocr_language, s.ocr_timeout, s.temp_dir)
            if s.ocr_enabled
            else None
        )
        self.extractor = DocumentExtractor(
            optical=optical, user_agent=s.user_agent, request_timeout=s.request_timeout
        )

        self.index = IndexManager(
            self.store,
            self.embedder,
            s.index_spec(),
            poll_interval=s.index_poll_interval,
            max_attempts=s.index_poll_attempts,
        )
        self.retrieval = RetrievalService(
            self.index,
            HeuristicReranker(),
            threshold=s.similarity_threshold,
            default_limit=s.rag_search_limit,
            use_semantic=s.use_semantic_search,
            overfetch_factor=s.overfetch_factor,
            rerank_candidate_cap=s.rerank_candidate_cap,
        )
        self.ingestion = IngestionService(
            self.extractor,
            self.index,
            self.registry,
            chunker=Chunker(s.chunking()),
            semantic_chunker=SemanticChunker(s.semantic_chunking()),
            ocr_enabled=s.ocr_enabled,
        )

    def close(self) -> None:
        """Release the store, registry and HTTP session."""
        self.index.cancel()
        self.extractor.close()
        self.store.close()
        self.registry.close()
        logger.info("Engine components closed")

    def __enter__(self) -> Container:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()
