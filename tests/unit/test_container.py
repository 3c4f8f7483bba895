"""Unit tests for the composition root."""

import pytest

from ragengine.adapters.outbound.extraction import OpticalExtractor
from ragengine.adapters.outbound.vector_store import InMemoryVectorStore, QdrantVectorStore
from ragengine.composition import Container, build_vector_store

pytestmark = pytest.mark.unit


def test_build_vector_store(make_settings, tmp_path):
    assert isinstance(build_vector_store(make_settings(vector_backend="memory")), InMemoryVectorStore)

    local = build_vector_store(make_settings(qdrant_path=tmp_path / "qdrant"))
    assert isinstance(local, QdrantVectorStore)
    assert local.path == str(tmp_path / "qdrant")

    remote = build_vector_store(make_settings(qdrant_url="https://q.example.com", qdrant_api_key="k"))
    assert remote.url == "https://q.example.com"
    assert remote.path is None


def test_settings_flow_into_services(make_settings, embedder, memory_store, registry):
    settings = make_settings(
        embedding_dimension=embedder.dimension,
        similarity_threshold=0.5,
        rag_search_limit=4,
        use_semantic_search=True,
        chunk_size=600,
        chunk_overlap=60,
        ocr_enabled=True,
    )

    with Container(settings, embedder=embedder, store=memory_store, registry=registry) as container:
        assert container.retrieval.threshold == 0.5
        assert container.retrieval.default_limit == 4
        assert container.retrieval.use_semantic is True
        assert container.ingestion.chunker.config.chunk_size == 600
        assert container.index.spec.dimension == embedder.dimension
        assert isinstance(container.extractor.optical, OpticalExtractor)


def test_ocr_disabled(make_settings, embedder, memory_store, registry):
    settings = make_settings(embedding_dimension=embedder.dimension, ocr_enabled=False)

    with Container(settings, embedder=embedder, store=memory_store, registry=registry) as container:
        assert container.extractor.optical is None
        assert container.ingestion.ocr_enabled is False
