"""Unit tests for IndexManager bootstrap, writes and deletes."""

import threading
from unittest.mock import MagicMock

import pytest

from ragengine.adapters.outbound.vector_store import InMemoryVectorStore
from ragengine.core.domain import IndexSpec, IndexState, IndexStatus, PassageFilter, SourceKind
from ragengine.core.domain.exceptions import (
    EmbeddingFailedError,
    IndexTimeoutError,
    IndexUnavailableError,
    InvalidConfigurationError,
    MissingTenantError,
)
from ragengine.core.services import IndexManager
from tests.conftest import TEST_DIMENSION

pytestmark = pytest.mark.unit

SPEC = IndexSpec(dimension=TEST_DIMENSION)


class TestBootstrap:
    def test_creates_collection_and_index(self, embedder):
        store = MagicMock(wraps=InMemoryVectorStore())
        manager = IndexManager(store, embedder, SPEC, poll_interval=0)

        manager.ensure_ready()

        store.create_collection.assert_called_once_with(SPEC)
        store.create_similarity_index.assert_called_once_with(SPEC)
        assert manager.is_ready

    def test_idempotent(self, embedder):
        store = MagicMock(wraps=InMemoryVectorStore())
        manager = IndexManager(store, embedder, SPEC, poll_interval=0)

        manager.ensure_ready()
        manager.ensure_ready()

        assert store.collection_exists.call_count == 1
        assert store.create_similarity_index.call_count == 1

    def test_existing_index_not_recreated(self, embedder):
        store = InMemoryVectorStore()
        store.create_collection(SPEC)
        store.create_similarity_index(SPEC)
        wrapped = MagicMock(wraps=store)

        IndexManager(wrapped, embedder, SPEC, poll_interval=0).ensure_ready()

        wrapped.create_collection.assert_not_called()
        wrapped.create_similarity_index.assert_not_called()

    def test_polls_until_ready(self, embedder):
        store = InMemoryVectorStore(build_polls=2)
        wrapped = MagicMock(wraps=store)

        IndexManager(wrapped, embedder, SPEC, poll_interval=0, max_attempts=5).ensure_ready()

        assert wrapped.index_status.call_count == 3

    def test_times_out_after_bounded_attempts(self, embedder):
        store = InMemoryVectorStore(build_polls=100)
        wrapped = MagicMock(wraps=store)
        manager = IndexManager(wrapped, embedder, SPEC, poll_interval=0, max_attempts=4)

        with pytest.raises(IndexTimeoutError) as exc_info:
            manager.ensure_ready()

        assert wrapped.index_status.call_count == 4
        assert exc_info.value.extra_context["attempts"] == 4
        assert not manager.is_ready

    def test_cancel_interrupts_wait(self, embedder):
        manager = IndexManager(
            InMemoryVectorStore(build_polls=100), embedder, SPEC, poll_interval=30, max_attempts=30
        )
        errors = []

        def run():
            try:
                manager.ensure_ready()
            except IndexTimeoutError as e:
                errors.append(e)

        worker = threading.Thread(target=run)
        worker.start()
        manager.cancel()
        worker.join(timeout=5)

        assert not worker.is_alive()
        assert len(errors) == 1

    def test_dimension_mismatch_rejected(self, embedder):
        manager = IndexManager(InMemoryVectorStore(), embedder, IndexSpec(dimension=384))
        with pytest.raises(InvalidConfigurationError):
            manager.ensure_ready()

    def test_existing_index_with_other_dimension_rejected(self, embedder):
        store = MagicMock()
        store.collection_exists.return_value = True
        store.list_indexes.return_value = [
            IndexState("embedding", 768, "cosine", IndexStatus.READY)
        ]

        with pytest.raises(InvalidConfigurationError):
            IndexManager(store, embedder, SPEC).ensure_ready()

    def test_absent_index_declared_again(self, embedder):
        store = MagicMock()
        store.collection_exists.return_value = True
        store.list_indexes.return_value = [
            IndexState("embedding", TEST_DIMENSION, "cosine", IndexStatus.ABSENT)
        ]
        store.index_status.return_value = IndexStatus.READY

        IndexManager(store, embedder, SPEC, poll_interval=0).ensure_ready()

        store.create_collection.assert_not_called()
        store.create_similarity_index.assert_called_once_with(SPEC)

    def test_absent_index_with_other_dimension_rejected(self, embedder):
        store = MagicMock()
        store.collection_exists.return_value = True
        store.list_indexes.return_value = [
            IndexState("embedding", 768, "cosine", IndexStatus.ABSENT)
        ]

        with pytest.raises(InvalidConfigurationError):
            IndexManager(store, embedder, SPEC).ensure_ready()
        store.create_similarity_index.assert_not_called()

    def test_store_failure_wrapped(self, embedder):
        store = MagicMock()
        store.collection_exists.side_effect = ConnectionError("refused")

        with pytest.raises(IndexUnavailableError) as exc_info:
            IndexManager(store, embedder, SPEC).ensure_ready()
        assert isinstance(exc_info.value.cause, ConnectionError)


class TestWrite:
    def test_write_stores_tenant_in_payload(self, index_manager, memory_store, make_passage):
        passages = [make_passage(sequence_index=i, text=f"Passage number {i}.") for i in range(3)]

        assert index_manager.write(passages) == 3

        payloads = [payload for _, payload in memory_store.points.values()]
        assert len(payloads) == 3
        assert {p["tenant_id"] for p in payloads} == {"tenant-a"}
        assert {p["embedding_model"] for p in payloads} == {"hashing-test"}

    def test_missing_tenant_rejected_before_embedding(self, index_manager, embedder, make_passage):
        passages = [make_passage(), make_passage(tenant_id=None, sequence_index=1)]

        with pytest.raises(MissingTenantError):
            index_manager.write(passages)
        assert embedder.calls == 0

    def test_rewrite_overwrites_in_place(self, index_manager, memory_store, make_passage):
        index_manager.write([make_passage(text="First version.")])
        index_manager.write([make_passage(text="Second version.")])

        assert len(memory_store.points) == 1
        (_, payload), = memory_store.points.values()
        assert payload["text"] == "Second version."

    def test_embedder_failure(self, memory_store, make_passage):
        embedder = MagicMock()
        embedder.dimension = TEST_DIMENSION
        embedder.model_name = "broken"
        embedder.embed_documents.side_effect = RuntimeError("model unavailable")
        manager = IndexManager(memory_store, embedder, SPEC, poll_interval=0)

        with pytest.raises(EmbeddingFailedError):
            manager.write([make_passage()])

    def test_empty_write_is_noop(self, index_manager):
        assert index_manager.write([]) == 0


class TestDeletes:
    @pytest.fixture
    def populated(self, index_manager, make_passage):
        passages = [
            make_passage(source_id="a.txt", sequence_index=0),
            make_passage(source_id="a.txt", sequence_index=1),
            make_passage(source_id="b.txt"),
            make_passage(source_id="https://example.com", source_kind=SourceKind.WEB),
            make_passage(tenant_id="tenant-b", source_id="a.txt"),
        ]
        index_manager.write(passages)
        return index_manager

    def test_delete_source(self, populated, memory_store):
        assert populated.delete_source("tenant-a", "a.txt") == 2
        assert memory_store.count(PassageFilter("tenant-b")) == 1

    def test_delete_sources(self, populated):
        assert populated.delete_sources("tenant-a", ["a.txt", "b.txt"]) == 3
        assert populated.delete_sources("tenant-a", []) == 0

    def test_delete_kind(self, populated):
        assert populated.delete_kind("tenant-a", SourceKind.WEB) == 1
        assert populated.count("tenant-a") == 3

    def test_delete_tenant(self, populated):
        assert populated.delete_tenant("tenant-a") == 4
        assert populated.count("tenant-a") == 0
        assert populated.count("tenant-b") == 1

    def test_prune_source_keeps_head(self, populated):
        assert populated.prune_source("tenant-a", "a.txt", keep=1) == 1
        assert populated.count("tenant-a") == 3

    def test_bulk_delete_is_single_call(self, embedder, make_passage):
        store = MagicMock(wraps=InMemoryVectorStore())
        manager = IndexManager(store, embedder, SPEC, poll_interval=0)
        manager.write([make_passage(sequence_index=i, text=f"Text {i} here.") for i in range(5)])

        manager.delete_tenant("tenant-a")

        store.bulk_delete.assert_called_once_with(PassageFilter("tenant-a"))

    def test_delete_requires_tenant(self, index_manager):
        with pytest.raises(MissingTenantError):
            index_manager.delete_tenant("")
