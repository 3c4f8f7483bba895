"""Unit tests for RetrievalService: tenant isolation, thresholds and re-ranking."""

from datetime import UTC, datetime
from unittest.mock import MagicMock

import pytest

from ragengine.adapters.outbound.vector_store import InMemoryVectorStore
from ragengine.core.domain import IndexSpec, IndexStatus, StoredHit
from ragengine.core.domain.exceptions import (
    EmbeddingFailedError,
    EmptyQueryError,
    IndexUnavailableError,
    MissingTenantError,
)
from ragengine.core.services import IndexManager, RetrievalService
from tests.conftest import TEST_DIMENSION

pytestmark = pytest.mark.unit


def _payload(tenant_id, text, source_id="doc.txt", sequence_index=0):
    return {
        "tenant_id": tenant_id,
        "source_id": source_id,
        "source_kind": "upload",
        "sequence_index": sequence_index,
        "text": text,
        "created_at": datetime.now(UTC).isoformat(),
        "embedding_model": "hashing-test",
        "signals": None,
        "extraction_method": None,
        "optical_confidence": None,
    }


def _stub_manager(embedder, hits, prefilter=True):
    store = MagicMock()
    store.supports_prefilter = prefilter
    store.collection_exists.return_value = True
    store.list_indexes.return_value = []
    store.index_status.return_value = IndexStatus.READY
    store.similarity_search.return_value = hits
    return IndexManager(store, embedder, IndexSpec(dimension=TEST_DIMENSION), poll_interval=0)


@pytest.fixture
def corpus(index_manager, make_passage):
    index_manager.write(
        [
            make_passage(
                text="Our refund policy: refunds are granted within 30 days of purchase.",
                tenant_id="tenant-a",
                source_id="refunds.txt",
            ),
            make_passage(
                text="Shipping takes five business days to most regions.",
                tenant_id="tenant-a",
                source_id="shipping.txt",
            ),
            make_passage(
                text="Employee handbook covering vacation days.",
                tenant_id="tenant-b",
                source_id="handbook.txt",
            ),
        ]
    )
    return index_manager


class TestRetrieve:
    def test_returns_tenant_passages_best_first(self, corpus):
        results = RetrievalService(corpus, threshold=0.0).retrieve("refund policy", "tenant-a", 5)

        assert results[0].passage.source_id == "refunds.txt"
        assert all(r.passage.tenant_id == "tenant-a" for r in results)
        scores = [r.score for r in results]
        assert scores == sorted(scores, reverse=True)

    def test_scenario_d_other_tenant_sees_nothing(self, corpus):
        results = RetrievalService(corpus, threshold=0.0).retrieve("refund policy", "tenant-b")
        assert all(r.passage.tenant_id == "tenant-b" for r in results)
        assert "refunds.txt" not in {r.passage.source_id for r in results}

    def test_scenario_d_tenant_without_passages(self, corpus):
        assert RetrievalService(corpus, threshold=-1.0).retrieve("refund policy", "tenant-c") == []

    def test_scenario_e_high_threshold_returns_empty(self, embedder):
        manager = _stub_manager(embedder, [StoredHit(_payload("tenant-a", "Refund policy text."), 0.75)])

        results = RetrievalService(manager).retrieve("refund policy", "tenant-a", threshold=0.9)

        assert results == []

    def test_default_threshold_is_configurable(self, embedder):
        hits = [StoredHit(_payload("tenant-a", "Refund policy text."), 0.75)]

        assert len(RetrievalService(_stub_manager(embedder, hits)).retrieve("q", "tenant-a")) == 1
        strict = RetrievalService(_stub_manager(embedder, hits), threshold=0.8)
        assert strict.retrieve("q", "tenant-a") == []

    @pytest.mark.parametrize("query", ["refund policy", "shipping days", "vacation"])
    def test_threshold_monotonicity(self, corpus, query):
        service = RetrievalService(corpus)
        counts = [
            len(service.retrieve(query, "tenant-a", limit=10, threshold=t))
            for t in (-1.0, 0.0, 0.2, 0.4, 0.6, 0.8, 1.0)
        ]
        assert counts == sorted(counts, reverse=True)

    def test_limit_truncates(self, index_manager, make_passage):
        index_manager.write(
            [make_passage(text=f"Refund note number {i}.", sequence_index=i) for i in range(8)]
        )
        results = RetrievalService(index_manager, threshold=0.0).retrieve("refund note", "tenant-a", 3)
        assert len(results) == 3

    def test_zero_limit_returns_nothing(self, embedder):
        hits = [StoredHit(_payload("tenant-a", "Refund policy text."), 0.9)]
        manager = _stub_manager(embedder, hits)

        assert RetrievalService(manager, default_limit=10).retrieve("q", "tenant-a", limit=0) == []
        manager.store.similarity_search.assert_not_called()

    def test_prefiltered_search_passes_tenant_and_limit(self, embedder):
        manager = _stub_manager(embedder, [])
        RetrievalService(manager).retrieve("q", "tenant-a", limit=4)

        _, query_filter, limit = manager.store.similarity_search.call_args.args
        assert query_filter.tenant_id == "tenant-a"
        assert limit == 4


class TestTenantGuard:
    def test_cross_tenant_hits_discarded_and_logged(self, embedder, caplog):
        hits = [
            StoredHit(_payload("tenant-b", "Tenant B secret refund data."), 0.99),
            StoredHit(_payload("tenant-a", "Tenant A refund data."), 0.8),
        ]
        manager = _stub_manager(embedder, hits, prefilter=False)

        with caplog.at_level("WARNING"):
            results = RetrievalService(manager).retrieve("refund", "tenant-a")

        assert [r.passage.tenant_id for r in results] == ["tenant-a"]
        assert "cross-tenant" in caplog.text

    def test_overfetch_without_prefilter(self, embedder):
        manager = _stub_manager(embedder, [], prefilter=False)
        RetrievalService(manager, overfetch_factor=3).retrieve("q", "tenant-a", limit=5)

        assert manager.store.similarity_search.call_args.args[2] == 15

    def test_post_filter_with_real_store(self, embedder, make_passage):
        store = InMemoryVectorStore(prefilter=False)
        manager = IndexManager(store, embedder, IndexSpec(dimension=TEST_DIMENSION), poll_interval=0)
        manager.write(
            [
                make_passage(text="refund policy details", tenant_id="tenant-b"),
                make_passage(text="refund policy summary", tenant_id="tenant-a"),
            ]
        )

        results = RetrievalService(manager, threshold=0.0).retrieve("refund policy", "tenant-a")

        assert [r.passage.text for r in results] == ["refund policy summary"]


class TestRerank:
    def test_rerank_fetches_more_candidates(self, embedder):
        manager = _stub_manager(embedder, [])
        RetrievalService(manager, rerank_candidate_cap=20).retrieve("q", "tenant-a", limit=5, rerank=True)
        assert manager.store.similarity_search.call_args.args[2] == 15

    def test_rerank_candidates_capped(self, embedder):
        manager = _stub_manager(embedder, [])
        RetrievalService(manager, rerank_candidate_cap=20).retrieve("q", "tenant-a", limit=10, rerank=True)
        assert manager.store.similarity_search.call_args.args[2] == 20

    def test_rerank_blends_scores(self, embedder):
        hits = [
            StoredHit(_payload("tenant-a", "Unrelated shipping text.", "a.txt"), 0.80),
            StoredHit(_payload("tenant-a", "The refund policy is generous.", "b.txt"), 0.78),
        ]
        manager = _stub_manager(embedder, hits)

        results = RetrievalService(manager, use_semantic=True).retrieve("refund policy", "tenant-a")

        assert results[0].passage.source_id == "b.txt"
        assert results[0].heuristic == pytest.approx(0.8)
        assert results[0].score == pytest.approx(0.7 * 0.78 + 0.3 * 0.8)
        assert results[1].heuristic == pytest.approx(0.0)

    def test_threshold_applies_to_similarity_before_rerank(self, embedder):
        hits = [StoredHit(_payload("tenant-a", "refund policy"), 0.65)]
        manager = _stub_manager(embedder, hits)
        assert RetrievalService(manager).retrieve("refund policy", "tenant-a", rerank=True) == []


class TestFailures:
    @pytest.mark.parametrize("query", ["", "   "])
    def test_empty_query(self, index_manager, query):
        with pytest.raises(EmptyQueryError):
            RetrievalService(index_manager).retrieve(query, "tenant-a")

    def test_missing_tenant(self, index_manager):
        with pytest.raises(MissingTenantError):
            RetrievalService(index_manager).retrieve("refund", "")

    def test_embedder_failure(self, embedder):
        manager = _stub_manager(embedder, [])
        manager.embedder = MagicMock(dimension=TEST_DIMENSION)
        manager.embedder.embed_query.side_effect = RuntimeError("model offline")

        with pytest.raises(EmbeddingFailedError):
            RetrievalService(manager).retrieve("refund", "tenant-a")

    def test_store_failure(self, embedder):
        manager = _stub_manager(embedder, [])
        manager.store.similarity_search.side_effect = ConnectionError("down")

        with pytest.raises(IndexUnavailableError):
            RetrievalService(manager).retrieve("refund", "tenant-a")

    def test_malformed_payload_skipped(self, embedder):
        bad = _payload("tenant-a", "Refund text.")
        bad["unexpected"] = "value"
        hits = [StoredHit(bad, 0.9), StoredHit(_payload("tenant-a", "Good refund text."), 0.8)]

        results = RetrievalService(_stub_manager(embedder, hits)).retrieve("refund", "tenant-a")

        assert [r.passage.text for r in results] == ["Good refund text."]

    def test_blank_payload_text_skipped(self, embedder):
        hits = [
            StoredHit(_payload("tenant-a", "   "), 0.9),
            StoredHit(_payload("tenant-a", "Good refund text."), 0.8),
        ]

        results = RetrievalService(_stub_manager(embedder, hits)).retrieve("refund", "tenant-a")

        assert [r.passage.text for r in results] == ["Good refund text."]
