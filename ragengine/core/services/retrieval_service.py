"""Tenant-scoped passage retrieval with threshold filtering and re-ranking."""

import logging

from ..domain import PassageFilter, SearchResult, payload_to_passage
from ..domain.exceptions import (
    EmbeddingFailedError,
    EmptyQueryError,
    IndexUnavailableError,
    MissingTenantError,
    RagEngineError,
)
from .index_manager import IndexManager
from .reranker import HeuristicReranker

logger = logging.getLogger(__name__)


class RetrievalService:
    """Answers similarity queries against one tenant's passages.

    Queries are embedded with the index manager's embedder, the same one
    used at write time, so query and passage vectors share one space.
    """

    def __init__(
        self,
        index: IndexManager,
        reranker: HeuristicReranker | None = None,
        threshold: float = 0.7,
        default_limit: int = 10,
        use_semantic: bool = False,
        overfetch_factor: int = 3,
        rerank_candidate_cap: int = 20,
    ) -> None:
        """Initialize the retriever.

        Args:
            index: Index manager owning the store and embedder.
            reranker: Heuristic re-ranker for the semantic path.
            threshold: Minimum similarity a candidate must reach.
            default_limit: Results returned when the caller gives no limit.
            use_semantic: Re-rank by default.
            overfetch_factor: Candidate multiplier for stores without tenant pre-filtering.
            rerank_candidate_cap: Upper bound on candidates fetched for re-ranking.
        """
        self.index = index
        self.reranker = reranker or HeuristicReranker()
        self.threshold = threshold
        self.default_limit = default_limit
        self.use_semantic = use_semantic
        self.overfetch_factor = overfetch_factor
        self.rerank_candidate_cap = rerank_candidate_cap

    def retrieve(
        self,
        query: str,
        tenant_id: str,
        limit: int | None = None,
        threshold: float | None = None,
        rerank: bool | None = None,
    ) -> list[SearchResult]:
        """Retrieve the passages most similar to a query for one tenant.

        Args:
            query: Free-text query.
            tenant_id: Tenant whose passages are searched.
            limit: Maximum results (defaults to ``default_limit``; zero returns nothing).
            threshold: Minimum similarity (defaults to the configured threshold).
            rerank: Apply heuristic re-ranking (defaults to ``use_semantic``).

        Returns:
            Results ordered by score, best first. An empty list means no
            passage was relevant enough.

        Raises:
            EmptyQueryError: If the query is blank.
            MissingTenantError: If no tenant is given.
            EmbeddingFailedError: If the query cannot be embedded.
            IndexUnavailableError: If the index cannot be searched.
        """
        if not query or not query.strip():
            raise EmptyQueryError("Query must not be empty")
        if not tenant_id:
            raise MissingTenantError("Retrieval requires a tenant id")

        limit = self.default_limit if limit is None else limit
        if limit <= 0:
            return []
        threshold = self.threshold if threshold is None else threshold
        rerank = self.use_semantic if rerank is None else rerank

        self.index.ensure_ready()
        store = self.index.store

        candidates = limit
        if rerank:
            candidates = max(limit, min(limit * 3, self.rerank_candidate_cap))
        if not store.supports_prefilter:
            candidates *= self.overfetch_factor

        try:
            vector = self.index.embedder.embed_query(query)
        except RagEngineError:
            raise
        except Exception as e:
            raise EmbeddingFailedError("Failed to embed query", cause=e) from e

        try:
            hits = store.similarity_search(vector, PassageFilter(tenant_id), candidates)
        except RagEngineError:
            raise
        except Exception as e:
            raise IndexUnavailableError(
                "Similarity search failed", cause=e, context={"tenant_id": tenant_id}
            ) from e

        results: list[SearchResult] = []
        for hit in hits:
            owner = hit.payload.get("tenant_id")
            if owner != tenant_id:
                logger.warning(
                    f"Discarding cross-tenant hit: requested {tenant_id}, stored {owner}"
                )
                continue
            if hit.score < threshold:
                continue
            try:
                passage = payload_to_passage(hit.payload)
            except ValueError as e:
                # pydantic ValidationError is a ValueError too
                logger.warning(f"Skipping malformed payload for {hit.payload.get('source_id')}: {e}")
                continue
            results.append(SearchResult(passage=passage, score=hit.score, similarity=hit.score))

        results.sort(key=lambda r: r.similarity, reverse=True)
        logger.debug(
            f"Retrieved {len(results)}/{len(hits)} candidates above {threshold} for tenant {tenant_id}"
        )

        if rerank:
            return self.reranker.rerank(query, results, limit)
        return results[:limit]
