"""In-memory vector store for local runs and tests."""

import logging
import threading
from typing import Any

import numpy as np

from ....core.domain import IndexSpec, IndexState, IndexStatus, PassageFilter, StoredHit
from ....core.ports.vector_store_port import VectorStorePort

logger = logging.getLogger(__name__)


class InMemoryVectorStore(VectorStorePort):
    """Simple in-memory storage using exact cosine similarity.

    Args:
        build_polls: Number of status checks that report ``building`` after
            the index is created, to mimic an asynchronous index build.
        prefilter: When False, ``similarity_search`` ignores the filter and
            ranks every tenant's points, like a store without filtered search.
    """

    def __init__(self, build_polls: int = 0, prefilter: bool = True) -> None:
        self.build_polls = build_polls
        self.prefilter = prefilter

        self.points: dict[str, tuple[np.ndarray, dict[str, Any]]] = {}
        self._collection: IndexSpec | None = None
        self._indexes: dict[str, IndexState] = {}
        self._pending_polls: dict[str, int] = {}
        self._lock = threading.Lock()

    @property
    def supports_prefilter(self) -> bool:
        return self.prefilter

    def collection_exists(self) -> bool:
        return self._collection is not None

    def create_collection(self, spec: IndexSpec) -> None:
        self._collection = spec

    def list_indexes(self) -> list[IndexState]:
        return list(self._indexes.values())

    def create_similarity_index(self, spec: IndexSpec) -> None:
        status = IndexStatus.BUILDING if self.build_polls else IndexStatus.READY
        self._indexes[spec.name] = IndexState.from_spec(spec, status)
        self._pending_polls[spec.name] = self.build_polls

    def index_status(self, name: str) -> IndexStatus:
        state = self._indexes.get(name)
        if state is None:
            return IndexStatus.ABSENT
        remaining = self._pending_polls.get(name, 0)
        if remaining > 0:
            self._pending_polls[name] = remaining - 1
            return IndexStatus.BUILDING
        state.status = IndexStatus.READY
        return state.status

    def upsert(
        self, ids: list[str], vectors: list[list[float]], payloads: list[dict[str, Any]]
    ) -> None:
        if not (len(ids) == len(vectors) == len(payloads)):
            raise ValueError("ids, vectors and payloads must have the same length")
        with self._lock:
            for point_id, vector, payload in zip(ids, vectors, payloads):
                self.points[point_id] = (np.asarray(vector, dtype=float), dict(payload))

    def similarity_search(
        self, vector: list[float], query_filter: PassageFilter, limit: int
    ) -> list[StoredHit]:
        query = np.asarray(vector, dtype=float)
        query_norm = np.linalg.norm(query)

        with self._lock:
            candidates = list(self.points.values())

        scored = []
        for stored, payload in candidates:
            if self.prefilter and not query_filter.matches(payload):
                continue
            denominator = query_norm * np.linalg.norm(stored)
            similarity = float(np.dot(query, stored) / denominator) if denominator else 0.0
            scored.append(StoredHit(payload=dict(payload), score=similarity))

        scored.sort(key=lambda hit: hit.score, reverse=True)
        return scored[:limit]

    def count(self, query_filter: PassageFilter) -> int:
        with self._lock:
            return sum(1 for _, payload in self.points.values() if query_filter.matches(payload))

    def bulk_delete(self, query_filter: PassageFilter) -> int:
        with self._lock:
            doomed = [pid for pid, (_, payload) in self.points.items() if query_filter.matches(payload)]
            for point_id in doomed:
                del self.points[point_id]
        logger.debug(f"Deleted {len(doomed)} in-memory points")
        return len(doomed)

    def close(self) -> None:
        with self._lock:
            self.points.clear()
