"""Vector Store Port Interface."""

from abc import ABC, abstractmethod
from typing import Any

from ..domain import IndexSpec, IndexState, IndexStatus, PassageFilter, StoredHit


class VectorStorePort(ABC):
    """Abstract interface for vector stores.

    A store holds one collection of passage vectors with their payloads.
    Every read and delete takes a PassageFilter, which is always scoped to
    a single tenant.
    """

    @abstractmethod
    def collection_exists(self) -> bool:
        """Check whether the target collection exists."""
        ...

    @abstractmethod
    def create_collection(self, spec: IndexSpec) -> None:
        """Create the target collection for vectors described by ``spec``."""
        ...

    @abstractmethod
    def list_indexes(self) -> list[IndexState]:
        """List similarity indexes declared on the collection."""
        ...

    @abstractmethod
    def create_similarity_index(self, spec: IndexSpec) -> None:
        """Declare the similarity index. Building may finish asynchronously."""
        ...

    @abstractmethod
    def index_status(self, name: str) -> IndexStatus:
        """Report the build status of a similarity index."""
        ...

    @abstractmethod
    def upsert(
        self, ids: list[str], vectors: list[list[float]], payloads: list[dict[str, Any]]
    ) -> None:
        """Insert or overwrite points by id."""
        ...

    @abstractmethod
    def similarity_search(
        self, vector: list[float], query_filter: PassageFilter, limit: int
    ) -> list[StoredHit]:
        """Return the nearest stored points, best first.

        Stores without ``supports_prefilter`` may ignore the filter; callers
        must then verify tenant membership themselves.
        """
        ...

    @abstractmethod
    def bulk_delete(self, query_filter: PassageFilter) -> int:
        """Delete every point matching the filter in one operation.

        Returns:
            Number of points removed.
        """
        ...

    @abstractmethod
    def count(self, query_filter: PassageFilter) -> int: ...

    @property
    def supports_prefilter(self) -> bool:
        """Whether ``similarity_search`` applies the filter inside the search."""
        return True

    def close(self) -> None:
        """Release the underlying client."""
        return None
