"""Vector index ownership: bootstrap, readiness polling, writes and deletes."""

import logging
import threading

from ..domain import IndexSpec, IndexStatus, Passage, PassageFilter, SourceKind, passage_to_payload
from ..domain.exceptions import (
    EmbeddingFailedError,
    IndexTimeoutError,
    IndexUnavailableError,
    InvalidConfigurationError,
    MissingTenantError,
    RagEngineError,
)
from ..ports import EmbeddingPort, VectorStorePort

logger = logging.getLogger(__name__)


class IndexManager:
    """Owns the deployment's collection and similarity index.

    ``ensure_ready`` runs the bootstrap at most once per instance; later
    calls return immediately. Polling waits on an event so ``cancel`` can
    interrupt a blocked caller.
    """

    def __init__(
        self,
        store: VectorStorePort,
        embedder: EmbeddingPort,
        spec: IndexSpec | None = None,
        poll_interval: float = 2.0,
        max_attempts: int = 30,
    ) -> None:
        """Initialize the index manager.

        Args:
            store: Vector store holding the passage collection.
            embedder: Embedder used for every write.
            spec: Expected index name, dimension and metric.
            poll_interval: Seconds between index status checks.
            max_attempts: Status checks before giving up with IndexTimeoutError.
        """
        self.store = store
        self.embedder = embedder
        self.spec = spec or IndexSpec()
        self.poll_interval = poll_interval
        self.max_attempts = max_attempts

        self._ready = False
        self._lock = threading.Lock()
        self._cancelled = threading.Event()

    @property
    def is_ready(self) -> bool:
        return self._ready

    def cancel(self) -> None:
        """Abort any in-progress readiness wait."""
        self._cancelled.set()

    def ensure_ready(self, spec: IndexSpec | None = None) -> None:
        """Bootstrap the collection and index, then wait until queryable.

        Raises:
            InvalidConfigurationError: If the embedder's dimension differs from the IndexSpec.
            IndexTimeoutError: If the index is not ready after ``max_attempts`` checks.
            IndexUnavailableError: If the store cannot be reached.
        """
        if self._ready:
            return

        with self._lock:
            if self._ready:
                return
            spec = spec or self.spec
            self._check_dimension(spec)
            try:
                self._bootstrap(spec)
            except RagEngineError:
                raise
            except Exception as e:
                raise IndexUnavailableError(
                    "Failed to bootstrap vector index",
                    cause=e,
                    context={"index": spec.name},
                ) from e
            self._wait_until_ready(spec)
            self.spec = spec
            self._ready = True
            logger.info(f"Index '{spec.name}' is ready")

    def _check_dimension(self, spec: IndexSpec) -> None:
        try:
            dimension = self.embedder.dimension
        except RagEngineError:
            raise
        except Exception as e:
            raise EmbeddingFailedError("Could not determine embedder dimension", cause=e) from e

        if dimension != spec.dimension:
            raise InvalidConfigurationError(
                f"Embedder produces {dimension}-d vectors but index '{spec.name}' "
                f"expects {spec.dimension}",
                context={"embedder_dimension": dimension, "index_dimension": spec.dimension},
            )

    def _bootstrap(self, spec: IndexSpec) -> None:
        if not self.store.collection_exists():
            logger.info("Creating passage collection")
            self.store.create_collection(spec)

        existing = {state.name: state for state in self.store.list_indexes()}
        current = existing.get(spec.name)
        if current is not None and current.dimension != spec.dimension:
            raise InvalidConfigurationError(
                f"Existing index '{spec.name}' has dimension {current.dimension}, "
                f"expected {spec.dimension}",
                context={"index": spec.name},
            )
        if current is None or current.status == IndexStatus.ABSENT:
            logger.info(f"Creating similarity index '{spec.name}' ({spec.dimension}-d, {spec.similarity_metric})")
            self.store.create_similarity_index(spec)

    def _wait_until_ready(self, spec: IndexSpec) -> None:
        for attempt in range(1, self.max_attempts + 1):
            try:
                status = self.store.index_status(spec.name)
            except RagEngineError:
                raise
            except Exception as e:
                raise IndexUnavailableError(
                    "Failed to read index status", cause=e, context={"index": spec.name}
                ) from e

            if status == IndexStatus.READY:
                return
            logger.debug(f"Index '{spec.name}' is {status.value} (attempt {attempt}/{self.max_attempts})")

            if attempt < self.max_attempts and self._cancelled.wait(self.poll_interval):
                raise IndexTimeoutError(
                    "Index readiness wait was cancelled",
                    context={"index": spec.name, "attempts": attempt},
                )

        raise IndexTimeoutError(
            f"Index '{spec.name}' not ready after {self.max_attempts} attempts",
            context={
                "index": spec.name,
                "attempts": self.max_attempts,
                "poll_interval": self.poll_interval,
            },
        )

    def write(self, passages: list[Passage]) -> int:
        """Embed and upsert passages.

        Passage ids are derived from (tenant, source, sequence index), so
        rewriting a source overwrites its earlier passages in place.

        Returns:
            Number of passages written.

        Raises:
            MissingTenantError: If any passage lacks a tenant id.
            EmbeddingFailedError: If the embedder fails.
            IndexUnavailableError: If the store rejects the write.
        """
        if not passages:
            return 0

        missing = [p.source_id for p in passages if not p.tenant_id]
        if missing:
            raise MissingTenantError(
                "Refusing to write passages without a tenant",
                context={"sources": sorted(set(missing))},
            )

        self.ensure_ready()

        payloads = [passage_to_payload(p, self.embedder.model_name) for p in passages]
        try:
            vectors = self.embedder.embed_documents([p.text for p in passages])
        except RagEngineError:
            raise
        except Exception as e:
            raise EmbeddingFailedError(
                "Failed to embed passages", cause=e, context={"count": len(passages)}
            ) from e

        try:
            self.store.upsert([p.passage_id for p in passages], vectors, payloads)
        except RagEngineError:
            raise
        except Exception as e:
            raise IndexUnavailableError(
                "Failed to write passages", cause=e, context={"count": len(passages)}
            ) from e

        logger.info(f"Wrote {len(passages)} passages for {passages[0].source_id}")
        return len(passages)

    def _delete(self, query_filter: PassageFilter) -> int:
        if not query_filter.tenant_id:
            raise MissingTenantError("Deletes must be scoped to a tenant")
        self.ensure_ready()
        try:
            removed = self.store.bulk_delete(query_filter)
        except RagEngineError:
            raise
        except Exception as e:
            raise IndexUnavailableError(
                "Bulk delete failed", cause=e, context={"tenant_id": query_filter.tenant_id}
            ) from e
        logger.info(f"Deleted {removed} passages for tenant {query_filter.tenant_id}")
        return removed

    def delete_source(self, tenant_id: str, source_id: str) -> int:
        return self._delete(PassageFilter(tenant_id, source_ids=(source_id,)))

    def delete_sources(self, tenant_id: str, source_ids: list[str]) -> int:
        if not source_ids:
            return 0
        return self._delete(PassageFilter(tenant_id, source_ids=tuple(source_ids)))

    def delete_kind(self, tenant_id: str, source_kind: SourceKind) -> int:
        return self._delete(PassageFilter(tenant_id, source_kind=source_kind))

    def delete_tenant(self, tenant_id: str) -> int:
        return self._delete(PassageFilter(tenant_id))

    def prune_source(self, tenant_id: str, source_id: str, keep: int) -> int:
        """Delete passages of a source positioned at or past ``keep``.

        Used after re-ingestion so a shorter new version leaves no stale tail.
        """
        return self._delete(
            PassageFilter(tenant_id, source_ids=(source_id,), min_sequence_index=keep)
        )

    def count(self, tenant_id: str, source_kind: SourceKind | None = None) -> int:
        self.ensure_ready()
        try:
            return self.store.count(PassageFilter(tenant_id, source_kind=source_kind))
        except RagEngineError:
            raise
        except Exception as e:
            raise IndexUnavailableError("Count failed", cause=e) from e
