"""Qdrant vector store for production deployment.

The collection holds one named dense vector per passage. The "similarity
index" is that vector together with a tenant-partitioned keyword payload
index, so every search is pre-filtered by tenant inside Qdrant.
"""

import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from qdrant_client import QdrantClient, models

from ....core.domain import IndexSpec, IndexState, IndexStatus, PassageFilter, StoredHit
from ....core.domain.exceptions import IndexUnavailableError, InvalidConfigurationError
from ....core.domain.utils import normalize_text
from ....core.ports.vector_store_port import VectorStorePort

logger = logging.getLogger(__name__)

UPSERT_BATCH_SIZE = 100

# Payload fields indexed next to the tenant key
KEYWORD_FIELDS = ("source_id", "source_kind")
INTEGER_FIELDS = ("sequence_index",)


class QdrantVectorStore(VectorStorePort):
    """Qdrant-backed passage store.

    Connects to a Qdrant server when ``url`` is set, otherwise runs Qdrant
    in embedded local mode at ``path``.
    """

    def __init__(
        self,
        collection_name: str = "passages",
        url: str = "",
        api_key: str = "",
        path: str | None = None,
        client: "QdrantClient | None" = None,
    ) -> None:
        """Initialize the Qdrant vector store.

        Args:
            collection_name: Collection holding all tenants' passages.
            url: Qdrant server URL; empty for embedded mode.
            api_key: Qdrant API key.
            path: On-disk location for embedded mode (``None`` keeps it in memory).
            client: Pre-built client, mainly for tests.
        """
        self.collection_name = collection_name
        self.url = url
        self.api_key = api_key
        self.path = path
        self._client = client
        self._vector = None

    def _get_client(self) -> "QdrantClient":
        """Get or create Qdrant client connection."""
        if self._client is None:
            try:
                from qdrant_client import QdrantClient

                if self.url:
                    self._client = QdrantClient(url=self.url, api_key=self.api_key or None)
                    logger.info("Connected to Qdrant at: %s", self.url)
                elif self.path:
                    self._client = QdrantClient(path=self.path)
                    logger.info("Opened local Qdrant at: %s", self.path)
                else:
                    self._client = QdrantClient(location=":memory:")
                    logger.info("Using in-process Qdrant")
            except Exception as e:
                raise IndexUnavailableError(
                    f"Failed to connect to Qdrant at {self.url or self.path}",
                    cause=e,
                    context={"url": self.url, "path": self.path},
                ) from e

        return self._client

    def _call(self, action: str, fn, *args, **kwargs):
        try:
            return fn(*args, **kwargs)
        except IndexUnavailableError:
            raise
        except Exception as e:
            raise IndexUnavailableError(
                f"Qdrant {action} failed",
                cause=e,
                context={"collection": self.collection_name},
            ) from e

    @staticmethod
    def _distance(metric: str) -> "models.Distance":
        from qdrant_client import models

        distances = {
            "cosine": models.Distance.COSINE,
            "dot": models.Distance.DOT,
            "euclid": models.Distance.EUCLID,
        }
        if metric not in distances:
            raise InvalidConfigurationError(
                f"Unsupported similarity metric: {metric}", context={"metric": metric}
            )
        return distances[metric]

    def collection_exists(self) -> bool:
        client = self._get_client()
        return bool(self._call("collection check", client.collection_exists, self.collection_name))

    def create_collection(self, spec: IndexSpec) -> None:
        from qdrant_client import models

        client = self._get_client()
        self._call(
            "collection create",
            client.create_collection,
            collection_name=self.collection_name,
            vectors_config={
                spec.name: models.VectorParams(
                    size=spec.dimension, distance=self._distance(spec.similarity_metric)
                )
            },
        )
        self._vector = spec.name
        logger.info(f"Created collection {self.collection_name}")

    def _collection_info(self):
        client = self._get_client()
        return self._call("collection info", client.get_collection, self.collection_name)

    def _tenant_index_missing(self, info) -> bool:
        # Embedded mode never records payload indexes, so only a server can report one
        return bool(self.url) and "tenant_id" not in (info.payload_schema or {})

    def list_indexes(self) -> list[IndexState]:
        """Report the collection's named vectors as indexes.

        On a server, a vector whose collection lacks the tenant payload index
        is reported as absent so that bootstrap declares it again.
        """
        if not self.collection_exists():
            return []

        info = self._collection_info()
        vectors = info.config.params.vectors
        if not isinstance(vectors, dict):
            return []

        if self._tenant_index_missing(info):
            status = IndexStatus.ABSENT
        else:
            status = self._map_status(info.status)
        return [
            IndexState(
                name=name,
                dimension=params.size,
                similarity_metric=str(params.distance.value).lower(),
                status=status,
            )
            for name, params in vectors.items()
        ]

    def create_similarity_index(self, spec: IndexSpec) -> None:
        """Declare the payload indexes that make tenant-filtered search efficient."""
        from qdrant_client import models

        client = self._get_client()
        self._call(
            "index create",
            client.create_payload_index,
            collection_name=self.collection_name,
            field_name="tenant_id",
            field_schema=models.KeywordIndexParams(
                type=models.KeywordIndexType.KEYWORD, is_tenant=True
            ),
        )
        for field_name in KEYWORD_FIELDS:
            self._call(
                "index create",
                client.create_payload_index,
                collection_name=self.collection_name,
                field_name=field_name,
                field_schema=models.PayloadSchemaType.KEYWORD,
            )
        for field_name in INTEGER_FIELDS:
            self._call(
                "index create",
                client.create_payload_index,
                collection_name=self.collection_name,
                field_name=field_name,
                field_schema=models.PayloadSchemaType.INTEGER,
            )
        logger.info(f"Declared similarity index '{spec.name}' on {self.collection_name}")

    def _map_status(self, status: Any) -> IndexStatus:
        from qdrant_client import models

        if status == models.CollectionStatus.GREEN:
            return IndexStatus.READY
        if status == models.CollectionStatus.RED:
            raise IndexUnavailableError(
                "Qdrant reports the collection as failed",
                context={"collection": self.collection_name, "status": str(status)},
            )
        return IndexStatus.BUILDING

    def index_status(self, name: str) -> IndexStatus:
        if not self.collection_exists():
            return IndexStatus.ABSENT

        info = self._collection_info()
        vectors = info.config.params.vectors
        if not isinstance(vectors, dict) or name not in vectors:
            return IndexStatus.ABSENT
        if self._tenant_index_missing(info):
            return IndexStatus.ABSENT
        return self._map_status(info.status)

    def _vector_name(self) -> str:
        if self._vector is not None:
            return self._vector

        vectors = self._collection_info().config.params.vectors
        if isinstance(vectors, dict) and len(vectors) == 1:
            self._vector = next(iter(vectors))
            return self._vector
        raise InvalidConfigurationError(
            "Collection must declare exactly one named vector",
            context={"collection": self.collection_name},
        )

    def upsert(
        self, ids: list[str], vectors: list[list[float]], payloads: list[dict[str, Any]]
    ) -> None:
        from qdrant_client.models import PointStruct

        if not (len(ids) == len(vectors) == len(payloads)):
            raise ValueError("ids, vectors and payloads must have the same length")

        client = self._get_client()
        vector_name = self._vector_name()

        points = []
        for point_id, vector, payload in zip(ids, vectors, payloads):
            # Normalize text before storing to prevent BOM issues
            clean = dict(payload)
            clean["text"] = normalize_text(clean.get("text", ""), unicode_form=None)
            points.append(PointStruct(id=point_id, vector={vector_name: vector}, payload=clean))

        for i in range(0, len(points), UPSERT_BATCH_SIZE):
            batch = points[i : i + UPSERT_BATCH_SIZE]
            self._call(
                "upsert", client.upsert, collection_name=self.collection_name, points=batch, wait=True
            )

        logger.debug("Upserted %d points to %s", len(points), self.collection_name)

    def _build_filter(self, query_filter: PassageFilter) -> "models.Filter":
        from qdrant_client.models import FieldCondition, Filter, MatchAny, MatchValue, Range

        conditions = [
            FieldCondition(key="tenant_id", match=MatchValue(value=query_filter.tenant_id))
        ]
        if query_filter.source_ids is not None:
            conditions.append(
                FieldCondition(key="source_id", match=MatchAny(any=list(query_filter.source_ids)))
            )
        if query_filter.source_kind is not None:
            conditions.append(
                FieldCondition(
                    key="source_kind", match=MatchValue(value=query_filter.source_kind.value)
                )
            )
        if query_filter.min_sequence_index is not None:
            conditions.append(
                FieldCondition(
                    key="sequence_index", range=Range(gte=query_filter.min_sequence_index)
                )
            )
        return Filter(must=conditions)

    def similarity_search(
        self, vector: list[float], query_filter: PassageFilter, limit: int
    ) -> list[StoredHit]:
        client = self._get_client()

        # Search using query_points (qdrant-client 1.10+ API)
        response = self._call(
            "search",
            client.query_points,
            collection_name=self.collection_name,
            query=vector,
            using=self._vector_name(),
            query_filter=self._build_filter(query_filter),
            limit=limit,
            with_payload=True,
        )

        points = response.points if hasattr(response, "points") else response
        return [StoredHit(payload=dict(hit.payload or {}), score=float(hit.score)) for hit in points]

    def count(self, query_filter: PassageFilter) -> int:
        client = self._get_client()
        result = self._call(
            "count",
            client.count,
            collection_name=self.collection_name,
            count_filter=self._build_filter(query_filter),
            exact=True,
        )
        return int(result.count)

    def bulk_delete(self, query_filter: PassageFilter) -> int:
        from qdrant_client.models import FilterSelector

        client = self._get_client()
        qdrant_filter = self._build_filter(query_filter)

        removed = self.count(query_filter)
        if removed:
            self._call(
                "delete",
                client.delete,
                collection_name=self.collection_name,
                points_selector=FilterSelector(filter=qdrant_filter),
                wait=True,
            )
        return removed

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None
        self._vector = None
