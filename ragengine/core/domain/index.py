"""Index description and query filter models."""

from dataclasses import dataclass, field
from enum import Enum

from .passage import SourceKind


class IndexStatus(str, Enum):
    """Lifecycle of the deployment's similarity index."""

    ABSENT = "absent"
    BUILDING = "building"
    READY = "ready"


@dataclass(frozen=True)
class IndexSpec:
    """Declaration of the similarity index a deployment expects.

    Attributes:
        name: Index (vector field) name.
        dimension: Embedding size; must match the embedder's output.
        similarity_metric: Distance used for nearest-neighbour search.
    """

    name: str = "embedding"
    dimension: int = 384
    similarity_metric: str = "cosine"


@dataclass
class IndexState:
    """Observed state of the similarity index."""

    name: str
    dimension: int
    similarity_metric: str
    status: IndexStatus = IndexStatus.ABSENT

    @classmethod
    def from_spec(cls, spec: IndexSpec, status: IndexStatus = IndexStatus.ABSENT) -> "IndexState":
        return cls(spec.name, spec.dimension, spec.similarity_metric, status)


@dataclass(frozen=True)
class PassageFilter:
    """Set-based selection of stored passages, always scoped to one tenant.

    Attributes:
        tenant_id: Tenant whose passages are selected.
        source_ids: Restrict to these sources (``None`` means all).
        source_kind: Restrict to one source kind.
        min_sequence_index: Select only passages at or past this position.
    """

    tenant_id: str
    source_ids: tuple[str, ...] | None = None
    source_kind: SourceKind | None = None
    min_sequence_index: int | None = None

    def matches(self, payload: dict) -> bool:
        """Evaluate the filter against a stored payload."""
        if payload.get("tenant_id") != self.tenant_id:
            return False
        if self.source_ids is not None and payload.get("source_id") not in self.source_ids:
            return False
        if self.source_kind is not None and payload.get("source_kind") != self.source_kind.value:
            return False
        if self.min_sequence_index is not None:
            return int(payload.get("sequence_index", -1)) >= self.min_sequence_index
        return True


@dataclass
class StoredHit:
    """Raw similarity search hit as returned by a vector store."""

    payload: dict = field(default_factory=dict)
    score: float = 0.0
