"""Document Registry Port Interface."""

from abc import ABC, abstractmethod
from datetime import datetime

from ..domain import SourceKind, SourceRecord


class DocumentRegistryPort(ABC):
    """Per-tenant ledger of ingested sources.

    The registry is not the source of truth for passages; the vector index
    is. Callers keep the two consistent by writing the index first.
    """

    @abstractmethod
    def upsert(
        self,
        tenant_id: str,
        source_id: str,
        source_kind: SourceKind,
        chunk_count: int,
        ingested_at: datetime | None = None,
    ) -> SourceRecord:
        """Create or update the record for a source. Last writer wins."""
        ...

    @abstractmethod
    def get(self, tenant_id: str, source_id: str) -> SourceRecord | None: ...

    @abstractmethod
    def list_sources(self, tenant_id: str) -> list[SourceRecord]:
        """List a tenant's sources, most recently ingested first."""
        ...

    @abstractmethod
    def remove(self, tenant_id: str, source_id: str) -> int: ...

    @abstractmethod
    def remove_many(self, tenant_id: str, source_ids: list[str]) -> int: ...

    @abstractmethod
    def remove_kind(self, tenant_id: str, source_kind: SourceKind) -> int: ...

    @abstractmethod
    def clear_tenant(self, tenant_id: str) -> int: ...

    def close(self) -> None:
        return None
