"""SQLite-backed document registry."""

import logging
import sqlite3
from datetime import UTC, datetime
from pathlib import Path

from ....core.domain import SourceKind, SourceRecord
from ....core.domain.exceptions import RegistryError
from ....core.ports.registry_port import DocumentRegistryPort

logger = logging.getLogger(__name__)


class SQLiteDocumentRegistry(DocumentRegistryPort):
    """One row per (tenant, source), tracking chunk count and last ingestion."""

    def __init__(self, db_path: str | Path = "data/registry.db") -> None:
        """Initialize the registry.

        Args:
            db_path: Path to the SQLite database file.
        """
        self.db_path = Path(db_path)
        self._ensure_db_dir()
        self._init_db()

    def _ensure_db_dir(self) -> None:
        """Ensure the database directory exists."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    def _init_db(self) -> None:
        """Initialize the database schema."""
        try:
            with sqlite3.connect(self.db_path) as conn:
                cursor = conn.cursor()
                cursor.execute("""
                    CREATE TABLE IF NOT EXISTS sources (
                        tenant_id TEXT NOT NULL,
                        source_id TEXT NOT NULL,
                        source_kind TEXT NOT NULL,
                        chunk_count INTEGER NOT NULL DEFAULT 0,
                        last_ingested_at TEXT NOT NULL,
                        PRIMARY KEY (tenant_id, source_id)
                    )
                """)
                cursor.execute("""
                    CREATE INDEX IF NOT EXISTS idx_sources_tenant_kind
                    ON sources(tenant_id, source_kind)
                """)
                conn.commit()
        except sqlite3.Error as e:
            raise RegistryError(
                "Failed to initialize registry database",
                cause=e,
                context={"db_path": str(self.db_path)},
            ) from e

    def _execute(self, sql: str, params: tuple = ()) -> list[tuple]:
        try:
            with sqlite3.connect(self.db_path) as conn:
                cursor = conn.cursor()
                cursor.execute(sql, params)
                rows = cursor.fetchall()
                conn.commit()
                return rows
        except sqlite3.Error as e:
            raise RegistryError("Registry query failed", cause=e, context={"sql": sql.split()[0]}) from e

    def _delete(self, sql: str, params: tuple) -> int:
        try:
            with sqlite3.connect(self.db_path) as conn:
                cursor = conn.execute(sql, params)
                conn.commit()
                return cursor.rowcount
        except sqlite3.Error as e:
            raise RegistryError("Registry delete failed", cause=e) from e

    @staticmethod
    def _to_record(row: tuple) -> SourceRecord:
        tenant_id, source_id, source_kind, chunk_count, last_ingested_at = row
        return SourceRecord(
            tenant_id=tenant_id,
            source_id=source_id,
            source_kind=SourceKind(source_kind),
            chunk_count=chunk_count,
            last_ingested_at=datetime.fromisoformat(last_ingested_at),
        )

    def upsert(
        self,
        tenant_id: str,
        source_id: str,
        source_kind: SourceKind,
        chunk_count: int,
        ingested_at: datetime | None = None,
    ) -> SourceRecord:
        if chunk_count < 0:
            raise ValueError("chunk_count must not be negative")
        ingested_at = ingested_at or datetime.now(UTC)

        self._execute(
            """
            INSERT INTO sources (tenant_id, source_id, source_kind, chunk_count, last_ingested_at)
            VALUES (?, ?, ?, ?, ?)
            ON CONFLICT (tenant_id, source_id) DO UPDATE SET
                source_kind = excluded.source_kind,
                chunk_count = excluded.chunk_count,
                last_ingested_at = excluded.last_ingested_at
            """,
            (tenant_id, source_id, source_kind.value, chunk_count, ingested_at.isoformat()),
        )
        logger.debug(f"Registry: {tenant_id}/{source_id} -> {chunk_count} chunks")
        return SourceRecord(tenant_id, source_id, source_kind, chunk_count, ingested_at)

    def get(self, tenant_id: str, source_id: str) -> SourceRecord | None:
        rows = self._execute(
            """
            SELECT tenant_id, source_id, source_kind, chunk_count, last_ingested_at
            FROM sources WHERE tenant_id = ? AND source_id = ?
            """,
            (tenant_id, source_id),
        )
        return self._to_record(rows[0]) if rows else None

    def list_sources(self, tenant_id: str) -> list[SourceRecord]:
        rows = self._execute(
            """
            SELECT tenant_id, source_id, source_kind, chunk_count, last_ingested_at
            FROM sources WHERE tenant_id = ?
            ORDER BY last_ingested_at DESC, source_id
            """,
            (tenant_id,),
        )
        return [self._to_record(row) for row in rows]

    def remove(self, tenant_id: str, source_id: str) -> int:
        return self._delete(
            "DELETE FROM sources WHERE tenant_id = ? AND source_id = ?", (tenant_id, source_id)
        )

    def remove_many(self, tenant_id: str, source_ids: list[str]) -> int:
        if not source_ids:
            return 0
        placeholders = ", ".join("?" for _ in source_ids)
        return self._delete(
            f"DELETE FROM sources WHERE tenant_id = ? AND source_id IN ({placeholders})",
            (tenant_id, *source_ids),
        )

    def remove_kind(self, tenant_id: str, source_kind: SourceKind) -> int:
        return self._delete(
            "DELETE FROM sources WHERE tenant_id = ? AND source_kind = ?",
            (tenant_id, source_kind.value),
        )

    def clear_tenant(self, tenant_id: str) -> int:
        return self._delete("DELETE FROM sources WHERE tenant_id = ?", (tenant_id,))
