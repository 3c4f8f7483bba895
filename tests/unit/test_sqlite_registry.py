"""Unit tests for SQLiteDocumentRegistry."""

import sqlite3
from datetime import UTC, datetime, timedelta

import pytest

from ragengine.adapters.outbound.registry import SQLiteDocumentRegistry
from ragengine.core.domain import SourceKind
from ragengine.core.domain.exceptions import RegistryError

pytestmark = pytest.mark.unit


def test_init_db(tmp_path):
    """Test database initialization and schema creation."""
    db_file = tmp_path / "nested" / "registry.db"
    SQLiteDocumentRegistry(db_file)

    with sqlite3.connect(db_file) as conn:
        result = conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table' AND name='sources'"
        ).fetchone()
    assert result == ("sources",)


def test_upsert_and_get(registry):
    record = registry.upsert("tenant-a", "policy.txt", SourceKind.UPLOAD, 3)

    stored = registry.get("tenant-a", "policy.txt")
    assert stored == record
    assert stored.chunk_count == 3
    assert registry.get("tenant-b", "policy.txt") is None


def test_upsert_overwrites(registry):
    earlier = datetime(2025, 1, 1, tzinfo=UTC)
    registry.upsert("tenant-a", "policy.txt", SourceKind.UPLOAD, 3, earlier)
    registry.upsert("tenant-a", "policy.txt", SourceKind.UPLOAD, 5)

    records = registry.list_sources("tenant-a")
    assert len(records) == 1
    assert records[0].chunk_count == 5
    assert records[0].last_ingested_at > earlier


def test_negative_chunk_count_rejected(registry):
    with pytest.raises(ValueError):
        registry.upsert("tenant-a", "policy.txt", SourceKind.UPLOAD, -1)


def test_list_sources_newest_first_and_tenant_scoped(registry):
    now = datetime.now(UTC)
    registry.upsert("tenant-a", "old.txt", SourceKind.UPLOAD, 1, now - timedelta(days=2))
    registry.upsert("tenant-a", "https://example.com", SourceKind.WEB, 2, now)
    registry.upsert("tenant-b", "other.txt", SourceKind.UPLOAD, 1, now)

    records = registry.list_sources("tenant-a")

    assert [r.source_id for r in records] == ["https://example.com", "old.txt"]
    assert records[0].source_kind == SourceKind.WEB


def test_remove_operations(registry):
    for source_id in ("a.txt", "b.txt", "c.txt"):
        registry.upsert("tenant-a", source_id, SourceKind.UPLOAD, 1)
    registry.upsert("tenant-a", "https://example.com", SourceKind.WEB, 1)
    registry.upsert("tenant-b", "a.txt", SourceKind.UPLOAD, 1)

    assert registry.remove("tenant-a", "a.txt") == 1
    assert registry.remove("tenant-a", "missing.txt") == 0
    assert registry.remove_many("tenant-a", ["b.txt", "missing.txt"]) == 1
    assert registry.remove_many("tenant-a", []) == 0
    assert registry.remove_kind("tenant-a", SourceKind.WEB) == 1
    assert [r.source_id for r in registry.list_sources("tenant-a")] == ["c.txt"]

    assert registry.clear_tenant("tenant-a") == 1
    assert registry.list_sources("tenant-a") == []
    assert len(registry.list_sources("tenant-b")) == 1


def test_broken_database_raises_registry_error(tmp_path):
    db_file = tmp_path / "registry.db"
    registry = SQLiteDocumentRegistry(db_file)
    with sqlite3.connect(db_file) as conn:
        conn.execute("DROP TABLE sources")

    with pytest.raises(RegistryError):
        registry.list_sources("tenant-a")
