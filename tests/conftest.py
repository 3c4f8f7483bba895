"""
Pytest configuration and shared fixtures.
"""

import hashlib
import re

import numpy as np
import pytest

from ragengine.adapters.outbound.registry import SQLiteDocumentRegistry
from ragengine.adapters.outbound.vector_store import InMemoryVectorStore
from ragengine.config.settings import Settings
from ragengine.core.domain import Passage, SourceKind
from ragengine.core.ports import EmbeddingPort
from ragengine.core.services import IndexManager

TEST_DIMENSION = 64


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests (no external dependencies)")
    config.addinivalue_line("markers", "integration: Integration tests (require services)")


class HashingEmbedder(EmbeddingPort):
    """Deterministic bag-of-words embedder.

    Each word is hashed into one of ``dimension`` buckets, so texts that
    share words have positive cosine similarity and unrelated texts are
    near orthogonal.
    """

    def __init__(self, dimension: int = TEST_DIMENSION):
        self._dimension = dimension
        self.calls = 0

    @property
    def dimension(self) -> int:
        return self._dimension

    @property
    def model_name(self) -> str:
        return "hashing-test"

    def _vector(self, text: str) -> list[float]:
        vector = np.zeros(self._dimension)
        for token in re.findall(r"\w+", text.lower()):
            bucket = int(hashlib.md5(token.encode("utf-8")).hexdigest(), 16) % self._dimension
            vector[bucket] += 1.0
        norm = np.linalg.norm(vector)
        return (vector / norm).tolist() if norm else vector.tolist()

    def embed_query(self, text: str) -> list[float]:
        self.calls += 1
        return self._vector(text)

    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        self.calls += 1
        return [self._vector(t) for t in texts]


@pytest.fixture
def embedder():
    return HashingEmbedder()


@pytest.fixture
def memory_store():
    return InMemoryVectorStore()


@pytest.fixture
def index_manager(memory_store, embedder):
    from ragengine.core.domain import IndexSpec

    return IndexManager(
        memory_store,
        embedder,
        IndexSpec(dimension=TEST_DIMENSION),
        poll_interval=0,
        max_attempts=3,
    )


@pytest.fixture
def registry(tmp_path):
    return SQLiteDocumentRegistry(tmp_path / "registry.db")


@pytest.fixture
def make_settings():
    """Build Settings without reading the environment's .env file."""

    def _make(**overrides):
        return Settings(_env_file=None, **overrides)

    return _make


@pytest.fixture
def make_passage():
    def _make(
        text="The refund policy allows returns within 30 days.",
        tenant_id="tenant-a",
        source_id="policy.txt",
        source_kind=SourceKind.UPLOAD,
        sequence_index=0,
        **kwargs,
    ):
        return Passage(
            text=text,
            tenant_id=tenant_id,
            source_id=source_id,
            source_kind=source_kind,
            sequence_index=sequence_index,
            **kwargs,
        )

    return _make


@pytest.fixture
def refund_text():
    """About 2,400 characters of plain English sentences."""
    sentences = "".join(f"Sentence {i:03d} covers the refund rules. " for i in range(70))
    return sentences[:2400]
