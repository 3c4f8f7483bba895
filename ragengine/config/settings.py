"""Configuration management for the retrieval engine."""

from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..core.domain import IndexSpec
from ..core.services.chunker import SEMANTIC_SEPARATORS, ChunkingConfig

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
)


def _sanitize_secret(value: str) -> str:
    """Remove BOM characters and whitespace from secrets.

    Secrets mounted from files or pasted into environment variables may
    carry a BOM that breaks HTTP headers.
    """
    if not value:
        return value
    return value.lstrip("\ufeff").strip()


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Vector store
    vector_backend: Literal["qdrant", "memory"] = "qdrant"
    qdrant_url: str = ""
    qdrant_api_key: str = ""
    qdrant_path: Path = Path("./data/qdrant")
    collection_name: str = "passages"
    index_name: str = "embedding"

    @field_validator("qdrant_api_key", "qdrant_url", mode="after")
    @classmethod
    def sanitize_secrets(cls, value: str) -> str:
        """Remove BOM and whitespace from secret values."""
        return _sanitize_secret(value)

    # Embedding
    embedding_model: str = "all-MiniLM-L6-v2"
    embedding_dimension: int = 384
    embedding_batch_size: int = 32

    # Chunking
    chunk_size: int = 1000
    chunk_overlap: int = 200
    semantic_chunk_size: int = 2000
    semantic_chunk_overlap: int = 400

    # Retrieval
    similarity_threshold: float = 0.7
    rag_search_limit: int = 10
    use_semantic_search: bool = False
    overfetch_factor: int = 3
    rerank_candidate_cap: int = 20

    # Index bootstrap
    index_poll_interval: float = 2.0
    index_poll_attempts: int = 30

    # Extraction
    ocr_enabled: bool = True
    ocr_dpi: int = 300
    ocr_language: str = "eng"
    ocr_timeout: int = 120
    temp_dir: Path | None = None
    request_timeout: int = 30
    user_agent: str = DEFAULT_USER_AGENT

    # Registry
    registry_path: Path = Path("./data/registry.db")

    # Logging
    log_level: str = "INFO"
    log_json: bool = False
    log_file: Path | None = None

    @model_validator(mode="after")
    def check_ranges(self) -> "Settings":
        """Reject chunking and threshold values the engine cannot honour."""
        if self.chunk_overlap >= self.chunk_size:
            raise ValueError("chunk_overlap must be smaller than chunk_size")
        if self.semantic_chunk_overlap >= self.semantic_chunk_size:
            raise ValueError("semantic_chunk_overlap must be smaller than semantic_chunk_size")
        if not -1.0 <= self.similarity_threshold <= 1.0:
            raise ValueError("similarity_threshold must be within [-1, 1]")
        if self.index_poll_attempts < 1:
            raise ValueError("index_poll_attempts must be at least 1")
        return self

    def chunking(self) -> ChunkingConfig:
        return ChunkingConfig(chunk_size=self.chunk_size, chunk_overlap=self.chunk_overlap)

    def semantic_chunking(self) -> ChunkingConfig:
        return ChunkingConfig(
            chunk_size=self.semantic_chunk_size,
            chunk_overlap=self.semantic_chunk_overlap,
            separators=SEMANTIC_SEPARATORS,
        )

    def index_spec(self) -> IndexSpec:
        return IndexSpec(name=self.index_name, dimension=self.embedding_dimension)

    def ensure_directories(self) -> None:
        """Create the local data directories if they don't exist."""
        self.registry_path.parent.mkdir(parents=True, exist_ok=True)
        if self.vector_backend == "qdrant" and not self.qdrant_url:
            self.qdrant_path.mkdir(parents=True, exist_ok=True)
