"""Core services: chunking, indexing, retrieval and ingestion."""

from .chunker import ChunkingConfig, ChunkSpan, Chunker, SemanticChunker, split_pieces
from .index_manager import IndexManager
from .ingestion_service import BatchItemError, BatchReport, IngestionResult, IngestionService
from .reranker import HeuristicReranker
from .retrieval_service import RetrievalService

__all__ = [
    "ChunkingConfig",
    "ChunkSpan",
    "Chunker",
    "SemanticChunker",
    "split_pieces",
    "IndexManager",
    "IngestionService",
    "IngestionResult",
    "BatchItemError",
    "BatchReport",
    "HeuristicReranker",
    "RetrievalService",
]
