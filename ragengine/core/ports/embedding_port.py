"""Embedding Port Interface."""

from abc import ABC, abstractmethod


class EmbeddingPort(ABC):
    """Abstract interface for embedding functions.

    Implementations must be deterministic for identical input and must keep
    the same model for the lifetime of one index.
    """

    @abstractmethod
    def embed_query(self, text: str) -> list[float]: ...

    @abstractmethod
    def embed_documents(self, texts: list[str]) -> list[list[float]]: ...

    @property
    @abstractmethod
    def dimension(self) -> int:
        """Length of every vector this embedder produces."""
        ...

    @property
    def model_name(self) -> str | None:
        """Identifier recorded next to each stored vector."""
        return None
