"""Embedding model for converting text to vectors."""

import logging
import threading
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from sentence_transformers import SentenceTransformer

from ....core.domain.exceptions import EmbeddingFailedError
from ....core.ports.embedding_port import EmbeddingPort

logger = logging.getLogger(__name__)


class SentenceTransformerEmbedder(EmbeddingPort):
    """Wrapper for a sentence-transformers embedding model.

    The model is loaded once, on first use, behind a lock so concurrent
    callers never load it twice. Embeddings are L2-normalized so cosine
    similarity equals the dot product.
    """

    def __init__(self, model_name: str = "all-MiniLM-L6-v2", batch_size: int = 32) -> None:
        """Initialize the embedding model.

        Args:
            model_name: Name of the sentence-transformers model to use.
                        Default is all-MiniLM-L6-v2 (fast, good quality, 384 dims).
            batch_size: Batch size for document encoding.
        """
        self._model_name = model_name
        self.batch_size = batch_size
        self._model: SentenceTransformer | None = None
        self._lock = threading.Lock()

    @property
    def model_name(self) -> str:
        return self._model_name

    def _load_model(self) -> "SentenceTransformer":
        """Lazy load the model on first use."""
        if self._model is None:
            with self._lock:
                if self._model is None:
                    try:
                        from sentence_transformers import SentenceTransformer

                        logger.info(f"Loading embedding model: {self._model_name}")
                        self._model = SentenceTransformer(self._model_name)
                        logger.info("Embedding model loaded")
                    except Exception as e:
                        raise EmbeddingFailedError(
                            f"Failed to load embedding model {self._model_name}",
                            cause=e,
                            context={"model": self._model_name},
                        ) from e
        return self._model

    @property
    def dimension(self) -> int:
        model = self._load_model()
        return int(model.get_sentence_embedding_dimension())

    def embed_query(self, text: str) -> list[float]:
        """Embed a single text string."""
        model = self._load_model()
        try:
            embedding = model.encode(text, convert_to_numpy=True, normalize_embeddings=True)
        except Exception as e:
            raise EmbeddingFailedError("Failed to embed query", cause=e) from e
        return embedding.tolist()

    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        """Embed multiple texts efficiently.

        Args:
            texts: List of texts to embed.

        Returns:
            List of embedding vectors, in input order.
        """
        if not texts:
            return []

        model = self._load_model()
        try:
            embeddings = model.encode(
                texts,
                batch_size=self.batch_size,
                convert_to_numpy=True,
                normalize_embeddings=True,
                show_progress_bar=len(texts) > 100,
            )
        except Exception as e:
            raise EmbeddingFailedError(
                "Failed to embed documents", cause=e, context={"count": len(texts)}
            ) from e
        return embeddings.tolist()
