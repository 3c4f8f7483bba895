"""Embedding adapters."""

from .sentence_transformer_adapter import SentenceTransformerEmbedder

__all__ = ["SentenceTransformerEmbedder"]
