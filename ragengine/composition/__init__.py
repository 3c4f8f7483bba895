"""Composition root."""

from .container import Container, build_vector_store

__all__ = ["Container", "build_vector_store"]
