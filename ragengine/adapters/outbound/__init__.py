"""Outbound adapters: embedding, vector stores, registry and extraction."""
