"""Retrieval engine core: domain models, ports and services."""
