"""Embedding provider boundary (see domain.ai.ports)."""
