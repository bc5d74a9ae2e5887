"""Ports for the external embedding provider.

quotematch never computes vectors itself; the semantic scorer talks to
whatever implements EmbeddingProviderPort and treats every
EmbeddingError as an absent signal.
"""

from .embedding_provider_port import (
    EmbeddingAuthError,
    EmbeddingError,
    EmbeddingInvalidResponseError,
    EmbeddingProviderPort,
    EmbeddingRateLimitError,
    EmbeddingResult,
    EmbeddingServiceError,
    EmbeddingTimeoutError,
)

__all__ = [
    "EmbeddingProviderPort",
    "EmbeddingResult",
    "EmbeddingError",
    "EmbeddingTimeoutError",
    "EmbeddingRateLimitError",
    "EmbeddingAuthError",
    "EmbeddingServiceError",
    "EmbeddingInvalidResponseError",
]
