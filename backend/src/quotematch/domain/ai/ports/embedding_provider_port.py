"""Embedding Provider Port - Abstract interface for embedding providers.

The matcher only ever embeds query text. Catalog vectors are produced
outside this service and stored on CatalogEntry.embedding.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List


@dataclass
class EmbeddingResult:
    """Result from one embedding call.

    Attributes:
        embedding: Vector embedding (list of floats)
        model: Model name (e.g., 'text-embedding-3-small')
        dimension: Embedding dimension (e.g., 1536)
        tokens: Number of tokens used
    """
    embedding: List[float]
    model: str
    dimension: int
    tokens: int = 0


class EmbeddingProviderPort(ABC):
    """Abstract interface for embedding providers.

    Implementations translate provider-specific failures into the
    EmbeddingError hierarchy below. The semantic scorer treats any
    exception as "signal absent", so adapters must not retry.

    Example Usage:
        provider = OpenAIEmbeddingAdapter(api_key="sk-...")
        result = provider.embed_text("grade 8 hex head cap screw")
        # result.embedding is list[float] of length 1536
    """

    @abstractmethod
    def embed_text(
        self,
        text: str,
        model: str = "text-embedding-3-small"
    ) -> EmbeddingResult:
        """Generate embedding vector for text.

        Args:
            text: Text to embed
            model: Embedding model name (default: text-embedding-3-small)

        Returns:
            EmbeddingResult with vector and metadata

        Raises:
            ValueError: Empty text
            EmbeddingTimeoutError: Request timed out
            EmbeddingRateLimitError: Rate limit exceeded
            EmbeddingAuthError: Authentication failed
            EmbeddingServiceError: Provider service unavailable
            EmbeddingInvalidResponseError: Provider returned invalid response
        """
        pass


# Custom exceptions for embedding operations
class EmbeddingError(Exception):
    """Base exception for embedding operations"""
    pass


class EmbeddingTimeoutError(EmbeddingError):
    """Embedding request timed out"""
    pass


class EmbeddingRateLimitError(EmbeddingError):
    """Rate limit exceeded"""
    pass


class EmbeddingAuthError(EmbeddingError):
    """Authentication failed"""
    pass


class EmbeddingServiceError(EmbeddingError):
    """Provider service unavailable or returned error"""
    pass


class EmbeddingInvalidResponseError(EmbeddingError):
    """Provider returned invalid/unexpected response"""
    pass
