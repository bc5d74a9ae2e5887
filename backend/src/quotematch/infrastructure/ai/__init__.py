"""AI Infrastructure - Adapters for embedding providers."""

from .openai_embeddings import OpenAIEmbeddingAdapter

__all__ = ["OpenAIEmbeddingAdapter"]
