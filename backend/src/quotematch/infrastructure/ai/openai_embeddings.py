"""OpenAI Embedding Adapter - Implementation of EmbeddingProviderPort using OpenAI API.

Used by the semantic scorer to embed query text with the same model the
catalog vectors were produced with.
"""

import logging
import os
import time
from typing import Optional

from openai import OpenAI, APIError, APITimeoutError, RateLimitError, AuthenticationError

from ...domain.ai.ports import (
    EmbeddingProviderPort,
    EmbeddingResult,
    EmbeddingTimeoutError,
    EmbeddingRateLimitError,
    EmbeddingAuthError,
    EmbeddingServiceError,
    EmbeddingInvalidResponseError,
)

logger = logging.getLogger(__name__)


class OpenAIEmbeddingAdapter(EmbeddingProviderPort):
    """OpenAI implementation of EmbeddingProviderPort.

    Configuration:
        OPENAI_API_KEY: OpenAI API key (required)
        EMBEDDING_TIMEOUT_SECONDS: Client request timeout

    The client is created with max_retries=0; a slow or failing provider
    should degrade the semantic signal, not stall the match request.
    """

    def __init__(self, api_key: Optional[str] = None, timeout: float = 5.0):
        """Initialize OpenAI embedding adapter.

        Args:
            api_key: OpenAI API key (if None, reads from OPENAI_API_KEY env var)
            timeout: Request timeout in seconds

        Raises:
            EmbeddingAuthError: If API key is not provided and not in environment
        """
        self.api_key = api_key or os.getenv("OPENAI_API_KEY")
        if not self.api_key:
            raise EmbeddingAuthError("OPENAI_API_KEY not provided and not found in environment")

        self.timeout = timeout
        self.client = OpenAI(api_key=self.api_key, timeout=self.timeout, max_retries=0)

    def embed_text(
        self,
        text: str,
        model: str = "text-embedding-3-small"
    ) -> EmbeddingResult:
        """Generate embedding vector for text using OpenAI API.

        Args:
            text: Text to embed
            model: Embedding model name (default: text-embedding-3-small)

        Returns:
            EmbeddingResult with vector and token usage

        Raises:
            ValueError: If text is empty
            EmbeddingTimeoutError: Request timed out
            EmbeddingRateLimitError: Rate limit exceeded
            EmbeddingAuthError: Authentication failed
            EmbeddingServiceError: OpenAI service error
            EmbeddingInvalidResponseError: Invalid response from API
        """
        if not text or not text.strip():
            raise ValueError("Text cannot be empty")

        start_time = time.time()

        try:
            response = self.client.embeddings.create(
                model=model,
                input=text,
            )
        except AuthenticationError as e:
            raise EmbeddingAuthError(f"OpenAI authentication failed: {e}") from e
        except RateLimitError as e:
            raise EmbeddingRateLimitError(f"OpenAI rate limit exceeded: {e}") from e
        except APITimeoutError as e:
            raise EmbeddingTimeoutError(f"OpenAI request timed out: {e}") from e
        except APIError as e:
            raise EmbeddingServiceError(f"OpenAI API error: {e}") from e

        if not response.data:
            raise EmbeddingInvalidResponseError("No embedding returned from API")

        embedding = list(response.data[0].embedding)
        tokens = response.usage.total_tokens if response.usage else 0

        logger.debug(
            f"Embedded query text with {model}",
            extra={"duration_ms": int((time.time() - start_time) * 1000)},
        )

        return EmbeddingResult(
            embedding=embedding,
            model=model,
            dimension=len(embedding),
            tokens=tokens,
        )
