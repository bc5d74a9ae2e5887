"""Semantic similarity from embedding vectors.

The embedding provider is optional and fail-open: when it is missing,
slow, or returns garbage, the semantic signal is absent for the request
and matching continues on the remaining signals.
"""

import logging
import math
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeoutError
from typing import List, Optional, Sequence

from ..domain.ai.ports import EmbeddingProviderPort
from ..observability.metrics import embedding_fallbacks_total

logger = logging.getLogger(__name__)


def _clamp(value: float, lo: float = 0.0, hi: float = 1.0) -> float:
    return max(lo, min(hi, value))


class SemanticScorer:
    """Embeds query text and scores it against stored catalog vectors.

    S_sem = clamp((cos + 1) / 2, 0, 1) so orthogonal vectors land at 0.5
    and opposite vectors at 0.0.
    """

    def __init__(
        self,
        provider: Optional[EmbeddingProviderPort],
        timeout_seconds: float = 5.0,
        model: str = "text-embedding-3-small",
        dimension: Optional[int] = None,
    ):
        self.provider = provider
        self.timeout_seconds = timeout_seconds
        self.model = model
        self.dimension = dimension

    def _fallback(self, reason: str, org_id=None, error: Optional[BaseException] = None) -> None:
        embedding_fallbacks_total.labels(reason=reason).inc()
        logger.warning(
            f"Semantic signal unavailable: {reason}" + (f" ({error})" if error else ""),
            extra={"org_id": str(org_id) if org_id else None, "reason": reason},
        )

    def embed_query(self, text: str, org_id=None) -> Optional[List[float]]:
        """Embed query text within the configured time bound.

        Never raises. Any failure logs one warning and returns None.

        Args:
            text: Normalized query text
            org_id: Tenant, for log correlation only

        Returns:
            Query vector, or None if the semantic signal is unavailable
        """
        if not text:
            return None
        if self.provider is None:
            self._fallback("no_provider", org_id)
            return None

        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="embed-query")
        try:
            future = executor.submit(self.provider.embed_text, text, self.model)
            result = future.result(timeout=self.timeout_seconds)
        except FutureTimeoutError:
            self._fallback("timeout", org_id)
            return None
        except Exception as e:
            self._fallback("error", org_id, e)
            return None
        finally:
            # Do not wait on a hung provider call; the worker exits on its own
            executor.shutdown(wait=False)

        vector = getattr(result, "embedding", None)
        if not self._is_valid_vector(vector):
            self._fallback("malformed", org_id)
            return None
        return [float(x) for x in vector]

    def _is_valid_vector(self, vector) -> bool:
        if not vector:
            return False
        try:
            values = [float(x) for x in vector]
        except (TypeError, ValueError):
            return False
        if not all(math.isfinite(x) for x in values):
            return False
        if self.dimension is not None and len(values) != self.dimension:
            return False
        return True

    @staticmethod
    def score(query_vector: Optional[Sequence[float]], entry_vector: Optional[Sequence[float]]) -> Optional[float]:
        """Rescaled cosine similarity of two vectors.

        Returns:
            float in [0, 1], or None if a vector is missing, dimensions
            differ, or either vector has zero norm
        """
        if query_vector is None or entry_vector is None:
            return None
        if len(query_vector) == 0 or len(query_vector) != len(entry_vector):
            return None

        dot = sum(a * b for a, b in zip(query_vector, entry_vector))
        norm_q = math.sqrt(sum(a * a for a in query_vector))
        norm_e = math.sqrt(sum(b * b for b in entry_vector))
        if norm_q == 0 or norm_e == 0:
            return None

        cosine = dot / (norm_q * norm_e)
        return _clamp((cosine + 1.0) / 2.0)
