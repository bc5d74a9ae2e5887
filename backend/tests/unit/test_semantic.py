"""Unit tests for the semantic scorer

Tests cover:
- Rescaled cosine similarity
- Absent signal on missing/mismatched/zero vectors
- Fail-open embedding calls (no provider, error, timeout, malformed)
"""

import logging
import math
import time

import pytest
from prometheus_client import REGISTRY

from quotematch.domain.ai.ports import EmbeddingProviderPort, EmbeddingResult
from quotematch.matching.semantic import SemanticScorer


def _fallbacks(reason):
    value = REGISTRY.get_sample_value("quotematch_embedding_fallbacks_total", {"reason": reason})
    return value or 0.0


class _StaticProvider(EmbeddingProviderPort):
    def __init__(self, vector):
        self.vector = vector

    def embed_text(self, text, model="text-embedding-3-small"):
        return EmbeddingResult(embedding=self.vector, model=model, dimension=len(self.vector))


class TestScore:
    """Test S_sem = clamp((cos + 1) / 2)"""

    def test_identical_direction(self):
        assert SemanticScorer.score([1.0, 2.0], [2.0, 4.0]) == pytest.approx(1.0)

    def test_orthogonal(self):
        assert SemanticScorer.score([1.0, 0.0], [0.0, 1.0]) == pytest.approx(0.5)

    def test_opposite(self):
        assert SemanticScorer.score([1.0, 0.0], [-1.0, 0.0]) == pytest.approx(0.0)

    def test_absent_cases(self):
        assert SemanticScorer.score(None, [1.0]) is None
        assert SemanticScorer.score([1.0], None) is None
        assert SemanticScorer.score([1.0, 0.0], [1.0, 0.0, 0.0]) is None
        assert SemanticScorer.score([0.0, 0.0], [1.0, 0.0]) is None
        assert SemanticScorer.score([], []) is None


class TestEmbedQuery:
    """Test time-bounded, fail-open query embedding"""

    def test_returns_vector(self, fake_embedding_provider):
        scorer = SemanticScorer(fake_embedding_provider, timeout_seconds=1.0, dimension=3)
        assert scorer.embed_query("hex nut") == [1.0, 0.0, 0.0]
        assert fake_embedding_provider.calls == ["hex nut"]

    def test_empty_text_skips_provider(self, fake_embedding_provider):
        scorer = SemanticScorer(fake_embedding_provider)
        assert scorer.embed_query("") is None
        assert fake_embedding_provider.calls == []

    def test_no_provider(self):
        before = _fallbacks("no_provider")
        assert SemanticScorer(None).embed_query("hex nut") is None
        assert _fallbacks("no_provider") == before + 1

    def test_provider_error_logs_one_warning(self, failing_embedding_provider, caplog):
        scorer = SemanticScorer(failing_embedding_provider)
        before = _fallbacks("error")

        with caplog.at_level(logging.WARNING, logger="quotematch.matching.semantic"):
            assert scorer.embed_query("hex nut") is None

        warnings = [r for r in caplog.records if r.name == "quotematch.matching.semantic"]
        assert len(warnings) == 1
        assert _fallbacks("error") == before + 1

    def test_timeout_is_bounded(self, slow_embedding_provider):
        scorer = SemanticScorer(slow_embedding_provider, timeout_seconds=0.1)
        before = _fallbacks("timeout")

        start = time.monotonic()
        assert scorer.embed_query("hex nut") is None
        assert time.monotonic() - start < 1.5
        assert _fallbacks("timeout") == before + 1

    @pytest.mark.parametrize("vector", [[], [1.0, math.nan, 0.0], [1.0, math.inf, 0.0], [1.0, 0.0], ["a", "b", "c"]])
    def test_malformed_vector(self, vector):
        scorer = SemanticScorer(_StaticProvider(vector), dimension=3)
        assert scorer.embed_query("hex nut") is None
