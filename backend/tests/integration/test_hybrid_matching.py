"""Integration tests for hybrid matching against a seeded catalog

Tests cover:
- End-to-end ranking of an abbreviated fastener line item
- Alias hits and SUGGESTED classification
- Learned boost after an approval
- Degradation when the embedding provider is missing, failing or slow
"""

import pytest

from quotematch.errors import InputError
from quotematch.matching.alias_resolver import EXACT_ALIAS_SCORE
from quotematch.matching.ports import Decision
from quotematch.matching.service import MatchingService

pytestmark = pytest.mark.integration

QUERY = "GR. 8 HX HD CAP SCR 5/16-18X2-1/2"


class TestEndToEnd:
    """Abbreviated vendor text against the fastener catalog"""

    def test_grade_8_ranks_first(self, matching_service, org_a, fastener_catalog):
        candidates = matching_service.match(org_a, QUERY, limit=5, threshold=0.3)

        assert candidates
        assert candidates[0].catalog_entry_id == fastener_catalog["gr8"].id
        ids = [c.catalog_entry_id for c in candidates]
        assert fastener_catalog["retired"].id not in ids
        assert fastener_catalog["other_org"].id not in ids
        if fastener_catalog["gr5"].id in ids:
            gr5 = candidates[ids.index(fastener_catalog["gr5"].id)]
            assert candidates[0].final_score > gr5.final_score

    def test_grade_8_ranks_first_at_low_threshold(self, matching_service, org_a, fastener_catalog):
        candidates = matching_service.match(org_a, QUERY, limit=10, threshold=0.1)

        ids = [c.catalog_entry_id for c in candidates]
        assert ids[0] == fastener_catalog["gr8"].id
        assert fastener_catalog["gr5"].id in ids
        assert all(c.final_score >= 0.1 for c in candidates)
        assert candidates[0].final_score > candidates[1].final_score

    def test_scores_sorted_and_within_bounds(self, matching_service, org_a, fastener_catalog):
        candidates = matching_service.match(org_a, QUERY, limit=10, threshold=0.0)

        scores = [c.final_score for c in candidates]
        assert scores == sorted(scores, reverse=True)
        assert all(0.0 <= s <= 1.0 for s in scores)
        assert len(candidates) == 5  # active org A entries only

    def test_limit_truncates(self, matching_service, org_a, fastener_catalog):
        assert len(matching_service.match(org_a, QUERY, limit=1, threshold=0.0)) == 1

    def test_unmatchable_text_returns_empty(self, matching_service, org_a, fastener_catalog):
        assert matching_service.match(org_a, "  ###  ") == []
        assert matching_service.match(org_a, None) == []

    @pytest.mark.parametrize("limit,threshold", [(0, 0.3), (101, 0.3), (5, -0.1), (5, 1.01)])
    def test_out_of_range_parameters(self, matching_service, org_a, fastener_catalog, limit, threshold):
        with pytest.raises(InputError):
            matching_service.match(org_a, QUERY, limit=limit, threshold=threshold)

    def test_malformed_org_id(self, matching_service):
        with pytest.raises(InputError):
            matching_service.match("not-a-uuid", QUERY)

    def test_approval_boosts_future_matches(self, matching_service, org_a, fastener_catalog, reviewer):
        before = {c.catalog_entry_id: c for c in matching_service.match(org_a, QUERY, threshold=0.0)}

        matching_service.record_decision(
            org_a, "3f1c2b9e-8d5a-4a57-9d55-1d3c1f6b2a10",
            Decision.approve(fastener_catalog["gr8"].id), reviewer, query_text=QUERY,
        )

        after = {c.catalog_entry_id: c for c in matching_service.match(org_a, QUERY, threshold=0.0)}
        gr8, gr5 = fastener_catalog["gr8"].id, fastener_catalog["gr5"].id
        assert after[gr8].learned_adjustment > 0.0
        assert after[gr8].final_score >= before[gr8].final_score
        assert after[gr5].learned_adjustment < 0.0
        assert after[gr5].final_score < before[gr5].final_score


class TestAliases:
    """Exact alias hits"""

    def test_alias_hit_is_suggested(self, matching_service, org_a, fastener_catalog, alias_factory):
        alias_factory(fastener_catalog["gr8"], "ACME 77-A")

        result = matching_service.match_line_item(org_a, "0b8f4a4e-2f0c-4a1e-b4a6-6f7d0a9a1e01", "acme 77-a")

        assert result.status == "SUGGESTED"
        assert result.catalog_entry_id == fastener_catalog["gr8"].id
        assert result.method == "alias"
        assert result.candidates[0].scores.alias == EXACT_ALIAS_SCORE
        assert result.confidence >= EXACT_ALIAS_SCORE

    def test_close_runner_up_is_unmatched(self, matching_service, org_a, fastener_catalog):
        result = matching_service.match_line_item(org_a, "5d7e2c1a-9b3f-4c8e-8a2d-7e6f5a4b3c21", QUERY)

        assert result.status == "UNMATCHED"
        assert result.catalog_entry_id == fastener_catalog["gr8"].id


class TestEmbeddingDegradation:
    """The semantic signal is optional and fail-open"""

    def _service(self, db_session, test_settings, provider):
        return MatchingService(db_session, embedding_provider=provider, settings=test_settings)

    def _ranking(self, candidates):
        return [(c.catalog_entry_id, round(c.final_score, 9)) for c in candidates]

    def test_failing_provider_keeps_lexical_and_alias_passers(
        self, db_session, test_settings, org_a, fastener_catalog, alias_factory, failing_embedding_provider
    ):
        alias_factory(fastener_catalog["washer"], "grade 8 hx hd cap scr 5/16-18x2-1/2")
        without = self._service(db_session, test_settings, None).match(org_a, QUERY, threshold=0.3)
        failing = self._service(db_session, test_settings, failing_embedding_provider).match(org_a, QUERY, threshold=0.3)

        assert self._ranking(failing) == self._ranking(without)
        assert fastener_catalog["washer"].id in [c.catalog_entry_id for c in failing]
        assert all(c.scores.semantic is None for c in failing)

    def test_slow_provider_times_out(
        self, db_session, test_settings, org_a, fastener_catalog, slow_embedding_provider
    ):
        without = self._service(db_session, test_settings, None).match(org_a, QUERY)
        slow = self._service(db_session, test_settings, slow_embedding_provider).match(org_a, QUERY)

        assert self._ranking(slow) == self._ranking(without)

    def test_working_provider_adds_semantic_signal(
        self, db_session, test_settings, org_a, fastener_catalog, fake_embedding_provider
    ):
        candidates = self._service(db_session, test_settings, fake_embedding_provider).match(org_a, QUERY, threshold=0.0)
        by_id = {c.catalog_entry_id: c for c in candidates}

        assert by_id[fastener_catalog["gr8"].id].scores.semantic == pytest.approx(1.0)
        assert by_id[fastener_catalog["socket"].id].scores.semantic is None
        assert candidates[0].catalog_entry_id == fastener_catalog["gr8"].id


class TestBatch:

    def test_batch_matches_each_query(self, matching_service, org_a, fastener_catalog):
        results = matching_service.matcher.match_batch(
            org_a, [QUERY, "", "flat washer 5/16 zp"], limit=3, threshold=0.3
        )

        assert len(results) == 3
        assert results[0][0].catalog_entry_id == fastener_catalog["gr8"].id
        assert results[1] == []
        assert results[2][0].catalog_entry_id == fastener_catalog["washer"].id

    def test_batch_agrees_with_single_match(self, matching_service, org_a, fastener_catalog):
        single = matching_service.match(org_a, QUERY, limit=5, threshold=0.0)
        batch = matching_service.matcher.match_batch(org_a, [QUERY], limit=5, threshold=0.0)[0]

        assert [c.catalog_entry_id for c in batch] == [c.catalog_entry_id for c in single]
