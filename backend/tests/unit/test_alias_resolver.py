"""Unit tests for exact alias resolution"""

from types import SimpleNamespace
from uuid import uuid4

import pytest

from quotematch.matching.alias_resolver import EXACT_ALIAS_SCORE, AliasResolver
from quotematch.matching.normalizer import normalize_text
from quotematch.tenancy import TenantIsolationError


def _alias(org_id, entry_id, text, norm=None):
    return SimpleNamespace(org_id=org_id, catalog_entry_id=entry_id, alias_text=text, alias_norm=norm)


class TestAliasResolver:
    """Test alias lookups"""

    def test_exact_normalized_hit(self):
        org_id, entry_id = uuid4(), uuid4()
        resolver = AliasResolver([_alias(org_id, entry_id, "ACME Part 77-A", "acme part 77 a")])

        assert resolver.resolve(org_id, "acme part 77 a") == {entry_id: EXACT_ALIAS_SCORE}

    def test_miss_is_absent_not_zero(self):
        org_id, entry_id = uuid4(), uuid4()
        resolver = AliasResolver([_alias(org_id, entry_id, "ACME Part 77-A", "acme part 77 a")])

        hits = resolver.resolve(org_id, "acme part 78 a")
        assert entry_id not in hits
        assert hits == {}

    def test_alias_text_normalized_when_norm_missing(self):
        org_id, entry_id = uuid4(), uuid4()
        resolver = AliasResolver([_alias(org_id, entry_id, "HX HD Bolt")])

        assert resolver.resolve(org_id, "hex head bolt") == {entry_id: EXACT_ALIAS_SCORE}

    @pytest.mark.parametrize("text", ["BOLT W/SS WASHER", "nut w/zp finish", "GR. 8 HX HD CAP SCR"])
    def test_stored_norm_matches_normalized_query(self, text):
        org_id, entry_id = uuid4(), uuid4()
        resolver = AliasResolver([_alias(org_id, entry_id, text, normalize_text(text))])

        assert resolver.resolve(org_id, normalize_text(text)) == {entry_id: EXACT_ALIAS_SCORE}

    def test_same_alias_for_two_entries(self):
        org_id, first, second = uuid4(), uuid4(), uuid4()
        resolver = AliasResolver([
            _alias(org_id, first, "blue bolt", "blue bolt"),
            _alias(org_id, second, "blue bolt", "blue bolt"),
        ])

        assert set(resolver.resolve(org_id, "blue bolt")) == {first, second}

    def test_empty_table(self):
        assert AliasResolver([]).resolve(uuid4(), "anything") == {}

    def test_empty_query(self):
        org_id = uuid4()
        resolver = AliasResolver([_alias(org_id, uuid4(), "blue bolt", "blue bolt")])
        assert resolver.resolve(org_id, "") == {}

    def test_foreign_alias_raises(self):
        org_id = uuid4()
        resolver = AliasResolver([
            _alias(org_id, uuid4(), "blue bolt", "blue bolt"),
            _alias(uuid4(), uuid4(), "red bolt", "red bolt"),
        ])

        with pytest.raises(TenantIsolationError):
            resolver.resolve(org_id, "blue bolt")
