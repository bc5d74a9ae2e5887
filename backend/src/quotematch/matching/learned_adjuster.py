"""Learned score adjustment from a tenant's review history.

Confirmed reviews nudge future scores: similar queries that were approved
for an entry boost it, similar queries approved for a different entry or
rejected penalize it. The adjustment is a bounded additive delta, so
history can reorder close candidates but never invent a match from
nothing.
"""

import math
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Tuple
from uuid import UUID

from ..models.training_record import TrainingLabel, TrainingQuality
from ..tenancy import ensure_same_tenant
from .lexical import text_similarity

# History records less similar than this to the query are ignored
SIMILARITY_FLOOR = 0.3
# Contradicting records only count when the query is nearly the same
CONTRADICTION_SIMILARITY = 0.8

MAX_BOOST = 0.15
MAX_PENALTY = 0.15

# Linear recency decay between DECAY_START_DAYS and MAX_AGE_DAYS
DECAY_START_DAYS = 90
MAX_AGE_DAYS = 180

# Number of supporting reviews at which evidence reaches ~63% strength
SATURATION = 5.0

QUALITY_MULTIPLIERS: Dict[str, float] = {
    TrainingQuality.EXCELLENT.value: 1.2,
    TrainingQuality.GOOD.value: 1.1,
    TrainingQuality.FAIR.value: 1.0,
    TrainingQuality.POOR.value: 0.8,
}

SUPPORTING_QUALITIES = {TrainingQuality.EXCELLENT.value, TrainingQuality.GOOD.value}


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes for timezone-aware columns
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _aggregate(evidence: List[float], count: int) -> float:
    """Blend best and mean evidence, scaled by how much history there is."""
    if not evidence or count <= 0:
        return 0.0
    best = max(evidence)
    mean = sum(evidence) / len(evidence)
    strength = (0.7 * best + 0.3 * mean) * (1.0 - math.exp(-count / SATURATION))
    return min(strength, 1.0)


class LearnedAdjuster:
    """Computes a per-candidate score delta from training records.

    Args:
        records: TrainingRecord rows of one tenant
        now: Reference time for recency decay (defaults to current UTC)
    """

    def __init__(self, records: Iterable, now: Optional[datetime] = None):
        self._records = list(records)
        self._now = _as_utc(now) if now else datetime.now(timezone.utc)
        self._checked_org: Optional[UUID] = None
        # query_norm -> [(record, similarity, recency_factor)]
        self._similar_cache: Dict[str, List[Tuple[object, float, float]]] = {}

    def _recency_factor(self, record) -> float:
        timestamp = record.updated_at or record.created_at
        if timestamp is None:
            return 1.0
        age_days = (self._now - _as_utc(timestamp)).total_seconds() / 86400.0
        if age_days > MAX_AGE_DAYS:
            return 0.0
        if age_days <= DECAY_START_DAYS:
            return 1.0
        return 1.0 - (age_days - DECAY_START_DAYS) / (MAX_AGE_DAYS - DECAY_START_DAYS)

    def _similar_records(self, normalized_query: str) -> List[Tuple[object, float, float]]:
        cached = self._similar_cache.get(normalized_query)
        if cached is not None:
            return cached

        similar = []
        for record in self._records:
            recency = self._recency_factor(record)
            if recency <= 0.0:
                continue
            similarity = text_similarity(normalized_query, record.query_norm or "")
            if similarity >= SIMILARITY_FLOOR:
                similar.append((record, similarity, recency))

        self._similar_cache[normalized_query] = similar
        return similar

    def adjust(self, org_id: UUID, normalized_query: str, entry_id: UUID) -> float:
        """Score delta for one candidate.

        Args:
            org_id: Tenant performing the match
            normalized_query: Output of normalize_text
            entry_id: Candidate catalog entry

        Returns:
            float in [-MAX_PENALTY, MAX_BOOST]; 0.0 without relevant history

        Raises:
            TenantIsolationError: If any record belongs to another tenant
        """
        if self._checked_org != org_id:
            ensure_same_tenant(org_id, self._records, what="training record")
            self._checked_org = org_id

        if not normalized_query or not self._records:
            return 0.0

        support: List[float] = []
        support_count = 0
        contradiction: List[float] = []
        contradiction_count = 0

        for record, similarity, recency in self._similar_records(normalized_query):
            quality = record.quality or TrainingQuality.GOOD.value
            weight = 1.0 if record.weight is None else record.weight
            evidence = similarity * recency * QUALITY_MULTIPLIERS.get(quality, 1.0) * weight
            evidence = min(evidence, 1.0)
            count = record.support_count or 1

            if record.label == TrainingLabel.POSITIVE.value:
                if record.catalog_entry_id == entry_id:
                    if quality in SUPPORTING_QUALITIES:
                        support.append(evidence)
                        support_count += count
                    continue
                contradicts = similarity >= CONTRADICTION_SIMILARITY
            else:
                # Negative for this entry, or "no match at all"
                contradicts = (
                    similarity >= CONTRADICTION_SIMILARITY
                    and (record.catalog_entry_id is None or record.catalog_entry_id == entry_id)
                )

            if contradicts:
                contradiction.append(evidence)
                contradiction_count += count

        delta = MAX_BOOST * _aggregate(support, support_count) - MAX_PENALTY * _aggregate(contradiction, contradiction_count)
        return max(-MAX_PENALTY, min(MAX_BOOST, delta))
