"""Match confidence combination and candidate ranking.

Combined score (absent signals drop out of numerator and denominator):

    weighted = sum(w_i * S_i) / sum(w_i)        over present signals
    base     = max(weighted, S_alias)           if alias present
    final    = clamp(base + learned_delta, 0, 1)

Ordering is fully deterministic: final desc, alias desc, lexical desc,
then str(catalog_entry_id) asc.
"""

from typing import List

from .ports import MatchCandidate, SignalScores

SIGNAL_WEIGHTS = {
    "lexical": 0.35,
    "fuzzy": 0.20,
    "alias": 0.20,
    "semantic": 0.25,
}


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, value))


def combine(scores: SignalScores, learned_adjustment: float = 0.0) -> float:
    """Combine present signals and the learned delta into one score.

    Args:
        scores: Component signals of one candidate
        learned_adjustment: Delta from the learned adjuster

    Returns:
        float: Final score in [0, 1]; 0.0 plus delta if no signal is present
    """
    present = scores.present()
    total_weight = sum(SIGNAL_WEIGHTS[name] for name in present)
    if total_weight > 0:
        weighted = sum(SIGNAL_WEIGHTS[name] * value for name, value in present.items()) / total_weight
    else:
        weighted = 0.0

    base = weighted
    if scores.alias is not None:
        base = max(weighted, scores.alias)

    return _clamp(base + learned_adjustment)


def dominant_method(scores: SignalScores) -> str:
    """Label of the strongest present signal, alias winning ties."""
    present = scores.present()
    if not present:
        return "none"
    order = ("alias", "lexical", "fuzzy", "semantic")
    return max(order, key=lambda name: (present.get(name, -1.0), -order.index(name)))


def _sort_key(candidate: MatchCandidate):
    alias = candidate.scores.alias if candidate.scores.alias is not None else -1.0
    lexical = candidate.scores.lexical if candidate.scores.lexical is not None else -1.0
    return (-candidate.final_score, -alias, -lexical, str(candidate.catalog_entry_id))


def rank(candidates: List[MatchCandidate], threshold: float, limit: int) -> List[MatchCandidate]:
    """Score, filter and order candidates.

    Sets final_score and method on each candidate.

    Args:
        candidates: Candidates with signals and learned_adjustment filled in
        threshold: Minimum final score (inclusive)
        limit: Maximum number of candidates returned

    Returns:
        Ranked candidates, best first; [] if none pass the threshold
    """
    kept = []
    for candidate in candidates:
        candidate.final_score = combine(candidate.scores, candidate.learned_adjustment)
        candidate.method = dominant_method(candidate.scores)
        if candidate.final_score >= threshold:
            kept.append(candidate)

    kept.sort(key=_sort_key)
    return kept[:limit]
