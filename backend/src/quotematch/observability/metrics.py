"""Prometheus metrics for quotematch.

Defines and exposes operational metrics for monitoring and alerting.
"""

from prometheus_client import Counter, Histogram

# Matching metrics
match_requests_total = Counter(
    "quotematch_match_requests_total",
    "Total match requests",
    ["outcome"]  # outcome: matched|empty|unmatchable
)

match_candidates = Histogram(
    "quotematch_match_candidates",
    "Number of ranked candidates returned per match request",
    buckets=[0, 1, 2, 3, 5, 10, 20, 50, 100]
)

match_top_confidence = Histogram(
    "quotematch_match_top_confidence",
    "Final score of the top ranked candidate",
    buckets=[0.0, 0.1, 0.2, 0.3, 0.4, 0.5, 0.6, 0.7, 0.8, 0.9, 1.0]
)

embedding_fallbacks_total = Counter(
    "quotematch_embedding_fallbacks_total",
    "Match requests that continued without the semantic signal",
    ["reason"]  # reason: no_provider|timeout|error|malformed
)

# Ledger metrics
decisions_total = Counter(
    "quotematch_decisions_total",
    "Match decisions written to the ledger",
    ["status"]  # status: PENDING|APPROVED|REJECTED
)
