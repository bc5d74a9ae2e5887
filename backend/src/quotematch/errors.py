"""Exception taxonomy shared by the matching engine, ledger and tenancy guard."""


class MatcherError(Exception):
    """Base exception for matching and ledger errors."""
    pass


class InputError(MatcherError, ValueError):
    """Malformed identifier, out-of-range parameter or missing required input."""
    pass


class TenantIsolationError(MatcherError):
    """Raised when an operation touches data owned by another tenant.

    The HTTP layer maps this to 404 so callers cannot probe for the
    existence of other tenants' records.
    """
    pass


class StateTransitionError(MatcherError):
    """Raised when a match decision status change is not allowed."""
    pass


class LedgerError(MatcherError):
    """Raised when the atomic decision upsert cannot be performed."""
    pass
