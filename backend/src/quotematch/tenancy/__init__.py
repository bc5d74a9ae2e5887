"""Tenancy module - explicit tenant identifiers and isolation checks.

Every data-access boundary receives the tenant as an argument and compares
it against the org_id of each row it touches. Nothing is inferred from an
ambient caller identity.
"""

from .guard import TenantIsolationError, coerce_uuid, ensure_same_tenant

__all__ = [
    "TenantIsolationError",
    "coerce_uuid",
    "ensure_same_tenant",
]
