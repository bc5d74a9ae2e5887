"""Tenant identity parsing and cross-tenant access checks."""

from typing import Any, Iterable, Union
from uuid import UUID

from ..errors import InputError, TenantIsolationError


def coerce_uuid(value: Union[UUID, str, None], field: str) -> UUID:
    """Parse an identifier argument, rejecting malformed values.

    Args:
        value: UUID instance or its string form
        field: Argument name used in the error message

    Returns:
        UUID: Parsed identifier

    Raises:
        InputError: If value is missing or not a valid UUID
    """
    if isinstance(value, UUID):
        return value
    if not isinstance(value, str) or not value.strip():
        raise InputError(f"{field} is required and must be a UUID")
    try:
        return UUID(value.strip())
    except ValueError:
        raise InputError(f"{field} is not a valid UUID: {value!r}") from None


def ensure_same_tenant(org_id: UUID, rows: Iterable[Any], what: str = "record") -> None:
    """Check that every row carries the caller's org_id.

    Args:
        org_id: Tenant the caller is acting for
        rows: Objects exposing an org_id attribute
        what: Entity name for the error message

    Raises:
        TenantIsolationError: On the first row owned by another tenant
    """
    for row in rows:
        if row.org_id != org_id:
            raise TenantIsolationError(f"{what} does not belong to tenant {org_id}")
