"""MatchDecision status state machine.

State Flow:
    (no row) → PENDING → APPROVED|REJECTED

APPROVED and REJECTED are re-enterable: a reviewer may change their mind,
or approve a different catalog entry. PENDING → PENDING is a re-score.
A decided line item never returns to PENDING.
"""

from enum import Enum
from typing import Optional

from ..errors import StateTransitionError


class MatchStatus(str, Enum):
    """Match decision status enumeration."""
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


# None stands for a line item that has never been scored or decided
ALLOWED_TRANSITIONS = {
    None: [MatchStatus.PENDING, MatchStatus.APPROVED, MatchStatus.REJECTED],
    MatchStatus.PENDING: [
        MatchStatus.PENDING,
        MatchStatus.APPROVED,
        MatchStatus.REJECTED,
    ],
    MatchStatus.APPROVED: [MatchStatus.APPROVED, MatchStatus.REJECTED],
    MatchStatus.REJECTED: [MatchStatus.REJECTED, MatchStatus.APPROVED],
}


def _label(status: Optional[MatchStatus]) -> str:
    return status.value if status is not None else "UNSCORED"


def validate_transition(
    current_status: Optional[MatchStatus],
    new_status: MatchStatus
) -> None:
    """Validate that a state transition is allowed.

    Args:
        current_status: Current status, None if no decision exists yet
        new_status: Target status to transition to

    Raises:
        StateTransitionError: If transition is not allowed
    """
    allowed = ALLOWED_TRANSITIONS.get(current_status, [])
    if new_status not in allowed:
        raise StateTransitionError(
            f"Invalid transition: {_label(current_status)} -> {new_status.value}. "
            f"Allowed transitions from {_label(current_status)}: "
            f"{[s.value for s in allowed]}"
        )


def can_transition(
    current_status: Optional[MatchStatus],
    new_status: MatchStatus
) -> bool:
    """Check if a state transition is allowed without raising exception."""
    return new_status in ALLOWED_TRANSITIONS.get(current_status, [])

