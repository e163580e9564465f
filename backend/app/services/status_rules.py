"""Travel request status state machine.

requested -> approved | cancelled
approved  -> cancelled
cancelled -> (terminal)

Everything here is a pure function of status values; who is asking is the
authorization module's concern.
"""
from typing import Optional

from app.models.travel_request import TravelRequestStatus, STATUS_LABELS

ALLOWED_TRANSITIONS: dict[TravelRequestStatus, frozenset[TravelRequestStatus]] = {
    TravelRequestStatus.requested: frozenset({TravelRequestStatus.approved, TravelRequestStatus.cancelled}),
    TravelRequestStatus.approved: frozenset({TravelRequestStatus.cancelled}),
    TravelRequestStatus.cancelled: frozenset(),
}

APPROVED_ONLY_CANCELLABLE = (
    "Approved requests can only be cancelled, not reverted or changed to another status."
)


def allowed_transitions(current: TravelRequestStatus) -> frozenset[TravelRequestStatus]:
    return ALLOWED_TRANSITIONS[current]


def is_terminal(status: TravelRequestStatus) -> bool:
    return not ALLOWED_TRANSITIONS[status]


def validate_transition(current: TravelRequestStatus, requested: TravelRequestStatus) -> Optional[str]:
    """Return ``None`` when ``current -> requested`` is legal, else the rejection reason."""
    if current == TravelRequestStatus.approved and requested != TravelRequestStatus.cancelled:
        return APPROVED_ONLY_CANCELLABLE
    if requested not in ALLOWED_TRANSITIONS[current]:
        return f'Cannot change status from "{STATUS_LABELS[current]}" to "{STATUS_LABELS[requested]}".'
    return None
