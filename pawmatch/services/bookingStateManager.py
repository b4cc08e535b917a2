"""
Booking State Manager
=====================

Finite state machine governing all valid booking status transitions. Every
status change MUST go through ``validate_transition`` before being persisted.

State machine overview::

    pending --> accepted --> cancelled
       |
       +-----> rejected
       |
       +-----> cancelled

    rejected, completed, cancelled are terminal.

Each transition is owned by exactly one participant role: the provider
decides on a pending request, the requester may withdraw it (before or
after acceptance). Roles are derived by comparing the caller's identity
with the booking's stored participants; a caller matching neither has no
role at all.
"""

from __future__ import annotations

import enum
import uuid
from dataclasses import dataclass
from typing import Optional

from pawmatch.algorithms.snapshots import BookingRecord
from pawmatch.core.exceptions import InvalidTransitionError, UnauthorizedTransitionError
from pawmatch.models.booking import TERMINAL_STATUSES, BookingStatus


# ---------------------------------------------------------------------------
# Actor roles
# ---------------------------------------------------------------------------

class ActorRole(str, enum.Enum):
    PROVIDER = "provider"
    REQUESTER = "requester"


# ---------------------------------------------------------------------------
# Transition guard result
# ---------------------------------------------------------------------------

class RejectionKind(str, enum.Enum):
    UNAUTHORIZED = "unauthorized"
    INVALID = "invalid"


@dataclass(frozen=True)
class TransitionResult:
    """Result of a transition validation attempt."""
    allowed: bool
    reason: str | None = None
    rejection: RejectionKind | None = None

    def raise_if_rejected(self) -> None:
        if self.allowed:
            return
        if self.rejection == RejectionKind.UNAUTHORIZED:
            raise UnauthorizedTransitionError(self.reason or "Transition not allowed.")
        raise InvalidTransitionError(self.reason or "Transition not allowed.")


# ---------------------------------------------------------------------------
# Transition definitions
# ---------------------------------------------------------------------------

# (current, requested) -> the only role allowed to perform it
TRANSITIONS: dict[tuple[BookingStatus, BookingStatus], ActorRole] = {
    (BookingStatus.PENDING, BookingStatus.ACCEPTED): ActorRole.PROVIDER,
    (BookingStatus.PENDING, BookingStatus.REJECTED): ActorRole.PROVIDER,
    (BookingStatus.PENDING, BookingStatus.CANCELLED): ActorRole.REQUESTER,
    (BookingStatus.ACCEPTED, BookingStatus.CANCELLED): ActorRole.REQUESTER,
}


def resolve_roles(booking: BookingRecord, caller_id: uuid.UUID) -> frozenset[ActorRole]:
    """Return every role the caller holds on this booking (possibly none)."""
    roles: set[ActorRole] = set()
    if booking.provider_user_id is not None and booking.provider_user_id == caller_id:
        roles.add(ActorRole.PROVIDER)
    if booking.requester_id == caller_id:
        roles.add(ActorRole.REQUESTER)
    return frozenset(roles)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def validate_transition(
    current_status: BookingStatus,
    new_status: BookingStatus,
    roles: frozenset[ActorRole],
) -> TransitionResult:
    """Validate whether a booking status transition is allowed.

    Checks three layers:
    1. Does the caller participate in the booking at all?
    2. Is the transition part of the lifecycle?
    3. Does the caller hold the role that owns this transition?
    """
    # 1. Participant check
    if not roles:
        return TransitionResult(
            allowed=False,
            reason="Caller is neither the provider nor the requester of this booking.",
            rejection=RejectionKind.UNAUTHORIZED,
        )

    # 2. Structural check
    owner: Optional[ActorRole] = TRANSITIONS.get((current_status, new_status))
    if owner is None:
        if current_status in TERMINAL_STATUSES:
            reason = (
                f"Booking is in terminal status '{current_status.value}'; "
                f"no further transitions are allowed."
            )
        else:
            allowed_targets = sorted(
                to.value for (frm, to) in TRANSITIONS if frm == current_status
            )
            reason = (
                f"Invalid transition: '{current_status.value}' -> '{new_status.value}'. "
                f"Allowed transitions from '{current_status.value}': "
                f"{', '.join(allowed_targets) or 'none'}."
            )
        return TransitionResult(
            allowed=False,
            reason=reason,
            rejection=RejectionKind.INVALID,
        )

    # 3. Role guard
    if owner not in roles:
        return TransitionResult(
            allowed=False,
            reason=(
                f"Only the {owner.value} of this booking can move it from "
                f"'{current_status.value}' to '{new_status.value}'."
            ),
            rejection=RejectionKind.UNAUTHORIZED,
        )

    return TransitionResult(allowed=True)
