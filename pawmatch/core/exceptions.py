"""
Domain error taxonomy shared by the matching core and the service layer.

Routes translate these into HTTP responses; nothing in here knows about
status codes.
"""

from __future__ import annotations

import uuid
from typing import Any


class PawMatchError(Exception):
    """Base class for every domain error raised by PawMatch."""


class ValidationError(PawMatchError, ValueError):
    """Input rejected before any computation took place."""

    def __init__(self, message: str, *, field: str | None = None) -> None:
        self.field = field
        super().__init__(message)


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------

class NotFoundError(PawMatchError):
    """An identifier did not resolve to a stored record."""


class BookingNotFoundError(NotFoundError):
    def __init__(self, booking_id: Any) -> None:
        self.booking_id = booking_id
        super().__init__(f"Booking with id '{booking_id}' not found.")


class ProviderNotFoundError(NotFoundError):
    def __init__(self, provider_id: Any) -> None:
        self.provider_id = provider_id
        super().__init__(f"Provider with id '{provider_id}' not found.")


# ---------------------------------------------------------------------------
# Booking lifecycle
# ---------------------------------------------------------------------------

class TransitionRejectedError(PawMatchError):
    """A requested booking transition was refused. The record is unchanged."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(reason)


class UnauthorizedTransitionError(TransitionRejectedError):
    """The caller does not hold the role the transition requires."""


class InvalidTransitionError(TransitionRejectedError):
    """The (from, to) pair is not part of the booking lifecycle."""


class ConflictError(PawMatchError):
    """The booking status changed between read and write.

    Re-read the booking and re-evaluate before retrying; the winning
    transition may have made the original request invalid.
    """

    def __init__(self, booking_id: uuid.UUID, expected_status: str) -> None:
        self.booking_id = booking_id
        self.expected_status = expected_status
        super().__init__(
            f"Booking '{booking_id}' is no longer in '{expected_status}' status."
        )


# ---------------------------------------------------------------------------
# Reviews
# ---------------------------------------------------------------------------

class ReviewNotAllowedError(PawMatchError):
    """The caller may not review this booking in its current state."""
