"""
PawMatch SQLAlchemy Models
==========================

Central import point for all ORM models. Import ``Base`` from here for the
``create_all`` convenience in tests.

Usage::

    from pawmatch.models import Base, Booking, Provider
"""

# -- Base & Mixins --
from .base import Base, TimestampMixin, UUIDPrimaryKeyMixin

# -- Accounts --
from .user import User

# -- Providers --
from .provider import Provider, ServiceKind, SizeBucket, normalize_service_kind

# -- Bookings --
from .booking import OCCUPYING_STATUSES, TERMINAL_STATUSES, Booking, BookingStatus

# -- Reviews --
from .review import Review

# -- Conversations --
from .message import Message

__all__ = [
    "Base",
    "TimestampMixin",
    "UUIDPrimaryKeyMixin",
    "User",
    "Provider",
    "ServiceKind",
    "SizeBucket",
    "normalize_service_kind",
    "Booking",
    "BookingStatus",
    "OCCUPYING_STATUSES",
    "TERMINAL_STATUSES",
    "Review",
    "Message",
]
