"""
SQLAlchemy model for care bookings.

Bookings are never deleted: terminal states are retained for history. The
``status`` column is only ever written through a guarded compare-and-set
(see ``pawmatch.services.bookingStore``).
"""

import enum
import uuid
from datetime import date
from decimal import Decimal
from typing import Optional

from sqlalchemy import JSON, Date, Enum, ForeignKey, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class BookingStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


TERMINAL_STATUSES: frozenset[BookingStatus] = frozenset({
    BookingStatus.REJECTED,
    BookingStatus.COMPLETED,
    BookingStatus.CANCELLED,
})

# Statuses that occupy the provider's calendar
OCCUPYING_STATUSES: frozenset[BookingStatus] = frozenset({
    BookingStatus.PENDING,
    BookingStatus.ACCEPTED,
})


class Booking(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "bookings"

    provider_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("providers.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    # Opaque caller id from the identity service; not constrained to users.
    requester_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        nullable=False,
        index=True,
    )

    service_kind: Mapped[str] = mapped_column(String(32), nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)

    status: Mapped[BookingStatus] = mapped_column(
        Enum(BookingStatus, name="booking_status"),
        nullable=False,
        default=BookingStatus.PENDING,
    )

    total_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    pet_ids: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Relationships
    provider: Mapped["Provider"] = relationship("Provider", back_populates="bookings")

    def __repr__(self) -> str:
        return (
            f"<Booking(id={self.id}, provider={self.provider_id}, "
            f"status={self.status}, {self.start_date}..{self.end_date})>"
        )
