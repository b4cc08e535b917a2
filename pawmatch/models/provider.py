"""
SQLAlchemy model for care provider profiles.

Profiles are written by the provider-facing profile editor; the matching
core only reads them. Semi-structured attributes (service offerings,
acceptance preferences, recurring availability, blocked dates) are kept in
JSON columns because their shape is owned by the editor.

``services`` layout::

    {
        "boarding": {"active": true, "rate": "45.00", "holiday_rate": "60.00"},
        "dog_walking": {"active": false, "rate": "20.00"}
    }
"""

import enum
import uuid
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import JSON, Boolean, ForeignKey, Integer, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class ServiceKind(str, enum.Enum):
    BOARDING = "boarding"
    HOUSE_SITTING = "house_sitting"
    DROP_IN_VISITS = "drop_in_visits"
    DOGGY_DAY_CARE = "doggy_day_care"
    DOG_WALKING = "dog_walking"


class SizeBucket(str, enum.Enum):
    SMALL = "Small"
    MEDIUM = "Medium"
    LARGE = "Large"
    GIANT = "Giant"


# Every spelling clients have been seen to send, keyed by the squashed form
# (lower case, no separators).
_SERVICE_KIND_SYNONYMS: dict[str, ServiceKind] = {
    "boarding": ServiceKind.BOARDING,
    "housesitting": ServiceKind.HOUSE_SITTING,
    "dropin": ServiceKind.DROP_IN_VISITS,
    "dropinvisits": ServiceKind.DROP_IN_VISITS,
    "visits": ServiceKind.DROP_IN_VISITS,
    "daycare": ServiceKind.DOGGY_DAY_CARE,
    "doggydaycare": ServiceKind.DOGGY_DAY_CARE,
    "walking": ServiceKind.DOG_WALKING,
    "dogwalking": ServiceKind.DOG_WALKING,
}


def normalize_service_kind(raw: str) -> ServiceKind:
    """Resolve a client-supplied service name to its canonical kind.

    Matching ignores case, hyphens, underscores and spaces, so
    ``"house-sitting"``, ``"HouseSitting"`` and ``"housesitting"`` all map
    to ``ServiceKind.HOUSE_SITTING``.

    Raises:
        ValueError: If the name is not a known service kind.
    """
    if isinstance(raw, ServiceKind):
        return raw
    squashed = "".join(ch for ch in str(raw).lower() if ch not in "-_ ")
    try:
        return _SERVICE_KIND_SYNONYMS[squashed]
    except KeyError:
        valid = ", ".join(k.value for k in ServiceKind)
        raise ValueError(f"Unknown service kind '{raw}'. Must be one of: {valid}.")


class Provider(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "providers"

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )

    # Home base location (optional: providers without one never show up in
    # geo searches)
    latitude: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 7), nullable=True)
    longitude: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 7), nullable=True)
    address: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Service offerings keyed by ServiceKind value
    services: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    # Acceptance preferences
    accepted_pet_kinds: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    accepted_size_buckets: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    neutered_only: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Trust & experience
    is_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    years_experience: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    headline: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    bio: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Availability: recurrence tokens and ISO dates ("2025-12-25")
    general_availability: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    blocked_dates: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)

    # Relationships
    user: Mapped["User"] = relationship("User", back_populates="provider_profile")
    reviews: Mapped[list["Review"]] = relationship(
        "Review", back_populates="provider", order_by="Review.created_at"
    )
    bookings: Mapped[list["Booking"]] = relationship("Booking", back_populates="provider")

    def __repr__(self) -> str:
        return (
            f"<Provider(id={self.id}, user_id={self.user_id}, "
            f"verified={self.is_verified})>"
        )
