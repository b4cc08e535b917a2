"""
Immutable read snapshots consumed by the pure matching components.

The selector, the filter pipeline and the availability calculator never see
ORM instances: the service layer converts rows into these frozen
dataclasses first, so concurrent callers can share them freely.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Mapping, Optional

from pawmatch.models.booking import BookingStatus


@dataclass(frozen=True)
class ServiceOffering:
    """One service a provider offers, with its nightly/visit rate."""

    active: bool
    rate: Optional[Decimal] = None
    holiday_rate: Optional[Decimal] = None


@dataclass(frozen=True)
class ReviewSnapshot:
    rating: int
    provider_id: uuid.UUID
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class ProviderSnapshot:
    """Read-only view of a provider profile with its reviews attached."""

    id: uuid.UUID
    user_id: Optional[uuid.UUID] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    services: Mapping[str, ServiceOffering] = field(default_factory=dict)
    accepted_pet_kinds: frozenset[str] = frozenset()
    accepted_size_buckets: frozenset[str] = frozenset()
    neutered_only: bool = False
    is_verified: bool = False
    experience_years: float = 0
    general_availability: frozenset[str] = frozenset()
    blocked_dates: frozenset[date] = frozenset()
    reviews: tuple[ReviewSnapshot, ...] = ()

    @property
    def coordinate(self) -> tuple[float, float] | None:
        if self.latitude is None or self.longitude is None:
            return None
        return (self.latitude, self.longitude)

    @property
    def review_count(self) -> int:
        return len(self.reviews)

    @property
    def mean_rating(self) -> float | None:
        if not self.reviews:
            return None
        return sum(r.rating for r in self.reviews) / len(self.reviews)

    def active_services(self) -> dict[str, ServiceOffering]:
        return {kind: s for kind, s in self.services.items() if s.active}


@dataclass(frozen=True)
class BookingRecord:
    """The parts of a booking the lifecycle and the calendar care about."""

    id: uuid.UUID
    provider_id: uuid.UUID
    requester_id: uuid.UUID
    status: BookingStatus
    start_date: date
    end_date: date
    provider_user_id: Optional[uuid.UUID] = None

    def covers(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date
