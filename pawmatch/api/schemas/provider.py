"""
Pydantic v2 schemas for provider search, availability and reviews.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from pawmatch.algorithms.availabilityCalendar import CalendarMonth
from pawmatch.services.geoService import ProviderDistance


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------

class ServiceOfferingOut(BaseModel):
    kind: str
    rate: Optional[Decimal] = None
    holiday_rate: Optional[Decimal] = None


class ProviderSearchResult(BaseModel):
    """One provider in a search listing."""

    id: uuid.UUID
    user_id: Optional[uuid.UUID] = None
    is_verified: bool
    experience_years: float
    services: list[ServiceOfferingOut]
    accepted_pet_kinds: list[str]
    accepted_size_buckets: list[str]
    review_count: int
    mean_rating: Optional[float] = None
    distance_km: Optional[float] = Field(
        default=None, description="Kilometres from the search origin, if one was given"
    )

    @classmethod
    def from_candidate(cls, candidate: ProviderDistance) -> "ProviderSearchResult":
        provider = candidate.provider
        return cls(
            id=provider.id,
            user_id=provider.user_id,
            is_verified=provider.is_verified,
            experience_years=provider.experience_years,
            services=[
                ServiceOfferingOut(kind=kind, rate=s.rate, holiday_rate=s.holiday_rate)
                for kind, s in sorted(provider.active_services().items())
            ],
            accepted_pet_kinds=sorted(provider.accepted_pet_kinds),
            accepted_size_buckets=sorted(provider.accepted_size_buckets),
            review_count=provider.review_count,
            mean_rating=provider.mean_rating,
            distance_km=(
                round(candidate.distance_km, 3) if candidate.distance_km is not None else None
            ),
        )


class ProviderSearchResponse(BaseModel):
    results: list[ProviderSearchResult]
    total: int


# ---------------------------------------------------------------------------
# Availability
# ---------------------------------------------------------------------------

class DayAvailabilityOut(BaseModel):
    day: date
    status: str


class CalendarMonthOut(BaseModel):
    provider_id: uuid.UUID
    year: int
    month: int
    days: list[DayAvailabilityOut]
    counts: dict[str, int]

    @classmethod
    def from_month(cls, provider_id: uuid.UUID, month: CalendarMonth) -> "CalendarMonthOut":
        return cls(
            provider_id=provider_id,
            year=month.year,
            month=month.month,
            days=[DayAvailabilityOut(day=d.day, status=d.status.value) for d in month.days],
            counts={status.value: n for status, n in month.counts().items()},
        )


# ---------------------------------------------------------------------------
# Reviews
# ---------------------------------------------------------------------------

class ReviewOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    booking_id: uuid.UUID
    provider_id: uuid.UUID
    author_id: uuid.UUID
    rating: int
    comment: Optional[str] = None
    created_at: datetime
