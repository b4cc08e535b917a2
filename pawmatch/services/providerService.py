"""
Provider service layer.

Loads provider profiles (with their reviews) as immutable snapshots and
runs them through the matching core: geo selection, the candidate filter
pipeline and the availability calendar.
"""

from __future__ import annotations

import logging
import uuid
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from pawmatch.algorithms.availabilityCalendar import CalendarMonth, compute_month
from pawmatch.algorithms.candidateFilter import CriteriaSet, filter_candidates
from pawmatch.algorithms.snapshots import ProviderSnapshot, ReviewSnapshot, ServiceOffering
from pawmatch.core.config import settings
from pawmatch.core.exceptions import ProviderNotFoundError, ValidationError
from pawmatch.models.provider import Provider
from pawmatch.services import bookingService
from pawmatch.services.geoService import ProviderDistance, select_within_radius, without_distance

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# ORM -> snapshot conversion
# ---------------------------------------------------------------------------

def _to_decimal(value: Any) -> Optional[Decimal]:
    if value is None or value == "":
        return None
    try:
        return Decimal(str(value))
    except InvalidOperation:
        logger.warning("Ignoring malformed rate value %r", value)
        return None


def _parse_services(raw: Any) -> dict[str, ServiceOffering]:
    services: dict[str, ServiceOffering] = {}
    for kind, entry in (raw or {}).items():
        if not isinstance(entry, dict):
            continue
        services[kind] = ServiceOffering(
            active=bool(entry.get("active", False)),
            rate=_to_decimal(entry.get("rate")),
            holiday_rate=_to_decimal(entry.get("holiday_rate")),
        )
    return services


def _parse_blocked_dates(raw: Sequence[Any]) -> frozenset[date]:
    days: set[date] = set()
    for value in raw or ():
        if isinstance(value, date):
            days.add(value)
            continue
        try:
            days.add(date.fromisoformat(str(value)[:10]))
        except ValueError:
            logger.warning("Ignoring malformed blocked date %r", value)
    return frozenset(days)


def to_snapshot(provider: Provider) -> ProviderSnapshot:
    """Convert a Provider row (reviews loaded) into a ProviderSnapshot."""
    return ProviderSnapshot(
        id=provider.id,
        user_id=provider.user_id,
        latitude=float(provider.latitude) if provider.latitude is not None else None,
        longitude=float(provider.longitude) if provider.longitude is not None else None,
        services=_parse_services(provider.services),
        accepted_pet_kinds=frozenset(provider.accepted_pet_kinds or ()),
        accepted_size_buckets=frozenset(provider.accepted_size_buckets or ()),
        neutered_only=bool(provider.neutered_only),
        is_verified=bool(provider.is_verified),
        experience_years=provider.years_experience or 0,
        general_availability=frozenset(provider.general_availability or ()),
        blocked_dates=_parse_blocked_dates(provider.blocked_dates),
        reviews=tuple(
            ReviewSnapshot(
                rating=review.rating,
                provider_id=review.provider_id,
                created_at=review.created_at,
            )
            for review in provider.reviews
        ),
    )


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------

async def load_provider_snapshots(db: AsyncSession) -> list[ProviderSnapshot]:
    """Return every provider profile as a snapshot with reviews attached."""
    stmt = (
        select(Provider)
        .options(selectinload(Provider.reviews))
        .execution_options(populate_existing=True)
    )
    providers = (await db.execute(stmt)).scalars().all()
    return [to_snapshot(p) for p in providers]


async def get_provider_snapshot(
    db: AsyncSession,
    provider_id: uuid.UUID,
) -> ProviderSnapshot:
    """Load a single provider snapshot.

    Raises:
        ProviderNotFoundError: If no provider has this id.
    """
    stmt = (
        select(Provider)
        .options(selectinload(Provider.reviews))
        .execution_options(populate_existing=True)
        .where(Provider.id == provider_id)
    )
    provider = (await db.execute(stmt)).scalar_one_or_none()
    if provider is None:
        raise ProviderNotFoundError(provider_id)
    return to_snapshot(provider)


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------

async def search_providers(
    db: AsyncSession,
    criteria: CriteriaSet,
    *,
    origin: Optional[tuple[float, float]] = None,
    radius_km: Optional[float] = None,
) -> list[ProviderDistance]:
    """Find providers matching ``criteria``.

    With an origin, candidates are first narrowed to ``radius_km`` (the
    configured default when omitted) and come back closest first. Without
    one, every provider is a candidate and no distance is attached.

    Raises:
        ValidationError: On an unusable origin or radius.
    """
    providers = await load_provider_snapshots(db)

    if origin is not None:
        radius = settings.default_search_radius_km if radius_km is None else radius_km
        if radius > settings.max_search_radius_km:
            raise ValidationError(
                f"Search radius must not exceed {settings.max_search_radius_km} km.",
                field="radius_km",
            )
        candidates = select_within_radius(origin, radius, providers)
    else:
        radius = None
        candidates = without_distance(providers)

    results = filter_candidates(candidates, criteria)

    logger.info(
        "Provider search: origin=%s radius=%s pool=%d candidates=%d results=%d",
        origin,
        radius,
        len(providers),
        len(candidates),
        len(results),
    )
    return results


# ---------------------------------------------------------------------------
# Availability
# ---------------------------------------------------------------------------

async def get_provider_calendar(
    db: AsyncSession,
    provider_id: uuid.UUID,
    month_offset: int = 0,
    *,
    today: Optional[date] = None,
) -> CalendarMonth:
    """Classify every day of the provider's month ``month_offset`` from now.

    Raises:
        ProviderNotFoundError: If no provider has this id.
        ValidationError: If ``month_offset`` is negative.
    """
    provider = await get_provider_snapshot(db, provider_id)
    bookings = await bookingService.get_calendar_bookings(db, provider_id)

    return compute_month(
        provider,
        month_offset,
        [bookingService.to_record(b) for b in bookings],
        today=today or date.today(),
    )
