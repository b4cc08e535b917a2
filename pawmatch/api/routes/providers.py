"""
Provider API Routes
===================

Routes:
  GET  /api/v1/providers/search                   -- Geo search + criteria filter
  GET  /api/v1/providers/{provider_id}/calendar   -- Month availability
  GET  /api/v1/providers/{provider_id}/reviews    -- Reviews, newest first
"""

from __future__ import annotations

import logging
import uuid
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, status

from pawmatch.api.deps import DBSession
from pawmatch.api.schemas.provider import (
    CalendarMonthOut,
    ProviderSearchResponse,
    ProviderSearchResult,
    ReviewOut,
)
from pawmatch.algorithms.candidateFilter import parse_criteria
from pawmatch.core.config import settings
from pawmatch.core.exceptions import ProviderNotFoundError, ValidationError
from pawmatch.services import providerService, reviewService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/providers", tags=["Providers"])


# ---------------------------------------------------------------------------
# GET /api/v1/providers/search
# ---------------------------------------------------------------------------

@router.get(
    "/search",
    response_model=ProviderSearchResponse,
    summary="Search providers",
    description=(
        "Returns providers within radius_km of (lat, lng), closest first, "
        "that satisfy every supplied criterion. Without lat/lng every "
        "provider is considered and no distance is returned."
    ),
)
async def search_providers(
    db: DBSession,
    lat: Optional[float] = Query(default=None, description="Origin latitude"),
    lng: Optional[float] = Query(default=None, description="Origin longitude"),
    radius_km: Optional[float] = Query(default=None, alias="radiusKm", ge=0),
    service_kind: Optional[str] = Query(default=None, alias="serviceKind"),
    service_kinds: Optional[list[str]] = Query(default=None, alias="serviceKinds"),
    pet_kind: Optional[str] = Query(default=None, alias="petKind"),
    weight_kg: Optional[list[float]] = Query(default=None, alias="weightKg"),
    min_price: Optional[Decimal] = Query(default=None, alias="minPrice"),
    max_price: Optional[Decimal] = Query(default=None, alias="maxPrice"),
    verified_only: Optional[bool] = Query(default=None, alias="verifiedOnly"),
    min_rating: Optional[float] = Query(default=None, alias="minRating"),
    has_reviews: Optional[bool] = Query(default=None, alias="hasReviews"),
    min_experience: Optional[float] = Query(default=None, alias="minExperience"),
    max_distance: Optional[float] = Query(default=None, alias="maxDistance"),
) -> ProviderSearchResponse:
    if (lat is None) != (lng is None):
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="lat and lng must be supplied together.",
        )

    raw = {
        "service_kind": service_kind,
        "service_kinds": service_kinds,
        "pet_kind": pet_kind,
        "weight_kg": weight_kg,
        "min_price": min_price,
        "max_price": max_price,
        "verified_only": verified_only,
        "min_rating": min_rating,
        "has_reviews": has_reviews,
        "min_experience": min_experience,
        "max_distance": max_distance,
    }

    try:
        criteria = parse_criteria({k: v for k, v in raw.items() if v is not None})
        results = await providerService.search_providers(
            db,
            criteria,
            origin=(lat, lng) if lat is not None else None,
            radius_km=radius_km,
        )
    except ValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(exc),
        )

    items = [ProviderSearchResult.from_candidate(c) for c in results]
    return ProviderSearchResponse(results=items, total=len(items))


# ---------------------------------------------------------------------------
# GET /api/v1/providers/{provider_id}/calendar
# ---------------------------------------------------------------------------

@router.get(
    "/{provider_id}/calendar",
    response_model=CalendarMonthOut,
    summary="Provider availability for one month",
)
async def get_provider_calendar(
    db: DBSession,
    provider_id: uuid.UUID,
    month_offset: int = Query(
        default=0,
        ge=0,
        le=settings.max_calendar_month_offset,
        description="0 = current month",
    ),
) -> CalendarMonthOut:
    try:
        month = await providerService.get_provider_calendar(db, provider_id, month_offset)
    except ProviderNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    except ValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(exc),
        )

    return CalendarMonthOut.from_month(provider_id, month)


# ---------------------------------------------------------------------------
# GET /api/v1/providers/{provider_id}/reviews
# ---------------------------------------------------------------------------

@router.get(
    "/{provider_id}/reviews",
    response_model=list[ReviewOut],
    summary="Provider reviews, newest first",
)
async def list_provider_reviews(
    db: DBSession,
    provider_id: uuid.UUID,
) -> list[ReviewOut]:
    try:
        reviews = await reviewService.list_provider_reviews(db, provider_id)
    except ProviderNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))

    return [ReviewOut.model_validate(r) for r in reviews]
