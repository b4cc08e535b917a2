"""
Booking API Routes
==================

REST endpoints for the booking lifecycle.

Routes:
  POST   /api/v1/bookings                          -- Create a booking (caller = requester)
  GET    /api/v1/bookings?role=requester|provider  -- Caller's bookings, newest first
  GET    /api/v1/bookings/provider/{provider_id}   -- Pending/accepted bookings by start date
  PATCH  /api/v1/bookings/{booking_id}/status      -- Transition through the state machine
"""

from __future__ import annotations

import logging
import uuid

from fastapi import APIRouter, HTTPException, Query, status

from pawmatch.api.deps import CurrentUserId, DBSession
from pawmatch.api.schemas.booking import (
    BookingCreateRequest,
    BookingListResponse,
    BookingOut,
    BookingStatusUpdateRequest,
)
from pawmatch.core.exceptions import (
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    UnauthorizedTransitionError,
    ValidationError,
)
from pawmatch.services import bookingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/bookings", tags=["Bookings"])


# ---------------------------------------------------------------------------
# POST /api/v1/bookings
# ---------------------------------------------------------------------------

@router.post(
    "",
    response_model=BookingOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create a booking",
    description=(
        "Creates a pending booking with the given provider. A non-empty "
        "message is also posted to the conversation with the provider; if "
        "that fails the booking is still created."
    ),
)
async def create_booking(
    db: DBSession,
    caller_id: CurrentUserId,
    body: BookingCreateRequest,
) -> BookingOut:
    try:
        booking = await bookingService.create_booking(
            db,
            requester_id=caller_id,
            provider_id=body.provider_id,
            service_kind=body.service_kind,
            start_date=body.start_date,
            end_date=body.end_date,
            total_price=body.total_price,
            pet_ids=body.pet_ids,
            message=body.message,
        )
    except NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    except ValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(exc),
        )

    return BookingOut.model_validate(booking)


# ---------------------------------------------------------------------------
# GET /api/v1/bookings
# ---------------------------------------------------------------------------

@router.get(
    "",
    response_model=BookingListResponse,
    summary="List the caller's bookings",
)
async def list_my_bookings(
    db: DBSession,
    caller_id: CurrentUserId,
    role: str = Query(default="requester", pattern=r"^(requester|provider)$"),
) -> BookingListResponse:
    try:
        bookings = await bookingService.get_bookings_for_user(db, caller_id, role)
    except NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))

    return BookingListResponse(
        data=[BookingOut.model_validate(b) for b in bookings],
        total=len(bookings),
    )


# ---------------------------------------------------------------------------
# GET /api/v1/bookings/provider/{provider_id}
# ---------------------------------------------------------------------------

@router.get(
    "/provider/{provider_id}",
    response_model=BookingListResponse,
    summary="Calendar feed for a provider",
)
async def list_provider_calendar_bookings(
    db: DBSession,
    provider_id: uuid.UUID,
) -> BookingListResponse:
    bookings = await bookingService.get_calendar_bookings(db, provider_id)
    return BookingListResponse(
        data=[BookingOut.model_validate(b) for b in bookings],
        total=len(bookings),
    )


# ---------------------------------------------------------------------------
# PATCH /api/v1/bookings/{booking_id}/status
# ---------------------------------------------------------------------------

@router.patch(
    "/{booking_id}/status",
    response_model=BookingOut,
    summary="Transition a booking",
    description=(
        "The provider accepts or rejects a pending booking; the requester "
        "cancels a pending or accepted one. 403 when the caller does not hold "
        "the required role, 409 for a transition outside the lifecycle or "
        "when another change landed first."
    ),
)
async def update_booking_status(
    db: DBSession,
    caller_id: CurrentUserId,
    booking_id: uuid.UUID,
    body: BookingStatusUpdateRequest,
) -> BookingOut:
    try:
        booking = await bookingService.update_booking_status(
            db,
            booking_id,
            caller_id,
            body.status,
        )
    except NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    except UnauthorizedTransitionError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc))
    except (InvalidTransitionError, ConflictError) as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    except ValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(exc),
        )

    return BookingOut.model_validate(booking)
