"""
Pydantic v2 schemas for the Booking API.

Only the fields clients need are exposed; the status is always written
through the state machine, never set directly on creation.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from pawmatch.models.booking import BookingStatus


class BookingCreateRequest(BaseModel):
    """Request body for creating a booking. The caller is the requester."""

    provider_id: uuid.UUID
    service_kind: str = Field(min_length=1, max_length=32, description="Service kind or synonym")
    start_date: date
    end_date: date
    total_price: Decimal = Field(ge=0)
    pet_ids: list[str] = Field(default_factory=list)
    message: Optional[str] = Field(default=None, max_length=2000)


class BookingStatusUpdateRequest(BaseModel):
    """Request body for a status transition."""

    status: str = Field(
        pattern=r"^(pending|accepted|rejected|completed|cancelled)$",
        description="Target booking status",
    )


class BookingOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    provider_id: uuid.UUID
    requester_id: uuid.UUID
    service_kind: str
    start_date: date
    end_date: date
    status: BookingStatus
    total_price: Decimal
    pet_ids: list[str]
    message: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class BookingListResponse(BaseModel):
    data: list[BookingOut]
    total: int
