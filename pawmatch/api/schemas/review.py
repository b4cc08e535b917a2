"""Pydantic v2 schemas for review creation."""

from __future__ import annotations

import uuid
from typing import Optional

from pydantic import BaseModel, Field


class ReviewCreateRequest(BaseModel):
    booking_id: uuid.UUID
    rating: int = Field(description="Whole-star rating, 1 to 5")
    comment: Optional[str] = Field(default=None, max_length=2000)
