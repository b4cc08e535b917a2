"""
Review Service
==============

Requesters rate a provider once a booking has gone ahead. Reviews are
immutable once created and feed the rating aggregates used by search.
"""

from __future__ import annotations

import logging
import uuid
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from pawmatch.core.exceptions import (
    BookingNotFoundError,
    ProviderNotFoundError,
    ReviewNotAllowedError,
    ValidationError,
)
from pawmatch.events.bookingEvents import emit_review_created
from pawmatch.models.booking import Booking, BookingStatus
from pawmatch.models.provider import Provider
from pawmatch.models.review import Review

logger = logging.getLogger(__name__)

MIN_RATING: int = 1
MAX_RATING: int = 5

# Accepted bookings can be reviewed as well as completed ones.
REVIEWABLE_STATUSES: frozenset[BookingStatus] = frozenset({
    BookingStatus.ACCEPTED,
    BookingStatus.COMPLETED,
})


async def create_review(
    db: AsyncSession,
    booking_id: uuid.UUID,
    author_id: uuid.UUID,
    rating: int,
    comment: Optional[str] = None,
) -> Review:
    """Create a review of the provider of ``booking_id``.

    Raises:
        ValidationError: If the rating is not an integer from 1 to 5.
        BookingNotFoundError: If the booking does not exist.
        ReviewNotAllowedError: If the author is not the booking's requester
            or the booking is not Accepted or Completed.
    """
    if isinstance(rating, bool) or not isinstance(rating, int):
        raise ValidationError(f"Rating must be an integer, got {rating!r}.", field="rating")
    if not MIN_RATING <= rating <= MAX_RATING:
        raise ValidationError(
            f"Rating must be between {MIN_RATING} and {MAX_RATING}, got {rating}.",
            field="rating",
        )

    booking = (
        await db.execute(select(Booking).where(Booking.id == booking_id))
    ).scalar_one_or_none()
    if booking is None:
        raise BookingNotFoundError(booking_id)

    if booking.requester_id != author_id:
        raise ReviewNotAllowedError("Only the requester of a booking can review it.")

    if booking.status not in REVIEWABLE_STATUSES:
        raise ReviewNotAllowedError(
            f"Booking is '{booking.status.value}'; only accepted or completed "
            f"bookings can be reviewed."
        )

    review = Review(
        booking_id=booking.id,
        provider_id=booking.provider_id,
        author_id=author_id,
        rating=rating,
        comment=comment.strip() if comment else None,
    )
    db.add(review)
    await db.flush()

    emit_review_created(
        booking_id=booking.id,
        review_id=review.id,
        provider_id=booking.provider_id,
        author_id=author_id,
        rating=rating,
    )

    logger.info(
        "Review created: id=%s booking=%s provider=%s rating=%d",
        review.id,
        booking.id,
        booking.provider_id,
        rating,
    )
    return review


async def list_provider_reviews(
    db: AsyncSession,
    provider_id: uuid.UUID,
) -> list[Review]:
    """Return the provider's reviews, newest first.

    Raises:
        ProviderNotFoundError: If no provider has this id.
    """
    exists = (
        await db.execute(select(Provider.id).where(Provider.id == provider_id))
    ).scalar_one_or_none()
    if exists is None:
        raise ProviderNotFoundError(provider_id)

    stmt = (
        select(Review)
        .where(Review.provider_id == provider_id)
        .order_by(Review.created_at.desc())
    )
    return list((await db.execute(stmt)).scalars().all())
