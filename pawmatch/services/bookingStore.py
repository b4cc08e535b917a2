"""
Booking Store
=============

Storage handle used by the booking lifecycle. The only write it offers is
an atomic compare-and-set on ``status``: the UPDATE carries the expected
current status in its WHERE clause, so two concurrent transitions of the
same booking can never both commit.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Optional, Protocol

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from pawmatch.algorithms.snapshots import BookingRecord
from pawmatch.models.booking import Booking, BookingStatus
from pawmatch.models.provider import Provider

logger = logging.getLogger(__name__)


class BookingStore(Protocol):
    """Read/write handle on booking records keyed by id."""

    async def get(self, booking_id: uuid.UUID) -> Optional[BookingRecord]: ...

    async def compare_and_set_status(
        self,
        booking_id: uuid.UUID,
        expected: BookingStatus,
        new: BookingStatus,
    ) -> bool: ...


class SqlBookingStore:
    """BookingStore backed by the bookings table."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def get(self, booking_id: uuid.UUID) -> Optional[BookingRecord]:
        stmt = (
            select(Booking, Provider.user_id)
            .join(Provider, Provider.id == Booking.provider_id)
            .where(Booking.id == booking_id)
            .execution_options(populate_existing=True)
        )
        row = (await self.db.execute(stmt)).first()
        if row is None:
            return None

        booking, provider_user_id = row
        return BookingRecord(
            id=booking.id,
            provider_id=booking.provider_id,
            requester_id=booking.requester_id,
            status=booking.status,
            start_date=booking.start_date,
            end_date=booking.end_date,
            provider_user_id=provider_user_id,
        )

    async def compare_and_set_status(
        self,
        booking_id: uuid.UUID,
        expected: BookingStatus,
        new: BookingStatus,
    ) -> bool:
        """Write ``new`` only if the stored status is still ``expected``.

        Returns:
            True if exactly this call moved the booking, False if the stored
            status no longer matched.
        """
        stmt = (
            update(Booking)
            .where(Booking.id == booking_id, Booking.status == expected)
            .values(status=new, updated_at=datetime.now(timezone.utc))
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)
        changed = result.rowcount == 1

        if not changed:
            logger.info(
                "Compare-and-set lost for booking %s: expected %s, wanted %s",
                booking_id,
                expected.value,
                new.value,
            )
        return changed
