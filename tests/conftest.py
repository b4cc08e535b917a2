"""
Shared pytest fixtures for PawMatch unit tests.

Provides snapshot factories for the pure matching components, a mock
``AsyncSession`` and an in-memory ``BookingStore`` so the lifecycle can be
exercised without a database.
"""

import asyncio
import dataclasses
import uuid
from datetime import date
from decimal import Decimal
from typing import Optional
from unittest.mock import AsyncMock, MagicMock

import pytest

from pawmatch.algorithms.snapshots import (
    BookingRecord,
    ProviderSnapshot,
    ReviewSnapshot,
    ServiceOffering,
)
from pawmatch.models.booking import BookingStatus


# ---------------------------------------------------------------------------
# Database session mock
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_db() -> AsyncMock:
    """Async mock of ``AsyncSession`` supporting ``execute``, ``add`` and
    ``flush``. Tests configure ``mock_db.execute.return_value`` as needed.
    """
    session = AsyncMock()
    session.add = MagicMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    return session


# ---------------------------------------------------------------------------
# Snapshot factories
# ---------------------------------------------------------------------------


def make_provider(
    *,
    provider_id: Optional[uuid.UUID] = None,
    latitude: Optional[float] = None,
    longitude: Optional[float] = None,
    services: Optional[dict] = None,
    ratings: tuple = (),
    **overrides,
) -> ProviderSnapshot:
    """Build a ProviderSnapshot. ``services`` maps kind -> (active, rate)."""
    pid = provider_id or uuid.uuid4()
    offerings = {
        kind: ServiceOffering(
            active=active,
            rate=Decimal(str(rate)) if rate is not None else None,
        )
        for kind, (active, rate) in (services or {}).items()
    }
    reviews = tuple(ReviewSnapshot(rating=r, provider_id=pid) for r in ratings)
    return ProviderSnapshot(
        id=pid,
        user_id=overrides.pop("user_id", uuid.uuid4()),
        latitude=latitude,
        longitude=longitude,
        services=offerings,
        reviews=reviews,
        **overrides,
    )


def make_booking(
    provider: ProviderSnapshot,
    start: date,
    end: date,
    status: BookingStatus = BookingStatus.PENDING,
    *,
    requester_id: Optional[uuid.UUID] = None,
) -> BookingRecord:
    return BookingRecord(
        id=uuid.uuid4(),
        provider_id=provider.id,
        requester_id=requester_id or uuid.uuid4(),
        status=status,
        start_date=start,
        end_date=end,
        provider_user_id=provider.user_id,
    )


@pytest.fixture
def provider_factory():
    return make_provider


@pytest.fixture
def booking_factory():
    return make_booking


# ---------------------------------------------------------------------------
# In-memory booking store
# ---------------------------------------------------------------------------


class InMemoryBookingStore:
    """BookingStore keeping records in a dict.

    ``get`` reads the record and then yields to the event loop, so two
    transitions gathered together both read before either writes. The
    compare-and-set itself runs without awaiting and is therefore atomic on one loop.
    """

    def __init__(self, *records: BookingRecord) -> None:
        self.records: dict[uuid.UUID, BookingRecord] = {r.id: r for r in records}
        self.writes: list[tuple[uuid.UUID, BookingStatus]] = []

    async def get(self, booking_id: uuid.UUID) -> Optional[BookingRecord]:
        record = self.records.get(booking_id)
        await asyncio.sleep(0)
        return record

    async def compare_and_set_status(
        self,
        booking_id: uuid.UUID,
        expected: BookingStatus,
        new: BookingStatus,
    ) -> bool:
        current = self.records.get(booking_id)
        if current is None or current.status != expected:
            return False
        self.records[booking_id] = dataclasses.replace(current, status=new)
        self.writes.append((booking_id, new))
        return True


@pytest.fixture
def provider_user_id() -> uuid.UUID:
    return uuid.uuid4()


@pytest.fixture
def requester_id() -> uuid.UUID:
    return uuid.uuid4()


@pytest.fixture
def pending_booking(provider_user_id, requester_id) -> BookingRecord:
    return BookingRecord(
        id=uuid.uuid4(),
        provider_id=uuid.uuid4(),
        requester_id=requester_id,
        status=BookingStatus.PENDING,
        start_date=date(2025, 12, 10),
        end_date=date(2025, 12, 12),
        provider_user_id=provider_user_id,
    )


@pytest.fixture
def booking_store(pending_booking) -> InMemoryBookingStore:
    return InMemoryBookingStore(pending_booking)
