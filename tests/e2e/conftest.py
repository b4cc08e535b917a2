"""
E2E test fixtures for the PawMatch backend.

Provides:
- An in-process FastAPI test app with all routes registered
- httpx AsyncClient wired via ASGI transport (no network needed)
- An async SQLite database session (in-memory) per test
- Pre-populated seed data: users, providers, bookings, a review
- Bearer token headers for each seeded user

Booking dates are placed in next month so calendar assertions do not depend
on the day the suite runs.
"""

from __future__ import annotations

import uuid
from datetime import date
from decimal import Decimal
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from pawmatch.models import Base
from pawmatch.services.auth_service import create_access_token

# ---------------------------------------------------------------------------
# Test IDs (stable across tests so cross-references work)
# ---------------------------------------------------------------------------

REQUESTER_USER_ID = uuid.UUID("aaaaaaaa-aaaa-aaaa-aaaa-aaaaaaaaaaaa")
PROVIDER_USER_ID = uuid.UUID("bbbbbbbb-bbbb-bbbb-bbbb-bbbbbbbbbbbb")
FAR_PROVIDER_USER_ID = uuid.UUID("cccccccc-cccc-cccc-cccc-cccccccccccc")
UNLOCATED_PROVIDER_USER_ID = uuid.UUID("dddddddd-dddd-dddd-dddd-dddddddddddd")
STRANGER_USER_ID = uuid.UUID("eeeeeeee-eeee-eeee-eeee-eeeeeeeeeeee")

PROVIDER_ID = uuid.UUID("11111111-1111-1111-1111-111111111111")
FAR_PROVIDER_ID = uuid.UUID("22222222-2222-2222-2222-222222222222")
UNLOCATED_PROVIDER_ID = uuid.UUID("33333333-3333-3333-3333-333333333333")

PENDING_BOOKING_ID = uuid.UUID("44444444-4444-4444-4444-444444444444")
ACCEPTED_BOOKING_ID = uuid.UUID("55555555-5555-5555-5555-555555555555")
CANCELLED_BOOKING_ID = uuid.UUID("66666666-6666-6666-6666-666666666666")

REVIEW_ID = uuid.UUID("77777777-7777-7777-7777-777777777777")

CENTRAL_PARK = (40.785091, -73.968285)


def _first_of_next_month(today: date) -> date:
    return date(today.year + today.month // 12, today.month % 12 + 1, 1)


NEXT_MONTH = _first_of_next_month(date.today())


def next_month_day(day: int) -> date:
    return NEXT_MONTH.replace(day=day)


# ---------------------------------------------------------------------------
# Async engine + session (in-memory SQLite)
# ---------------------------------------------------------------------------

TEST_DB_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture
async def _test_engine():
    """Create a fresh in-memory database for each test."""
    engine = create_async_engine(
        TEST_DB_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    # SQLite does not enforce foreign keys by default
    @event.listens_for(engine.sync_engine, "connect")
    def _enable_fk(dbapi_conn, _):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(_test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Yield a session inside a transaction that is rolled back afterwards."""
    session_factory = async_sessionmaker(
        bind=_test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    async with session_factory() as session:
        await session.begin()
        yield session
        await session.rollback()


# ---------------------------------------------------------------------------
# Seed data
# ---------------------------------------------------------------------------

async def _seed_data(db: AsyncSession) -> None:
    """Insert minimum seed data for E2E tests."""
    from pawmatch.models import Booking, BookingStatus, Provider, Review, User

    # -- Users --
    db.add_all([
        User(
            id=REQUESTER_USER_ID,
            email="owner@test.pawmatch.dev",
            first_name="Jane",
            last_name="Doe",
            display_name="Jane D.",
        ),
        User(
            id=PROVIDER_USER_ID,
            email="sitter@test.pawmatch.dev",
            first_name="John",
            last_name="Smith",
            display_name="John S.",
        ),
        User(
            id=FAR_PROVIDER_USER_ID,
            email="boston@test.pawmatch.dev",
            first_name="Maria",
            last_name="Lopez",
        ),
        User(
            id=UNLOCATED_PROVIDER_USER_ID,
            email="nowhere@test.pawmatch.dev",
            first_name="Sam",
            last_name="Lee",
        ),
        User(
            id=STRANGER_USER_ID,
            email="stranger@test.pawmatch.dev",
            first_name="Alex",
            last_name="Other",
        ),
    ])
    await db.flush()

    # -- Providers --
    # ~9 km from Central Park
    near = Provider(
        id=PROVIDER_ID,
        user_id=PROVIDER_USER_ID,
        latitude=Decimal("40.7060860"),
        longitude=Decimal("-73.9968640"),
        address="Lower Manhattan, New York",
        services={
            "boarding": {"active": True, "rate": "45.00", "holiday_rate": "60.00"},
            "dog_walking": {"active": True, "rate": "20.00"},
        },
        accepted_pet_kinds=["Dog", "Cat"],
        accepted_size_buckets=["Small", "Medium"],
        is_verified=True,
        years_experience=6,
        general_availability=["Full-Time"],
        blocked_dates=[next_month_day(25).isoformat()],
    )
    # Boston, ~300 km away
    far = Provider(
        id=FAR_PROVIDER_ID,
        user_id=FAR_PROVIDER_USER_ID,
        latitude=Decimal("42.3600800"),
        longitude=Decimal("-71.0588800"),
        services={"house_sitting": {"active": True, "rate": "70.00"}},
        accepted_pet_kinds=["Dog"],
        accepted_size_buckets=["Small", "Medium", "Large", "Giant"],
        is_verified=False,
        years_experience=2,
        general_availability=["Weekends"],
    )
    unlocated = Provider(
        id=UNLOCATED_PROVIDER_ID,
        user_id=UNLOCATED_PROVIDER_USER_ID,
        services={"boarding": {"active": False, "rate": "30.00"}},
        accepted_pet_kinds=["Cat"],
        accepted_size_buckets=["Small"],
    )
    db.add_all([near, far, unlocated])
    await db.flush()

    # -- Bookings (all with the near provider) --
    db.add_all([
        Booking(
            id=PENDING_BOOKING_ID,
            provider_id=PROVIDER_ID,
            requester_id=REQUESTER_USER_ID,
            service_kind="boarding",
            start_date=next_month_day(10),
            end_date=next_month_day(12),
            status=BookingStatus.PENDING,
            total_price=Decimal("135.00"),
            pet_ids=["rex"],
        ),
        Booking(
            id=ACCEPTED_BOOKING_ID,
            provider_id=PROVIDER_ID,
            requester_id=REQUESTER_USER_ID,
            service_kind="dog_walking",
            start_date=next_month_day(3),
            end_date=next_month_day(3),
            status=BookingStatus.ACCEPTED,
            total_price=Decimal("20.00"),
            pet_ids=["rex"],
        ),
        Booking(
            id=CANCELLED_BOOKING_ID,
            provider_id=PROVIDER_ID,
            requester_id=REQUESTER_USER_ID,
            service_kind="boarding",
            start_date=next_month_day(20),
            end_date=next_month_day(21),
            status=BookingStatus.CANCELLED,
            total_price=Decimal("90.00"),
            pet_ids=["rex"],
        ),
    ])
    await db.flush()

    # -- Reviews --
    db.add(
        Review(
            id=REVIEW_ID,
            booking_id=ACCEPTED_BOOKING_ID,
            provider_id=PROVIDER_ID,
            author_id=REQUESTER_USER_ID,
            rating=5,
            comment="Rex loved the walk.",
        )
    )
    await db.flush()


@pytest_asyncio.fixture
async def seeded_db(db_session: AsyncSession) -> AsyncSession:
    """A database session with seed data already inserted."""
    await _seed_data(db_session)
    return db_session


# ---------------------------------------------------------------------------
# FastAPI test application
# ---------------------------------------------------------------------------

def _create_test_app(db_session_override: AsyncSession):
    """Build a FastAPI app with all routes registered and the DB dependency
    overridden to use the test session."""
    from fastapi import FastAPI

    from pawmatch.api.deps import get_db
    from pawmatch.api.routes.bookings import router as bookings_router
    from pawmatch.api.routes.providers import router as providers_router
    from pawmatch.api.routes.reviews import router as reviews_router

    app = FastAPI(title="PawMatch Test")

    async def _override_get_db():
        yield db_session_override

    app.dependency_overrides[get_db] = _override_get_db

    app.include_router(providers_router, prefix="/api/v1")
    app.include_router(bookings_router, prefix="/api/v1")
    app.include_router(reviews_router, prefix="/api/v1")

    return app


@pytest_asyncio.fixture
async def client(seeded_db: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """httpx AsyncClient connected to the test app via ASGI transport."""
    app = _create_test_app(seeded_db)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


# ---------------------------------------------------------------------------
# Auth headers
# ---------------------------------------------------------------------------

def auth_headers(user_id: uuid.UUID) -> dict[str, str]:
    token, _ = create_access_token(user_id)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def requester_headers() -> dict[str, str]:
    return auth_headers(REQUESTER_USER_ID)


@pytest.fixture
def provider_headers() -> dict[str, str]:
    return auth_headers(PROVIDER_USER_ID)


@pytest.fixture
def stranger_headers() -> dict[str, str]:
    return auth_headers(STRANGER_USER_ID)
