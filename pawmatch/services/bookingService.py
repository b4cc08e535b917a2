"""
Booking Service -- lifecycle management for care bookings.

Handles booking creation, status transitions through the state machine,
and the per-role listings. All status changes are validated through
``bookingStateManager`` and written with a compare-and-set through a
``BookingStore`` so concurrent transitions cannot both commit.
"""

from __future__ import annotations

import logging
import uuid
from datetime import date
from decimal import Decimal
from typing import Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from pawmatch.algorithms.snapshots import BookingRecord
from pawmatch.core.exceptions import (
    BookingNotFoundError,
    ConflictError,
    ProviderNotFoundError,
    ValidationError,
)
from pawmatch.events.bookingEvents import emit_booking_created, emit_booking_status_changed
from pawmatch.models.booking import OCCUPYING_STATUSES, Booking, BookingStatus
from pawmatch.models.provider import Provider, normalize_service_kind
from pawmatch.services import messageService
from pawmatch.services.bookingStateManager import resolve_roles, validate_transition
from pawmatch.services.bookingStore import BookingStore, SqlBookingStore

logger = logging.getLogger(__name__)

ROLE_REQUESTER = "requester"
ROLE_PROVIDER = "provider"


# ---------------------------------------------------------------------------
# Status transitions
# ---------------------------------------------------------------------------

async def transition_booking(
    store: BookingStore,
    booking_id: uuid.UUID,
    caller_id: uuid.UUID,
    new_status: BookingStatus,
) -> BookingRecord:
    """Move a booking to ``new_status`` on behalf of ``caller_id``.

    The caller's role is derived from the stored booking, the transition is
    validated against the lifecycle table, and the write only lands if the
    stored status is still the one that was validated.

    Returns:
        The booking as stored after the transition.

    Raises:
        BookingNotFoundError: If the booking does not exist.
        UnauthorizedTransitionError: If the caller may not perform it.
        InvalidTransitionError: If the transition is not in the lifecycle.
        ConflictError: If another transition committed first.
    """
    booking = await store.get(booking_id)
    if booking is None:
        raise BookingNotFoundError(booking_id)

    old_status = booking.status
    roles = resolve_roles(booking, caller_id)

    result = validate_transition(old_status, new_status, roles)
    if not result.allowed:
        logger.info(
            "Transition refused for booking %s: %s -> %s by %s (%s)",
            booking_id,
            old_status.value,
            new_status.value,
            caller_id,
            result.reason,
        )
    result.raise_if_rejected()

    changed = await store.compare_and_set_status(booking_id, old_status, new_status)
    if not changed:
        raise ConflictError(booking_id, old_status.value)

    emit_booking_status_changed(
        booking_id=booking_id,
        old_status=old_status.value,
        new_status=new_status.value,
        actor_id=caller_id,
    )

    logger.info(
        "Booking %s transitioned: %s -> %s (actor=%s, roles=%s)",
        booking_id,
        old_status.value,
        new_status.value,
        caller_id,
        ",".join(sorted(r.value for r in roles)),
    )

    updated = await store.get(booking_id)
    if updated is None:
        raise BookingNotFoundError(booking_id)
    return updated


async def update_booking_status(
    db: AsyncSession,
    booking_id: uuid.UUID,
    caller_id: uuid.UUID,
    new_status: str | BookingStatus,
) -> Booking:
    """Transition a stored booking and return the refreshed ORM row."""
    try:
        target = BookingStatus(new_status)
    except ValueError:
        valid = ", ".join(s.value for s in BookingStatus)
        raise ValidationError(
            f"Unknown booking status '{new_status}'. Must be one of: {valid}.",
            field="status",
        )

    await transition_booking(SqlBookingStore(db), booking_id, caller_id, target)

    booking = await get_booking(db, booking_id)
    if booking is None:
        raise BookingNotFoundError(booking_id)
    return booking


# ---------------------------------------------------------------------------
# Creation
# ---------------------------------------------------------------------------

async def create_booking(
    db: AsyncSession,
    *,
    requester_id: uuid.UUID,
    provider_id: uuid.UUID,
    service_kind: str,
    start_date: date,
    end_date: date,
    total_price: Decimal,
    pet_ids: Sequence[str] = (),
    message: Optional[str] = None,
) -> Booking:
    """Create a new Pending booking.

    If ``message`` is non-blank it is also appended to the conversation with
    the provider. That write happens inside a SAVEPOINT: when it fails the
    failure is logged and the booking is kept.

    Raises:
        ValidationError: On an unknown service kind, a negative price or an
            end date before the start date.
        ProviderNotFoundError: If the provider does not exist.
    """
    if end_date < start_date:
        raise ValidationError(
            f"End date {end_date.isoformat()} is before start date {start_date.isoformat()}.",
            field="end_date",
        )
    if total_price < 0:
        raise ValidationError("total_price must be >= 0.", field="total_price")
    try:
        kind = normalize_service_kind(service_kind)
    except ValueError as exc:
        raise ValidationError(str(exc), field="service_kind") from exc

    provider = (
        await db.execute(select(Provider).where(Provider.id == provider_id))
    ).scalar_one_or_none()
    if provider is None:
        raise ProviderNotFoundError(provider_id)

    booking = Booking(
        provider_id=provider.id,
        requester_id=requester_id,
        service_kind=kind.value,
        start_date=start_date,
        end_date=end_date,
        status=BookingStatus.PENDING,
        total_price=total_price,
        pet_ids=[str(p) for p in pet_ids],
        message=message,
    )
    db.add(booking)
    await db.flush()

    emit_booking_created(
        booking_id=booking.id,
        requester_id=requester_id,
        provider_id=provider.id,
        service_kind=kind.value,
    )

    logger.info(
        "Booking created: id=%s provider=%s requester=%s kind=%s %s..%s",
        booking.id,
        provider.id,
        requester_id,
        kind.value,
        start_date.isoformat(),
        end_date.isoformat(),
    )

    if message and message.strip():
        await _post_intro_message(db, booking, provider.user_id, message)

    return booking


async def _post_intro_message(
    db: AsyncSession,
    booking: Booking,
    provider_user_id: uuid.UUID,
    content: str,
) -> None:
    """Best-effort: append the booking note to the conversation log."""
    try:
        async with db.begin_nested():
            await messageService.post_message(
                db,
                booking.requester_id,
                provider_user_id,
                content,
                booking_id=booking.id,
            )
    except Exception:
        logger.exception(
            "Failed to post intro message for booking %s; booking kept",
            booking.id,
        )


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------

async def get_booking(
    db: AsyncSession,
    booking_id: uuid.UUID,
) -> Booking | None:
    """Fetch a single booking by primary key. Returns None if not found."""
    stmt = (
        select(Booking)
        .where(Booking.id == booking_id)
        .execution_options(populate_existing=True)
    )
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def get_bookings_for_user(
    db: AsyncSession,
    user_id: uuid.UUID,
    role: str = ROLE_REQUESTER,
) -> list[Booking]:
    """Return the caller's bookings, newest first.

    ``role="requester"`` lists bookings the user created;
    ``role="provider"`` lists bookings made on the user's provider profile.

    Raises:
        ValidationError: On an unknown role.
        ProviderNotFoundError: If ``role="provider"`` and the user has no
            provider profile.
    """
    if role == ROLE_REQUESTER:
        condition = Booking.requester_id == user_id
    elif role == ROLE_PROVIDER:
        provider_id = (
            await db.execute(select(Provider.id).where(Provider.user_id == user_id))
        ).scalar_one_or_none()
        if provider_id is None:
            raise ProviderNotFoundError(f"user:{user_id}")
        condition = Booking.provider_id == provider_id
    else:
        raise ValidationError(
            f"Invalid role: {role}. Must be '{ROLE_REQUESTER}' or '{ROLE_PROVIDER}'.",
            field="role",
        )

    stmt = select(Booking).where(condition).order_by(Booking.created_at.desc())
    return list((await db.execute(stmt)).scalars().all())


async def get_calendar_bookings(
    db: AsyncSession,
    provider_id: uuid.UUID,
) -> list[Booking]:
    """Return the provider's Pending and Accepted bookings by start date."""
    stmt = (
        select(Booking)
        .where(
            Booking.provider_id == provider_id,
            Booking.status.in_(OCCUPYING_STATUSES),
        )
        .order_by(Booking.start_date.asc(), Booking.created_at.asc())
    )
    return list((await db.execute(stmt)).scalars().all())


def to_record(booking: Booking) -> BookingRecord:
    return BookingRecord(
        id=booking.id,
        provider_id=booking.provider_id,
        requester_id=booking.requester_id,
        status=booking.status,
        start_date=booking.start_date,
        end_date=booking.end_date,
    )
