"""
Booking Event Emission
======================

Event payloads for booking lifecycle changes. Each function builds a
standardised event, logs it and returns the payload dict so the host
service can forward it to whatever transport it uses (queue, pub/sub,
webhooks). No transport is wired here.

Events emitted:
  - booking.created
  - booking.status_changed
  - review.created
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any

logger = logging.getLogger(__name__)


def _build_event(
    event_type: str,
    booking_id: uuid.UUID,
    *,
    data: dict[str, Any] | None = None,
    actor_id: uuid.UUID | None = None,
) -> dict[str, Any]:
    """Construct a standardised event payload."""
    return {
        "event_type": event_type,
        "booking_id": str(booking_id),
        "actor_id": str(actor_id) if actor_id else None,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "data": data or {},
    }


def emit_booking_created(
    booking_id: uuid.UUID,
    requester_id: uuid.UUID,
    provider_id: uuid.UUID,
    service_kind: str,
) -> dict[str, Any]:
    """Emit event when a requester creates a booking."""
    event = _build_event(
        "booking.created",
        booking_id,
        actor_id=requester_id,
        data={
            "provider_id": str(provider_id),
            "service_kind": service_kind,
        },
    )
    logger.info("Event emitted: %s for booking %s", event["event_type"], booking_id)
    return event


def emit_booking_status_changed(
    booking_id: uuid.UUID,
    old_status: str,
    new_status: str,
    actor_id: uuid.UUID | None = None,
) -> dict[str, Any]:
    """Emit event when a booking transitions between states."""
    event = _build_event(
        "booking.status_changed",
        booking_id,
        actor_id=actor_id,
        data={
            "old_status": old_status,
            "new_status": new_status,
        },
    )
    logger.info(
        "Event emitted: %s for booking %s (%s -> %s)",
        event["event_type"],
        booking_id,
        old_status,
        new_status,
    )
    return event


def emit_review_created(
    booking_id: uuid.UUID,
    review_id: uuid.UUID,
    provider_id: uuid.UUID,
    author_id: uuid.UUID,
    rating: int,
) -> dict[str, Any]:
    """Emit event when a requester reviews a booking."""
    event = _build_event(
        "review.created",
        booking_id,
        actor_id=author_id,
        data={
            "review_id": str(review_id),
            "provider_id": str(provider_id),
            "rating": rating,
        },
    )
    logger.info("Event emitted: %s for booking %s", event["event_type"], booking_id)
    return event
