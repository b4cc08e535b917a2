"""
Message Service
===============

Appends entries to the requester/provider conversation log. Delivery to
devices is handled by the messaging service; this module only persists.
"""

from __future__ import annotations

import logging
import uuid
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from pawmatch.models.message import Message

logger = logging.getLogger(__name__)

MAX_MESSAGE_LENGTH: int = 2000


async def post_message(
    db: AsyncSession,
    sender_id: uuid.UUID,
    receiver_id: uuid.UUID,
    content: str,
    *,
    booking_id: Optional[uuid.UUID] = None,
) -> Message:
    """Persist and return a new conversation message.

    Raises:
        ValueError: If the content is blank or too long.
    """
    content = content.strip()
    if not content:
        raise ValueError("Message text cannot be empty")
    if len(content) > MAX_MESSAGE_LENGTH:
        raise ValueError(
            f"Message exceeds maximum length of {MAX_MESSAGE_LENGTH} characters"
        )

    msg = Message(
        sender_id=sender_id,
        receiver_id=receiver_id,
        booking_id=booking_id,
        content=content,
        read=False,
    )
    db.add(msg)
    await db.flush()

    logger.info(
        "Message created: id=%s booking=%s sender=%s len=%d",
        msg.id, booking_id, sender_id, len(content),
    )
    return msg
