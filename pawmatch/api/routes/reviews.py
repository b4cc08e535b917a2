"""
Review API Routes
=================

Routes:
  POST  /api/v1/reviews  -- Review the provider of one of the caller's bookings
"""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, status

from pawmatch.api.deps import CurrentUserId, DBSession
from pawmatch.api.schemas.provider import ReviewOut
from pawmatch.api.schemas.review import ReviewCreateRequest
from pawmatch.core.exceptions import NotFoundError, ReviewNotAllowedError, ValidationError
from pawmatch.services import reviewService

router = APIRouter(prefix="/reviews", tags=["Reviews"])


@router.post(
    "",
    response_model=ReviewOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create a review",
)
async def create_review(
    db: DBSession,
    caller_id: CurrentUserId,
    body: ReviewCreateRequest,
) -> ReviewOut:
    try:
        review = await reviewService.create_review(
            db,
            body.booking_id,
            caller_id,
            body.rating,
            body.comment,
        )
    except NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    except ReviewNotAllowedError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc))
    except ValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(exc),
        )

    return ReviewOut.model_validate(review)
