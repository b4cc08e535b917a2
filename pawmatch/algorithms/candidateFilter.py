"""
Candidate Filter Pipeline
=========================

Narrows a provider candidate list to those who satisfy every requested
search criterion. Runs after the geo selector (or on the whole pool when
the search has no origin).

CRITERIA (each present option activates one predicate; all must pass):
  - service_kind     -- the named service is active
  - service_kinds    -- at least one of the named services is active
  - pet_kind         -- accepted pet kinds include the (capitalised) kind
  - weight_kg        -- every weight's size bucket is accepted
  - min/max_price    -- some active service's rate lies within the range
  - verified_only    -- provider is verified
  - min_rating       -- mean review rating >= threshold (no reviews fails)
  - has_reviews      -- at least one review
  - min_experience   -- years of experience >= threshold
  - max_distance     -- annotated distance <= threshold (no-op without one)

Predicates are independent; evaluation order only affects how early a
candidate is rejected, never the result. The output keeps the input order,
which is distance order when the selector ran.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Callable, Mapping, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError

from pawmatch.core.exceptions import ValidationError
from pawmatch.models.provider import ServiceKind, SizeBucket, normalize_service_kind
from pawmatch.services.geoService import ProviderDistance

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Size buckets (upper bounds inclusive, kg)
# ---------------------------------------------------------------------------

SMALL_MAX_KG: float = 7.0
MEDIUM_MAX_KG: float = 18.0
LARGE_MAX_KG: float = 45.0


def size_bucket_for_weight(weight_kg: float) -> SizeBucket:
    """Map a pet weight to the size bucket providers accept."""
    if weight_kg <= SMALL_MAX_KG:
        return SizeBucket.SMALL
    if weight_kg <= MEDIUM_MAX_KG:
        return SizeBucket.MEDIUM
    if weight_kg <= LARGE_MAX_KG:
        return SizeBucket.LARGE
    return SizeBucket.GIANT


# ---------------------------------------------------------------------------
# Criteria
# ---------------------------------------------------------------------------

def _to_camel(snake: str) -> str:
    parts = snake.split("_")
    return parts[0] + "".join(w.capitalize() for w in parts[1:])


def _as_list(value: Any) -> Any:
    """Accept a scalar, a comma-separated string, or a sequence."""
    if value is None:
        return None
    if isinstance(value, str):
        return [part for part in (p.strip() for p in value.split(",")) if part]
    if isinstance(value, (list, tuple, set, frozenset)):
        return list(value)
    return [value]


class CriteriaSet(BaseModel):
    """Search options. Absent options impose no constraint.

    Accepts both snake_case and camelCase keys (``serviceKind`` or
    ``service_kind``). Unknown keys are rejected.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        populate_by_name=True,
        alias_generator=_to_camel,
    )

    service_kind: Optional[ServiceKind] = None
    service_kinds: Optional[frozenset[ServiceKind]] = None
    pet_kind: Optional[str] = None
    weight_kg: Optional[tuple[float, ...]] = None
    min_price: Optional[Decimal] = Field(default=None, ge=0, allow_inf_nan=False)
    max_price: Optional[Decimal] = Field(default=None, ge=0, allow_inf_nan=False)
    verified_only: Optional[bool] = None
    min_rating: Optional[float] = Field(default=None, ge=0, le=5, allow_inf_nan=False)
    has_reviews: Optional[bool] = None
    min_experience: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)
    max_distance: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)

    @field_validator("service_kind", mode="before")
    @classmethod
    def _normalise_kind(cls, value: Any) -> Any:
        if value is None or value == "":
            return None
        return normalize_service_kind(value)

    @field_validator("service_kinds", mode="before")
    @classmethod
    def _normalise_kinds(cls, value: Any) -> Any:
        items = _as_list(value)
        if not items:
            return None
        return frozenset(normalize_service_kind(item) for item in items)

    @field_validator("pet_kind", mode="before")
    @classmethod
    def _capitalise_pet_kind(cls, value: Any) -> Any:
        if value is None:
            return None
        text = str(value).strip()
        if not text:
            raise ValueError("pet_kind must not be blank")
        return text[0].upper() + text[1:]

    @field_validator("weight_kg", mode="before")
    @classmethod
    def _weights_as_tuple(cls, value: Any) -> Any:
        items = _as_list(value)
        if not items:
            return None
        return tuple(items)

    @field_validator("weight_kg")
    @classmethod
    def _weights_non_negative(cls, value: Optional[tuple[float, ...]]) -> Optional[tuple[float, ...]]:
        if value is None:
            return None
        for weight in value:
            if not (weight >= 0 and weight != float("inf")):
                raise ValueError(
                    f"weight_kg values must be non-negative and finite, got {weight}"
                )
        return value

    @model_validator(mode="after")
    def _price_range_ordered(self) -> "CriteriaSet":
        if (
            self.min_price is not None
            and self.max_price is not None
            and self.min_price > self.max_price
        ):
            raise ValueError("min_price must not exceed max_price")
        return self


def parse_criteria(raw: Mapping[str, Any] | None) -> CriteriaSet:
    """Build a CriteriaSet from a loose mapping (query params, JSON body).

    Raises:
        ValidationError: If any key is unknown or any value is malformed.
    """
    try:
        return CriteriaSet.model_validate(dict(raw or {}))
    except PydanticValidationError as exc:
        first = exc.errors()[0]
        location = ".".join(str(part) for part in first.get("loc", ()))
        raise ValidationError(
            f"Invalid search criteria ({location}): {first.get('msg')}",
            field=location or None,
        ) from exc


# ---------------------------------------------------------------------------
# Predicates
# ---------------------------------------------------------------------------

Predicate = Callable[[ProviderDistance, CriteriaSet], bool]


def _offers_service(candidate: ProviderDistance, criteria: CriteriaSet) -> bool:
    offering = candidate.provider.services.get(criteria.service_kind.value)
    return offering is not None and offering.active


def _offers_any_service(candidate: ProviderDistance, criteria: CriteriaSet) -> bool:
    services = candidate.provider.services
    for kind in criteria.service_kinds:
        offering = services.get(kind.value)
        if offering is not None and offering.active:
            return True
    return False


def _accepts_pet_kind(candidate: ProviderDistance, criteria: CriteriaSet) -> bool:
    return criteria.pet_kind in candidate.provider.accepted_pet_kinds


def _accepts_pet_sizes(candidate: ProviderDistance, criteria: CriteriaSet) -> bool:
    required = {size_bucket_for_weight(w).value for w in criteria.weight_kg}
    return required <= set(candidate.provider.accepted_size_buckets)


def _within_price_range(candidate: ProviderDistance, criteria: CriteriaSet) -> bool:
    low = criteria.min_price if criteria.min_price is not None else Decimal("0")
    high = criteria.max_price
    for offering in candidate.provider.services.values():
        if not offering.active or offering.rate is None:
            continue
        if offering.rate >= low and (high is None or offering.rate <= high):
            return True
    return False


def _is_verified(candidate: ProviderDistance, criteria: CriteriaSet) -> bool:
    return bool(candidate.provider.is_verified)


def _meets_rating(candidate: ProviderDistance, criteria: CriteriaSet) -> bool:
    mean = candidate.provider.mean_rating
    return mean is not None and mean >= criteria.min_rating


def _has_reviews(candidate: ProviderDistance, criteria: CriteriaSet) -> bool:
    return candidate.provider.review_count > 0


def _meets_experience(candidate: ProviderDistance, criteria: CriteriaSet) -> bool:
    return (candidate.provider.experience_years or 0) >= criteria.min_experience


def _within_max_distance(candidate: ProviderDistance, criteria: CriteriaSet) -> bool:
    if candidate.distance_km is None:
        return True
    return candidate.distance_km <= criteria.max_distance


# (criteria field, predicate, activation) in evaluation order. Boolean flags
# only constrain when set to True.
_PIPELINE: tuple[tuple[str, Predicate, bool], ...] = (
    ("service_kind", _offers_service, False),
    ("service_kinds", _offers_any_service, False),
    ("pet_kind", _accepts_pet_kind, False),
    ("weight_kg", _accepts_pet_sizes, False),
    ("min_price", _within_price_range, False),
    ("max_price", _within_price_range, False),
    ("verified_only", _is_verified, True),
    ("min_rating", _meets_rating, False),
    ("has_reviews", _has_reviews, True),
    ("min_experience", _meets_experience, False),
    ("max_distance", _within_max_distance, False),
)


def active_predicates(criteria: CriteriaSet) -> list[Predicate]:
    """Return the predicates the criteria switch on, in evaluation order."""
    active: list[Predicate] = []
    for field_name, predicate, flag in _PIPELINE:
        value = getattr(criteria, field_name)
        if value is None or (flag and value is not True):
            continue
        if predicate not in active:
            active.append(predicate)
    return active


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def filter_candidates(
    candidates: Sequence[ProviderDistance],
    criteria: CriteriaSet,
) -> list[ProviderDistance]:
    """Keep the candidates that pass every active predicate.

    Args:
        candidates: Selector output, or the whole pool wrapped without a
            distance when the search had no origin.
        criteria: Validated search options.

    Returns:
        The surviving candidates in their input order.
    """
    predicates = active_predicates(criteria)
    if not predicates:
        return list(candidates)

    survivors = [
        candidate
        for candidate in candidates
        if all(predicate(candidate, criteria) for predicate in predicates)
    ]

    logger.debug(
        "Candidate filter: %d predicates, %d of %d candidates kept",
        len(predicates),
        len(survivors),
        len(candidates),
    )
    return survivors
