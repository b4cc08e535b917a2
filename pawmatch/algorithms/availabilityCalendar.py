"""
Availability Calendar
=====================

Reconciles a provider's recurring weekly availability, explicit blocked
dates and existing commitments into a per-day classification.

Precedence, per day (first match wins)::

    Past  >  Blocked  >  Booked  >  Unsupported  >  Available

  - Past        -- the day is before the caller-supplied ``today``
  - Blocked     -- the day is one of the provider's blocked dates
  - Booked      -- a Pending or Accepted booking of this provider spans it
  - Unsupported -- the weekly recurrence rules do not cover the weekday
  - Available   -- none of the above

Recurrence tokens (case-insensitive): weekday names (``"Monday"`` ...),
``"Weekdays"`` (Mon-Fri), ``"Weekends"`` (Sat/Sun) and ``"Full-Time"``.
An empty rule set means no constraint has been configured.

Everything here is pure: ``today`` is always injected so results do not
depend on the wall clock.
"""

from __future__ import annotations

import calendar
import enum
from collections import Counter
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable, Sequence

from pawmatch.algorithms.snapshots import BookingRecord, ProviderSnapshot
from pawmatch.core.exceptions import ValidationError
from pawmatch.models.booking import OCCUPYING_STATUSES


class DayStatus(str, enum.Enum):
    AVAILABLE = "available"
    BOOKED = "booked"
    BLOCKED = "blocked"
    UNSUPPORTED = "unsupported"
    PAST = "past"


WEEKDAY_NAMES: tuple[str, ...] = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)

TOKEN_FULL_TIME = "full-time"
TOKEN_WEEKDAYS = "weekdays"
TOKEN_WEEKENDS = "weekends"


@dataclass(frozen=True)
class DayAvailability:
    day: date
    status: DayStatus


@dataclass(frozen=True)
class CalendarMonth:
    """Classification of every day of one calendar month."""

    year: int
    month: int
    days: tuple[DayAvailability, ...]

    def status_on(self, day: date) -> DayStatus:
        if (day.year, day.month) != (self.year, self.month):
            raise KeyError(f"{day.isoformat()} is outside {self.year}-{self.month:02d}")
        return self.days[day.day - 1].status

    def days_with(self, status: DayStatus) -> list[date]:
        return [d.day for d in self.days if d.status == status]

    def counts(self) -> dict[DayStatus, int]:
        tally = Counter(d.status for d in self.days)
        return {status: tally.get(status, 0) for status in DayStatus}


# ---------------------------------------------------------------------------
# Rule evaluation
# ---------------------------------------------------------------------------

def _normalise_rules(rules: Iterable[str]) -> frozenset[str]:
    return frozenset(str(rule).strip().lower() for rule in rules if str(rule).strip())


def weekday_supported(day: date, rules: frozenset[str]) -> bool:
    """Whether the recurrence rules cover ``day``'s weekday.

    ``rules`` must already be lower-cased (see ``_normalise_rules``).
    """
    if not rules or TOKEN_FULL_TIME in rules:
        return True
    weekday = day.weekday()
    if WEEKDAY_NAMES[weekday] in rules:
        return True
    if weekday < 5 and TOKEN_WEEKDAYS in rules:
        return True
    if weekday >= 5 and TOKEN_WEEKENDS in rules:
        return True
    return False


def _occupying(bookings: Iterable[BookingRecord], provider_id) -> list[BookingRecord]:
    return [
        b for b in bookings
        if b.provider_id == provider_id and b.status in OCCUPYING_STATUSES
    ]


def classify_day(
    day: date,
    *,
    today: date,
    blocked_dates: frozenset[date],
    occupying: Sequence[BookingRecord],
    rules: frozenset[str],
) -> DayStatus:
    if day < today:
        return DayStatus.PAST
    if day in blocked_dates:
        return DayStatus.BLOCKED
    if any(b.covers(day) for b in occupying):
        return DayStatus.BOOKED
    if not weekday_supported(day, rules):
        return DayStatus.UNSUPPORTED
    return DayStatus.AVAILABLE


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def target_month(today: date, month_offset: int) -> tuple[int, int]:
    """Return ``(year, month)`` lying ``month_offset`` months after today's."""
    index = today.year * 12 + (today.month - 1) + month_offset
    return index // 12, index % 12 + 1


def classify_range(
    provider: ProviderSnapshot,
    start: date,
    end: date,
    bookings: Sequence[BookingRecord],
    *,
    today: date,
) -> list[DayAvailability]:
    """Classify every day of the inclusive range ``[start, end]``.

    Raises:
        ValidationError: If ``end`` is before ``start``.
    """
    if end < start:
        raise ValidationError(
            f"End date {end.isoformat()} is before start date {start.isoformat()}.",
            field="end_date",
        )

    rules = _normalise_rules(provider.general_availability)
    occupying = _occupying(bookings, provider.id)

    result: list[DayAvailability] = []
    for offset in range((end - start).days + 1):
        day = start + timedelta(days=offset)
        status = classify_day(
            day,
            today=today,
            blocked_dates=provider.blocked_dates,
            occupying=occupying,
            rules=rules,
        )
        result.append(DayAvailability(day=day, status=status))
    return result


def compute_month(
    provider: ProviderSnapshot,
    month_offset: int,
    bookings: Sequence[BookingRecord],
    *,
    today: date,
) -> CalendarMonth:
    """Classify every day of the month ``month_offset`` months from today.

    Args:
        provider: Provider snapshot (recurrence rules and blocked dates).
        month_offset: 0 for the current month, 1 for next month, ...
        bookings: Bookings to consider; only this provider's Pending and
            Accepted bookings occupy days.
        today: Reference date for the Past classification.

    Raises:
        ValidationError: If ``month_offset`` is negative or reaches past
            the last representable year.
    """
    if month_offset < 0:
        raise ValidationError(
            f"month_offset must be >= 0, got {month_offset}.",
            field="month_offset",
        )

    year, month = target_month(today, month_offset)
    if year > date.max.year:
        raise ValidationError(
            f"month_offset {month_offset} lies beyond year {date.max.year}.",
            field="month_offset",
        )
    last_day = calendar.monthrange(year, month)[1]
    days = classify_range(
        provider,
        date(year, month, 1),
        date(year, month, last_day),
        bookings,
        today=today,
    )
    return CalendarMonth(year=year, month=month, days=tuple(days))
