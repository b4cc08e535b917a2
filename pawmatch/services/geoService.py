"""
Geo Service
===========

Geographic utility functions for distance calculations and radius filtering.
Used by the provider search to narrow the candidate pool by proximity
before the criteria filters run.

Uses the haversine formula for great-circle distance between two points
on Earth's surface. Accurate enough for search radius calculations
(error < 0.5% for distances under 100 km).
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Optional, Protocol, Sequence

from pawmatch.core.exceptions import ValidationError

# Earth's mean radius in kilometres
EARTH_RADIUS_KM: float = 6371.0


def haversine_distance(
    lat1: float,
    lon1: float,
    lat2: float,
    lon2: float,
) -> float:
    """Calculate the great-circle distance between two points using the
    haversine formula.

    The function is total: NaN or infinite inputs are not trapped and
    propagate into the result. Validate coordinates before calling.

    Args:
        lat1: Latitude of point 1 in decimal degrees.
        lon1: Longitude of point 1 in decimal degrees.
        lat2: Latitude of point 2 in decimal degrees.
        lon2: Longitude of point 2 in decimal degrees.

    Returns:
        Distance in kilometres.
    """
    # Convert decimal degrees to radians
    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    delta_lat = math.radians(lat2 - lat1)
    delta_lon = math.radians(lon2 - lon1)

    # Haversine formula
    a = (
        math.sin(delta_lat / 2) ** 2
        + math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(delta_lon / 2) ** 2
    )
    # Rounding can push ``a`` a hair above 1 for antipodal points
    a = min(a, 1.0)
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_KM * c


class HasCoordinate(Protocol):
    """Protocol for objects that may carry a (latitude, longitude) pair."""

    id: Any

    @property
    def coordinate(self) -> tuple[float, float] | None: ...


@dataclass(frozen=True)
class ProviderDistance:
    """A provider paired with their distance from the search origin.

    ``distance_km`` is None when the search had no origin.
    """

    provider: Any
    distance_km: Optional[float] = None


def validate_coordinate(latitude: float, longitude: float) -> tuple[float, float]:
    """Reject non-finite or out-of-range coordinates.

    Raises:
        ValidationError: If either component is NaN/infinite or outside
            [-90, 90] / [-180, 180].
    """
    lat = float(latitude)
    lon = float(longitude)
    if not (math.isfinite(lat) and math.isfinite(lon)):
        raise ValidationError(
            f"Coordinates must be finite numbers, got ({latitude}, {longitude}).",
            field="origin",
        )
    if not (-90.0 <= lat <= 90.0 and -180.0 <= lon <= 180.0):
        raise ValidationError(
            f"Coordinates out of range: ({latitude}, {longitude}).",
            field="origin",
        )
    return lat, lon


def select_within_radius(
    origin: tuple[float, float],
    radius_km: float,
    providers: Sequence[HasCoordinate],
) -> list[ProviderDistance]:
    """Return the providers within ``radius_km`` of ``origin``.

    Providers without a coordinate are skipped. A provider is included when
    its distance is less than or equal to the radius.

    Args:
        origin: ``(latitude, longitude)`` of the search centre.
        radius_km: Search radius in kilometres (finite, >= 0).
        providers: Candidate pool exposing a ``coordinate`` property.

    Returns:
        ProviderDistance objects sorted by distance (closest first), ties
        broken by provider id so the order is deterministic.

    Raises:
        ValidationError: If the origin or radius is not usable.
    """
    center_lat, center_lon = validate_coordinate(*origin)
    radius = float(radius_km)
    if not math.isfinite(radius) or radius < 0:
        raise ValidationError(
            f"Search radius must be a finite, non-negative number, got {radius_km}.",
            field="radius_km",
        )

    results: list[ProviderDistance] = []

    for provider in providers:
        coordinate = provider.coordinate
        if coordinate is None:
            continue

        distance = haversine_distance(center_lat, center_lon, coordinate[0], coordinate[1])
        if distance <= radius:
            results.append(ProviderDistance(provider=provider, distance_km=distance))

    results.sort(key=lambda pd: (pd.distance_km, str(pd.provider.id)))

    return results


def without_distance(providers: Sequence[Any]) -> list[ProviderDistance]:
    """Wrap providers for a search without an origin (no distance annotation)."""
    return [ProviderDistance(provider=p) for p in providers]
