"""
Unit tests for the geo service: haversine distance and radius selection.
"""

import math
import uuid

import pytest

from pawmatch.core.exceptions import ValidationError
from pawmatch.services.geoService import (
    EARTH_RADIUS_KM,
    haversine_distance,
    select_within_radius,
    validate_coordinate,
    without_distance,
)
from tests.conftest import make_provider

CENTRAL_PARK = (40.785091, -73.968285)
LOWER_MANHATTAN = (40.706086, -73.996864)


# ---------------------------------------------------------------------------
# haversine_distance
# ---------------------------------------------------------------------------


class TestHaversineDistance:

    def test_same_point_is_zero(self):
        assert haversine_distance(*CENTRAL_PARK, *CENTRAL_PARK) == 0.0

    def test_symmetric(self):
        there = haversine_distance(*CENTRAL_PARK, *LOWER_MANHATTAN)
        back = haversine_distance(*LOWER_MANHATTAN, *CENTRAL_PARK)
        assert there == pytest.approx(back)

    def test_central_park_to_lower_manhattan(self):
        d = haversine_distance(*CENTRAL_PARK, *LOWER_MANHATTAN)
        assert d == pytest.approx(9.109, abs=0.01)

    def test_one_degree_of_longitude_on_equator(self):
        expected = EARTH_RADIUS_KM * math.pi / 180
        assert haversine_distance(0, 0, 0, 1) == pytest.approx(expected)

    def test_antipodes_are_half_circumference(self):
        d = haversine_distance(0, 0, 0, 180)
        assert d == pytest.approx(EARTH_RADIUS_KM * math.pi)

    def test_nan_propagates(self):
        assert math.isnan(haversine_distance(float("nan"), 0, 0, 0))


# ---------------------------------------------------------------------------
# validate_coordinate
# ---------------------------------------------------------------------------


class TestValidateCoordinate:

    def test_valid_coordinate_is_returned_as_floats(self):
        assert validate_coordinate(10, 20) == (10.0, 20.0)

    @pytest.mark.parametrize(
        "lat,lng",
        [
            (float("nan"), 0.0),
            (0.0, float("inf")),
            (91.0, 0.0),
            (0.0, -180.5),
        ],
    )
    def test_unusable_coordinates_rejected(self, lat, lng):
        with pytest.raises(ValidationError):
            validate_coordinate(lat, lng)


# ---------------------------------------------------------------------------
# select_within_radius
# ---------------------------------------------------------------------------


class TestSelectWithinRadius:

    def test_provider_nine_km_away_is_included(self):
        provider = make_provider(latitude=LOWER_MANHATTAN[0], longitude=LOWER_MANHATTAN[1])

        results = select_within_radius(CENTRAL_PARK, 20, [provider])

        assert len(results) == 1
        assert results[0].provider is provider
        assert results[0].distance_km == pytest.approx(9.109, abs=0.01)

    def test_provider_outside_radius_is_excluded(self):
        provider = make_provider(latitude=LOWER_MANHATTAN[0], longitude=LOWER_MANHATTAN[1])
        assert select_within_radius(CENTRAL_PARK, 5, [provider]) == []

    def test_provider_without_coordinate_is_excluded(self):
        located = make_provider(latitude=40.78, longitude=-73.97)
        unlocated = make_provider()

        results = select_within_radius(CENTRAL_PARK, 20, [unlocated, located])

        assert [r.provider for r in results] == [located]

    def test_provider_exactly_on_the_radius_is_included(self):
        provider = make_provider(latitude=0.0, longitude=1.0)
        radius = haversine_distance(0.0, 0.0, 0.0, 1.0)

        results = select_within_radius((0.0, 0.0), radius, [provider])

        assert len(results) == 1

    def test_zero_radius_keeps_only_co_located(self):
        here = make_provider(latitude=CENTRAL_PARK[0], longitude=CENTRAL_PARK[1])
        near = make_provider(latitude=40.786, longitude=-73.968)

        results = select_within_radius(CENTRAL_PARK, 0, [near, here])

        assert [r.provider for r in results] == [here]

    def test_sorted_closest_first(self):
        far = make_provider(latitude=40.70, longitude=-74.00)
        near = make_provider(latitude=40.78, longitude=-73.97)
        middle = make_provider(latitude=40.75, longitude=-73.98)

        results = select_within_radius(CENTRAL_PARK, 50, [far, near, middle])

        assert [r.provider for r in results] == [near, middle, far]
        distances = [r.distance_km for r in results]
        assert distances == sorted(distances)

    def test_ties_broken_by_provider_id(self):
        ids = sorted([uuid.uuid4() for _ in range(3)], key=str)
        providers = [
            make_provider(provider_id=pid, latitude=40.75, longitude=-73.98)
            for pid in reversed(ids)
        ]

        results = select_within_radius(CENTRAL_PARK, 50, providers)

        assert [r.provider.id for r in results] == ids

    def test_membership_matches_distance(self):
        providers = [
            make_provider(latitude=40.0 + i * 0.05, longitude=-74.0 + i * 0.03)
            for i in range(30)
        ]
        radius = 40.0

        selected = {r.provider.id for r in select_within_radius(CENTRAL_PARK, radius, providers)}

        for p in providers:
            inside = haversine_distance(*CENTRAL_PARK, p.latitude, p.longitude) <= radius
            assert (p.id in selected) == inside

    def test_empty_pool_gives_empty_result(self):
        assert select_within_radius(CENTRAL_PARK, 20, []) == []

    @pytest.mark.parametrize("radius", [-1, float("nan"), float("inf")])
    def test_unusable_radius_rejected(self, radius):
        with pytest.raises(ValidationError):
            select_within_radius(CENTRAL_PARK, radius, [])

    def test_unusable_origin_rejected(self):
        with pytest.raises(ValidationError):
            select_within_radius((float("nan"), 0.0), 10, [])


class TestWithoutDistance:

    def test_keeps_order_and_attaches_no_distance(self):
        a = make_provider()
        b = make_provider(latitude=1.0, longitude=1.0)

        results = without_distance([a, b])

        assert [r.provider for r in results] == [a, b]
        assert all(r.distance_km is None for r in results)
