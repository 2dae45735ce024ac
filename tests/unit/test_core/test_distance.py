"""Tests for the haversine distance function."""

import math

import pytest

from geomesh_core.geo.distance import EARTH_RADIUS_KM, distance_km


class TestDistanceKm:
    def test_same_point_is_zero(self) -> None:
        assert distance_km(48.3794, 31.1656, 48.3794, 31.1656) == 0.0

    def test_symmetric(self) -> None:
        there = distance_km(51.5074, -0.1278, 40.7128, -74.006)
        back = distance_km(40.7128, -74.006, 51.5074, -0.1278)
        assert there == pytest.approx(back)

    def test_london_to_paris(self) -> None:
        assert distance_km(51.5074, -0.1278, 48.8566, 2.3522) == pytest.approx(343.5, abs=1.0)

    def test_one_degree_of_latitude(self) -> None:
        assert distance_km(0.0, 0.0, 1.0, 0.0) == pytest.approx(111.19, abs=0.01)

    def test_antipodes_are_half_the_circumference(self) -> None:
        assert distance_km(0.0, 0.0, 0.0, 180.0) == pytest.approx(math.pi * EARTH_RADIUS_KM)

    def test_never_negative(self) -> None:
        assert distance_km(-33.8688, 151.2093, 64.1466, -21.9426) > 0
