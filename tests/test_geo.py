import math
import random

import pytest

from artour.core.geo import (
    EARTH_RADIUS_MILES,
    GeoPoint,
    bearing_deg,
    deg_to_rad,
    distance_miles,
    rad_to_deg,
)


def _random_points(n: int, seed: int = 7) -> list[GeoPoint]:
    rng = random.Random(seed)
    return [GeoPoint(lat=rng.uniform(-90, 90), lon=rng.uniform(-180, 180)) for _ in range(n)]


def test_degree_radian_helpers_round_trip_known_values():
    assert deg_to_rad(180.0) == pytest.approx(math.pi)
    assert rad_to_deg(math.pi / 2) == pytest.approx(90.0)


@pytest.mark.parametrize(
    "point",
    [GeoPoint(0, 0), GeoPoint(37.2296, -80.4139), GeoPoint(90, 0), GeoPoint(-90, 180), GeoPoint(12.5, -180)],
)
def test_distance_to_self_is_exactly_zero(point):
    assert distance_miles(point, point) == 0.0


def test_distance_is_symmetric():
    pts = _random_points(40)
    for a, b in zip(pts, pts[1:]):
        assert distance_miles(a, b) == pytest.approx(distance_miles(b, a), rel=1e-12, abs=1e-12)


def test_distance_satisfies_triangle_inequality():
    pts = _random_points(60, seed=11)
    for a, b, c in zip(pts, pts[1:], pts[2:]):
        assert distance_miles(a, c) <= distance_miles(a, b) + distance_miles(b, c) + 1e-9


def test_antipodal_distance_is_half_circumference():
    d = distance_miles(GeoPoint(0, 0), GeoPoint(0, 180))
    assert math.isfinite(d)
    assert d == pytest.approx(math.pi * EARTH_RADIUS_MILES)


def test_campus_distance_matches_expected_scale():
    user = GeoPoint(37.2296, -80.4139)
    building = GeoPoint(37.2280, -80.4239)
    assert 0.5 < distance_miles(user, building) < 0.6


def test_bearing_is_always_in_half_open_range():
    pts = _random_points(200, seed=3)
    for a, b in zip(pts, pts[1:]):
        bearing = bearing_deg(a, b)
        assert -180.0 < bearing <= 180.0


def test_bearing_cardinal_directions():
    origin = GeoPoint(0, 0)
    assert bearing_deg(origin, GeoPoint(1, 0)) == pytest.approx(0.0)
    assert bearing_deg(origin, GeoPoint(0, 1)) == pytest.approx(90.0)
    assert bearing_deg(origin, GeoPoint(0, -1)) == pytest.approx(-90.0)
    assert bearing_deg(origin, GeoPoint(-1, 0)) == pytest.approx(180.0)


def test_due_south_is_reported_as_positive_180():
    assert bearing_deg(GeoPoint(10, 20), GeoPoint(5, 20)) == pytest.approx(180.0)


def test_bearing_between_identical_points_is_zero():
    p = GeoPoint(37.2296, -80.4139)
    assert bearing_deg(p, p) == 0.0
