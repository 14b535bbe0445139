import math

import pytest

from domain.models import Coordinates
from services.geo import format_distance, haversine_distance_m


PARIS = Coordinates(lat=48.8566, lng=2.3522)
LONDON = Coordinates(lat=51.5074, lng=-0.1278)


def test_identical_points_are_zero_apart():
    for point in (PARIS, LONDON, Coordinates(0.0, 0.0), Coordinates(-90.0, 180.0)):
        assert haversine_distance_m(point, point) == 0.0


def test_distance_is_symmetric():
    assert haversine_distance_m(PARIS, LONDON) == pytest.approx(haversine_distance_m(LONDON, PARIS))


def test_paris_london_is_about_344km():
    assert haversine_distance_m(PARIS, LONDON) == pytest.approx(343_500, rel=0.01)


def test_one_degree_of_latitude():
    d = haversine_distance_m(Coordinates(0.0, 0.0), Coordinates(1.0, 0.0))
    assert d == pytest.approx(6371000 * math.pi / 180, rel=1e-9)


def test_monotonic_with_separation():
    origin = Coordinates(10.0, 10.0)
    distances = [haversine_distance_m(origin, Coordinates(10.0 + step, 10.0)) for step in (0.001, 0.01, 0.1, 1.0)]
    assert distances == sorted(distances)


def test_antipodal_points_do_not_raise():
    d = haversine_distance_m(Coordinates(0.0, 0.0), Coordinates(0.0, 180.0))
    assert d == pytest.approx(math.pi * 6371000)


def test_nan_input_propagates_without_raising():
    assert math.isnan(haversine_distance_m(Coordinates(float("nan"), 0.0), PARIS))
    assert math.isnan(haversine_distance_m(Coordinates(float("inf"), 0.0), PARIS))


def test_format_distance():
    assert format_distance(None) == "Distance unavailable"
    assert format_distance(412.6) == "413m"
    assert format_distance(1534) == "1.5km"
