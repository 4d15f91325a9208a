"""Tests des utilitaires geo / Geo utility tests."""

import math

import pytest

from bustrack.utils.geo import (
    bearing_deg,
    eta_from_distance,
    eta_with_traffic,
    format_duration,
    haversine,
    haversine_m,
    is_valid_coordinate,
    traffic_condition,
    traffic_factor,
)

PARIS = (48.8566, 2.3522)
LYON = (45.7640, 4.8357)


def test_haversine():
    # Paris -> Lyon ~ 392 km
    dist = haversine(*PARIS, *LYON)
    assert 380 < dist < 400


@pytest.mark.parametrize("a, b", [
    (PARIS, LYON),
    ((0.0, 0.0), (10.0, 170.0)),
    ((-33.86, 151.21), (51.5, -0.12)),
])
def test_distance_symmetry(a, b):
    assert math.isclose(haversine_m(*a, *b), haversine_m(*b, *a), rel_tol=1e-12)


def test_distance_identity():
    assert haversine_m(*PARIS, *PARIS) == 0


def test_distance_grows_with_separation():
    assert haversine_m(0, 0, 0, 1) < haversine_m(0, 0, 0, 2) < haversine_m(0, 0, 0, 3)


def test_bearing_cardinal_directions():
    assert round(bearing_deg(0, 0, 1, 0)) == 0
    assert round(bearing_deg(0, 0, 0, 1)) == 90
    assert round(bearing_deg(1, 0, 0, 0)) == 180
    assert round(bearing_deg(0, 1, 0, 0)) == 270


def test_bearing_not_symmetric_and_in_range():
    forward = bearing_deg(*PARIS, *LYON)
    backward = bearing_deg(*LYON, *PARIS)
    assert 0 <= forward < 360
    assert 0 <= backward < 360
    assert forward != backward


def test_bearing_coincident_points():
    assert bearing_deg(*PARIS, *PARIS) == 0


def test_eta_formatting_boundaries():
    # 61 km a 60 km/h = 61 min
    assert eta_from_distance(61_000, 60).formatted == "1h 1m"
    # 2 km a 36 km/h = 3 min 20 s
    assert eta_from_distance(2_000, 36).formatted == "3m 20s"
    # 500 m a 40 km/h = 45 s
    assert eta_from_distance(500, 40).formatted == "45s"


def test_format_duration_drops_seconds_from_five_minutes():
    assert format_duration(7.5) == "7m"
    assert format_duration(4.5) == "4m 30s"
    assert format_duration(60) == "60m"


def test_format_duration_carries_rounded_minute():
    assert format_duration(2.9999) == "3m"


def test_eta_totals():
    eta = eta_from_distance(40_000, 40)
    assert eta.hours == 1
    assert eta.minutes == 60
    assert eta.seconds == 3600
    assert eta.distance_km == 40


def test_eta_zero_speed_is_indeterminate():
    eta = eta_from_distance(1_000, 0)
    assert eta.indeterminate
    assert math.isinf(eta.minutes)
    assert eta.formatted == "unknown"


@pytest.mark.parametrize("hour, factor", [
    (0, 1.3), (6, 1.3), (7, 0.7), (10, 0.7), (11, 0.9), (16, 0.9),
    (17, 0.7), (20, 0.7), (21, 1.0), (22, 1.3), (23, 1.3),
])
def test_traffic_factor(hour, factor):
    assert traffic_factor(hour) == factor


def test_traffic_condition():
    assert traffic_condition(0.7) == "Heavy Traffic"
    assert traffic_condition(0.9) == "Moderate Traffic"
    assert traffic_condition(1.0) == "Normal Traffic"
    assert traffic_condition(1.3) == "Light Traffic"


def test_eta_with_traffic_adjusts_speed():
    # 08h : 40 * 0.7 = 28 km/h
    eta = eta_with_traffic(28_000, 40, 8)
    assert math.isclose(eta.speed_kmh, 28.0)
    assert math.isclose(eta.hours, 1.0)


def test_coordinate_validation():
    assert is_valid_coordinate(90, 180)
    assert is_valid_coordinate(-90, -180)
    assert not is_valid_coordinate(91, 0)
    assert not is_valid_coordinate(0, 181)
    assert not is_valid_coordinate(float("nan"), 0)
    assert not is_valid_coordinate(0, float("inf"))
