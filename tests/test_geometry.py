import math

import pytest

from schemas.enums import Provenance
from schemas.places import Coordinates
from modules.tool_usage.distance_tool import detour_ratio, haversine_m, nearest_index
from modules.tool_usage.time_tool import TimeTool

from conftest import BASE, at, make_place


def test_haversine_one_degree_of_latitude():
    d = haversine_m(Coordinates(0.0, 0.0), Coordinates(1.0, 0.0))
    assert d == pytest.approx(111_195, abs=100)


def test_haversine_is_symmetric_and_zero_on_same_point():
    a, b = at(1.0, 2.0), at(-3.0, 0.5)
    assert haversine_m(a, b) == pytest.approx(haversine_m(b, a))
    assert haversine_m(a, a) == 0.0


def test_nearest_index_skips_excluded():
    places = [make_place("far", 5.0), make_place("near", 0.1), make_place("mid", 1.0)]
    assert nearest_index(places, BASE) == 1
    assert nearest_index(places, BASE, exclude={1}) == 2
    assert nearest_index(places, BASE, exclude={1, 2}) == 0
    assert nearest_index([], BASE) is None


def test_detour_ratio():
    start, end = at(0, 0), at(10, 0)
    assert detour_ratio(at(5, 0), start, end) == pytest.approx(1.0, rel=1e-3)
    assert detour_ratio(at(5, 5), start, end) > 1.3
    assert math.isinf(detour_ratio(at(1, 1), start, start))


def test_estimate_travel_time():
    tool = TimeTool(speed_kmh=25.0, detour_factor=1.3)
    assert tool.estimate_travel_time(25_000) == pytest.approx(60.0)


def test_approximate_applies_detour_factor():
    tool = TimeTool(speed_kmh=25.0, detour_factor=1.3)
    a, b = at(0, 0), at(2, 0)
    cost = tool.approximate(a, b)
    assert cost.provenance == Provenance.APPROXIMATED
    assert cost.ok
    assert cost.distance_meters == pytest.approx(haversine_m(a, b) * 1.3)
    assert cost.duration_minutes == pytest.approx(cost.distance_meters / 1000 / 25 * 60)


@pytest.mark.parametrize("minutes, text", [
    (0.2, "1 min"),
    (1, "1 min"),
    (45, "45 mins"),
    (60, "1 hour"),
    (125, "2 hours 5 mins"),
])
def test_format_duration(minutes, text):
    assert TimeTool.format_duration(minutes) == text


def test_format_distance():
    assert TimeTool.format_distance(500) == "500 m"
    assert TimeTool.format_distance(1500) == "1.5 km"
