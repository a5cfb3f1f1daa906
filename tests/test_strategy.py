import pytest

from schemas.enums import PointToPointStrategy, ResourceAbundance
from modules.planning.strategy import (
    all_pairs_buffers,
    choose_strategy,
    closed_loop_rating_floor,
    geographic_deviation_limit,
    min_stops_for_duration,
    resource_abundance,
    single_source_buffers,
    single_source_target,
)


@pytest.mark.parametrize("duration, budget, expected", [
    (360, 800, ResourceAbundance.HIGH),
    (300, 500, ResourceAbundance.MEDIUM),
    (360, 300, ResourceAbundance.LOW),
    (120, 5000, ResourceAbundance.LOW),
])
def test_resource_abundance(duration, budget, expected):
    assert resource_abundance(duration, budget) == expected


@pytest.mark.parametrize("count, duration, budget, expected", [
    (8, 200, 400, PointToPointStrategy.ALL_PAIRS),
    (8, 360, 1000, PointToPointStrategy.SINGLE_SOURCE),     # long journey
    (8, 200, 100, PointToPointStrategy.SINGLE_SOURCE),      # time-heavy ratio 2.0
    (16, 200, 400, PointToPointStrategy.SINGLE_SOURCE),     # large candidate set
    (15, 200, 400, PointToPointStrategy.ALL_PAIRS),
])
def test_choose_strategy(count, duration, budget, expected):
    assert choose_strategy(count, duration, budget) == expected


def test_closed_loop_thresholds():
    assert min_stops_for_duration(240) == 4
    assert min_stops_for_duration(540) == 6
    assert closed_loop_rating_floor(0.9) == 3.8
    assert closed_loop_rating_floor(0.6) == 3.2
    assert closed_loop_rating_floor(0.45) == 2.3


def test_all_pairs_buffers():
    assert all_pairs_buffers(ResourceAbundance.HIGH).time == 0.85
    assert all_pairs_buffers(ResourceAbundance.MEDIUM).budget == 0.85
    assert all_pairs_buffers(ResourceAbundance.LOW).time == 0.95


def test_single_source_buffers():
    assert single_source_buffers(400, 900, 5).time == 0.98
    assert single_source_buffers(400, 900, 1).time == 0.95
    assert single_source_buffers(400, 100, 5).budget == 0.88
    assert single_source_buffers(120, 100, 5).time == 0.90


def test_geographic_deviation_limit():
    assert geographic_deviation_limit(120, 100) == 2.2
    assert geographic_deviation_limit(400, 100) == 3.0
    assert geographic_deviation_limit(400, 900) == 4.0


def test_single_source_target():
    assert single_source_target(90) == 3
    assert single_source_target(300) == 5
    assert single_source_target(900) == 10
