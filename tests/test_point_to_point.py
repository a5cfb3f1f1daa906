import pytest

from schemas.constraints import Constraints, PreferenceSet
from schemas.enums import OutcomeCode, PointToPointStrategy
from modules.planning.point_to_point import build_point_to_point, corridor_candidates
from modules.planning.route_context import RouteContext
from modules.planning.strategy import choose_strategy
from modules.planning.travel_matrix_builder import TravelMatrixBuilder

from conftest import FakeTravelCostTool, make_place


PREFS = PreferenceSet({"museum": True, "park": True})


def _ctx(places, duration, budget, tool=None):
    matrix = TravelMatrixBuilder(tool or FakeTravelCostTool()).build(places).matrix
    return RouteContext(matrix, PREFS, Constraints(duration, budget))


@pytest.fixture
def corridor():
    """Start at 0 km, end 4 km north, four stops along the way."""
    return [
        make_place("start", 0, 0, visit=20, cost=0),
        make_place("end", 4, 0, visit=20, cost=0),
        make_place("a", 1, 0.3, types=("museum",), visit=45, cost=20),
        make_place("b", 2, -0.3, types=("park",), visit=45, cost=20),
        make_place("c", 3, 0.2, types=("cafe",), visit=45, cost=20),
        make_place("d", 2, 0.5, types=("art_gallery",), visit=45, cost=20),
    ]


def test_same_endpoints_are_rejected(corridor):
    with pytest.raises(ValueError):
        build_point_to_point(_ctx(corridor, 200, 400), 0, 0)


def test_direct_journey_over_limits_is_infeasible():
    places = [
        make_place("start", 0, 0, visit=0, cost=0),
        make_place("end", 50, 0, visit=0, cost=0),
        make_place("mid", 25, 0),
    ]
    draft = build_point_to_point(_ctx(places, 60, 50), 0, 1)

    assert draft.status == OutcomeCode.INFEASIBLE_CONSTRAINTS
    assert draft.route == (0, 1)


def test_all_pairs_route(corridor):
    assert choose_strategy(len(corridor), 200, 400) == PointToPointStrategy.ALL_PAIRS
    ctx = _ctx(corridor, 200, 400)
    draft = build_point_to_point(ctx, 0, 1)

    assert draft.status == OutcomeCode.OK
    assert draft.route[0] == 0 and draft.route[-1] == 1
    assert len(draft.route) >= 3
    assert len(set(draft.route)) == len(draft.route)
    assert draft.state.fits(ctx.constraints)
    # the low-abundance buffer leaves at most three 45-minute stops
    assert len(draft.route) <= 5


def test_single_source_route(corridor):
    assert choose_strategy(len(corridor), 400, 300) == PointToPointStrategy.SINGLE_SOURCE
    ctx = _ctx(corridor, 400, 300)
    draft = build_point_to_point(ctx, 0, 1)

    assert draft.status == OutcomeCode.OK
    assert draft.route[0] == 0 and draft.route[-1] == 1
    assert 3 <= len(draft.route) <= 6
    assert len(set(draft.route)) == len(draft.route)
    assert draft.state.fits(ctx.constraints)


def test_corridor_drops_far_sideways_places(corridor):
    places = corridor + [make_place("sideways", 2, 10)]
    pool = corridor_candidates(_ctx(places, 400, 300), 0, 1)

    assert len(places) - 1 not in pool
    assert pool[0] == 2          # "a" is nearest the start
    assert set(pool) == {2, 3, 4, 5}


def test_tight_budget_keeps_direct_route(corridor):
    ctx = _ctx(corridor, 200, 15)
    draft = build_point_to_point(ctx, 0, 1)

    assert draft.status == OutcomeCode.OK
    assert draft.route == (0, 1)


def _detour_places():
    return [make_place("start", 0, 0), make_place("end", 4, 0), make_place("mid", 2, 0.3)]


def test_unavailable_direct_leg_is_bridged():
    start, end, mid = _detour_places()
    tool = FakeTravelCostTool(unavailable={(start.location, end.location)})
    # three 60-minute visits plus ~8 min of travel: over the 0.95 buffer
    # for an accepted intermediate, inside the hard limit
    ctx = _ctx([start, end, mid], 195, 400, tool)
    draft = build_point_to_point(ctx, 0, 1)

    assert draft.status == OutcomeCode.OK
    assert draft.route == (0, 2, 1)
    assert ctx.traversable(draft.route)
    assert draft.state.fits(ctx.constraints)


def test_no_ok_chain_to_end_is_infeasible():
    start, end, mid = _detour_places()
    tool = FakeTravelCostTool(unavailable={(start.location, end.location), (mid.location, end.location)})
    draft = build_point_to_point(_ctx([start, end, mid], 195, 400, tool), 0, 1)

    assert draft.status == OutcomeCode.INFEASIBLE_CONSTRAINTS
    assert draft.route == (0, 1)


def test_two_places_with_unavailable_direct_leg_are_infeasible():
    start, end, _ = _detour_places()
    tool = FakeTravelCostTool(unavailable={(start.location, end.location)})
    draft = build_point_to_point(_ctx([start, end], 300, 400, tool), 0, 1)

    assert draft.status == OutcomeCode.INFEASIBLE_CONSTRAINTS
