import pytest

from schemas.constraints import PreferenceSet
from schemas.enums import JourneyMode
from modules.recommendation.candidate_selector import (
    CandidateSelector,
    budget_score,
    geo_score,
    main_type,
    selection_score,
    target_count,
)

from conftest import BASE, at, make_place


@pytest.mark.parametrize("duration, budget, expected", [
    (120, 100, 6),
    (240, 100, 8),
    (360, 100, 10),
    (120, 600, 7),
    (240, 1000, 10),
    (600, 5000, 10),
])
def test_target_count(duration, budget, expected):
    assert target_count(duration, budget) == expected


def test_budget_score_buckets():
    assert budget_score(0, 100) == 5
    assert budget_score(30, 100) == 5
    assert budget_score(50, 100) == 4
    assert budget_score(80, 100) == 2


def test_main_type_uses_first_main_category():
    assert main_type(make_place("a", types=("establishment", "cafe", "restaurant"))) == "cafe"
    assert main_type(make_place("b", types=("art_gallery",))) == "other"


def test_geo_score_closed_loop_and_corridor():
    near = make_place("near", 1.0)
    assert geo_score(near, JourneyMode.CLOSED_LOOP, BASE) == pytest.approx(0.99, abs=1e-3)

    on_route = make_place("mid", 5.0)
    off_route = make_place("off", 5.0, 20.0)
    end = at(10.0)
    on = geo_score(on_route, JourneyMode.POINT_TO_POINT, BASE, end)
    off = geo_score(off_route, JourneyMode.POINT_TO_POINT, BASE, end)
    assert on == pytest.approx(2.0, abs=1e-3)
    assert off < on


def test_preferred_places_score_higher():
    prefs = PreferenceSet({"park": True})
    park = make_place("p", types=("park",))
    mall = make_place("m", types=("shopping_mall",))
    assert selection_score(park, prefs, 100, 1.0) > selection_score(mall, prefs, 100, 1.0)


def _selector(duration=120, budget=100, mode=JourneyMode.CLOSED_LOOP, prefs=None):
    return CandidateSelector(
        preferences=prefs or PreferenceSet({}),
        max_budget=budget,
        max_duration_minutes=duration,
        mode=mode,
        start=BASE,
    )


def test_small_set_returned_as_is():
    places = [make_place(str(i), i * 0.1) for i in range(4)]
    assert _selector().select(places) == places


def test_category_cap_then_backfill():
    parks = [make_place(f"park{i}", 1.0, types=("park",), rating=4.5, cost=10) for i in range(12)]
    museums = [make_place(f"museum{i}", 1.0, types=("museum",), rating=4.0, cost=50) for i in range(3)]

    selected = _selector(duration=120, budget=100).select(parks + museums)
    ids = [p.place_id for p in selected]

    # N = 6, cap = 2: two parks, two museums, then the best remaining parks
    assert len(selected) == 6
    assert ids == ["park0", "park1", "museum0", "museum1", "park2", "park3"]


def test_pinned_places_survive_selection():
    pinned = make_place("home", 30.0, rating=1.0, types=("lodging",), is_start_point=True)
    others = [make_place(f"p{i}", 0.5, types=("park",)) for i in range(20)]

    selected = _selector().select(others + [pinned])
    assert len(selected) == 6
    assert pinned in selected


def test_selection_is_deterministic(city):
    many = city + [make_place(f"extra{i}", i * 0.2, types=("cafe",)) for i in range(10)]
    sel = _selector(duration=240, budget=200)
    assert sel.select(many) == sel.select(many)
    assert len(sel.select(many)) == 8
