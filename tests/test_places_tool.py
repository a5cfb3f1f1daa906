import asyncio
from unittest.mock import MagicMock, patch

import pytest
import requests

from schemas.places import DEFAULT_RATING
from modules.tool_usage.places_tool import PlacesTool, estimate_cost, estimate_visit_minutes
from modules.tool_usage.provider_errors import ProviderUnavailable

from conftest import BASE


def _record(place_id, lat=12.97, lng=77.59, **extra):
    item = {
        "place_id": place_id,
        "name": f"Place {place_id}",
        "geometry": {"location": {"lat": lat, "lng": lng}},
        "rating": 4.5,
        "user_ratings_total": 100,
        "types": ["park"],
    }
    item.update(extra)
    return item


def _response(payload):
    response = MagicMock()
    response.json.return_value = payload
    return response


def _session_by_type(pages):
    """Session whose GET answers by the requested `type` parameter."""
    session = MagicMock()

    def get(url, params=None, timeout=None):
        page = pages[params["type"]]
        if isinstance(page, Exception):
            raise page
        return _response(page)

    session.get.side_effect = get
    return session


def test_fetch_merges_categories_and_drops_duplicates():
    session = _session_by_type({
        "park": {"status": "OK", "results": [_record("a"), _record("b")]},
        "museum": {"status": "OK", "results": [_record("b", types=["museum"]), _record("c", types=["museum"])]},
    })
    tool = PlacesTool(api_key="k", session=session)

    places = asyncio.run(tool.fetch(BASE, ["park", "museum"]))

    assert sorted(p.place_id for p in places) == ["a", "b", "c"]
    b = next(p for p in places if p.place_id == "b")
    assert b.types == ("park",)          # first category wins


def test_without_session_each_call_uses_plain_get():
    pages = _session_by_type({
        "park": {"status": "OK", "results": [_record("a")]},
        "museum": {"status": "OK", "results": [_record("b", types=["museum"])]},
    })
    tool = PlacesTool(api_key="k")
    assert tool.session is None

    with patch("modules.tool_usage.places_tool.requests.get", side_effect=pages.get.side_effect) as get:
        places = asyncio.run(tool.fetch(BASE, ["park", "museum"]))

    assert sorted(p.place_id for p in places) == ["a", "b"]
    assert get.call_count == 2
    assert {c.kwargs["params"]["type"] for c in get.call_args_list} == {"park", "museum"}


def test_failing_category_is_skipped():
    session = _session_by_type({
        "park": {"status": "OK", "results": [_record("a")]},
        "museum": requests.ConnectionError("reset by peer"),
    })
    tool = PlacesTool(api_key="k", session=session)

    places = asyncio.run(tool.fetch(BASE, ["park", "museum"]))
    assert [p.place_id for p in places] == ["a"]


def test_closed_and_malformed_records_are_skipped():
    session = _session_by_type({
        "park": {"status": "OK", "results": [
            _record("open"),
            _record("closed", business_status="CLOSED_PERMANENTLY"),
            {"place_id": "broken", "name": "No geometry"},
        ]},
    })
    places = PlacesTool(api_key="k", session=session).fetch_category(BASE, "park")
    assert [p.place_id for p in places] == ["open"]


def test_record_mapping():
    session = _session_by_type({
        "museum": {"status": "OK", "results": [
            _record("m", types=["museum"], price_level=2, rating=None, user_ratings_total=None),
        ]},
    })
    place = PlacesTool(api_key="k", session=session).fetch_category(BASE, "museum")[0]

    assert place.rating == DEFAULT_RATING
    assert place.review_count == 0
    assert place.estimated_visit_minutes == 120.0
    assert place.estimated_cost == 50.0
    assert place.price_level == 2
    assert place.location.lat == 12.97


def test_error_status_raises():
    session = _session_by_type({"park": {"status": "OVER_QUERY_LIMIT"}})
    with pytest.raises(ProviderUnavailable, match="OVER_QUERY_LIMIT"):
        PlacesTool(api_key="k", session=session).fetch_category(BASE, "park")


def test_zero_results_is_empty():
    session = _session_by_type({"park": {"status": "ZERO_RESULTS", "results": []}})
    assert PlacesTool(api_key="k", session=session).fetch_category(BASE, "park") == []


def test_missing_key():
    session = MagicMock()
    with pytest.raises(ProviderUnavailable):
        PlacesTool(api_key="", session=session).fetch_category(BASE, "park")
    session.get.assert_not_called()


def test_geocode():
    session = MagicMock()
    session.get.return_value = _response(
        {"status": "OK", "results": [{"geometry": {"location": {"lat": 48.85, "lng": 2.35}}}]}
    )
    coords = PlacesTool(api_key="k", session=session).geocode("Paris")

    assert (coords.lat, coords.lng) == (48.85, 2.35)
    assert session.get.call_args.kwargs["params"]["address"] == "Paris"


def test_geocode_without_match():
    session = MagicMock()
    session.get.return_value = _response({"status": "ZERO_RESULTS", "results": []})
    with pytest.raises(ProviderUnavailable):
        PlacesTool(api_key="k", session=session).geocode("Atlantis")


@pytest.mark.parametrize("types, price_level, expected", [
    (["museum"], None, 50.0),
    (["tourist_attraction"], 4, 125.0),
    (["park"], 3, 10.0),
    (["cafe"], 1, 15.0),
    (["store"], None, 20.0),
])
def test_estimate_cost(types, price_level, expected):
    assert estimate_cost(types, price_level) == expected


@pytest.mark.parametrize("types, expected", [
    (["museum"], 120.0),
    (["park"], 90.0),
    (["restaurant"], 45.0),
    (["place_of_worship"], 30.0),
    (["zoo"], 60.0),
])
def test_estimate_visit_minutes(types, expected):
    assert estimate_visit_minutes(types) == expected
