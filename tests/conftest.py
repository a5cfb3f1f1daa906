import pytest
from typing import Iterable

from schemas.enums import Provenance
from schemas.places import Coordinates, Place
from schemas.travel_matrix import TravelCost
from modules.tool_usage.distance_tool import haversine_m
from modules.tool_usage.provider_errors import ProviderUnavailable
from modules.planning.route_planner import RoutePlanner


# Bengaluru city centre
BASE = Coordinates(12.9716, 77.5946)

# ~111 m per 0.001 degree of latitude
DEG_PER_KM = 1 / 111.195


def at(north_km: float = 0.0, east_km: float = 0.0) -> Coordinates:
    # Longitude degrees shrink with cos(lat); 0.975 at this latitude.
    return Coordinates(BASE.lat + north_km * DEG_PER_KM, BASE.lng + east_km * DEG_PER_KM / 0.975)


def make_place(
    place_id: str,
    north_km: float = 0.0,
    east_km: float = 0.0,
    rating: float = 4.5,
    reviews: int = 120,
    types: Iterable[str] = ("tourist_attraction",),
    visit: float = 60.0,
    cost: float = 10.0,
    **kwargs,
) -> Place:
    return Place(
        place_id=place_id,
        name=kwargs.pop("name", f"Place {place_id}"),
        location=at(north_km, east_km),
        rating=rating,
        review_count=reviews,
        types=tuple(types),
        estimated_visit_minutes=visit,
        estimated_cost=cost,
        **kwargs,
    )


class FakeTravelCostTool:
    """
    Deterministic provider: straight-line distance at a fixed speed.

    `unavailable` holds (origin, destination) coordinate pairs whose element
    status is reported as not OK.
    """

    def __init__(self, speed_kmh: float = 30.0, unavailable=()):
        self.speed_kmh = speed_kmh
        self.unavailable = set(unavailable)
        self.calls: list[tuple[int, int]] = []

    def fetch_matrix(self, origins, destinations):
        self.calls.append((len(origins), len(destinations)))
        block = []
        for o in origins:
            row = []
            for d in destinations:
                if (o, d) in self.unavailable:
                    row.append(TravelCost.unavailable())
                    continue
                meters = haversine_m(o, d)
                row.append(TravelCost(
                    duration_minutes=meters / 1000 / self.speed_kmh * 60,
                    distance_meters=meters,
                    provenance=Provenance.EXACT,
                ))
            block.append(row)
        return block


class FailingTravelCostTool:
    def __init__(self):
        self.calls = 0

    def fetch_matrix(self, origins, destinations):
        self.calls += 1
        raise ProviderUnavailable("travel-cost provider", "connection refused")


@pytest.fixture
def fake_costs():
    return FakeTravelCostTool()


@pytest.fixture
def planner(fake_costs):
    return RoutePlanner(travel_cost_tool=fake_costs)


@pytest.fixture
def city():
    """Eight well-rated leisure places within ~3 km of BASE."""
    return [
        make_place("museum", 1.0, 0.5, rating=4.6, reviews=900, types=("museum", "tourist_attraction"), visit=90, cost=20),
        make_place("park", -0.8, 1.2, rating=4.7, reviews=300, types=("park",), visit=60, cost=0),
        make_place("cafe", 0.4, -0.6, rating=4.4, reviews=80, types=("cafe", "restaurant"), visit=45, cost=12),
        make_place("temple", -1.5, -0.3, rating=4.5, reviews=40, types=("place_of_worship",), visit=30, cost=0),
        make_place("gallery", 2.0, 1.0, rating=4.3, reviews=60, types=("art_gallery", "tourist_attraction"), visit=60, cost=15),
        make_place("market", 1.8, -1.5, rating=4.2, reviews=200, types=("shopping_mall",), visit=60, cost=10),
        make_place("lake", -2.5, 2.0, rating=4.6, reviews=150, types=("park", "natural_feature"), visit=60, cost=0),
        make_place("fort", 3.0, 0.0, rating=4.4, reviews=500, types=("tourist_attraction",), visit=60, cost=15),
    ]
