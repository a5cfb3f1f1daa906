"""
modules/recommendation/candidate_selector.py
----------------------------------------------
Bounds the filtered candidate set before any travel-cost request is made.

Every extra candidate grows the matrix quadratically, so the set is trimmed
to a target size N (≤ CANDIDATE_HARD_CAP) by a weighted selection score:

    0.25·max(2, 2·rating) + 0.25·(6 if preferred) + 0.15·budget_score
  + 0.15·diversity + 0.15·(2·geo) + 0.05·(2 if rating ≥ 4.2)

Places are taken in score order with at most max(2, ceil(N/3)) per main
category, then remaining slots are back-filled from the overall ranking.
Caller-pinned endpoints are always kept and count toward N.
"""

from __future__ import annotations
import logging
import math
from dataclasses import dataclass
from typing import Sequence

from schemas.constraints import PreferenceSet
from schemas.enums import JourneyMode
from schemas.places import Coordinates, Place
from modules.optimization.satisfaction import diversity_score
from modules.tool_usage.distance_tool import haversine_m
import config


logger = logging.getLogger(__name__)

MAIN_TYPES: tuple[str, ...] = (
    "tourist_attraction", "museum", "park", "restaurant", "cafe", "shopping_mall", "place_of_worship",
)
OTHER_TYPE = "other"

# Closed-loop relevance fades to zero at this distance from the start.
_RELEVANCE_RADIUS_M = 100_000.0


def target_count(max_duration_minutes: float, max_budget: float, hard_cap: int = config.CANDIDATE_HARD_CAP) -> int:
    """Number of candidates to keep for a request of this size."""
    if max_duration_minutes >= 360:
        n = 10
    elif max_duration_minutes >= 240:
        n = 8
    else:
        n = 6
    if max_budget >= 1000:
        n += 2
    elif max_budget >= 600:
        n += 1
    return min(n, hard_cap)


def main_type(place: Place) -> str:
    """First tag in the place's own order that is a main category."""
    for t in place.types:
        if t in MAIN_TYPES:
            return t
    return OTHER_TYPE


def budget_score(cost: float, max_budget: float) -> float:
    if cost <= 0 or max_budget <= 0:
        return 5.0
    ratio = cost / max_budget
    if ratio < 0.4:
        return 5.0
    if ratio < 0.7:
        return 4.0
    return 2.0


def geo_score(
    place: Place,
    mode: JourneyMode,
    start: Coordinates,
    end: Coordinates | None = None,
) -> float:
    """
    Geographic relevance.

    closed loop    : max(0, 1 - dist_to_start / 100 km)
    point to point : max(0, 3 - (dist_to_start + dist_to_end) / direct)
    """
    to_start = haversine_m(start, place.location)
    if mode == JourneyMode.POINT_TO_POINT and end is not None:
        direct = haversine_m(start, end)
        if direct > 0:
            return max(0.0, 3 - (to_start + haversine_m(end, place.location)) / direct)
    return max(0.0, 1 - to_start / _RELEVANCE_RADIUS_M)


def selection_score(place: Place, preferences: PreferenceSet, max_budget: float, geo: float) -> float:
    rating = max(2.0, place.rating * 2)
    pref = 6.0 if preferences.matches(place) else 0.0
    popular = 2.0 if place.rating >= 4.2 else 0.0
    return (
        rating * 0.25
        + pref * 0.25
        + budget_score(place.estimated_cost, max_budget) * 0.15
        + diversity_score(place) * 0.15
        + geo * 2 * 0.15
        + popular * 0.05
    )


@dataclass
class CandidateSelector:
    """
    Weighted, category-capped candidate selection.

    Usage:
        selector = CandidateSelector(preferences, max_budget, max_duration,
                                     mode, start, end)
        kept = selector.select(filtered_places)
    """
    preferences: PreferenceSet
    max_budget: float
    max_duration_minutes: float
    mode: JourneyMode
    start: Coordinates
    end: Coordinates | None = None
    hard_cap: int = config.CANDIDATE_HARD_CAP

    def select(self, places: Sequence[Place]) -> list[Place]:
        """
        Returns:
            At most target_count() places. The input itself (in order) when
            it already fits.
        """
        n = target_count(self.max_duration_minutes, self.max_budget, self.hard_cap)
        if len(places) <= n:
            return list(places)

        pinned = [p for p in places if p.is_start_point or p.is_end_point][:n]
        pinned_ids = {p.place_id for p in pinned}
        rest = [p for p in places if p.place_id not in pinned_ids]

        scored = [
            (selection_score(p, self.preferences, self.max_budget,
                             geo_score(p, self.mode, self.start, self.end)), p)
            for p in rest
        ]
        # sorted() is stable: equal scores keep input order.
        ranked = [p for _, p in sorted(scored, key=lambda sp: sp[0], reverse=True)]

        selected: list[Place] = list(pinned)
        per_type: dict[str, int] = {}
        for p in pinned:
            per_type[main_type(p)] = per_type.get(main_type(p), 0) + 1
        cap = max(2, math.ceil(n / 3))

        for p in ranked:
            if len(selected) >= n:
                break
            t = main_type(p)
            if per_type.get(t, 0) < cap:
                selected.append(p)
                per_type[t] = per_type.get(t, 0) + 1

        if len(selected) < n:
            chosen = {p.place_id for p in selected}
            backfill = [p for p in ranked if p.place_id not in chosen]
            selected.extend(backfill[: n - len(selected)])

        logger.info("Candidate selector kept %d of %d places (target %d)", len(selected), len(places), n)
        return selected
