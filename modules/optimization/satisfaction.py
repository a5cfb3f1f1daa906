"""
modules/optimization/satisfaction.py
--------------------------------------
Multi-objective satisfaction scoring for a place as the next stop.

    score = rating·W_rating + preference·W_pref + diversity·W_div
          + efficiency(detour)·W_eff + value(rating, cost)·W_val
          + resource_efficiency_bonus + route_locality_bonus

The weights come from dynamic_weights(combined_surplus):
  - plenty of time/budget left → quality and variety dominate
    (W_rating, W_pref, W_div rise; "luxury mode" past 0.75)
  - resources tight            → cheap, fast additions dominate
    (W_eff, W_val hold their floor while the others shrink)
"""

from __future__ import annotations
import math
from dataclasses import dataclass
from typing import Iterable, Sequence

from schemas.constraints import PreferenceSet
from schemas.places import Place
from modules.optimization.resource_state import ResourceSurplus


# Tags that stand for a distinct kind of experience.
EXPERIENCE_TYPES: frozenset[str] = frozenset({
    "tourist_attraction", "museum", "park", "restaurant", "shopping_mall", "amusement_park",
})
_DIVERSITY_CAP = 3


# ─────────────────────────────────────────────────────────────────────────────
# Dynamic weights
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class DynamicWeights:
    rating: float
    preference: float
    diversity: float
    efficiency: float
    value: float


def dynamic_weights(combined_surplus: float) -> DynamicWeights:
    """
    Shift emphasis from efficiency to experience as surplus grows.

    Ranges over surplus 0 → 1:
        rating      0.35 → 1.37
        preference  0.30 → 0.80
        diversity   0.00 → 1.08
        efficiency  0.25 → 0.10 (floor)
        value       0.10 → 0.05 (floor)
    """
    focus = min(1.2, combined_surplus * 1.8)
    luxury = 0.6 if combined_surplus > 0.75 else (0.3 if combined_surplus > 0.5 else 0.0)
    quantity = 0.2 if combined_surplus > 0.6 else 0.0

    return DynamicWeights(
        rating=0.35 + focus * 0.35 + luxury,
        preference=0.3 + focus * 0.25 + quantity,
        diversity=focus * 0.4 + luxury,
        efficiency=max(0.1, 0.25 - focus * 0.15),
        value=max(0.05, 0.1 - focus * 0.05),
    )


# ─────────────────────────────────────────────────────────────────────────────
# Components
# ─────────────────────────────────────────────────────────────────────────────

def diversity_score(place: Place) -> int:
    """Number of experience tags on the place, capped at 3."""
    return min(sum(1 for t in place.types if t in EXPERIENCE_TYPES), _DIVERSITY_CAP)


def new_type_count(place: Place, visited_types: Iterable[str]) -> int:
    visited = set(visited_types)
    return sum(1 for t in place.types if t not in visited)


def rating_score(place: Place) -> float:
    """Rating with a bonus for places that are both excellent and well reviewed."""
    score = place.rating * 2.5
    if place.rating >= 4.5 and place.review_count >= 100:
        score += 4
    elif place.rating >= 4.2 and place.review_count >= 50:
        score += 2
    return score


def popularity_bonus(place: Place) -> float:
    if place.rating >= 4.7 and place.review_count >= 200:
        return 12.0
    if place.rating >= 4.5 and place.review_count >= 100:
        return 10.0
    if place.rating >= 4.3 and place.review_count >= 50:
        return 7.0
    if place.rating >= 4.0 and place.review_count >= 20:
        return 4.0
    return 0.0


def route_locality_bonus(distance_km: float) -> float:
    if distance_km < 5:
        return 3.0
    if distance_km < 15:
        return 1.0
    return 0.0


# ─────────────────────────────────────────────────────────────────────────────
# Place scores
# ─────────────────────────────────────────────────────────────────────────────

def score_place(
    place: Place,
    preferences: PreferenceSet,
    distance_from_previous_m: float,
    surplus: ResourceSurplus,
) -> float:
    """
    Multi-objective score of `place` as the next stop.

    Args:
        distance_from_previous_m: road distance of the leg leading to the place.
        surplus:                  current ResourceSurplus (drives the weights).

    Returns:
        Score ≥ 0.1.
    """
    s = surplus.combined
    r_score = rating_score(place)
    pref = 5.0 if preferences.matches(place) else 0.0
    div = diversity_score(place)

    distance_km = distance_from_previous_m / 1000.0
    penalty = distance_km * 0.15 * (1 - s * 0.8)
    efficiency = max(0.0, 6 - penalty)

    cost = place.estimated_cost
    base_value = min(6.0, r_score / (cost / 120)) if cost > 0 else r_score
    abundance = place.rating * 2 if s > 0.6 else (place.rating if s > 0.4 else 0.0)
    value = base_value + abundance

    w = dynamic_weights(s)
    total = (
        r_score * w.rating
        + pref * w.preference
        + div * w.diversity
        + efficiency * w.efficiency
        + value * w.value
        + surplus.efficiency * 2.5
        + route_locality_bonus(distance_km)
    )
    return max(total, 0.1)


def advanced_place_score(place: Place, preferences: PreferenceSet, max_budget: float) -> float:
    """Static quality score used to rank all-pairs intermediate stops."""
    r_score = place.rating * 2
    pref = 4.0 if preferences.matches(place) else 0.0
    cost = place.estimated_cost
    value = min(5.0, r_score / (cost / 100)) if cost > 0 else r_score
    accessible = 2.0 if (place.rating >= 4.0 and cost <= max_budget * 0.3) else 0.0
    return r_score + pref + diversity_score(place) + value + accessible


# ─────────────────────────────────────────────────────────────────────────────
# Diversity-biased pick
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ScoredCandidate:
    index: int                # index into the matrix/place list
    place: Place
    score: float


def select_diverse_candidate(
    candidates: Sequence[ScoredCandidate],
    visited_types: Iterable[str],
    combined_surplus: float,
    top_k: int | None = None,
) -> ScoredCandidate:
    """
    Among the top-K by score, the one introducing the most new tags.

    K defaults to ceil(2 + 3·surplus). Ties on new tags go to the higher
    rating, then to the higher score.
    """
    if not candidates:
        raise ValueError("no candidates to choose from")
    ranked = sorted(candidates, key=lambda c: c.score, reverse=True)
    k = top_k if top_k is not None else math.ceil(2 + combined_surplus * 3)
    top = ranked[:max(1, min(k, len(ranked)))]

    visited = set(visited_types)
    best = top[0]
    best_new = new_type_count(best.place, visited)
    for c in top[1:]:
        n = new_type_count(c.place, visited)
        if n > best_new or (n == best_new and c.place.rating > best.place.rating):
            best, best_new = c, n
    return best
