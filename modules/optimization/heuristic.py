"""
modules/optimization/heuristic.py
-----------------------------------
Edge weight used by the shortest-path searches.

    w(i→j) = travel_minutes(i, j)
             × (1 + cost_sensitivity × cost_j / Bmax)
             × (1 − 0.5 × attractiveness_j)

    cost_sensitivity = 1 − 0.7 × budget_surplus
    attractiveness   = weighted blend of rating, preference match and
                       diversity (dynamic weights), normalised to [0, 1]

The weight is always positive (floored at EPSILON) so Dijkstra and
Floyd–Warshall stay well defined. UNAVAILABLE cells have no weight at all.
"""

from __future__ import annotations

from schemas.constraints import Constraints, PreferenceSet
from schemas.places import Place
from schemas.travel_matrix import TravelCost
from modules.optimization.resource_state import ResourceSurplus, clamp01
from modules.optimization.satisfaction import diversity_score, dynamic_weights


EPSILON = 1e-3

# Component ceilings used for normalisation.
_MAX_RATING = 5.0
_MAX_DIVERSITY = 3.0


def attractiveness(place: Place, preferences: PreferenceSet, surplus: ResourceSurplus) -> float:
    """How appealing `place` is right now, in [0, 1]."""
    w = dynamic_weights(surplus.combined)
    total_w = w.rating + w.preference + w.diversity
    blended = (
        w.rating * clamp01(place.rating / _MAX_RATING)
        + w.preference * (1.0 if preferences.matches(place) else 0.0)
        + w.diversity * diversity_score(place) / _MAX_DIVERSITY
    )
    return clamp01(blended / total_w) if total_w > 0 else 0.0


def edge_weight(
    to_place: Place,
    cell: TravelCost,
    preferences: PreferenceSet,
    constraints: Constraints,
    surplus: ResourceSurplus,
) -> float | None:
    """
    Weight of the edge leading into `to_place`.

    Returns:
        Positive weight, or None when the cell is UNAVAILABLE (no edge).
    """
    if not cell.ok:
        return None
    sensitivity = 1 - 0.7 * surplus.budget
    cost_factor = 1 + sensitivity * to_place.estimated_cost / constraints.max_budget
    appeal_factor = 1 - 0.5 * attractiveness(to_place, preferences, surplus)
    return max(EPSILON, cell.duration_minutes * cost_factor * appeal_factor)
