"""
modules/tool_usage/distance_tool.py
-------------------------------------
Arithmetic tool: great-circle distance between geographic coordinates.
Local computation — no external API required.

Used everywhere as the cheap proxy for road distance when the travel-cost
provider is unavailable or not called (candidate selection, geographic
prefilters, endpoint resolution, matrix approximation).
"""

from __future__ import annotations
import math
from typing import Iterable, Sequence

from schemas.places import Coordinates, Place


# Earth radius constants
_EARTH_RADIUS_M = 6371000.0


def haversine_m(a: Coordinates, b: Coordinates) -> float:
    """
    Great-circle distance between two points using the Haversine formula.

    Returns:
        Distance in metres.
    """
    phi1, phi2 = math.radians(a.lat), math.radians(b.lat)
    d_phi = math.radians(b.lat - a.lat)
    d_lam = math.radians(b.lng - a.lng)

    h = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lam / 2) ** 2
    return 2 * _EARTH_RADIUS_M * math.asin(min(1.0, math.sqrt(h)))


def nearest_index(places: Sequence[Place], target: Coordinates, exclude: Iterable[int] = ()) -> int | None:
    """
    Index of the place closest to `target`, ignoring the indices in
    `exclude`; first one wins on ties.
    Returns None if there is no eligible place.
    """
    skip = set(exclude)
    best, best_d = None, math.inf
    for i, p in enumerate(places):
        if i in skip:
            continue
        d = haversine_m(target, p.location)
        if d < best_d:
            best, best_d = i, d
    return best


def detour_ratio(via: Coordinates, start: Coordinates, end: Coordinates) -> float:
    """
    (dist(start, via) + dist(via, end)) / dist(start, end).

    Returns inf when start and end coincide (ratio undefined).
    """
    direct = haversine_m(start, end)
    if direct <= 0.0:
        return math.inf
    return (haversine_m(start, via) + haversine_m(via, end)) / direct
