"""
modules/tool_usage/time_tool.py
---------------------------------
Arithmetic tool: geometric travel-cost estimation and leg text formatting.
Local computation — no external API required.

Approximation model (used when the travel-cost provider is down or was not
asked for a pair):
    road_distance = haversine × URBAN_DETOUR_FACTOR
    duration      = road_distance / AVERAGE_DRIVING_SPEED_KMH
"""

from __future__ import annotations

from schemas.enums import Provenance
from schemas.places import Coordinates
from schemas.travel_matrix import TravelCost
from modules.tool_usage.distance_tool import haversine_m
import config


class TimeTool:
    """
    Wraps travel-time estimation used by the matrix builder and the
    post-processor's fallback legs.
    """

    def __init__(
        self,
        speed_kmh: float = config.AVERAGE_DRIVING_SPEED_KMH,
        detour_factor: float = config.URBAN_DETOUR_FACTOR,
    ):
        self.speed_kmh = speed_kmh
        self.detour_factor = detour_factor

    def estimate_travel_time(self, distance_m: float) -> float:
        """Minutes needed to drive `distance_m` road metres."""
        hours = (distance_m / 1000.0) / self.speed_kmh
        return hours * 60

    def approximate(self, a: Coordinates, b: Coordinates) -> TravelCost:
        """Geometric TravelCost from a to b, marked approximated."""
        road_m = haversine_m(a, b) * self.detour_factor
        return TravelCost(
            duration_minutes=self.estimate_travel_time(road_m),
            distance_meters=road_m,
            provenance=Provenance.APPROXIMATED,
        )

    @staticmethod
    def format_duration(minutes: float) -> str:
        """'1 hour 5 mins' style text, as the matrix API renders it."""
        total = int(round(minutes))
        if total < 60:
            n = max(total, 1) if minutes > 0 else 0
            return "1 min" if n == 1 else f"{n} mins"
        hours, mins = divmod(total, 60)
        text = f"{hours} hour" + ("s" if hours > 1 else "")
        if mins:
            text += f" {mins} mins"
        return text

    @staticmethod
    def format_distance(meters: float) -> str:
        if meters < 1000:
            return f"{int(round(meters))} m"
        return f"{meters / 1000:.1f} km"
