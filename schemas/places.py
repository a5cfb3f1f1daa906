"""
schemas/places.py
-----------------
Dataclass definitions for the candidate places the engine routes through.

Places are produced by the place catalog adapter (modules/tool_usage/places_tool.py)
or handed in directly by the caller. They are immutable once fetched.

Units:
  - estimated_visit_minutes : minutes
  - estimated_cost          : currency units of the caller's budget
  - rating                  : 0–5 (DEFAULT_RATING when the catalog has none)
"""

from __future__ import annotations
from dataclasses import dataclass, field


DEFAULT_RATING: float = 3.0


@dataclass(frozen=True)
class Coordinates:
    """A WGS84 point in decimal degrees."""
    lat: float
    lng: float

    @classmethod
    def from_dict(cls, data: dict) -> "Coordinates":
        return cls(lat=float(data["lat"]), lng=float(data["lng"]))

    def to_dict(self) -> dict:
        return {"lat": self.lat, "lng": self.lng}


@dataclass(frozen=True)
class Place:
    """
    A single point of interest.

    Fields used by the Candidate Filter:
      types, name           — exclusion rules
      rating, review_count  — quality thresholds

    Fields used by route construction:
      estimated_visit_minutes, estimated_cost — resource accounting
      is_start_point / is_end_point           — caller-pinned endpoints
    """
    place_id: str
    name: str
    location: Coordinates
    rating: float = DEFAULT_RATING
    review_count: int = 0
    types: tuple[str, ...] = ()
    estimated_visit_minutes: float = 60.0
    estimated_cost: float = 0.0
    price_level: int | None = None
    is_start_point: bool = False
    is_end_point: bool = False
    is_virtual: bool = False
    # ^ True only for zero-cost stops synthesized by endpoint repair.
    raw: dict = field(default_factory=dict, compare=False, hash=False, repr=False)

    def to_dict(self) -> dict:
        return {
            "placeId": self.place_id,
            "name": self.name,
            "location": self.location.to_dict(),
            "rating": self.rating,
            "userRatingsTotal": self.review_count,
            "types": list(self.types),
            "estimatedVisitDuration": self.estimated_visit_minutes,
            "estimatedCost": self.estimated_cost,
        }
