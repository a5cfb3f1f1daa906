"""
schemas/itinerary.py
--------------------
Dataclass definitions for the output journey structures.

A Journey alternates Stop and TravelLeg items:
    Stop(1) → Leg → Stop(2) → Leg → ... → Stop(n)

Journeys are built once per request by modules/planning/post_processor.py
and are immutable on return.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Union

from schemas.enums import Notice, OutcomeCode, Provenance
from schemas.places import Place


@dataclass(frozen=True)
class Stop:
    """A single visit in the journey."""
    place: Place
    visit_order: int = 0                 # 1-based, strictly increasing
    is_start_point: bool = False
    is_end_point: bool = False

    @property
    def is_virtual(self) -> bool:
        return self.place.is_virtual

    def to_dict(self) -> dict:
        d = self.place.to_dict()
        d.update(
            visitOrder=self.visit_order,
            isStartPoint=self.is_start_point,
            isEndPoint=self.is_end_point,
        )
        if self.is_virtual:
            d["isVirtual"] = True
        return d


@dataclass(frozen=True)
class TravelLeg:
    """
    Edge record between two consecutive stops.

    is_fallback = True when the travel-cost matrix had no usable cell for
    this pair and the leg was estimated geometrically at assembly time.
    """
    from_name: str
    to_name: str
    duration_text: str
    distance_text: str
    duration_minutes: float = 0.0
    distance_meters: float = 0.0
    provenance: Provenance = Provenance.EXACT
    is_fallback: bool = False
    mode: str = "driving"

    def to_dict(self) -> dict:
        d = {
            "isTravelLeg": True,
            "from": self.from_name,
            "to": self.to_name,
            "duration": self.duration_text,
            "distance": self.distance_text,
            "mode": self.mode,
            "provenance": self.provenance.value,
        }
        if self.is_fallback:
            d["isFallback"] = True
        return d


JourneyItem = Union[Stop, TravelLeg]


@dataclass(frozen=True)
class Journey:
    items: tuple[JourneyItem, ...] = ()

    def __len__(self) -> int:
        return len(self.items)

    @property
    def stops(self) -> list[Stop]:
        return [i for i in self.items if isinstance(i, Stop)]

    @property
    def legs(self) -> list[TravelLeg]:
        return [i for i in self.items if isinstance(i, TravelLeg)]

    @property
    def is_empty(self) -> bool:
        return not self.items

    @property
    def total_duration_minutes(self) -> float:
        """Visit minutes of every distinct visit plus all leg minutes."""
        return sum(s.place.estimated_visit_minutes for s in self._charged_stops()) + sum(
            leg.duration_minutes for leg in self.legs
        )

    @property
    def total_cost(self) -> float:
        return sum(s.place.estimated_cost for s in self._charged_stops())

    def _charged_stops(self) -> list[Stop]:
        # A closed loop revisits its start; the second arrival is not a new visit.
        seen: set[str] = set()
        charged = []
        for s in self.stops:
            if s.place.place_id in seen:
                continue
            seen.add(s.place.place_id)
            charged.append(s)
        return charged

    def to_dict(self) -> list[dict]:
        return [i.to_dict() for i in self.items]


EMPTY_JOURNEY = Journey()


@dataclass(frozen=True)
class SynthesisResult:
    """
    Top-level output of synthesize_journey().

    status distinguishes "nothing matched" from "matched but cannot fit";
    notices are informational only (e.g. approximated travel costs).
    """
    status: OutcomeCode = OutcomeCode.OK
    journey: Journey = EMPTY_JOURNEY
    notices: tuple[Notice, ...] = ()
    candidate_count: int = 0

    @property
    def ok(self) -> bool:
        return self.status == OutcomeCode.OK

    def to_dict(self) -> dict:
        return {
            "status": self.status.value,
            "notices": [n.value for n in self.notices],
            "journey": self.journey.to_dict(),
        }
