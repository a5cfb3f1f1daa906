"""
schemas/constraints.py
-----------------------
Caller-supplied inputs that bound and steer journey construction.

Constraints (hard — never exceeded by a returned journey):
  max_duration_minutes — total visit + travel minutes, inclusive
  max_budget           — total estimated spend, inclusive

PreferenceSet (soft — drives preference-match scoring only):
  {category_tag: interested}
"""

from __future__ import annotations
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

from schemas.places import Place


@dataclass(frozen=True)
class Constraints:
    max_duration_minutes: float
    max_budget: float

    def __post_init__(self):
        if self.max_duration_minutes <= 0:
            raise ValueError("max_duration_minutes must be greater than 0")
        if self.max_budget <= 0:
            raise ValueError("max_budget must be greater than 0")


@dataclass(frozen=True)
class PreferenceSet:
    """
    Mapping from category tag to "interested".
    Wrapped read-only so construction can never mutate it.
    """
    flags: Mapping[str, bool] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "flags", MappingProxyType(dict(self.flags)))

    @property
    def active(self) -> frozenset[str]:
        return frozenset(tag for tag, wanted in self.flags.items() if wanted)

    def matches(self, place: Place) -> bool:
        """True if any of the place's tags is an active preference."""
        active = self.active
        return any(t in active for t in place.types)
