"""
modules/planning/strategy.py
------------------------------
Pure decision functions of (candidate count, duration, budget).

Nothing here touches the matrix; every threshold the constructors branch
on lives in this module so the choices are testable on their own.
"""

from __future__ import annotations
from dataclasses import dataclass

from schemas.enums import PointToPointStrategy, ResourceAbundance


LONG_JOURNEY_MINUTES = 360
AMPLE_BUDGET = 800
SINGLE_SOURCE_MAX_CANDIDATES = 15


@dataclass(frozen=True)
class Buffers:
    """Fractions of the hard limits a projection may consume."""
    time: float
    budget: float


def is_long_journey(max_duration_minutes: float) -> bool:
    return max_duration_minutes >= LONG_JOURNEY_MINUTES


def has_ample_budget(max_budget: float) -> bool:
    return max_budget >= AMPLE_BUDGET


def resource_abundance(max_duration_minutes: float, max_budget: float) -> ResourceAbundance:
    if max_duration_minutes >= 360 and max_budget >= 800:
        return ResourceAbundance.HIGH
    if max_duration_minutes >= 240 and max_budget >= 400:
        return ResourceAbundance.MEDIUM
    return ResourceAbundance.LOW


def choose_strategy(candidate_count: int, max_duration_minutes: float, max_budget: float) -> PointToPointStrategy:
    """
    Single-source for long, rich or time-heavy requests and for large
    candidate sets; all-pairs (exhaustive) otherwise.
    """
    if (
        is_long_journey(max_duration_minutes)
        or resource_abundance(max_duration_minutes, max_budget) == ResourceAbundance.HIGH
        or max_duration_minutes / max_budget > 0.8
        or candidate_count > SINGLE_SOURCE_MAX_CANDIDATES
    ):
        return PointToPointStrategy.SINGLE_SOURCE
    return PointToPointStrategy.ALL_PAIRS


# ── Closed loop ───────────────────────────────────────────────────────────────

def min_stops_for_duration(max_duration_minutes: float) -> int:
    """About one stop per 90 minutes, never fewer than 4."""
    return max(4, int(max_duration_minutes // 90))


def closed_loop_rating_floor(combined_surplus: float) -> float:
    if combined_surplus > 0.8:
        return 3.8
    if combined_surplus > 0.5:
        return 3.2
    return 2.3


# ── Point to point ────────────────────────────────────────────────────────────

def all_pairs_buffers(abundance: ResourceAbundance) -> Buffers:
    return {
        ResourceAbundance.HIGH: Buffers(0.85, 0.80),
        ResourceAbundance.MEDIUM: Buffers(0.90, 0.85),
        ResourceAbundance.LOW: Buffers(0.95, 0.90),
    }[abundance]


def single_source_buffers(max_duration_minutes: float, max_budget: float, places_needed: int) -> Buffers:
    abundant = resource_abundance(max_duration_minutes, max_budget) == ResourceAbundance.HIGH
    if abundant and places_needed > 2:
        return Buffers(0.98, 0.95)
    if abundant:
        return Buffers(0.95, 0.90)
    if is_long_journey(max_duration_minutes) or has_ample_budget(max_budget):
        return Buffers(0.92, 0.88)
    return Buffers(0.90, 0.85)


def geographic_deviation_limit(max_duration_minutes: float, max_budget: float) -> float:
    long_journey = is_long_journey(max_duration_minutes)
    ample = has_ample_budget(max_budget)
    if long_journey and ample:
        return 4.0
    if long_journey or ample:
        return 3.0
    return 2.2


def single_source_target(max_duration_minutes: float) -> int:
    """Stops to aim for, counting both endpoints: one per hour, 3..10."""
    return min(10, max(3, int(max_duration_minutes // 60)))
