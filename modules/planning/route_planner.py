"""
modules/planning/route_planner.py
-----------------------------------
Journey synthesis entry point.

Pipeline (one request, synchronous):
  1. filter_candidates        — drop non-leisure / low-quality places
  2. CandidateSelector        — bound the set to ≤ CANDIDATE_HARD_CAP
  3. endpoint resolution      — pinned place, else nearest candidate
  4. TravelMatrixBuilder      — provider matrix or geometric fallback
  5. route construction       — closed loop, or point to point
                                (all-pairs / single-source)
  6. post-processing          — nearest-neighbour re-order, endpoint
                                repair, Stop/TravelLeg assembly

Outcomes are values, never exceptions:
  NO_CANDIDATES_FOUND     fewer than two places survive filtering
  INFEASIBLE_CONSTRAINTS  even the minimal journey breaks a hard limit
  OK                      populated journey; notices are informational
"""

from __future__ import annotations
import asyncio
import logging
from typing import Iterable, Mapping, Sequence

from schemas.constraints import Constraints, PreferenceSet
from schemas.enums import JourneyMode, Notice, OutcomeCode
from schemas.itinerary import EMPTY_JOURNEY, SynthesisResult
from schemas.places import Coordinates, Place
from modules.recommendation.candidate_filter import filter_candidates
from modules.recommendation.candidate_selector import CandidateSelector
from modules.planning.travel_matrix_builder import TravelMatrixBuilder
from modules.planning.route_context import RouteContext
from modules.planning.closed_loop import build_closed_loop
from modules.planning.point_to_point import build_point_to_point
from modules.planning.post_processor import (
    access_reserve_minutes,
    assemble_journey,
    reorder_nearest_neighbour,
)
from modules.tool_usage.distance_tool import nearest_index
from modules.tool_usage.places_tool import PlacesTool
from modules.tool_usage.time_tool import TimeTool
from modules.tool_usage.travel_cost_tool import TravelCostTool
import config


logger = logging.getLogger(__name__)

MIN_CANDIDATES = 2


class RoutePlanner:
    """
    Wires candidate pruning, travel-cost acquisition and route construction.

    One instance may serve many requests; no state is kept between calls.
    """

    def __init__(
        self,
        travel_cost_tool: TravelCostTool | None = None,
        places_tool: PlacesTool | None = None,
        time_tool: TimeTool | None = None,
        single_call_limit: int = config.MATRIX_SINGLE_CALL_LIMIT,
        candidate_cap: int = config.CANDIDATE_HARD_CAP,
    ):
        self.time_tool      = time_tool or TimeTool()
        self.places_tool    = places_tool
        self.candidate_cap  = candidate_cap
        self.matrix_builder = TravelMatrixBuilder(travel_cost_tool, self.time_tool, single_call_limit)

    # ── Public entry points ───────────────────────────────────────────────────

    def plan(
        self,
        places: Sequence[Place],
        preferences: PreferenceSet,
        constraints: Constraints,
        start_point: Coordinates,
        end_point: Coordinates | None = None,
        mode: JourneyMode = JourneyMode.CLOSED_LOOP,
    ) -> SynthesisResult:
        """
        Synthesize one journey from an already-fetched place list.

        Raises:
            ValueError: point-to-point mode without an end point.
        """
        if mode == JourneyMode.POINT_TO_POINT and end_point is None:
            raise ValueError("point-to-point journeys need an end point")

        filtered = filter_candidates(places)
        if len(filtered) < MIN_CANDIDATES:
            logger.info("No candidates: %d place(s) survived filtering", len(filtered))
            return SynthesisResult(OutcomeCode.NO_CANDIDATES_FOUND, EMPTY_JOURNEY, (), len(filtered))

        selector = CandidateSelector(
            preferences=preferences,
            max_budget=constraints.max_budget,
            max_duration_minutes=constraints.max_duration_minutes,
            mode=mode,
            start=start_point,
            end=end_point,
            hard_cap=self.candidate_cap,
        )
        candidates = selector.select(filtered)

        start_index = resolve_endpoint(candidates, start_point, is_start=True)
        if mode == JourneyMode.POINT_TO_POINT:
            end_index = resolve_endpoint(candidates, end_point, is_start=False, exclude=start_index)
        else:
            end_index = start_index

        build = self.matrix_builder.build(candidates, start_index, end_index)
        notices: list[Notice] = [Notice.APPROXIMATED_TRAVEL_COSTS] if build.approximated else []

        if mode == JourneyMode.POINT_TO_POINT:
            reserve = access_reserve_minutes(
                candidates[start_index], start_point, candidates[end_index], end_point, self.time_tool,
            )
            ctx = RouteContext(build.matrix, preferences, constraints, reserve, self.time_tool)
            draft = build_point_to_point(ctx, start_index, end_index)
            if draft.status == OutcomeCode.OK:
                draft = reorder_nearest_neighbour(ctx, draft, fixed_end=True)
            journey, repair_notices = assemble_journey(ctx, draft, start_point, end_point)
        else:
            ctx = RouteContext(build.matrix, preferences, constraints, 0.0, self.time_tool)
            draft = build_closed_loop(ctx, start_index)
            if draft.status == OutcomeCode.OK:
                draft = reorder_nearest_neighbour(ctx, draft, fixed_end=False)
            journey, repair_notices = assemble_journey(ctx, draft)

        notices.extend(draft.notices)
        notices.extend(repair_notices)
        logger.info(
            "Journey %s: %d stops, %.0f min, %.0f spend",
            draft.status.value, len(journey.stops), journey.total_duration_minutes, journey.total_cost,
        )
        return SynthesisResult(draft.status, journey, tuple(notices), len(candidates))

    async def plan_from_catalog(
        self,
        preferences: PreferenceSet,
        constraints: Constraints,
        start_point: Coordinates,
        end_point: Coordinates | None = None,
        mode: JourneyMode = JourneyMode.CLOSED_LOOP,
        extra_places: Iterable[Place] = (),
        places_tool: PlacesTool | None = None,
    ) -> SynthesisResult:
        """
        Fetch candidates for every active preference around the start point,
        then synthesize. Construction runs in a worker thread.
        """
        places_tool = places_tool or self.places_tool or PlacesTool()
        fetched = await places_tool.fetch(start_point, sorted(preferences.active))
        places = list(extra_places) + fetched
        return await asyncio.to_thread(
            self.plan, places, preferences, constraints, start_point, end_point, mode,
        )


# ─────────────────────────────────────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────────────────────────────────────

def resolve_endpoint(
    places: Sequence[Place],
    target: Coordinates,
    is_start: bool,
    exclude: int | None = None,
) -> int:
    """
    Index of the pinned endpoint place, else of the place nearest `target`.

    The nearest-place fallback passes over places pinned for the other
    endpoint unless nothing else is left.
    """
    skip = set() if exclude is None else {exclude}
    for i, p in enumerate(places):
        if i in skip:
            continue
        if (is_start and p.is_start_point) or (not is_start and p.is_end_point):
            return i
    other = {i for i, p in enumerate(places) if (p.is_end_point if is_start else p.is_start_point)}
    idx = nearest_index(places, target, exclude=skip | other)
    if idx is None:
        idx = nearest_index(places, target, exclude=skip)
    if idx is None:
        raise ValueError("no place left to resolve the endpoint to")
    return idx


def synthesize_journey(
    places: Sequence[Place],
    preferences: PreferenceSet | Mapping[str, bool],
    max_duration_minutes: float,
    max_budget: float,
    start_point: Coordinates,
    end_point: Coordinates | None = None,
    mode: JourneyMode = JourneyMode.CLOSED_LOOP,
    planner: RoutePlanner | None = None,
) -> SynthesisResult:
    """
    Plan a journey through `places`.

    Args:
        places:               raw candidate places (unfiltered).
        preferences:          {category_tag: interested} or a PreferenceSet.
        max_duration_minutes: hard time limit, visits and travel included.
        max_budget:           hard spend limit.
        start_point:          caller's start coordinate.
        end_point:            caller's end coordinate (point-to-point only).
        mode:                 JourneyMode.CLOSED_LOOP or POINT_TO_POINT.
        planner:              RoutePlanner to use (tests inject fake providers).

    Raises:
        ValueError: non-positive limits, or point-to-point without end_point.
    """
    constraints = Constraints(max_duration_minutes=max_duration_minutes, max_budget=max_budget)
    if not isinstance(preferences, PreferenceSet):
        preferences = PreferenceSet(preferences)
    planner = planner or RoutePlanner()
    return planner.plan(places, preferences, constraints, start_point, end_point, JourneyMode(mode))
