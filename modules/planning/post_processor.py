"""
modules/planning/post_processor.py
------------------------------------
Turns a RouteDraft into the final Journey.

  1. reorder_nearest_neighbour  — greedy re-ordering of the interior stops
                                  (start, and end in point-to-point mode,
                                  stay fixed); kept only if every hop is OK,
                                  not longer and still within the constraints
  2. endpoint repair            — a virtual stop at the caller's coordinate
                                  when no stop represents an endpoint
  3. assembly                   — Stop / TravelLeg alternation, visit order
                                  renumbered 1..n

A leg whose matrix cell is UNAVAILABLE (or that touches a virtual stop) is
estimated geometrically and flagged is_fallback; it is never "0 mins".
"""

from __future__ import annotations
import logging
from dataclasses import replace
from typing import Optional

from schemas.enums import Notice, Provenance
from schemas.itinerary import Journey, JourneyItem, Stop, TravelLeg
from schemas.places import Coordinates, Place
from schemas.travel_matrix import TravelCost
from modules.planning.route_context import RouteContext, RouteDraft
from modules.tool_usage.distance_tool import haversine_m
from modules.tool_usage.time_tool import TimeTool
import config


logger = logging.getLogger(__name__)

START_VIRTUAL_ID = "start_virtual"
END_VIRTUAL_ID = "end_virtual"


# ─────────────────────────────────────────────────────────────────────────────
# Re-ordering
# ─────────────────────────────────────────────────────────────────────────────

def nearest_neighbour_order(ctx: RouteContext, route: list[int], fixed_end: bool) -> list[int]:
    """Greedy nearest-neighbour over OK cells from route[0]."""
    head = route[0]
    tail = [route[-1]] if fixed_end and len(route) > 1 else []
    remaining = route[1:-1] if tail else route[1:]

    ordered = [head]
    current = head
    while remaining:
        reachable = [j for j in remaining if ctx.matrix.is_ok(current, j)]
        if not reachable:
            ordered.extend(remaining)
            break
        nxt = min(reachable, key=lambda j: ctx.matrix.cell(current, j).distance_meters)
        ordered.append(nxt)
        remaining = [j for j in remaining if j != nxt]
        current = nxt
    return ordered + tail


def reorder_nearest_neighbour(ctx: RouteContext, draft: RouteDraft, fixed_end: bool) -> RouteDraft:
    """
    Re-order the interior of `draft.route`.

    The result replaces the draft only if every hop is an OK cell, its
    travelled distance (return leg included for closed loops) is not longer
    and its full state still fits.
    """
    route = list(draft.route)
    interior = len(route) - (2 if fixed_end else 1)
    if interior < 2:
        return draft

    candidate = nearest_neighbour_order(ctx, route, fixed_end)
    if candidate == route or not ctx.traversable(candidate, draft.closes_loop):
        return draft

    def length(r: list[int]) -> float:
        return ctx.route_distance(r + [r[0]] if draft.closes_loop else r)

    state = ctx.route_state(candidate, draft.closes_loop)
    if length(candidate) <= length(route) and state.fits(ctx.constraints):
        logger.debug("Nearest-neighbour order kept (%.0f m → %.0f m)", length(route), length(candidate))
        return replace(draft, route=tuple(candidate), state=state)
    return draft


# ─────────────────────────────────────────────────────────────────────────────
# Endpoint repair
# ─────────────────────────────────────────────────────────────────────────────

def represents_endpoint(
    place: Place,
    target: Coordinates,
    pinned: bool,
    tolerance_m: float = config.ENDPOINT_TOLERANCE_METERS,
) -> bool:
    """True if `place` is the pinned endpoint or lies within tolerance of `target`."""
    return pinned or haversine_m(place.location, target) <= tolerance_m


def virtual_stop_place(target: Coordinates, is_start: bool) -> Place:
    return Place(
        place_id=START_VIRTUAL_ID if is_start else END_VIRTUAL_ID,
        name="Start Location" if is_start else "End Location",
        location=target,
        rating=0.0,
        types=("point_of_interest",),
        estimated_visit_minutes=0.0,
        estimated_cost=0.0,
        is_start_point=is_start,
        is_end_point=not is_start,
        is_virtual=True,
    )


def access_reserve_minutes(
    start_place: Place,
    start_target: Coordinates,
    end_place: Place,
    end_target: Coordinates,
    time_tool: TimeTool | None = None,
    tolerance_m: float = config.ENDPOINT_TOLERANCE_METERS,
) -> float:
    """Minutes the virtual access/egress legs of endpoint repair will take."""
    time_tool = time_tool or TimeTool()
    minutes = 0.0
    if not represents_endpoint(start_place, start_target, start_place.is_start_point, tolerance_m):
        minutes += time_tool.approximate(start_target, start_place.location).duration_minutes
    if not represents_endpoint(end_place, end_target, end_place.is_end_point, tolerance_m):
        minutes += time_tool.approximate(end_place.location, end_target).duration_minutes
    return minutes


# ─────────────────────────────────────────────────────────────────────────────
# Assembly
# ─────────────────────────────────────────────────────────────────────────────

def _leg(a: Place, b: Place, cost: Optional[TravelCost], time_tool: TimeTool) -> TravelLeg:
    is_fallback = cost is None or not cost.ok
    if is_fallback:
        cost = time_tool.approximate(a.location, b.location)
    return TravelLeg(
        from_name=a.name,
        to_name=b.name,
        duration_text=time_tool.format_duration(cost.duration_minutes),
        distance_text=time_tool.format_distance(cost.distance_meters),
        duration_minutes=cost.duration_minutes,
        distance_meters=cost.distance_meters,
        provenance=Provenance.APPROXIMATED if is_fallback else cost.provenance,
        is_fallback=is_fallback,
    )


def assemble_journey(
    ctx: RouteContext,
    draft: RouteDraft,
    start_target: Coordinates | None = None,
    end_target: Coordinates | None = None,
    tolerance_m: float = config.ENDPOINT_TOLERANCE_METERS,
) -> tuple[Journey, tuple[Notice, ...]]:
    """
    Build the alternating Stop/TravelLeg journey.

    Args:
        start_target / end_target: caller coordinates to repair against
                                   (point-to-point only; None skips repair).

    Returns:
        (journey, notices) — notices holds ENDPOINTS_REPAIRED when a
        virtual stop was added.
    """
    # (place, matrix index or None)
    sequence: list[tuple[Place, Optional[int]]] = [(ctx.place(i), i) for i in draft.route]
    if draft.closes_loop and len(draft.route) > 1:
        sequence.append((ctx.place(draft.route[0]), draft.route[0]))

    repaired = False
    if start_target is not None:
        first = sequence[0][0]
        if not represents_endpoint(first, start_target, first.is_start_point, tolerance_m):
            sequence.insert(0, (virtual_stop_place(start_target, is_start=True), None))
            repaired = True
    if end_target is not None:
        last = sequence[-1][0]
        if not represents_endpoint(last, end_target, last.is_end_point, tolerance_m):
            sequence.append((virtual_stop_place(end_target, is_start=False), None))
            repaired = True

    items: list[JourneyItem] = []
    n = len(sequence)
    closes = draft.closes_loop and len(draft.route) > 1
    for k, (place, idx) in enumerate(sequence):
        if k > 0:
            prev_place, prev_idx = sequence[k - 1]
            cell = ctx.matrix.cell(prev_idx, idx) if prev_idx is not None and idx is not None else None
            items.append(_leg(prev_place, place, cell, ctx.time_tool))
        items.append(Stop(
            place=place,
            visit_order=k + 1,
            is_start_point=k == 0,
            is_end_point=k == n - 1 and n > 1 and (closes or end_target is not None),
        ))

    journey = Journey(items=tuple(items))

    notices = (Notice.ENDPOINTS_REPAIRED,) if repaired else ()
    if repaired:
        logger.info("Endpoint repair added virtual stop(s)")
    return journey, notices
