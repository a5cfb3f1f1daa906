"""
modules/planning/closed_loop.py
---------------------------------
Closed-loop construction: leave the start place, collect stops, come back.

    AT_START ──▶ EXPANDING ──(nothing feasible | stop cap)──▶ RETURNING ──▶ DONE

Each EXPANDING step:
  1. Dijkstra from the current stop (edge weights at the current surplus)
     gives a locality factor 1 / (1 + path_weight / 60).
  2. Every unvisited candidate with an OK edge from the current stop and an
     OK return edge to the start is projected:
        elapsed + travel + visit + return_travel ≤ Dmax
        spent   + cost                           ≤ Bmax
  3. Feasible candidates are scored
        score_place × locality + new_tags × s × 2 (s > 0.3)
                              + 3 (s > 0.5 and rating ≥ 4.5)
     and, once s > 0.4, picked by select_diverse_candidate() instead of
     plain arg-max.
"""

from __future__ import annotations
import logging

from schemas.enums import Notice, OutcomeCode
from modules.optimization.satisfaction import (
    ScoredCandidate,
    new_type_count,
    score_place,
    select_diverse_candidate,
)
from modules.optimization.shortest_paths import dijkstra
from modules.planning.route_context import RouteContext, RouteDraft
from modules.planning.strategy import closed_loop_rating_floor, min_stops_for_duration
import config


logger = logging.getLogger(__name__)

LOCALITY_SCALE_MINUTES = 60.0


def build_closed_loop(
    ctx: RouteContext,
    start_index: int,
    max_stops: int = config.CLOSED_LOOP_MAX_STOPS,
) -> RouteDraft:
    """
    Args:
        ctx:         matrix, preferences and constraints of the request.
        start_index: resolved start place (pinned, or nearest to the start
                     coordinate).
        max_stops:   soft cap on distinct stops, start included.

    Returns:
        RouteDraft with closes_loop=True when the return leg fits.
    """
    constraints = ctx.constraints
    state = ctx.open_at(start_index)
    if not state.fits(constraints):
        logger.info("Start place alone exceeds the constraints")
        return RouteDraft((start_index,), state, status=OutcomeCode.INFEASIBLE_CONSTRAINTS)

    route = [start_index]
    visited = {start_index}
    visited_types = set(ctx.place(start_index).types)
    min_stops = min_stops_for_duration(constraints.max_duration_minutes)

    # ── EXPANDING ─────────────────────────────────────────────────────────────
    while len(route) < max_stops:
        current = route[-1]
        surplus = state.surplus(constraints)
        s = surplus.combined
        paths = dijkstra(ctx.size, current, ctx.weight_fn(surplus))
        floor = closed_loop_rating_floor(s) if (len(route) >= min_stops and s > 0.4) else None

        candidates: list[ScoredCandidate] = []
        for j in range(ctx.size):
            if j in visited:
                continue
            place = ctx.place(j)
            if floor is not None and place.rating < floor:
                continue
            if not (ctx.matrix.is_ok(current, j) and ctx.matrix.is_ok(j, start_index)):
                continue
            projected = ctx.step(state, current, j)
            if not projected.advance(ctx.matrix.minutes(j, start_index)).fits(constraints):
                continue

            locality = 1 / (1 + paths.dist[j] / LOCALITY_SCALE_MINUTES)
            score = score_place(place, ctx.preferences, ctx.matrix.cell(current, j).distance_meters, surplus)
            score *= locality
            if s > 0.3:
                score += new_type_count(place, visited_types) * s * 2
            if s > 0.5 and place.rating >= 4.5:
                score += 3
            candidates.append(ScoredCandidate(j, place, score))

        if not candidates:
            break

        if s > 0.4 and len(candidates) > 1:
            pick = select_diverse_candidate(candidates, visited_types, s)
        else:
            pick = max(candidates, key=lambda c: c.score)

        state = ctx.step(state, current, pick.index)
        route.append(pick.index)
        visited.add(pick.index)
        visited_types.update(pick.place.types)
        logger.debug("Closed loop: added %s (score %.2f)", pick.place.name, pick.score)

    # ── RETURNING ─────────────────────────────────────────────────────────────
    if len(route) == 1:
        return RouteDraft(tuple(route), state)

    last = route[-1]
    if ctx.matrix.is_ok(last, start_index):
        returned = state.advance(ctx.matrix.minutes(last, start_index))
        if returned.fits(constraints):
            logger.info("Closed loop with %d stops, %.0f min", len(route), returned.elapsed_minutes)
            return RouteDraft(tuple(route), returned, closes_loop=True)

    logger.info("Return leg does not fit; journey ends open after %d stops", len(route))
    return RouteDraft(tuple(route), state, notices=(Notice.RETURN_LEG_OMITTED,))

