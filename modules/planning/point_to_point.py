"""
modules/planning/point_to_point.py
------------------------------------
Point-to-point construction between two distinct endpoint places.

Fast path: if start visit + direct leg + end visit already breaks a hard
limit, the two-stop direct journey is returned as INFEASIBLE_CONSTRAINTS.

Every hop of the result is an OK cell. When the direct cell is UNAVAILABLE
and no intermediate was accepted, the cheapest OK-cell chain from start to
end is used instead; if there is none, or it breaks a limit, the draft is
INFEASIBLE_CONSTRAINTS.

Otherwise choose_strategy() picks one of:

  ALL_PAIRS      Floyd–Warshall over the edge weight. Intermediates with a
                 detour ratio ≤ 2.5 are ranked by
                     0.6·advanced_place_score + 0.4·efficiency
                 (efficiency 10 / 8 / 5 / 2 for ratio ≤ 1 / 1.5 / 2 / 2.5),
                 the top 8 are accepted greedily while the projection to the
                 end place stays inside the abundance buffers.

  SINGLE_SOURCE  Haversine corridor prefilter, Dijkstra from start and from
                 end, then repeated insertion of the best feasible candidate
                     1.2·score_place·path_efficiency
                     + diversity + popularity + quantity
                 until the target stop count or nothing fits.
"""

from __future__ import annotations
import logging
import math

from schemas.enums import OutcomeCode, PointToPointStrategy, ResourceAbundance
from modules.optimization.resource_state import ResourceState
from modules.optimization.satisfaction import (
    ScoredCandidate,
    advanced_place_score,
    new_type_count,
    popularity_bonus,
    score_place,
    select_diverse_candidate,
)
from modules.optimization.shortest_paths import dijkstra, floyd_warshall, path_from_next
from modules.planning.route_context import RouteContext, RouteDraft
from modules.planning.strategy import (
    all_pairs_buffers,
    choose_strategy,
    geographic_deviation_limit,
    resource_abundance,
    single_source_buffers,
    single_source_target,
)
from modules.tool_usage.distance_tool import detour_ratio, haversine_m


logger = logging.getLogger(__name__)

MAX_DETOUR_RATIO = 2.5
ALL_PAIRS_TOP_K = 8
LOCALITY_SCALE_MINUTES = 60.0


def build_point_to_point(ctx: RouteContext, start_index: int, end_index: int) -> RouteDraft:
    """
    Args:
        ctx:         request context (reserve_minutes covers repair legs).
        start_index: resolved start place.
        end_index:   resolved end place, distinct from start_index.
    """
    if start_index == end_index:
        raise ValueError("point-to-point endpoints must be distinct places")

    c = ctx.constraints
    opened = ctx.open_at(start_index)
    direct = ctx.step(opened, start_index, end_index)
    if not direct.fits(c):
        logger.info(
            "Direct journey needs %.0f min / %.0f spend; limits %.0f / %.0f",
            direct.elapsed_minutes, direct.spent_budget, c.max_duration_minutes, c.max_budget,
        )
        return RouteDraft((start_index, end_index), direct, status=OutcomeCode.INFEASIBLE_CONSTRAINTS)

    strategy = choose_strategy(ctx.size, c.max_duration_minutes, c.max_budget)
    logger.info("Point-to-point strategy: %s (%d candidates)", strategy.value, ctx.size)
    if strategy == PointToPointStrategy.ALL_PAIRS:
        route = _all_pairs(ctx, start_index, end_index, opened)
    else:
        route = _single_source(ctx, start_index, end_index, opened)

    if not ctx.traversable(route):
        return _bridge(ctx, start_index, end_index, opened, direct)
    return RouteDraft(tuple(route), ctx.route_state(route))


def _bridge(
    ctx: RouteContext, start: int, end: int, opened: ResourceState, direct: ResourceState
) -> RouteDraft:
    """Cheapest OK-cell chain start → end, for an UNAVAILABLE direct cell."""
    c = ctx.constraints
    _, nxt = floyd_warshall(ctx.size, ctx.weight_fn(opened.surplus(c)))
    path = path_from_next(nxt, start, end)
    if not path:
        logger.warning("No OK-cell chain from %s to %s", ctx.place(start).name, ctx.place(end).name)
        return RouteDraft((start, end), direct, status=OutcomeCode.INFEASIBLE_CONSTRAINTS)

    state = ctx.route_state(path)
    if not state.fits(c):
        logger.info("OK-cell chain to the end place breaks the limits (%.0f min)", state.elapsed_minutes)
        return RouteDraft(tuple(path), state, status=OutcomeCode.INFEASIBLE_CONSTRAINTS)
    logger.info("Direct leg UNAVAILABLE; bridged through %d intermediate(s)", len(path) - 2)
    return RouteDraft(tuple(path), state)


# ─────────────────────────────────────────────────────────────────────────────
# All pairs
# ─────────────────────────────────────────────────────────────────────────────

def _efficiency_band(ratio: float) -> float:
    if ratio <= 1.0:
        return 10.0
    if ratio <= 1.5:
        return 8.0
    if ratio <= 2.0:
        return 5.0
    return 2.0


def rank_intermediates(ctx: RouteContext, start: int, end: int, dist: list[list[float]]) -> list[int]:
    """Top intermediates by quality and detour, best first."""
    direct = dist[start][end]
    if math.isinf(direct) or direct <= 0:
        return []

    scored = []
    for i in range(ctx.size):
        if i in (start, end):
            continue
        via = dist[start][i] + dist[i][end]
        if math.isinf(via):
            continue
        ratio = via / direct
        if ratio > MAX_DETOUR_RATIO:
            continue
        quality = advanced_place_score(ctx.place(i), ctx.preferences, ctx.constraints.max_budget)
        scored.append((quality * 0.6 + _efficiency_band(ratio) * 0.4, i))

    scored.sort(key=lambda si: si[0], reverse=True)
    return [i for _, i in scored[:ALL_PAIRS_TOP_K]]


def _all_pairs(ctx: RouteContext, start: int, end: int, state: ResourceState) -> list[int]:
    c = ctx.constraints
    dist, _ = floyd_warshall(ctx.size, ctx.weight_fn(state.surplus(c)))
    buffers = all_pairs_buffers(resource_abundance(c.max_duration_minutes, c.max_budget))

    route = [start]
    for i in rank_intermediates(ctx, start, end, dist):
        current = route[-1]
        if not (ctx.matrix.is_ok(current, i) and ctx.matrix.is_ok(i, end)):
            continue
        projected = ctx.step(state, current, i)
        if ctx.step(projected, i, end).fits(c, buffers.time, buffers.budget):
            route.append(i)
            state = projected
    return route + [end]


# ─────────────────────────────────────────────────────────────────────────────
# Single source
# ─────────────────────────────────────────────────────────────────────────────

def corridor_candidates(ctx: RouteContext, start: int, end: int) -> list[int]:
    """Places inside the detour corridor, nearest to the start first."""
    c = ctx.constraints
    limit = geographic_deviation_limit(c.max_duration_minutes, c.max_budget)
    s_loc, e_loc = ctx.place(start).location, ctx.place(end).location
    pool = [
        i for i in range(ctx.size)
        if i not in (start, end) and detour_ratio(ctx.place(i).location, s_loc, e_loc) < limit
    ]
    pool.sort(key=lambda i: haversine_m(s_loc, ctx.place(i).location))
    return pool


def _single_source(ctx: RouteContext, start: int, end: int, state: ResourceState) -> list[int]:
    c = ctx.constraints
    pool = corridor_candidates(ctx, start, end)
    if not pool:
        return [start, end]

    from_start = dijkstra(ctx.size, start, ctx.weight_fn(state.surplus(c)))
    from_end = dijkstra(ctx.size, end, ctx.weight_fn(ResourceState().surplus(c)))
    direct_weight = from_start.dist[end] if from_start.reachable(end) else 1.0

    abundant = resource_abundance(c.max_duration_minutes, c.max_budget) == ResourceAbundance.HIGH
    target = single_source_target(c.max_duration_minutes)

    route = [start]
    visited_types = set(ctx.place(start).types)

    while pool and len(route) + 1 < target:
        current = route[-1]
        surplus = state.surplus(c)
        s = surplus.combined
        buffers = single_source_buffers(c.max_duration_minutes, c.max_budget, target - len(route))

        candidates: list[ScoredCandidate] = []
        for i in pool:
            if not (ctx.matrix.is_ok(current, i) and ctx.matrix.is_ok(i, end)):
                continue
            projected = ctx.step(state, current, i)
            if not ctx.step(projected, i, end).fits(c, buffers.time, buffers.budget):
                continue

            place = ctx.place(i)
            path_weight = from_start.dist[i] + from_end.dist[i]
            efficiency = 0.0 if math.isinf(path_weight) else 1 / (1 + path_weight / LOCALITY_SCALE_MINUTES)
            score = 1.2 * efficiency * score_place(
                place, ctx.preferences, ctx.matrix.cell(current, i).distance_meters, surplus
            )
            if s > 0.2:
                score += new_type_count(place, visited_types) * s * (4 if abundant else 3)
            score += popularity_bonus(place)
            if abundant and len(route) < target and path_weight / (direct_weight or 1.0) < MAX_DETOUR_RATIO:
                score += (target - len(route)) * 2
            candidates.append(ScoredCandidate(i, place, score))

        if not candidates:
            break

        if abundant and len(candidates) > 2:
            top = sorted(candidates, key=lambda sc: sc.score, reverse=True)[:3]
            pick = select_diverse_candidate(top, visited_types, s, top_k=3) if s > 0.5 else top[0]
        else:
            pick = max(candidates, key=lambda sc: sc.score)

        state = ctx.step(state, current, pick.index)
        route.append(pick.index)
        pool.remove(pick.index)
        visited_types.update(pick.place.types)
        logger.debug("Single source: added %s (score %.2f)", pick.place.name, pick.score)

    return route + [end]
