"""
modules/planning/route_context.py
-----------------------------------
Per-request inputs shared by the route constructors and the post-processor,
plus the RouteDraft the constructors hand over.

Indices everywhere refer to positions in `matrix.places`.

reserve_minutes is time set aside before the first stop is opened: the
access/egress legs endpoint repair will add when a resolved endpoint place
is not at the caller's coordinate.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Sequence

from schemas.constraints import Constraints, PreferenceSet
from schemas.enums import Notice, OutcomeCode
from schemas.places import Place
from schemas.travel_matrix import TravelCostMatrix
from modules.optimization.heuristic import edge_weight
from modules.optimization.resource_state import ResourceState, ResourceSurplus
from modules.optimization.shortest_paths import WeightFn
from modules.tool_usage.time_tool import TimeTool


@dataclass(frozen=True)
class RouteContext:
    matrix: TravelCostMatrix
    preferences: PreferenceSet
    constraints: Constraints
    reserve_minutes: float = 0.0
    time_tool: TimeTool = field(default_factory=TimeTool, compare=False, repr=False)

    @property
    def size(self) -> int:
        return len(self.matrix)

    def place(self, i: int) -> Place:
        return self.matrix.places[i]

    def weight_fn(self, surplus: ResourceSurplus) -> WeightFn:
        """Edge weights frozen at the given surplus."""
        places, matrix = self.matrix.places, self.matrix
        return lambda i, j: edge_weight(
            places[j], matrix.cell(i, j), self.preferences, self.constraints, surplus
        )

    # ── Resource accounting ───────────────────────────────────────────────────

    def open_at(self, i: int) -> ResourceState:
        """State after the reserve and the visit at place i."""
        p = self.place(i)
        return ResourceState().advance(self.reserve_minutes + p.estimated_visit_minutes, p.estimated_cost)

    def step(self, state: ResourceState, i: int, j: int) -> ResourceState:
        """State after travelling i → j and visiting j."""
        p = self.place(j)
        return state.advance(self.travel_minutes(i, j) + p.estimated_visit_minutes, p.estimated_cost)

    def travel_minutes(self, i: int, j: int) -> float:
        """Matrix minutes, or the geometric estimate for an UNAVAILABLE cell."""
        if self.matrix.is_ok(i, j):
            return self.matrix.minutes(i, j)
        return self.time_tool.approximate(self.place(i).location, self.place(j).location).duration_minutes

    def route_state(self, route: Sequence[int], closes_loop: bool = False) -> ResourceState:
        """Full state of visiting `route` in order (return leg included if closed)."""
        state = self.open_at(route[0])
        for a, b in zip(route, route[1:]):
            state = self.step(state, a, b)
        if closes_loop and len(route) > 1:
            state = state.advance(self.travel_minutes(route[-1], route[0]))
        return state

    def traversable(self, route: Sequence[int], closes_loop: bool = False) -> bool:
        """True if every hop of `route` (return leg included if closed) is an OK cell."""
        hops = list(zip(route, route[1:]))
        if closes_loop and len(route) > 1:
            hops.append((route[-1], route[0]))
        return all(self.matrix.is_ok(a, b) for a, b in hops)

    def route_distance(self, route: Sequence[int]) -> float:
        """Metres along `route` over OK cells; UNAVAILABLE hops use the estimate."""
        total = 0.0
        for a, b in zip(route, route[1:]):
            cell = self.matrix.cell(a, b)
            if not cell.ok:
                cell = self.time_tool.approximate(self.place(a).location, self.place(b).location)
            total += cell.distance_meters
        return total


@dataclass(frozen=True)
class RouteDraft:
    """
    Constructor output, before re-ordering and assembly.

    route        : stop indices in visit order (start first)
    closes_loop  : the last leg returns to route[0]
    """
    route: tuple[int, ...]
    state: ResourceState
    closes_loop: bool = False
    status: OutcomeCode = OutcomeCode.OK
    notices: tuple[Notice, ...] = ()
