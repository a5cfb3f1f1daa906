"""
modules/optimization/resource_state.py
----------------------------------------
Resource accounting threaded through route construction.

ResourceState is an immutable value: every construction step returns a new
state via `advance()`, so several what-if projections can be evaluated from
the same state without interfering.

Surplus (0 = exhausted, 1 = untouched):
    time_surplus   = clamp01((Dmax - elapsed) / Dmax)
    budget_surplus = clamp01((Bmax - spent)   / Bmax)

Efficiency correction — budget should be consumed roughly in step with time.
A route that is pacing slower on spend than on time earns the shortfall as
extra budget surplus:
    ideal  = elapsed / Dmax
    actual = spent   / Bmax
    budget_surplus' = min(1, budget_surplus + max(0, ideal - actual))
    combined        = (budget_surplus' + time_surplus) / 2
    efficiency      = 1 - |ideal - actual|
"""

from __future__ import annotations
from dataclasses import dataclass

from schemas.constraints import Constraints


def clamp01(x: float) -> float:
    return min(1.0, max(0.0, x))


@dataclass(frozen=True)
class ResourceSurplus:
    budget: float = 1.0
    time: float = 1.0
    combined: float = 1.0
    efficiency: float = 1.0


@dataclass(frozen=True)
class ResourceState:
    elapsed_minutes: float = 0.0
    spent_budget: float = 0.0

    def advance(self, minutes: float = 0.0, cost: float = 0.0) -> "ResourceState":
        """New state with time and spend added; both must be non-negative."""
        if minutes < 0 or cost < 0:
            raise ValueError("resource usage can only grow")
        return ResourceState(self.elapsed_minutes + minutes, self.spent_budget + cost)

    def fits(self, constraints: Constraints, time_buffer: float = 1.0, budget_buffer: float = 1.0) -> bool:
        return (
            self.elapsed_minutes <= constraints.max_duration_minutes * time_buffer
            and self.spent_budget <= constraints.max_budget * budget_buffer
        )

    def surplus(self, constraints: Constraints) -> ResourceSurplus:
        return compute_surplus(constraints, self)


def compute_surplus(constraints: Constraints, state: ResourceState) -> ResourceSurplus:
    d_max = constraints.max_duration_minutes
    b_max = constraints.max_budget

    time_surplus = clamp01((d_max - state.elapsed_minutes) / d_max)
    budget_surplus = clamp01((b_max - state.spent_budget) / b_max)

    ideal = state.elapsed_minutes / d_max
    actual = state.spent_budget / b_max
    adjusted_budget = min(1.0, budget_surplus + max(0.0, ideal - actual))

    return ResourceSurplus(
        budget=adjusted_budget,
        time=time_surplus,
        combined=(adjusted_budget + time_surplus) / 2,
        efficiency=1 - abs(ideal - actual),
    )
