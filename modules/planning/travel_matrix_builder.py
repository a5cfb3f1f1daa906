"""
modules/planning/travel_matrix_builder.py
-------------------------------------------
Acquires the pairwise travel-cost matrix for the selected candidates.

  n ≤ MATRIX_SINGLE_CALL_LIMIT : one full n×n provider call
  n >  limit                   : two vector calls (start → all, all → end)
                                 and geometric approximation for the rest
  provider failure             : fully geometric matrix

The request never fails because the provider is down; every synthesized
cell carries provenance "approximated".
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Sequence

from schemas.places import Place
from schemas.travel_matrix import ZERO_COST, TravelCost, TravelCostMatrix
from modules.tool_usage.provider_errors import ProviderUnavailable
from modules.tool_usage.time_tool import TimeTool
from modules.tool_usage.travel_cost_tool import TravelCostTool
import config


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MatrixBuild:
    matrix: TravelCostMatrix
    approximated: bool          # True if any off-diagonal cell is synthesized


class TravelMatrixBuilder:
    def __init__(
        self,
        travel_cost_tool: TravelCostTool | None = None,
        time_tool: TimeTool | None = None,
        single_call_limit: int = config.MATRIX_SINGLE_CALL_LIMIT,
    ):
        self.travel_cost_tool = travel_cost_tool or TravelCostTool()
        self.time_tool = time_tool or TimeTool()
        self.single_call_limit = single_call_limit

    # ── Public ────────────────────────────────────────────────────────────────

    def build(self, places: Sequence[Place], start_index: int = 0, end_index: int | None = None) -> MatrixBuild:
        """
        Args:
            places:      ordered candidates; the matrix is aligned with them.
            start_index: index of the start place (vector path origin row).
            end_index:   index of the end place; defaults to start_index
                         (closed loop).
        """
        places = tuple(places)
        n = len(places)
        if end_index is None:
            end_index = start_index
        if n == 0:
            return MatrixBuild(TravelCostMatrix(), False)

        try:
            if n <= self.single_call_limit:
                cells = self._full(places)
            else:
                cells = self._vectors(places, start_index, end_index)
        except ProviderUnavailable as exc:
            logger.warning("Travel-cost provider unavailable (%s); using geometric estimates", exc)
            cells = self._geometric(places)

        cells = self._with_zero_diagonal(cells)
        matrix = TravelCostMatrix(places=places, cells=tuple(tuple(r) for r in cells))
        approximated = matrix.has_approximations
        logger.info("Built %dx%d travel-cost matrix (approximated=%s)", n, n, approximated)
        return MatrixBuild(matrix, approximated)

    # ── Strategies ────────────────────────────────────────────────────────────

    def _full(self, places: tuple[Place, ...]) -> list[list[TravelCost]]:
        coords = [p.location for p in places]
        return [list(row) for row in self.travel_cost_tool.fetch_matrix(coords, coords)]

    def _vectors(self, places: tuple[Place, ...], start: int, end: int) -> list[list[TravelCost]]:
        coords = [p.location for p in places]
        from_start = self.travel_cost_tool.fetch_matrix([coords[start]], coords)[0]
        to_end = [row[0] for row in self.travel_cost_tool.fetch_matrix(coords, [coords[end]])]

        cells = self._geometric(places)
        cells[start] = list(from_start)
        for i, cost in enumerate(to_end):
            cells[i][end] = cost
        return cells

    def _geometric(self, places: tuple[Place, ...]) -> list[list[TravelCost]]:
        return [
            [self.time_tool.approximate(a.location, b.location) for b in places]
            for a in places
        ]

    @staticmethod
    def _with_zero_diagonal(cells: list[list[TravelCost]]) -> list[list[TravelCost]]:
        for i, row in enumerate(cells):
            row[i] = ZERO_COST
        return cells
