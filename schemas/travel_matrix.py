"""
schemas/travel_matrix.py
-------------------------
Pairwise travel-cost data over an ordered list of candidate places.

cell(i, j) = TravelCost from places[i] to places[j]
  status      : OK | UNAVAILABLE   (UNAVAILABLE = no edge, never zero cost)
  provenance  : exact | approximated

Units:
  - duration_minutes : minutes
  - distance_meters  : metres
"""

from __future__ import annotations
from dataclasses import dataclass, field

from schemas.enums import CellStatus, Provenance
from schemas.places import Place


@dataclass(frozen=True)
class TravelCost:
    duration_minutes: float = 0.0
    distance_meters: float = 0.0
    status: CellStatus = CellStatus.OK
    provenance: Provenance = Provenance.EXACT

    @property
    def ok(self) -> bool:
        return self.status == CellStatus.OK

    @classmethod
    def unavailable(cls) -> "TravelCost":
        return cls(status=CellStatus.UNAVAILABLE)


ZERO_COST = TravelCost()


@dataclass(frozen=True)
class TravelCostMatrix:
    """
    Square matrix aligned with `places`.
    Built once per request by modules/planning/travel_matrix_builder.py.
    """
    places: tuple[Place, ...] = ()
    cells: tuple[tuple[TravelCost, ...], ...] = ()
    _index: dict = field(default_factory=dict, init=False, compare=False, repr=False)

    def __post_init__(self):
        n = len(self.places)
        if len(self.cells) != n or any(len(row) != n for row in self.cells):
            raise ValueError(f"cells must be a {n}x{n} matrix")
        object.__setattr__(
            self, "_index", {p.place_id: i for i, p in enumerate(self.places)}
        )

    def __len__(self) -> int:
        return len(self.places)

    def cell(self, i: int, j: int) -> TravelCost:
        return self.cells[i][j]

    def is_ok(self, i: int, j: int) -> bool:
        return self.cells[i][j].ok

    def minutes(self, i: int, j: int) -> float:
        """
        Travel minutes from i to j.
        Returns float('inf') for UNAVAILABLE cells.
        """
        c = self.cells[i][j]
        return c.duration_minutes if c.ok else float("inf")

    def index_of(self, place_id: str) -> int | None:
        return self._index.get(place_id)

    @property
    def has_approximations(self) -> bool:
        return any(
            c.provenance == Provenance.APPROXIMATED
            for i, row in enumerate(self.cells)
            for j, c in enumerate(row)
            if i != j
        )
