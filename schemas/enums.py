from enum import Enum


class JourneyMode(str, Enum):
    CLOSED_LOOP = "closed_loop"          # return to the start place
    POINT_TO_POINT = "point_to_point"    # distinct start and end places


class PointToPointStrategy(str, Enum):
    ALL_PAIRS = "all_pairs"
    SINGLE_SOURCE = "single_source"


class CellStatus(str, Enum):
    OK = "OK"
    UNAVAILABLE = "UNAVAILABLE"


class Provenance(str, Enum):
    EXACT = "exact"
    APPROXIMATED = "approximated"


class OutcomeCode(str, Enum):
    OK = "OK"
    NO_CANDIDATES_FOUND = "NO_CANDIDATES_FOUND"
    INFEASIBLE_CONSTRAINTS = "INFEASIBLE_CONSTRAINTS"


class Notice(str, Enum):
    APPROXIMATED_TRAVEL_COSTS = "APPROXIMATED_TRAVEL_COSTS"
    ENDPOINTS_REPAIRED = "ENDPOINTS_REPAIRED"
    RETURN_LEG_OMITTED = "RETURN_LEG_OMITTED"


class ResourceAbundance(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
