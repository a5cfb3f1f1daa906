"""
modules/tool_usage/travel_cost_tool.py
----------------------------------------
Wraps the external travel-cost provider (Distance Matrix API, driving mode).

Request : origins[], destinations[], mode=driving, units=metric
Response: rows[].elements[].{duration.value [s], distance.value [m], status}

Any transport failure, non-OK top-level status or malformed payload is
raised as ProviderUnavailable; callers fall back to geometric estimates.
Element-level non-OK statuses become UNAVAILABLE cells ("no edge").
"""

from __future__ import annotations
import logging
from typing import Sequence

import requests

from schemas.enums import CellStatus, Provenance
from schemas.places import Coordinates
from schemas.travel_matrix import TravelCost
from modules.tool_usage.provider_errors import ProviderUnavailable
import config


logger = logging.getLogger(__name__)

_PROVIDER = "travel-cost provider"


class TravelCostTool:
    """
    Thin client around the matrix endpoint.
    One instance may be shared; it holds no per-request state.
    """

    def __init__(
        self,
        api_url: str = config.DISTANCE_MATRIX_API_URL,
        api_key: str = config.GOOGLE_MAPS_API_KEY,
        timeout: float = config.PROVIDER_TIMEOUT_SECONDS,
        max_elements: int = config.MATRIX_SINGLE_CALL_LIMIT ** 2,
        session: requests.Session | None = None,
    ):
        self.api_url = api_url
        self.api_key = api_key
        self.timeout = timeout
        self.max_elements = max_elements
        # None: one plain requests.get per call, safe across worker threads
        self.session = session

    def fetch_matrix(
        self,
        origins: Sequence[Coordinates],
        destinations: Sequence[Coordinates],
    ) -> list[list[TravelCost]]:
        """
        Fetch an |origins| x |destinations| block of travel costs.

        Raises:
            ProviderUnavailable: key missing, element cap exceeded, HTTP or
                                 transport error, or non-OK response status.
        """
        if not self.api_key:
            raise ProviderUnavailable(_PROVIDER, "GOOGLE_MAPS_API_KEY is not configured")
        if not origins or not destinations:
            return [[] for _ in origins]
        if len(origins) * len(destinations) > self.max_elements:
            raise ProviderUnavailable(
                _PROVIDER,
                f"{len(origins)}x{len(destinations)} exceeds {self.max_elements} elements",
            )

        params = {
            "origins": "|".join(_fmt(c) for c in origins),
            "destinations": "|".join(_fmt(c) for c in destinations),
            "mode": "driving",
            "units": "metric",
            "key": self.api_key,
        }
        try:
            response = (self.session or requests).get(self.api_url, params=params, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as exc:
            raise ProviderUnavailable(_PROVIDER, str(exc)) from exc

        status = data.get("status")
        if status != "OK":
            raise ProviderUnavailable(_PROVIDER, f"response status {status}")

        rows = data.get("rows") or []
        if len(rows) != len(origins):
            raise ProviderUnavailable(_PROVIDER, f"expected {len(origins)} rows, got {len(rows)}")

        block = []
        for row in rows:
            elements = row.get("elements") or []
            if len(elements) != len(destinations):
                raise ProviderUnavailable(_PROVIDER, "row length does not match destinations")
            block.append([self._parse_element(e) for e in elements])

        logger.info("Fetched %dx%d travel-cost block", len(origins), len(destinations))
        return block

    @staticmethod
    def _parse_element(element: dict) -> TravelCost:
        if element.get("status") != "OK":
            return TravelCost.unavailable()
        try:
            seconds = float(element["duration"]["value"])
            meters = float(element["distance"]["value"])
        except (KeyError, TypeError, ValueError):
            return TravelCost.unavailable()
        return TravelCost(
            duration_minutes=seconds / 60.0,
            distance_meters=meters,
            status=CellStatus.OK,
            provenance=Provenance.EXACT,
        )


def _fmt(c: Coordinates) -> str:
    return f"{c.lat},{c.lng}"
