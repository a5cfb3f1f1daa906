"""
modules/tool_usage/places_tool.py
----------------------------------
Fetches candidate places from the external place catalog (Places Nearby
Search) and geocodes free-text locations.

Request : {location, type, radius}
Response: results[].{place_id, name, geometry.location, rating,
                     user_ratings_total, types, price_level, business_status}

One request is issued per active preference category. The category queries
are independent, so they run concurrently and are joined before filtering;
a failure in one category does not abort the others.
"""

from __future__ import annotations
import asyncio
import logging
from typing import Any, Iterable

import requests

from schemas.places import DEFAULT_RATING, Coordinates, Place
from modules.tool_usage.provider_errors import ProviderUnavailable
import config


logger = logging.getLogger(__name__)

_PROVIDER = "place catalog"

# Price level ($, $$, $$$, $$$$) to an estimated spend per visit
PRICE_LEVEL_COST: dict[int, float] = {1: 15.0, 2: 40.0, 3: 75.0, 4: 125.0}
DEFAULT_COST: float = 20.0


def estimate_cost(types: Iterable[str], price_level: int | None) -> float:
    """Category / price-tier derived spend for one visit."""
    types = set(types)
    cost = PRICE_LEVEL_COST.get(price_level, DEFAULT_COST)
    if types & {"museum", "tourist_attraction"}:
        return max(cost, 50.0)    # entry fees
    if types & {"park", "place_of_worship"}:
        return 10.0               # usually free or donation
    return cost


def estimate_visit_minutes(types: Iterable[str]) -> float:
    """Category derived visit duration [minutes]."""
    types = set(types)
    if types & {"museum", "tourist_attraction"}:
        return 120.0
    if "park" in types:
        return 90.0
    if types & {"cafe", "restaurant"}:
        return 45.0
    if "place_of_worship" in types:
        return 30.0
    return 60.0


class PlacesTool:
    """
    Wraps the external place catalog and geocoder.
    """

    def __init__(
        self,
        api_url: str = config.PLACES_API_URL,
        geocode_url: str = config.GEOCODE_API_URL,
        api_key: str = config.GOOGLE_MAPS_API_KEY,
        radius_m: int = config.SEARCH_RADIUS_METERS,
        timeout: float = config.PROVIDER_TIMEOUT_SECONDS,
        session: requests.Session | None = None,
    ):
        self.api_url = api_url
        self.geocode_url = geocode_url
        self.api_key = api_key
        self.radius_m = radius_m
        self.timeout = timeout
        # None: one plain requests.get per call, safe across worker threads
        self.session = session

    # ── Public ────────────────────────────────────────────────────────────────

    def geocode(self, address: str) -> Coordinates:
        """
        Resolve a free-text location to coordinates.

        Raises:
            ProviderUnavailable: on transport error or when nothing matched.
        """
        data = self._get(self.geocode_url, {"address": address, "key": self.api_key})
        results = data.get("results") or []
        if not results:
            raise ProviderUnavailable(_PROVIDER, f"location not found: {address!r}")
        return Coordinates.from_dict(results[0]["geometry"]["location"])

    def fetch_category(self, anchor: Coordinates, category: str) -> list[Place]:
        """Fetch operational places of one category around `anchor`."""
        params: dict[str, Any] = {
            "location": f"{anchor.lat},{anchor.lng}",
            "radius": self.radius_m,
            "type": category,
            "key": self.api_key,
        }
        data = self._get(self.api_url, params)
        status = data.get("status", "OK")
        if status not in ("OK", "ZERO_RESULTS"):
            raise ProviderUnavailable(_PROVIDER, f"{category}: response status {status}")

        places = []
        for item in data.get("results") or []:
            if item.get("business_status", "OPERATIONAL") != "OPERATIONAL":
                continue
            try:
                places.append(self._parse_record(item))
            except (KeyError, TypeError, ValueError):
                logger.warning("Skipping malformed catalog record: %s", item.get("name"))
        return places

    async def fetch(self, anchor: Coordinates, categories: Iterable[str]) -> list[Place]:
        """
        Fetch every category concurrently and merge the results.

        Places returned by several categories are kept once (first seen wins).
        Categories whose query fails are logged and skipped.
        """
        categories = list(dict.fromkeys(categories))
        results = await asyncio.gather(
            *[asyncio.to_thread(self.fetch_category, anchor, c) for c in categories],
            return_exceptions=True,
        )

        merged: dict[str, Place] = {}
        for category, result in zip(categories, results):
            if isinstance(result, ProviderUnavailable):
                logger.warning("Category %r skipped: %s", category, result)
                continue
            if isinstance(result, BaseException):
                raise result
            for place in result:
                merged.setdefault(place.place_id, place)

        logger.info("Catalog returned %d unique places for %d categories", len(merged), len(categories))
        return list(merged.values())

    # ── Internal ──────────────────────────────────────────────────────────────

    def _get(self, url: str, params: dict[str, Any]) -> dict:
        if not self.api_key:
            raise ProviderUnavailable(_PROVIDER, "GOOGLE_MAPS_API_KEY is not configured")
        try:
            response = (self.session or requests).get(url, params=params, timeout=self.timeout)
            response.raise_for_status()
            return response.json()
        except (requests.RequestException, ValueError) as exc:
            raise ProviderUnavailable(_PROVIDER, str(exc)) from exc

    @staticmethod
    def _parse_record(item: dict) -> Place:
        """Map raw catalog dict → Place."""
        types = tuple(item.get("types") or ())
        price_level = item.get("price_level")
        rating = item.get("rating")
        return Place(
            place_id=item["place_id"],
            name=item.get("name", ""),
            location=Coordinates.from_dict(item["geometry"]["location"]),
            rating=float(rating) if rating is not None else DEFAULT_RATING,
            review_count=int(item.get("user_ratings_total") or 0),
            types=types,
            estimated_visit_minutes=estimate_visit_minutes(types),
            estimated_cost=estimate_cost(types, price_level),
            price_level=price_level,
            raw=item,
        )
