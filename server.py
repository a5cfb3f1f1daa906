"""
server.py
---------
HTTP surface of the journey synthesis engine.

    GET  /           health check
    POST /api/trip   plan one journey

Run:
    uvicorn server:app --port 8000
"""

import asyncio
import logging
from typing import Dict, Optional, Union

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field, field_validator

from schemas.constraints import Constraints, PreferenceSet
from schemas.enums import JourneyMode, OutcomeCode
from schemas.places import Coordinates
from modules.planning.route_planner import RoutePlanner
from modules.tool_usage.places_tool import PlacesTool
from modules.tool_usage.provider_errors import ProviderUnavailable
import config


logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Urban Journey Weaver API")

# Mode names the web client sends.
_MODE_ALIASES = {
    "currentLocation": JourneyMode.CLOSED_LOOP,
    "customRoute": JourneyMode.POINT_TO_POINT,
}


class LatLng(BaseModel):
    lat: float
    lng: float

    def to_coordinates(self) -> Coordinates:
        return Coordinates(lat=self.lat, lng=self.lng)


class TripRequest(BaseModel):
    location: Optional[Union[LatLng, str]] = None
    startPoint: Optional[LatLng] = None
    endPoint: Optional[LatLng] = None
    preferences: Dict[str, bool]
    duration: float = Field(gt=0, description="Maximum journey length in minutes")
    budget: float = Field(gt=0)
    journeyMode: JourneyMode = JourneyMode.CLOSED_LOOP

    @field_validator("journeyMode", mode="before")
    @classmethod
    def _accept_client_mode_names(cls, value):
        return _MODE_ALIASES.get(value, value)


_planner = RoutePlanner()
_places_tool = PlacesTool()


def get_planner() -> RoutePlanner:
    return _planner


def get_places_tool() -> PlacesTool:
    return _places_tool


@app.exception_handler(RequestValidationError)
async def validation_error(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content={"message": "Invalid request", "detail": jsonable_encoder(exc.errors())})


@app.get("/")
async def root():
    return {"message": "Urban Journey Weaver is running"}


@app.post("/api/trip")
async def plan_trip(
    request: TripRequest,
    planner: RoutePlanner = Depends(get_planner),
    places_tool: PlacesTool = Depends(get_places_tool),
):
    """
    Fetch candidates around the start point and synthesize a journey.

    200 → {status, notices, journey}; 404 when nothing matched the criteria.
    """
    preferences = PreferenceSet(request.preferences)
    if not preferences.active:
        raise HTTPException(status_code=400, detail="At least one preference must be selected.")
    if request.journeyMode == JourneyMode.POINT_TO_POINT and request.endPoint is None:
        raise HTTPException(status_code=400, detail="endPoint is required for point-to-point journeys.")

    try:
        start = await _resolve_start(request, places_tool)
    except ProviderUnavailable as exc:
        logger.warning("Start location could not be resolved: %s", exc)
        raise HTTPException(status_code=502, detail=str(exc)) from exc

    constraints = Constraints(max_duration_minutes=request.duration, max_budget=request.budget)
    end = request.endPoint.to_coordinates() if request.endPoint else None
    result = await planner.plan_from_catalog(
        preferences, constraints, start, end, request.journeyMode, places_tool=places_tool,
    )
    if result.status == OutcomeCode.NO_CANDIDATES_FOUND:
        raise HTTPException(
            status_code=404,
            detail="Not enough interesting places found nearby. Try a different location or more interests.",
        )
    return result.to_dict()


async def _resolve_start(request: TripRequest, places_tool: PlacesTool) -> Coordinates:
    if request.startPoint is not None:
        return request.startPoint.to_coordinates()
    if isinstance(request.location, LatLng):
        return request.location.to_coordinates()
    if isinstance(request.location, str) and request.location.strip():
        return await asyncio.to_thread(places_tool.geocode, request.location)
    raise HTTPException(status_code=400, detail="Either location or startPoint is required.")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
