"""
config.py
---------
Central configuration for the journey synthesis engine.
All secrets loaded from environment variables — never hard-coded.
"""

import os

# ── External APIs ─────────────────────────────────────────────────────────────
GOOGLE_MAPS_API_KEY: str = os.getenv("GOOGLE_MAPS_API_KEY", "")

PLACES_API_URL: str = os.getenv(
    "PLACES_API_URL", "https://maps.googleapis.com/maps/api/place/nearbysearch/json"
)
GEOCODE_API_URL: str = os.getenv(
    "GEOCODE_API_URL", "https://maps.googleapis.com/maps/api/geocode/json"
)
DISTANCE_MATRIX_API_URL: str = os.getenv(
    "DISTANCE_MATRIX_API_URL", "https://maps.googleapis.com/maps/api/distancematrix/json"
)
PROVIDER_TIMEOUT_SECONDS: float = float(os.getenv("PROVIDER_TIMEOUT_SECONDS", "10"))

# ── Place catalog ─────────────────────────────────────────────────────────────
SEARCH_RADIUS_METERS: int = int(os.getenv("SEARCH_RADIUS_METERS", "5000"))

# ── Travel-cost provider limits ───────────────────────────────────────────────
# 10 x 10 = 100 elements, the per-request element cap of the matrix API.
MATRIX_SINGLE_CALL_LIMIT: int = int(os.getenv("MATRIX_SINGLE_CALL_LIMIT", "10"))
CANDIDATE_HARD_CAP: int = int(os.getenv("CANDIDATE_HARD_CAP", "10"))

# ── Geometric approximation ───────────────────────────────────────────────────
URBAN_DETOUR_FACTOR: float = float(os.getenv("URBAN_DETOUR_FACTOR", "1.3"))
AVERAGE_DRIVING_SPEED_KMH: float = float(os.getenv("AVERAGE_DRIVING_SPEED_KMH", "25.0"))

# ── Route construction ────────────────────────────────────────────────────────
CLOSED_LOOP_MAX_STOPS: int = int(os.getenv("CLOSED_LOOP_MAX_STOPS", "10"))
ENDPOINT_TOLERANCE_METERS: float = float(os.getenv("ENDPOINT_TOLERANCE_METERS", "100"))

# ── Logging ───────────────────────────────────────────────────────────────────
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
