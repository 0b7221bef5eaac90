from __future__ import annotations

import logging
from typing import Sequence

import requests

from app.integrations.google.geocoding import GoogleMapsError
from app.integrations.travel import TravelOracle
from app.scheduler.models import GeoPoint, RouteLeg

logger = logging.getLogger(__name__)

DIRECTIONS_URL = "https://maps.googleapis.com/maps/api/directions/json"
MAX_WAYPOINTS = 25


def _encode(point: GeoPoint) -> str:
    return f"{point.lat},{point.lng}"


class GoogleDirectionsOracle(TravelOracle):
    """Driving durations from the Directions API for a fixed stop order."""

    def __init__(
        self,
        api_key: str,
        *,
        mode: str = "driving",
        timeout_seconds: float = 10.0,
        session: requests.Session | None = None,
    ) -> None:
        if not api_key:
            raise GoogleMapsError("GOOGLE_MAPS_API_KEY is not configured")
        self.api_key = api_key
        self.mode = mode
        self.timeout_seconds = timeout_seconds
        self._session = session or requests.Session()

    def legs(self, origin: GeoPoint, stops: Sequence[GeoPoint]) -> list[RouteLeg]:
        if not stops:
            return []
        waypoints = stops[:-1]
        if len(waypoints) > MAX_WAYPOINTS:
            raise GoogleMapsError(f"Directions API accepts at most {MAX_WAYPOINTS} waypoints, got {len(waypoints)}")

        params = {
            "origin": _encode(origin),
            "destination": _encode(stops[-1]),
            "mode": self.mode,
            "key": self.api_key,
        }
        if waypoints:
            params["waypoints"] = "|".join(_encode(point) for point in waypoints)

        try:
            response = self._session.get(DIRECTIONS_URL, params=params, timeout=self.timeout_seconds)
            response.raise_for_status()
        except requests.RequestException as exc:
            raise GoogleMapsError(f"Directions request failed: {exc}") from exc

        data = response.json()
        status = data.get("status")
        if status != "OK":
            raise GoogleMapsError(f"Directions API error: {data.get('error_message') or status}")

        route_legs = (data.get("routes") or [{}])[0].get("legs") or []
        if len(route_legs) != len(stops):
            raise GoogleMapsError(f"Directions API returned {len(route_legs)} legs for {len(stops)} stops")

        legs: list[RouteLeg] = []
        for item in route_legs:
            duration = (item.get("duration") or {}).get("value")
            if duration is None:
                raise GoogleMapsError("Directions leg is missing a duration")
            distance = (item.get("distance") or {}).get("value")
            legs.append(RouteLeg(duration_seconds=float(duration), distance_meters=distance))
        logger.debug("Directions API returned %d legs", len(legs))
        return legs


__all__ = ["DIRECTIONS_URL", "GoogleDirectionsOracle", "MAX_WAYPOINTS"]
