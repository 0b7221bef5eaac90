from __future__ import annotations

import logging

import requests

from app.integrations.resolvers import PlaceResolver, ResolvedPlace
from app.scheduler.models import GeoPoint, InvalidScheduleInput

logger = logging.getLogger(__name__)

GEOCODE_URL = "https://maps.googleapis.com/maps/api/geocode/json"
PLACES_SEARCH_URL = "https://places.googleapis.com/v1/places:searchText"
PLACES_FIELD_MASK = "places.id,places.displayName,places.formattedAddress,places.location"

_FATAL_GEOCODE_STATUSES = {"REQUEST_DENIED", "OVER_DAILY_LIMIT", "OVER_QUERY_LIMIT", "INVALID_REQUEST"}


class GoogleMapsError(RuntimeError):
    """Raised when a Google Maps Platform call fails or is refused."""


class _GoogleMapsClient:
    def __init__(
        self,
        api_key: str,
        *,
        timeout_seconds: float = 10.0,
        session: requests.Session | None = None,
    ) -> None:
        if not api_key:
            raise GoogleMapsError("GOOGLE_MAPS_API_KEY is not configured")
        self.api_key = api_key
        self.timeout_seconds = timeout_seconds
        self._session = session or requests.Session()

    def _get_json(self, url: str, params: dict[str, str]) -> dict:
        try:
            response = self._session.get(url, params={**params, "key": self.api_key}, timeout=self.timeout_seconds)
            response.raise_for_status()
        except requests.RequestException as exc:
            raise GoogleMapsError(f"request to {url} failed: {exc}") from exc
        return response.json()


def _with_city(query: str, city: str | None) -> str:
    return f"{query}, {city}" if city else query


def _point_or_none(lat: object, lng: object) -> GeoPoint | None:
    if lat is None or lng is None:
        return None
    try:
        return GeoPoint(lat=float(lat), lng=float(lng))
    except (TypeError, ValueError, InvalidScheduleInput):
        return None


class PlacesTextSearchResolver(_GoogleMapsClient, PlaceResolver):
    """Places API (New) text search, ranked by distance from the user."""

    def __init__(
        self,
        api_key: str,
        *,
        radius_m: float = 50_000,
        timeout_seconds: float = 10.0,
        session: requests.Session | None = None,
    ) -> None:
        super().__init__(api_key, timeout_seconds=timeout_seconds, session=session)
        self.radius_m = radius_m

    def resolve(self, query: str, near: GeoPoint, city: str | None = None) -> ResolvedPlace | None:
        if not query.strip():
            return None
        body = {
            "textQuery": _with_city(query.strip(), city),
            "locationBias": {
                "circle": {
                    "center": {"latitude": near.lat, "longitude": near.lng},
                    "radius": self.radius_m,
                }
            },
            "rankPreference": "DISTANCE",
        }
        headers = {
            "Content-Type": "application/json",
            "X-Goog-Api-Key": self.api_key,
            "X-Goog-FieldMask": PLACES_FIELD_MASK,
        }
        try:
            response = self._session.post(PLACES_SEARCH_URL, json=body, headers=headers, timeout=self.timeout_seconds)
        except requests.RequestException as exc:
            raise GoogleMapsError(f"Places search failed: {exc}") from exc
        if not response.ok:
            raise GoogleMapsError(f"Places API error {response.status_code}: {response.text}")

        places = response.json().get("places") or []
        if not places:
            return None
        place = places[0]
        location = place.get("location") or {}
        point = _point_or_none(location.get("latitude"), location.get("longitude"))
        if point is None:
            logger.warning("Places result for %r has no usable location", query)
            return None
        display_name = (place.get("displayName") or {}).get("text") or query
        return ResolvedPlace(
            name=display_name,
            point=point,
            address=place.get("formattedAddress"),
            place_id=place.get("id"),
        )


class GeocodingResolver(_GoogleMapsClient, PlaceResolver):
    """Geocoding API lookup biased to a small box around the user."""

    def __init__(
        self,
        api_key: str,
        *,
        bias_degrees: float = 0.05,
        region: str = "us",
        timeout_seconds: float = 10.0,
        session: requests.Session | None = None,
    ) -> None:
        super().__init__(api_key, timeout_seconds=timeout_seconds, session=session)
        self.bias_degrees = bias_degrees
        self.region = region

    def resolve(self, query: str, near: GeoPoint, city: str | None = None) -> ResolvedPlace | None:
        if not query.strip():
            return None
        offset = self.bias_degrees
        params = {
            "address": _with_city(query.strip(), city),
            # location/radius are not Geocoding parameters; bounds bias the match instead.
            "bounds": f"{near.lat - offset},{near.lng - offset}|{near.lat + offset},{near.lng + offset}",
            "region": self.region,
        }
        data = self._get_json(GEOCODE_URL, params)
        status = data.get("status")
        if status == "ZERO_RESULTS":
            logger.warning("Geocoding: no results for %r", query)
            return None
        if status in _FATAL_GEOCODE_STATUSES:
            raise GoogleMapsError(f"Geocoding API error: {data.get('error_message') or status}")
        if status != "OK":
            logger.warning("Geocoding: %s for %r", status, query)
            return None

        first = (data.get("results") or [{}])[0]
        location = (first.get("geometry") or {}).get("location") or {}
        point = _point_or_none(location.get("lat"), location.get("lng"))
        if point is None:
            logger.warning("Geocoding result for %r has no usable location", query)
            return None
        return ResolvedPlace(
            name=query,
            point=point,
            address=first.get("formatted_address"),
            place_id=first.get("place_id"),
        )

    def reverse_geocode(self, point: GeoPoint) -> str | None:
        """Return ``"City, ST"`` (or just the state) for a point, if known."""

        data = self._get_json(GEOCODE_URL, {"latlng": f"{point.lat},{point.lng}"})
        results = data.get("results") or []
        if data.get("status") != "OK" or not results:
            return None

        city = ""
        state = ""
        for component in results[0].get("address_components", []):
            types = component.get("types", [])
            if "locality" in types:
                city = component.get("long_name", "")
            if "administrative_area_level_1" in types:
                state = component.get("short_name", "")
        if city and state:
            return f"{city}, {state}"
        return state or None


__all__ = [
    "GEOCODE_URL",
    "GeocodingResolver",
    "GoogleMapsError",
    "PLACES_SEARCH_URL",
    "PlacesTextSearchResolver",
]
