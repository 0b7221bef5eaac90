from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Callable, Sequence

from app.core.config import Settings
from app.integrations.google.geocoding import GeocodingResolver, GoogleMapsError, PlacesTextSearchResolver
from app.integrations.resolvers import FallbackResolver, PlaceResolver
from app.repositories.tasks import TaskRecord
from app.scheduler.models import GeoPoint

logger = logging.getLogger(__name__)

CityLookup = Callable[[GeoPoint], "str | None"]


@dataclass(slots=True)
class ResolutionOutcome:
    resolved: list[TaskRecord] = field(default_factory=list)
    unresolved: list[TaskRecord] = field(default_factory=list)
    newly_resolved: list[TaskRecord] = field(default_factory=list)


class LocationResolutionService:
    """Attach coordinates to errands that only carry a place query."""

    def __init__(
        self,
        resolver: PlaceResolver | None,
        *,
        city_lookup: CityLookup | None = None,
        default_city: str | None = None,
    ) -> None:
        self.resolver = resolver
        self.city_lookup = city_lookup
        self.default_city = default_city

    def resolve_tasks(self, records: Sequence[TaskRecord], near: GeoPoint) -> ResolutionOutcome:
        outcome = ResolutionOutcome()
        pending = [record for record in records if not record.is_resolved]
        city = self._lookup_city(near) if pending and self.resolver is not None else None

        for record in records:
            if record.is_resolved:
                outcome.resolved.append(record)
                continue
            query = record.location_query or record.address
            if self.resolver is None or not query:
                logger.warning("Skipping task %s (%r): no way to resolve its location", record.id, record.title)
                outcome.unresolved.append(record)
                continue

            try:
                place = self.resolver.resolve(query, near, city)
            except GoogleMapsError as exc:
                logger.warning("Skipping task %s (%r): lookup for %r failed: %s", record.id, record.title, query, exc)
                outcome.unresolved.append(record)
                continue
            if place is None:
                logger.warning("Skipping task %s (%r): could not resolve %r", record.id, record.title, query)
                outcome.unresolved.append(record)
                continue

            updated = replace(
                record,
                lat=place.point.lat,
                lng=place.point.lng,
                address=place.address or record.address,
                location_query=place.name,
            )
            outcome.resolved.append(updated)
            outcome.newly_resolved.append(updated)
        return outcome

    def _lookup_city(self, near: GeoPoint) -> str | None:
        if self.city_lookup is not None:
            try:
                city = self.city_lookup(near)
            except RuntimeError as exc:
                logger.warning("Reverse geocoding failed: %s", exc)
                city = None
            if city:
                return city
        return self.default_city


def build_location_service(settings: Settings) -> LocationResolutionService:
    """Places search first, Geocoding API second; no resolver without an API key."""

    if not settings.google_maps_api_key:
        return LocationResolutionService(None, default_city=settings.default_city)

    geocoder = GeocodingResolver(
        settings.google_maps_api_key,
        bias_degrees=settings.geocode_bias_degrees,
        timeout_seconds=settings.google_request_timeout_seconds,
    )
    places = PlacesTextSearchResolver(
        settings.google_maps_api_key,
        radius_m=settings.places_search_radius_m,
        timeout_seconds=settings.google_request_timeout_seconds,
    )
    return LocationResolutionService(
        FallbackResolver(primary=places, fallback=geocoder),
        city_lookup=geocoder.reverse_geocode,
        default_city=settings.default_city,
    )


__all__ = ["LocationResolutionService", "ResolutionOutcome", "build_location_service"]
