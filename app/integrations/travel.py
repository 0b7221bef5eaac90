from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Sequence

from app.scheduler.geo import haversine_km
from app.scheduler.models import GeoPoint, RouteLeg

logger = logging.getLogger(__name__)


class TravelOracle(ABC):
    """Source of per-leg travel durations for an already ordered route."""

    @abstractmethod
    def legs(self, origin: GeoPoint, stops: Sequence[GeoPoint]) -> list[RouteLeg]:
        """Return one leg per stop; ``legs[i]`` arrives at ``stops[i]``."""


class HaversineTravelOracle(TravelOracle):
    """Straight-line distance at a constant speed. No external calls are made."""

    def __init__(self, speed_kmh: float = 40.0) -> None:
        if speed_kmh <= 0:
            raise ValueError("speed_kmh must be positive")
        self.speed_kmh = speed_kmh

    def leg(self, start: GeoPoint, end: GeoPoint) -> RouteLeg:
        if start == end:
            return RouteLeg(duration_seconds=0.0, distance_meters=0.0)
        km = haversine_km(start, end)
        return RouteLeg(duration_seconds=km / self.speed_kmh * 3600.0, distance_meters=km * 1000.0)

    def legs(self, origin: GeoPoint, stops: Sequence[GeoPoint]) -> list[RouteLeg]:
        result: list[RouteLeg] = []
        previous = origin
        for stop in stops:
            result.append(self.leg(previous, stop))
            previous = stop
        return result


class FallbackTravelOracle(TravelOracle):
    """Use ``primary`` and fall back to ``fallback`` when it raises."""

    def __init__(self, primary: TravelOracle, fallback: TravelOracle) -> None:
        self.primary = primary
        self.fallback = fallback

    def legs(self, origin: GeoPoint, stops: Sequence[GeoPoint]) -> list[RouteLeg]:
        try:
            return self.primary.legs(origin, stops)
        except RuntimeError as exc:
            logger.warning("Travel oracle failed (%s); using %s", exc, type(self.fallback).__name__)
            return self.fallback.legs(origin, stops)


__all__ = ["FallbackTravelOracle", "HaversineTravelOracle", "TravelOracle"]
