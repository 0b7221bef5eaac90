from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass

from app.scheduler.models import GeoPoint

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ResolvedPlace:
    name: str
    point: GeoPoint
    address: str | None = None
    place_id: str | None = None


class PlaceResolver(ABC):
    """Turns a free-text place query into a single geocoded point."""

    @abstractmethod
    def resolve(self, query: str, near: GeoPoint, city: str | None = None) -> ResolvedPlace | None:
        """Return the best match near ``near`` or ``None`` when nothing matches."""


class FallbackResolver(PlaceResolver):
    """Try ``primary`` first and consult ``fallback`` on a miss or a failure."""

    def __init__(self, primary: PlaceResolver, fallback: PlaceResolver) -> None:
        self.primary = primary
        self.fallback = fallback

    def resolve(self, query: str, near: GeoPoint, city: str | None = None) -> ResolvedPlace | None:
        try:
            place = self.primary.resolve(query, near, city)
        except RuntimeError as exc:
            logger.warning("Primary resolver failed for %r: %s", query, exc)
            place = None
        if place is not None:
            return place

        logger.info("Primary resolver found nothing for %r, trying fallback", query)
        return self.fallback.resolve(query, near, city)


__all__ = ["FallbackResolver", "PlaceResolver", "ResolvedPlace"]
