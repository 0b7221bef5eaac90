from __future__ import annotations

import math

from .models import GeoPoint

EARTH_RADIUS_KM = 6371.0


def haversine_km(origin: GeoPoint, target: GeoPoint) -> float:
    """Great-circle distance between two points in kilometres."""

    phi1, phi2 = math.radians(origin.lat), math.radians(target.lat)
    d_phi = math.radians(target.lat - origin.lat)
    d_lam = math.radians(target.lng - origin.lng)
    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lam / 2) ** 2
    # Rounding can push antipodal inputs marginally above 1.
    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(min(1.0, a)))


__all__ = ["EARTH_RADIUS_KM", "haversine_km"]
