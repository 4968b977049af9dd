from __future__ import annotations

import math

from ..core.constants import EARTH_RADIUS_METERS
from ..core.exceptions import InvalidLocation
from ..policy.model import OfficeLocation
from .model import GeoPoint, GeofenceResult


def _require_valid(point: GeoPoint, label: str) -> tuple[float, float]:
    lat, lon = point.latitude, point.longitude
    if lat is None or lon is None:
        raise InvalidLocation(f"{label} coordinates are required")
    if not (math.isfinite(lat) and math.isfinite(lon)):
        raise InvalidLocation(f"{label} coordinates must be finite numbers")
    if not -90.0 <= lat <= 90.0:
        raise InvalidLocation(f"{label} latitude {lat} is outside [-90, 90]")
    if not -180.0 <= lon <= 180.0:
        raise InvalidLocation(f"{label} longitude {lon} is outside [-180, 180]")
    return float(lat), float(lon)


def haversine_meters(a: GeoPoint, b: GeoPoint) -> float:
    """Great-circle distance between two points in meters."""
    lat1, lon1 = _require_valid(a, "Submitted")
    lat2, lon2 = _require_valid(b, "Office")

    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlambda = math.radians(lon2 - lon1)
    h = math.sin(dphi / 2.0) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2.0) ** 2
    # Clamp guards asin against float drift just above 1.0 for antipodal points.
    return 2.0 * EARTH_RADIUS_METERS * math.asin(min(1.0, math.sqrt(h)))


class GeofenceValidator:
    """Pure check of a submitted coordinate against the office circle."""

    def evaluate(self, point: GeoPoint, office: OfficeLocation) -> GeofenceResult:
        distance = haversine_meters(point, GeoPoint(office.latitude, office.longitude))
        return GeofenceResult(
            distance_meters=distance,
            within_radius=distance <= office.radius_meters,
            radius_meters=office.radius_meters,
        )
