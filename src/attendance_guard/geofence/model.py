from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class GeoPoint:
    latitude: Optional[float]
    longitude: Optional[float]


@dataclass(frozen=True)
class GeofenceResult:
    distance_meters: float
    within_radius: bool
    radius_meters: float
