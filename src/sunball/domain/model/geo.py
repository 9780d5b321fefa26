"""Geographic primitives."""

from __future__ import annotations

import math
from dataclasses import dataclass

EARTH_RADIUS_METERS = 6_371_000.0


@dataclass(frozen=True, slots=True)
class GeoPoint:
    lat: float
    lng: float

    def __post_init__(self) -> None:
        if not -90.0 <= self.lat <= 90.0:
            raise ValueError(f"Latitude out of range: {self.lat}")
        if not -180.0 <= self.lng <= 180.0:
            raise ValueError(f"Longitude out of range: {self.lng}")

    def distance_to(self, other: GeoPoint) -> float:
        """Great-circle distance in meters (haversine)."""

        phi1 = math.radians(self.lat)
        phi2 = math.radians(other.lat)
        d_phi = math.radians(other.lat - self.lat)
        d_lambda = math.radians(other.lng - self.lng)
        a = (
            math.sin(d_phi / 2) ** 2
            + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
        )
        return 2 * EARTH_RADIUS_METERS * math.asin(math.sqrt(a))
