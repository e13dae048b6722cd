"""
Geographic utility functions.

This is the SINGLE SOURCE OF TRUTH for geographic calculations.
DO NOT duplicate these functions elsewhere.
"""
import math
from dataclasses import dataclass
from typing import Optional

# Earth radius in kilometers
EARTH_RADIUS_KM = 6371.0

# Smallest cos(latitude) used when widening the longitude band.
# Keeps the band finite at the poles.
MIN_COS_LATITUDE = 1e-6


@dataclass(frozen=True)
class BoundingBox:
    """
    Rectangular approximation of a search circle.

    min_lon/max_lon are None when the band covers every longitude.
    """
    min_lat: float
    max_lat: float
    min_lon: Optional[float]
    max_lon: Optional[float]

    @property
    def spans_all_longitudes(self) -> bool:
        return self.min_lon is None


def haversine(
    lat1: float, lon1: float,
    lat2: float, lon2: float
) -> float:
    """
    Calculate great-circle distance between two points.

    Args:
        lat1, lon1: First point coordinates (degrees)
        lat2, lon2: Second point coordinates (degrees)

    Returns:
        Distance in kilometers
    """
    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    delta_lat = math.radians(lat2 - lat1)
    delta_lon = math.radians(lon2 - lon1)

    a = (
        math.sin(delta_lat / 2) ** 2 +
        math.cos(lat1_rad) * math.cos(lat2_rad) *
        math.sin(delta_lon / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_KM * c


def bounding_box(lat: float, lon: float, radius_km: float) -> BoundingBox:
    """
    Bounding box around a point, used as a cheap prefilter.

    latDelta = radius / R * (180 / pi)
    lonDelta = latDelta / cos(lat)

    The longitude band does not wrap around the antimeridian: a query
    centered near +/-180 degrees misses points just across it.

    Args:
        lat, lon: Center coordinates (degrees)
        radius_km: Search radius in kilometers

    Returns:
        BoundingBox with the latitude band clamped to [-90, 90]
    """
    lat_delta = radius_km / EARTH_RADIUS_KM * (180 / math.pi)
    cos_lat = max(abs(math.cos(math.radians(lat))), MIN_COS_LATITUDE)
    lon_delta = lat_delta / cos_lat

    min_lat = max(lat - lat_delta, -90.0)
    max_lat = min(lat + lat_delta, 90.0)

    # A circle that reaches a pole covers every longitude
    if lon_delta >= 180.0 or lat + lat_delta >= 90.0 or lat - lat_delta <= -90.0:
        return BoundingBox(min_lat, max_lat, None, None)

    return BoundingBox(min_lat, max_lat, lon - lon_delta, lon + lon_delta)
