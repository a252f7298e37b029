"""Geospatial helper functions."""

from __future__ import annotations

import math
from typing import Optional

from shapely.geometry import Point, Polygon

EARTH_RADIUS_KM = 6371.0

# Traffic regions as (lat_min, lat_max, lon_min, lon_max) boxes
REGION_BOUNDARIES: dict[str, tuple[float, float, float, float]] = {
    "Cape Town": (-34.36, -33.47, 18.30, 18.95),
    "Johannesburg": (-26.45, -25.90, 27.75, 28.25),
    "Pretoria": (-25.90, -25.60, 28.05, 28.40),
    "Durban": (-30.10, -29.60, 30.75, 31.15),
    "Port Elizabeth": (-34.10, -33.75, 25.35, 25.75),
    "Bloemfontein": (-29.25, -29.00, 26.10, 26.35),
}

_REGION_POLYGONS: dict[str, Polygon] = {
    name: Polygon([(lon_min, lat_min), (lon_max, lat_min), (lon_max, lat_max), (lon_min, lat_max)])
    for name, (lat_min, lat_max, lon_min, lon_max) in REGION_BOUNDARIES.items()
}


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Compute distance between two coordinates using the Haversine formula."""

    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def is_valid_coordinate(lat: Optional[float], lon: Optional[float]) -> bool:
    """Return False for missing, NaN, out-of-range or null-island (0, 0) coordinates."""

    if lat is None or lon is None:
        return False
    try:
        lat_value, lon_value = float(lat), float(lon)
    except (TypeError, ValueError):
        return False
    if math.isnan(lat_value) or math.isnan(lon_value):
        return False
    if lat_value == 0 and lon_value == 0:
        return False
    return abs(lat_value) <= 90 and abs(lon_value) <= 180


def curvature_factor(direct_km: float) -> float:
    """Road curvature correction; shorter segments are assumed more circuitous."""

    if direct_km <= 5:
        return 1.3
    if direct_km <= 20:
        return 1.25
    return 1.15


def corrected_distance_km(direct_km: float) -> float:
    return direct_km * curvature_factor(direct_km)


def resolve_region(lat: Optional[float], lon: Optional[float]) -> Optional[str]:
    """Return the traffic region containing the point, if any."""

    if not is_valid_coordinate(lat, lon):
        return None
    point = Point(float(lon), float(lat))
    for name, polygon in _REGION_POLYGONS.items():
        if polygon.contains(point):
            return name
    return None
