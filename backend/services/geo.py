"""
Great-circle distance helpers.
"""
from __future__ import annotations

import math
from typing import Optional

from domain.models import Coordinates

EARTH_RADIUS_M = 6371000.0


def haversine_distance_m(a: Coordinates, b: Coordinates) -> float:
    """Compute distance in meters between two lat/lng points.

    Non-finite input yields NaN instead of raising.
    """
    if not all(math.isfinite(v) for v in (a.lat, a.lng, b.lat, b.lng)):
        return math.nan
    dlat = math.radians(b.lat - a.lat)
    dlng = math.radians(b.lng - a.lng)
    h = (
        math.sin(dlat / 2) ** 2
        + math.cos(math.radians(a.lat))
        * math.cos(math.radians(b.lat))
        * math.sin(dlng / 2) ** 2
    )
    # rounding can push antipodal points just past 1
    h = min(h, 1.0)
    c = 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))
    return EARTH_RADIUS_M * c


def format_distance(meters: Optional[float]) -> str:
    if meters is None:
        return "Distance unavailable"
    if meters < 1000:
        return f"{round(meters)}m"
    return f"{meters / 1000:.1f}km"
