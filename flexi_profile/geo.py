from __future__ import annotations

import math

EARTH_RADIUS_M = 6371000.0


def haversine_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in metres between two points given in degrees."""
    dphi = math.radians(lat2 - lat1)
    dlambda = math.radians(lon2 - lon1)
    a = (
        math.sin(dphi / 2) * math.sin(dphi / 2)
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2))
        * math.sin(dlambda / 2) * math.sin(dlambda / 2)
    )
    # rounding can push a past 1 for near-antipodal points
    a = min(a, 1.0)
    return EARTH_RADIUS_M * (2 * math.atan2(math.sqrt(a), math.sqrt(1 - a)))
