from __future__ import annotations

import logging
import math
import numbers
from typing import List, NamedTuple, Optional, Sequence, Tuple

import numpy as np

from .errors import TracePointConstructionError
from .geo import haversine_m
from .types import RawCoordinate, TracePoint

logger = logging.getLogger(__name__)


class ElevationProfile(NamedTuple):
    min_m: float
    max_m: float
    start_m: float
    end_m: float
    difference_m: float   # end - start, negative when the trace runs downhill


def _lat_lon(coord) -> Tuple[float, float]:
    if isinstance(coord, RawCoordinate):
        return coord.latitude, coord.longitude
    return coord[0], coord[1]


def _check_value(i: int, label: str, value, low: float = -math.inf, high: float = math.inf) -> float:
    if isinstance(value, bool) or not isinstance(value, numbers.Real) or not math.isfinite(value):
        raise TracePointConstructionError(i, f"{label} must be a finite number, got: {value!r}")
    if not low <= value <= high:
        raise TracePointConstructionError(i, f"{label} must be between {low:g} and {high:g}, got: {value}")
    return float(value)


def build_trace_points(
    coordinates: Sequence,
    elevations: Optional[Sequence[float]] = None,
) -> Tuple[TracePoint, ...]:
    """Ordered trace points with cumulative haversine distance from the start.

    ``elevations`` runs parallel to ``coordinates``; when omitted the
    coordinate altitudes are used (0 where absent).
    """
    if elevations is None:
        elevations = [getattr(c, "altitude", None) or 0.0 for c in coordinates]
    if len(elevations) != len(coordinates):
        raise TracePointConstructionError(
            min(len(elevations), len(coordinates)),
            f"got {len(coordinates)} coordinates but {len(elevations)} elevations",
        )

    points: List[TracePoint] = []
    accumulated = 0.0
    prev: Optional[Tuple[float, float]] = None
    for i, (coord, elevation) in enumerate(zip(coordinates, elevations)):
        try:
            raw_lat, raw_lon = _lat_lon(coord)
        except (TypeError, IndexError, KeyError) as e:
            raise TracePointConstructionError(i, f"unreadable coordinate {coord!r}") from e
        lat = _check_value(i, "Latitude", raw_lat, -90.0, 90.0)
        lon = _check_value(i, "Longitude", raw_lon, -180.0, 180.0)
        elev = _check_value(i, "Elevation", elevation)

        segment = None
        if prev is not None:
            segment = haversine_m(prev[0], prev[1], lat, lon)
            accumulated += segment
        try:
            points.append(TracePoint(
                index=i,
                latitude=lat,
                longitude=lon,
                elevation_m=elev,
                distance_from_start_m=accumulated,
                segment_distance_m=segment,
            ))
        except ValueError as e:
            raise TracePointConstructionError(i, str(e)) from e
        prev = (lat, lon)

    logger.debug(f"Built {len(points)} trace points, {accumulated:.1f} m")
    return tuple(points)


def resample_at_interval(points: Sequence[TracePoint], interval_m: float) -> Tuple[TracePoint, ...]:
    """Points every ``interval_m`` metres along the trace, plus both ends.

    Latitude, longitude and elevation are linearly interpolated between the
    bracketing input points.
    """
    if isinstance(interval_m, bool) or not isinstance(interval_m, numbers.Real) \
            or not math.isfinite(interval_m) or interval_m <= 0:
        raise ValueError(f"Interval must be positive, got: {interval_m}")
    if not points:
        return ()

    start, end = points[0], points[-1]
    total = end.distance_from_start_m

    samples = []
    d = float(interval_m)
    while d < total:
        samples.append(d)
        d += interval_m

    xp = np.array([p.distance_from_start_m for p in points], dtype=float)
    lats = np.interp(samples, xp, [p.latitude for p in points])
    lons = np.interp(samples, xp, [p.longitude for p in points])
    elevs = np.interp(samples, xp, [p.elevation_m for p in points])

    out: List[TracePoint] = [TracePoint.start(start.latitude, start.longitude, start.elevation_m)]
    for dist, lat, lon, elev in zip(samples, lats, lons, elevs):
        out.append(TracePoint(
            index=len(out),
            latitude=float(lat),
            longitude=float(lon),
            elevation_m=float(elev),
            distance_from_start_m=dist,
            segment_distance_m=dist - out[-1].distance_from_start_m,
        ))
    if len(points) > 1:
        out.append(TracePoint(
            index=len(out),
            latitude=end.latitude,
            longitude=end.longitude,
            elevation_m=end.elevation_m,
            distance_from_start_m=total,
            segment_distance_m=total - out[-1].distance_from_start_m,
        ))

    logger.info(f"Resampled {len(points)} points to {len(out)} at {interval_m} m interval")
    return tuple(out)


def elevation_profile(points: Sequence[TracePoint]) -> ElevationProfile:
    if not points:
        raise ValueError("Cannot get elevation profile of empty trace")
    elevs = [p.elevation_m for p in points]
    return ElevationProfile(
        min_m=min(elevs),
        max_m=max(elevs),
        start_m=elevs[0],
        end_m=elevs[-1],
        difference_m=elevs[-1] - elevs[0],
    )
