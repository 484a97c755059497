from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, List, Mapping, Optional, Union

from . import kmz
from .elevation import ElevationResolver, create_resolver
from .engine import calculate
from .errors import ElevationResolutionError, InvalidParametersError, MissingParametersError
from .profile import build_trace_points, resample_at_interval
from .types import CalculationResult, ElevationOrigin, HydraulicParameters, ParsedTrace

logger = logging.getLogger(__name__)


def _coerce_params(params: Any) -> HydraulicParameters:
    if params is None:
        raise MissingParametersError("Hydraulic parameters are required")
    if isinstance(params, HydraulicParameters):
        return params
    if isinstance(params, Mapping):
        try:
            return HydraulicParameters(**params)
        except TypeError as e:
            raise InvalidParametersError(f"Invalid hydraulic parameters: {e}") from e
    raise InvalidParametersError(f"params must be HydraulicParameters, got {type(params).__name__}")


def _resolve_elevations(trace: ParsedTrace, resolver: ElevationResolver) -> List[float]:
    coords = [(c.latitude, c.longitude) for c in trace.coordinates]
    logger.info(f"No elevations in file, resolving {len(coords)} points")
    try:
        elevations = list(resolver.get_elevations(coords))
    except ElevationResolutionError:
        raise
    except Exception as e:
        logger.error(f"Elevation resolver failed: {e}")
        raise ElevationResolutionError(f"Elevation lookup failed: {e}") from e
    if len(elevations) != len(coords):
        msg = f"Elevation resolver returned {len(elevations)} values for {len(coords)} coordinates"
        logger.error(msg)
        raise ElevationResolutionError(msg)
    return elevations


def run_trace(
    trace: ParsedTrace,
    params: Union[HydraulicParameters, Mapping[str, Any]],
    resolver: Optional[ElevationResolver] = None,
    resample: bool = False,
) -> CalculationResult:
    """Profile an already-parsed trace."""
    params = _coerce_params(params)

    if trace.has_elevations:
        elevations = [c.altitude or 0.0 for c in trace.coordinates]
        origin = ElevationOrigin.FROM_FILE
    else:
        elevations = _resolve_elevations(trace, resolver or create_resolver())
        origin = ElevationOrigin.FROM_SERVICE

    points = build_trace_points(trace.coordinates, elevations)
    if resample:
        points = resample_at_interval(points, params.calculation_interval_m)

    return calculate(points, params, elevation_origin=origin, extra_warnings=trace.warnings)


def execute(
    container: bytes,
    params: Union[HydraulicParameters, Mapping[str, Any]],
    resolver: Optional[ElevationResolver] = None,
    resample: bool = False,
) -> CalculationResult:
    """KMZ bytes and pumping parameters in, hydraulic profile out.

    Parameters are checked before the container is touched. Elevations are
    looked up through ``resolver`` only when the file has none; without a
    resolver one is built from the environment settings.
    """
    params = _coerce_params(params)
    trace = kmz.parse(container)
    return run_trace(trace, params, resolver=resolver, resample=resample)


def execute_file(
    path: Union[str, Path],
    params: Union[HydraulicParameters, Mapping[str, Any]],
    resolver: Optional[ElevationResolver] = None,
    resample: bool = False,
) -> CalculationResult:
    params = _coerce_params(params)
    trace = kmz.parse_file(path)
    return run_trace(trace, params, resolver=resolver, resample=resample)
