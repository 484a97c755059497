from __future__ import annotations

import logging
from functools import reduce
from typing import List, NamedTuple, Optional, Sequence, Tuple

from .errors import EmptyPointsError, InvalidParametersError, MissingParametersError, NonArrayInputError
from .friction import boundary_coefficient, interpolate
from .types import (
    Alarm,
    AnnotatedPoint,
    CalculationResult,
    ElevationDirection,
    ElevationOrigin,
    HydraulicParameters,
    ProfileSummary,
    TracePoint,
)

logger = logging.getLogger(__name__)

METERS_PER_MILE = 1609.34
FEET_PER_MILE = 5280.0
HEAD_M_PER_KGCM2 = 10.0        # 10 m of water column ~ 1 kg/cm²
HEAD_PSI_FACTOR = 14.8
PSI_PER_KGCM2 = 14.5

MAX_PRESSURE_PSI = 150.0       # equipment rating
MIN_PRESSURE_PSI = -100.0      # below this the line is in dangerous vacuum
ALARM_PRESSURE_PSI = 200.0


class _ProfileState(NamedTuple):
    """Carry record of the profile fold."""
    prev: Optional[TracePoint]
    accumulated_head: float
    last_pump_p: float
    points: Tuple[AnnotatedPoint, ...]
    alarms: Tuple[Alarm, ...]
    warnings: Tuple[str, ...]


def friction_loss_psi(distance_m: float, coefficient: float) -> float:
    """Friction loss from the start to ``distance_m``; the table coefficient is psi per 100 ft."""
    return (distance_m / METERS_PER_MILE) * (FEET_PER_MILE / 100) * coefficient


def _step(params: HydraulicParameters, coefficient: float, state: _ProfileState, point: TracePoint) -> _ProfileState:
    first = state.prev is None
    elev = point.elevation_m

    K = friction_loss_psi(point.distance_from_start_m, coefficient)
    M = 0.0 if first else -((state.prev.elevation_m - elev) / HEAD_M_PER_KGCM2)
    N = state.accumulated_head + M
    O = N + K if first else K + N * HEAD_PSI_FACTOR
    P = O / PSI_PER_KGCM2
    direction = ElevationDirection.FLAT if first else ElevationDirection.from_delta(elev - state.prev.elevation_m)

    warnings = state.warnings
    if O > MAX_PRESSURE_PSI:
        warnings += (f"Pressure O exceeds maximum limit ({MAX_PRESSURE_PSI:g} psi) at point {point.index}",)
    if O < MIN_PRESSURE_PSI:
        warnings += (f"Pressure O below minimum ({MIN_PRESSURE_PSI:g} psi, dangerous vacuum) at point {point.index}",)

    last_pump_p = state.last_pump_p
    if first:
        is_pump = True
    else:
        is_pump = P >= last_pump_p + params.pumping_pressure_kgcm2
        if is_pump:
            last_pump_p = P
    is_valve = not first and N < -params.pumping_pressure_kgcm2

    alarms = state.alarms
    if not first and abs(O) > ALARM_PRESSURE_PSI:
        logger.debug(f"Critical pressure {O:.2f} psi at point {point.index}")
        alarms += (Alarm(point.index, point.distance_from_start_m, O, "Pressure outside safe range"),)

    annotated = AnnotatedPoint(
        point=point,
        friction_loss_psi=K,
        static_pressure_kgcm2=M,
        accumulated_head_kgcm2=N,
        combined_pressure_psi=O,
        combined_pressure_kgcm2=P,
        direction=direction,
        is_pump=is_pump,
        is_valve=is_valve,
    )
    return _ProfileState(point, N, last_pump_p, state.points + (annotated,), alarms, warnings)


def _check_inputs(points, params) -> None:
    if not isinstance(points, (list, tuple)):
        raise NonArrayInputError(f"points must be a list or tuple, got {type(points).__name__}")
    if params is None:
        raise MissingParametersError("Hydraulic parameters are required")
    if not isinstance(params, HydraulicParameters):
        raise InvalidParametersError(f"params must be HydraulicParameters, got {type(params).__name__}")
    if len(points) == 0:
        raise EmptyPointsError("points cannot be empty")


def calculate(
    points: Sequence[TracePoint],
    params: HydraulicParameters,
    elevation_origin: ElevationOrigin = ElevationOrigin.FROM_FILE,
    extra_warnings: Sequence[str] = (),
) -> CalculationResult:
    """Run the hydraulic profile over ``points`` in order.

    Each point gets its friction loss K (psi), static head change M and
    accumulated head N (kg/cm²), combined pressure O (psi) and P (kg/cm²).
    Pumps go on the first point and wherever P has risen by at least the
    pumping pressure since the last pump; valves wherever N falls below
    minus the pumping pressure.
    """
    _check_inputs(points, params)

    flow_bpm = params.flow_rate_per_line_bpm
    coefficient, message = interpolate(params.flexi_diameter, flow_bpm, decimals=None)
    warnings: List[str] = list(extra_warnings)
    if coefficient is None:
        coefficient = boundary_coefficient(params.flexi_diameter, flow_bpm)
        logger.warning(f"{message} Using boundary coefficient {coefficient}")
        warnings.append(message)

    logger.info(
        f"Calculating profile: {len(points)} points, {params.flexi_diameter.value}\" flexi, "
        f"{flow_bpm:.3f} bpm per line, coefficient {coefficient:.6f}"
    )
    start = _ProfileState(None, 0.0, 0.0, (), (), tuple(warnings))
    final = reduce(lambda state, p: _step(params, coefficient, state, p), points, start)

    result = assemble(final.points, final.alarms, final.warnings, elevation_origin)
    logger.info(
        f"Profile done: {result.summary.total_distance_km:.3f} km, {result.summary.total_pumps} pumps, "
        f"{result.summary.total_valves} valves, {len(result.alarms)} alarms"
    )
    return result


def assemble(
    points: Sequence[AnnotatedPoint],
    alarms: Sequence[Alarm] = (),
    warnings: Sequence[str] = (),
    elevation_origin: ElevationOrigin = ElevationOrigin.FROM_FILE,
) -> CalculationResult:
    points = tuple(points)
    pumps = tuple(p for p in points if p.is_pump)
    valves = tuple(p for p in points if p.is_valve)
    if points:
        total_km = points[-1].distance_from_start_m / 1000
        elev_diff = abs(points[-1].elevation_m - points[0].elevation_m)
    else:
        total_km = 0.0
        elev_diff = 0.0
    return CalculationResult(
        points=points,
        pumps=pumps,
        valves=valves,
        alarms=tuple(alarms),
        warnings=tuple(warnings),
        summary=ProfileSummary(
            total_distance_km=total_km,
            elevation_difference_m=elev_diff,
            total_pumps=len(pumps),
            total_valves=len(valves),
        ),
        elevation_origin=elevation_origin,
    )
