from __future__ import annotations

import math
import numbers
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from .errors import InvalidParametersError

# Unit conversions used by the reference friction tables
M3H_TO_BPM = 0.1048       # 1 m³/h ≈ 0.1048 barrels per minute
KGCM2_TO_PSI = 14.2233

FLOW_RATE_MAX_M3H = 1000.0
PRESSURE_MIN_KGCM2 = 1.0
PRESSURE_MAX_KGCM2 = 20.0
LINES_MIN = 1


class FlexiDiameter(str, Enum):
    TEN_INCH = "10"
    TWELVE_INCH = "12"

    @classmethod
    def parse(cls, value: Any) -> "FlexiDiameter":
        if isinstance(value, cls):
            return value
        if isinstance(value, bool) or value is None:
            raise InvalidParametersError(f'Invalid flexi diameter: "{value}". Valid options: 10, 12')
        if isinstance(value, numbers.Real) and float(value).is_integer():
            key = str(int(value))
        else:
            key = str(value).strip().rstrip('"')
        try:
            return cls(key)
        except ValueError:
            raise InvalidParametersError(
                f'Invalid flexi diameter: "{value}". Valid options: 10, 12'
            ) from None

    @property
    def inches(self) -> int:
        return int(self.value)


class ElevationOrigin(str, Enum):
    FROM_FILE = "file"
    FROM_SERVICE = "service"


class ElevationDirection(str, Enum):
    FLAT = "flat"
    ASCENDING = "ascending"
    DESCENDING = "descending"

    @classmethod
    def from_delta(cls, delta_m: float) -> "ElevationDirection":
        if delta_m > 0:
            return cls.ASCENDING
        if delta_m < 0:
            return cls.DESCENDING
        return cls.FLAT


def _finite_number(label: str, value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise InvalidParametersError(f"{label} must be a number, got: {value!r}")
    if not math.isfinite(value):
        raise InvalidParametersError(f"{label} must be finite, got: {value!r}")
    return float(value)


@dataclass(frozen=True)
class RawCoordinate:
    latitude: float            # degrees
    longitude: float           # degrees
    altitude: Optional[float] = None  # m, None when the file carries none


@dataclass(frozen=True)
class HydraulicParameters:
    flow_rate_m3h: float                # total flow across all lines
    flexi_diameter: FlexiDiameter
    pumping_pressure_kgcm2: float
    number_of_lines: int = 1
    calculation_interval_m: float = 50.0

    def __post_init__(self):
        object.__setattr__(self, "flexi_diameter", FlexiDiameter.parse(self.flexi_diameter))

        flow = _finite_number("Flow rate", self.flow_rate_m3h)
        if flow <= 0:
            raise InvalidParametersError(f"Flow rate must be positive, got: {flow}m³/h")
        if flow > FLOW_RATE_MAX_M3H:
            raise InvalidParametersError(
                f"Flow rate too high: {flow}m³/h. Maximum: {FLOW_RATE_MAX_M3H:g}m³/h"
            )

        pressure = _finite_number("Pumping pressure", self.pumping_pressure_kgcm2)
        if pressure < PRESSURE_MIN_KGCM2:
            raise InvalidParametersError(
                f"Pumping pressure too low: {pressure}kg/cm². Minimum: {PRESSURE_MIN_KGCM2:g}kg/cm²"
            )
        if pressure > PRESSURE_MAX_KGCM2:
            raise InvalidParametersError(
                f"Pumping pressure too high: {pressure}kg/cm². Maximum: {PRESSURE_MAX_KGCM2:g}kg/cm²"
            )

        lines = _finite_number("Number of lines", self.number_of_lines)
        if not lines.is_integer():
            raise InvalidParametersError(f"Number of lines must be an integer, got: {self.number_of_lines}")
        if lines < LINES_MIN:
            raise InvalidParametersError(f"Number of lines too low: {int(lines)}. Minimum: {LINES_MIN}")
        object.__setattr__(self, "number_of_lines", int(lines))

        interval = _finite_number("Calculation interval", self.calculation_interval_m)
        if interval <= 0:
            raise InvalidParametersError(f"Calculation interval must be positive, got: {interval}m")

    @property
    def flow_rate_bpm(self) -> float:
        return self.flow_rate_m3h * M3H_TO_BPM

    @property
    def flow_rate_per_line_m3h(self) -> float:
        return self.flow_rate_m3h / self.number_of_lines

    @property
    def flow_rate_per_line_bpm(self) -> float:
        return self.flow_rate_per_line_m3h * M3H_TO_BPM

    @property
    def flexi_diameter_inches(self) -> int:
        return self.flexi_diameter.inches

    @property
    def pumping_pressure_psi(self) -> float:
        return self.pumping_pressure_kgcm2 * KGCM2_TO_PSI

    @property
    def has_multiple_lines(self) -> bool:
        return self.number_of_lines > 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "flow_rate_m3h": self.flow_rate_m3h,
            "flexi_diameter": self.flexi_diameter.value,
            "pumping_pressure_kgcm2": self.pumping_pressure_kgcm2,
            "number_of_lines": self.number_of_lines,
            "calculation_interval_m": self.calculation_interval_m,
        }

    def __str__(self) -> str:
        return (
            f"HydraulicParameters(flowRate: {self.flow_rate_m3h}m³/h ({self.flow_rate_bpm:.2f}BPM), "
            f'flexi: {self.flexi_diameter.value}", '
            f"pressure: {self.pumping_pressure_kgcm2}kg/cm² ({self.pumping_pressure_psi:.2f}PSI), "
            f"lines: {self.number_of_lines}, interval: {self.calculation_interval_m}m)"
        )


@dataclass(frozen=True)
class TracePoint:
    index: int
    latitude: float
    longitude: float
    elevation_m: float
    distance_from_start_m: float
    segment_distance_m: Optional[float] = None  # distance to the previous point

    def __post_init__(self):
        if isinstance(self.index, bool) or not isinstance(self.index, numbers.Integral):
            raise ValueError(f"TracePoint index must be an integer, got: {self.index!r}")
        if self.index < 0:
            raise ValueError(f"TracePoint index must be non-negative, got: {self.index}")
        for label, value in (
            ("latitude", self.latitude),
            ("longitude", self.longitude),
            ("elevation", self.elevation_m),
            ("distance from start", self.distance_from_start_m),
        ):
            if isinstance(value, bool) or not isinstance(value, numbers.Real) or not math.isfinite(value):
                raise ValueError(f"TracePoint {label} must be a finite number, got: {value!r}")
        if self.distance_from_start_m < 0:
            raise ValueError(f"Distance from start must be non-negative, got: {self.distance_from_start_m}")
        if self.index == 0 and self.distance_from_start_m != 0:
            raise ValueError(f"Start point must sit at distance 0, got: {self.distance_from_start_m}")
        if self.segment_distance_m is not None and not (self.segment_distance_m >= 0):
            raise ValueError(f"Segment distance must be non-negative, got: {self.segment_distance_m}")

    @classmethod
    def start(cls, latitude: float, longitude: float, elevation_m: float) -> "TracePoint":
        return cls(index=0, latitude=latitude, longitude=longitude,
                   elevation_m=elevation_m, distance_from_start_m=0.0)

    @property
    def coordinates(self) -> Tuple[float, float]:
        return (self.latitude, self.longitude)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "index": self.index,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "elevation_m": self.elevation_m,
            "distance_from_start_m": self.distance_from_start_m,
            "segment_distance_m": self.segment_distance_m,
        }


@dataclass(frozen=True)
class AnnotatedPoint:
    point: TracePoint
    friction_loss_psi: float          # K
    static_pressure_kgcm2: float      # M, head change against previous point
    accumulated_head_kgcm2: float     # N
    combined_pressure_psi: float      # O
    combined_pressure_kgcm2: float    # P
    direction: ElevationDirection
    is_pump: bool = False
    is_valve: bool = False

    @property
    def index(self) -> int:
        return self.point.index

    @property
    def distance_from_start_m(self) -> float:
        return self.point.distance_from_start_m

    @property
    def latitude(self) -> float:
        return self.point.latitude

    @property
    def longitude(self) -> float:
        return self.point.longitude

    @property
    def elevation_m(self) -> float:
        return self.point.elevation_m

    def to_dict(self) -> Dict[str, Any]:
        return {
            "index": self.index,
            "distance_m": self.distance_from_start_m,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "elevation_m": self.elevation_m,
            "K": self.friction_loss_psi,
            "M": self.static_pressure_kgcm2,
            "N": self.accumulated_head_kgcm2,
            "O": self.combined_pressure_psi,
            "P": self.combined_pressure_kgcm2,
            "direction": self.direction.value,
            "is_pump": self.is_pump,
            "is_valve": self.is_valve,
        }


@dataclass(frozen=True)
class Alarm:
    point_index: int
    distance_m: float
    value: float       # offending combined pressure, psi
    message: str
    kind: str = "CRITICAL_PRESSURE"


@dataclass(frozen=True)
class ProfileSummary:
    total_distance_km: float
    elevation_difference_m: float
    total_pumps: int
    total_valves: int


@dataclass(frozen=True)
class CalculationResult:
    points: Tuple[AnnotatedPoint, ...]
    pumps: Tuple[AnnotatedPoint, ...]
    valves: Tuple[AnnotatedPoint, ...]
    alarms: Tuple[Alarm, ...]
    warnings: Tuple[str, ...]
    summary: ProfileSummary
    elevation_origin: ElevationOrigin = ElevationOrigin.FROM_FILE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "points": [p.to_dict() for p in self.points],
            "pumps": [p.index for p in self.pumps],
            "valves": [p.index for p in self.valves],
            "alarms": [
                {"type": a.kind, "index": a.point_index, "distance_m": a.distance_m,
                 "value": a.value, "message": a.message}
                for a in self.alarms
            ],
            "warnings": list(self.warnings),
            "summary": {
                "totalDistance_km": self.summary.total_distance_km,
                "elevationDifference_m": self.summary.elevation_difference_m,
                "totalPumps": self.summary.total_pumps,
                "totalValves": self.summary.total_valves,
            },
            "elevationOrigin": self.elevation_origin.value,
        }


@dataclass(frozen=True)
class ValidationResult:
    is_valid: bool
    errors: Tuple[str, ...] = ()
    warnings: Tuple[str, ...] = ()


@dataclass(frozen=True)
class TraceMetadata:
    name: Optional[str] = None
    description: Optional[str] = None


@dataclass(frozen=True)
class ParsedTrace:
    coordinates: Tuple[RawCoordinate, ...]
    has_elevations: bool
    total_distance_m: float
    metadata: TraceMetadata = field(default_factory=TraceMetadata)
    warnings: Tuple[str, ...] = ()
