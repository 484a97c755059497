"""
Flexi Profile Package - hydraulic profiling of flexi-line pipeline traces

Reads a Google-Earth KMZ trace, fills in elevations when the file has none,
and computes friction loss, pressure, pump and valve stations along the line.
"""

from .types import (
    AnnotatedPoint,
    CalculationResult,
    FlexiDiameter,
    HydraulicParameters,
    ParsedTrace,
    RawCoordinate,
    TracePoint,
)
from .errors import FlexiProfileError
from .engine import calculate
from .pipeline import execute, execute_file

__all__ = [
    'AnnotatedPoint', 'CalculationResult', 'FlexiDiameter', 'HydraulicParameters', 'ParsedTrace',
    'RawCoordinate', 'TracePoint', 'FlexiProfileError', 'calculate', 'execute', 'execute_file',
]
