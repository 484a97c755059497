from __future__ import annotations

from typing import Optional


class FlexiProfileError(Exception):
    """Root of every error raised by the profiling engine."""


class InvalidTraceError(FlexiProfileError):
    pass


class EmptyTraceError(InvalidTraceError):
    pass


class ElevationResolutionError(FlexiProfileError):
    pass


class InvalidParametersError(FlexiProfileError, ValueError):
    pass


class TracePointConstructionError(FlexiProfileError, ValueError):
    def __init__(self, at_index: int, reason: Optional[str] = None):
        self.at_index = at_index
        self.reason = reason
        msg = f"Could not build trace point at index {at_index}"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class CalculationInputError(FlexiProfileError):
    """Precondition failure of the hydraulic profile calculator."""


class EmptyPointsError(CalculationInputError, ValueError):
    pass


class MissingParametersError(CalculationInputError, ValueError):
    pass


class NonArrayInputError(CalculationInputError, TypeError):
    pass
