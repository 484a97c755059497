from __future__ import annotations

import math
from typing import Dict, NamedTuple, Optional, Tuple

import numpy as np

from .types import FlexiDiameter

# Friction coefficient per flow-per-line (bpm) for each flexi hose diameter.
# Rows are (bpm, coefficient), sorted ascending by bpm.
_ROWS: Dict[FlexiDiameter, Tuple[Tuple[float, float], ...]] = {
    FlexiDiameter.TEN_INCH: (
        (12, 0.069), (13, 0.082), (14, 0.090), (15, 0.112), (17, 0.129), (18, 0.151),
        (19, 0.168), (20, 0.190), (21, 0.212), (23, 0.233), (24, 0.260), (26, 0.311),
        (29, 0.367), (31, 0.429), (33, 0.498), (36, 0.558), (38, 0.636), (40, 0.718),
        (43, 0.797), (45, 0.887), (48, 0.978), (60, 1.560), (71, 2.200), (83, 2.970),
    ),
    FlexiDiameter.TWELVE_INCH: (
        (12, 0.026), (13, 0.030), (14, 0.039), (15, 0.048), (17, 0.056), (18, 0.065),
        (19, 0.074), (20, 0.082), (21, 0.091), (23, 0.100), (24, 0.113), (26, 0.130),
        (29, 0.152), (31, 0.173), (33, 0.199), (36, 0.229), (38, 0.260), (40, 0.377),
        (43, 0.325), (45, 0.359), (48, 0.398), (60, 0.628), (71, 0.887), (83, 1.190),
    ),
}


class FrictionTable(NamedTuple):
    flows: np.ndarray          # bpm per line
    coefficients: np.ndarray


class Interpolation(NamedTuple):
    coefficient: Optional[float]
    message: Optional[str]


def _load_tables() -> Dict[FlexiDiameter, FrictionTable]:
    tables = {}
    for diameter, rows in _ROWS.items():
        data = np.array(sorted(rows), dtype=float)
        flows = data[:, 0].copy()
        coefs = data[:, 1].copy()
        flows.flags.writeable = False
        coefs.flags.writeable = False
        tables[diameter] = FrictionTable(flows, coefs)
    return tables


TABLES: Dict[FlexiDiameter, FrictionTable] = _load_tables()


def get_table(diameter) -> FrictionTable:
    return TABLES[FlexiDiameter.parse(diameter)]


def table_range(diameter) -> Tuple[float, float]:
    table = get_table(diameter)
    return float(table.flows[0]), float(table.flows[-1])


def interpolate(diameter, flow_bpm: float, decimals: Optional[int] = 3) -> Interpolation:
    """Friction coefficient for ``flow_bpm`` on a ``diameter`` hose.

    Out-of-table flows are not extrapolated: the coefficient comes back as
    ``None`` together with a message naming the valid range. ``decimals=None``
    skips the final rounding.
    """
    table = get_table(diameter)
    lo, hi = table_range(diameter)

    if flow_bpm is None or math.isnan(flow_bpm):
        return Interpolation(None, "No coefficient data for this flow.")
    if flow_bpm < lo:
        return Interpolation(
            None,
            f"Flow per line ({flow_bpm:.1f} bpm) is below the table range ({lo:g}-{hi:g} bpm). "
            f"Adjust the flow rate or the number of lines.",
        )
    if flow_bpm > hi:
        return Interpolation(
            None,
            f"Flow per line ({flow_bpm:.1f} bpm) exceeds the table range ({lo:g}-{hi:g} bpm). "
            f"Consider more lines or a lower flow rate.",
        )

    i = int(np.searchsorted(table.flows, flow_bpm, side="left"))
    if table.flows[i] == flow_bpm:
        return Interpolation(float(table.coefficients[i]), None)

    b_lo, b_hi = float(table.flows[i - 1]), float(table.flows[i])
    k_lo, k_hi = float(table.coefficients[i - 1]), float(table.coefficients[i])
    ratio = (flow_bpm - b_lo) / (b_hi - b_lo)
    coefficient = k_lo + ratio * (k_hi - k_lo)
    if decimals is not None:
        coefficient = round(coefficient, decimals)
    return Interpolation(coefficient, None)


def boundary_coefficient(diameter, flow_bpm: float) -> float:
    """Coefficient of the table end nearest to an out-of-range ``flow_bpm``."""
    table = get_table(diameter)
    if flow_bpm is not None and not math.isnan(flow_bpm) and flow_bpm > table.flows[-1]:
        return float(table.coefficients[-1])
    return float(table.coefficients[0])
