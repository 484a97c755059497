from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Union

import numpy as np
import pandas as pd

from .types import CalculationResult, HydraulicParameters

logger = logging.getLogger(__name__)

EXPORT_SUFFIXES = (".xlsx", ".csv")

PROFILE_COLUMNS = [
    "Index", "Distance (m)", "Distance (km)", "Latitude", "Longitude", "Elevation (m)",
    "K Friction (psi)", "M Static (kg/cm²)", "N Accumulated (kg/cm²)",
    "O Combined (psi)", "P Combined (kg/cm²)", "Direction", "Pump", "Valve",
]


def results_frame(result: CalculationResult) -> pd.DataFrame:
    """One row per profile point."""
    rows = [
        [
            p.index,
            p.distance_from_start_m,
            p.distance_from_start_m / 1000,
            p.latitude,
            p.longitude,
            p.elevation_m,
            p.friction_loss_psi,
            p.static_pressure_kgcm2,
            p.accumulated_head_kgcm2,
            p.combined_pressure_psi,
            p.combined_pressure_kgcm2,
            p.direction.value,
            p.is_pump,
            p.is_valve,
        ]
        for p in result.points
    ]
    return pd.DataFrame(rows, columns=PROFILE_COLUMNS)


def condensed_frame(result: CalculationResult, n: int = 50) -> pd.DataFrame:
    full = results_frame(result)
    if full.empty:
        return full
    indices = np.unique(np.linspace(0, len(full) - 1, min(n, len(full)), dtype=int))
    return full.iloc[indices]


def inputs_frame(params: HydraulicParameters) -> pd.DataFrame:
    return pd.DataFrame({
        "Parameter": [
            "Flow Rate (m³/h)",
            "Flow Rate (bpm)",
            "Flexi Diameter (in)",
            "Pumping Pressure (kg/cm²)",
            "Pumping Pressure (psi)",
            "Number of Lines",
            "Flow per Line (bpm)",
            "Calculation Interval (m)",
        ],
        "Value": [
            params.flow_rate_m3h,
            params.flow_rate_bpm,
            params.flexi_diameter_inches,
            params.pumping_pressure_kgcm2,
            params.pumping_pressure_psi,
            params.number_of_lines,
            params.flow_rate_per_line_bpm,
            params.calculation_interval_m,
        ],
    })


def summary_frame(result: CalculationResult) -> pd.DataFrame:
    s = result.summary
    return pd.DataFrame({
        "Metric": ["Total Distance (km)", "Elevation Difference (m)", "Total Pumps", "Total Valves",
                   "Alarms", "Elevation Source"],
        "Value": [s.total_distance_km, s.elevation_difference_m, s.total_pumps, s.total_valves,
                  len(result.alarms), result.elevation_origin.value],
    })


def export_results(
    result: CalculationResult,
    path: Union[str, Path],
    params: Optional[HydraulicParameters] = None,
) -> Path:
    """Write the profile to ``.xlsx`` (all sheets) or ``.csv`` (profile only)."""
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix not in EXPORT_SUFFIXES:
        raise ValueError(f"Unsupported export format: {path.suffix or '(none)'}. Use .xlsx or .csv")
    logger.info(f"Exporting results to {path}")
    full = results_frame(result)

    if suffix == ".csv":
        full.to_csv(path, index=False)
        return path

    flagged_cols = ["Index", "Distance (km)", "Elevation (m)", "N Accumulated (kg/cm²)", "P Combined (kg/cm²)"]
    alarms_df = pd.DataFrame(
        [[a.kind, a.point_index, a.distance_m, a.value, a.message] for a in result.alarms],
        columns=["Type", "Index", "Distance (m)", "O (psi)", "Message"],
    )
    warnings_df = pd.DataFrame({"Warning": list(result.warnings)})

    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        if params is not None:
            inputs_frame(params).to_excel(writer, sheet_name="Inputs", index=False)
        full.to_excel(writer, sheet_name="Profile", index=False)
        condensed_frame(result).to_excel(writer, sheet_name="Condensed", index=False)
        full.loc[full["Pump"], flagged_cols].to_excel(writer, sheet_name="Pumps", index=False)
        full.loc[full["Valve"], flagged_cols].to_excel(writer, sheet_name="Valves", index=False)
        alarms_df.to_excel(writer, sheet_name="Alarms", index=False)
        warnings_df.to_excel(writer, sheet_name="Warnings", index=False)
        summary_frame(result).to_excel(writer, sheet_name="Summary", index=False)

    logger.info(f"Export complete: {path}")
    return path
