from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Union

import numpy as np
from matplotlib.backends.backend_agg import FigureCanvasAgg
from matplotlib.figure import Figure

from .types import CalculationResult

logger = logging.getLogger(__name__)


def plot_profile(result: CalculationResult, path: Optional[Union[str, Path]] = None) -> Figure:
    """Elevation and combined pressure P against distance, with pump, valve and alarm markers."""
    km = np.array([p.distance_from_start_m / 1000 for p in result.points])
    elev = np.array([p.elevation_m for p in result.points])
    pressure = np.array([p.combined_pressure_kgcm2 for p in result.points])

    fig = Figure(figsize=(10, 5), dpi=100)
    FigureCanvasAgg(fig)
    ax = fig.add_subplot(111)
    ax.plot(km, elev, "b-", label="Elevation")
    ax.set_xlabel("Distance (km)")
    ax.set_ylabel("Elevation (m)")
    ax.grid(True, alpha=0.3)

    if result.pumps:
        ax.scatter([p.distance_from_start_m / 1000 for p in result.pumps],
                   [p.elevation_m for p in result.pumps], marker="^", color="green", zorder=3, label="Pump")
    if result.valves:
        ax.scatter([p.distance_from_start_m / 1000 for p in result.valves],
                   [p.elevation_m for p in result.valves], marker="v", color="orange", zorder=3, label="Valve")

    ax2 = ax.twinx()
    ax2.plot(km, pressure, "r--", alpha=0.7, label="P (kg/cm²)")
    ax2.set_ylabel("Combined pressure P (kg/cm²)")
    if result.alarms:
        by_index = {p.index: p for p in result.points}
        hits = [by_index[a.point_index] for a in result.alarms if a.point_index in by_index]
        ax2.scatter([p.distance_from_start_m / 1000 for p in hits],
                    [p.combined_pressure_kgcm2 for p in hits], marker="x", color="red", zorder=3, label="Alarm")

    handles, labels = ax.get_legend_handles_labels()
    handles2, labels2 = ax2.get_legend_handles_labels()
    ax.legend(handles + handles2, labels + labels2, loc="best")
    ax.set_title(f"Hydraulic profile ({result.summary.total_distance_km:.2f} km)")
    fig.tight_layout()

    if path is not None:
        fig.savefig(path)
        logger.info(f"Saved profile chart to {path}")
    return fig
