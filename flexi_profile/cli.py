"""Command line entry point.

Run:
    flexi-profile trace.kmz --flow 120 --diameter 12 --pressure 8

It prints a condensed profile table, the pump and valve stations and an
alarm summary. Exit code is 0 on success and 2 when the trace, the
parameters or an output path are rejected.
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

import numpy as np

from .config import Settings
from .elevation import create_resolver
from .errors import FlexiProfileError
from .export import EXPORT_SUFFIXES, export_results
from .pipeline import execute_file
from .plots import plot_profile
from .profile import elevation_profile
from .types import CalculationResult, HydraulicParameters


def setup_logging(settings: Settings, level: Optional[str] = None) -> None:
    logging.basicConfig(
        level=getattr(logging, (level or settings.log_level).upper(), logging.INFO),
        format='%(asctime)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(settings.log_file),
            logging.StreamHandler(sys.stdout)
        ],
        force=True,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="flexi-profile", description="Hydraulic profile of a flexi line trace.")
    parser.add_argument("trace", help="KMZ (or KML) file with the pipeline trace")
    parser.add_argument("--flow", type=float, required=True, help="total flow rate, m³/h")
    parser.add_argument("--diameter", choices=["10", "12"], required=True, help="flexi hose diameter, inches")
    parser.add_argument("--pressure", type=float, required=True, help="pumping pressure, kg/cm²")
    parser.add_argument("--lines", type=int, default=1, help="number of parallel lines (default 1)")
    parser.add_argument("--interval", type=float, default=50.0, help="resampling interval, m (default 50)")
    parser.add_argument("--resample", action="store_true", help="resample the trace every --interval metres")
    parser.add_argument("--export", metavar="PATH", help="write results to .xlsx or .csv")
    parser.add_argument("--plot", metavar="PATH", help="save the profile chart (png, pdf, svg)")
    parser.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING or ERROR")
    return parser


def print_condensed_table(result: CalculationResult, n: int = 50) -> None:
    points = result.points
    print(f"\nCondensed Table ({min(n, len(points))} evenly spaced points):")
    print("Km\tElevation (m)\tK (psi)\tN (kg/cm²)\tO (psi)\tP (kg/cm²)\tPump\tValve")
    for i in np.unique(np.linspace(0, len(points) - 1, min(n, len(points)), dtype=int)):
        p = points[i]
        print(
            f"{p.distance_from_start_m / 1000:.3f}\t{p.elevation_m:.1f}\t\t"
            f"{p.friction_loss_psi:.2f}\t{p.accumulated_head_kgcm2:.2f}\t\t"
            f"{p.combined_pressure_psi:.2f}\t{p.combined_pressure_kgcm2:.2f}\t\t"
            f"{'yes' if p.is_pump else ''}\t{'yes' if p.is_valve else ''}"
        )


def print_stations(result: CalculationResult) -> None:
    s = result.summary
    print(f"\nTotal distance: {s.total_distance_km:.3f} km | Elevation difference: {s.elevation_difference_m:.1f} m"
          f" | Elevations: {result.elevation_origin.value}")
    elev = elevation_profile([p.point for p in result.points])
    print(f"Elevation: start {elev.start_m:.1f} m, end {elev.end_m:.1f} m, min {elev.min_m:.1f} m, max {elev.max_m:.1f} m")
    print(f"Pumps ({s.total_pumps}): " + ", ".join(f"{p.distance_from_start_m / 1000:.3f} km" for p in result.pumps))
    print(f"Valves ({s.total_valves}): " + ", ".join(f"{p.distance_from_start_m / 1000:.3f} km" for p in result.valves))


def print_alarm_summary(result: CalculationResult) -> None:
    print("\nALARM SUMMARY:")
    if not result.alarms and not result.warnings:
        print("  No alarms tripped.")
        return
    for a in result.alarms:
        print(f"  {a.kind}: O = {a.value:.2f} psi at point {a.point_index} ({a.distance_m / 1000:.3f} km). {a.message}.")
    for w in result.warnings:
        print(f"  WARNING: {w}")


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    if args.export and Path(args.export).suffix.lower() not in EXPORT_SUFFIXES:
        print(f"Error: --export must end in {' or '.join(EXPORT_SUFFIXES)}, got: {args.export}", file=sys.stderr)
        return 2
    try:
        settings = Settings.from_env()
        setup_logging(settings, args.log_level)
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2
    logging.info(f"Processing {args.trace}")

    try:
        params = HydraulicParameters(
            flow_rate_m3h=args.flow,
            flexi_diameter=args.diameter,
            pumping_pressure_kgcm2=args.pressure,
            number_of_lines=args.lines,
            calculation_interval_m=args.interval,
        )
        logging.info(f"Parameters: {params}")
        if params.has_multiple_lines:
            logging.info(f"Flow per line: {params.flow_rate_per_line_m3h:.1f}m³/h ({params.flow_rate_per_line_bpm:.2f}BPM)")
        result = execute_file(args.trace, params, resolver=create_resolver(settings), resample=args.resample)
    except FlexiProfileError as e:
        logging.error(f"Profile failed: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 2
    except OSError as e:
        logging.error(f"Could not read {args.trace}: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 2

    print_condensed_table(result)
    print_stations(result)
    print_alarm_summary(result)

    try:
        if args.export:
            export_results(result, args.export, params)
            print(f"\nResults written to {args.export}")
        if args.plot:
            plot_profile(result, args.plot)
            print(f"Chart written to {args.plot}")
    except (OSError, ValueError) as e:
        logging.error(f"Could not write output: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())
