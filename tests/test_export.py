import os
import tempfile
import unittest

import pandas as pd
from matplotlib.figure import Figure

from flexi_profile.engine import calculate
from flexi_profile.export import condensed_frame, export_results, results_frame
from flexi_profile.plots import plot_profile
from flexi_profile.profile import build_trace_points
from flexi_profile.types import HydraulicParameters, RawCoordinate


def _result(n=120):
    coords = [RawCoordinate(-34.0 - i * 0.0005, -58.0) for i in range(n)]
    elevations = [545.0 - 0.9 * i for i in range(n)]
    params = HydraulicParameters(flow_rate_m3h=500, flexi_diameter="10", pumping_pressure_kgcm2=2)
    return params, calculate(build_trace_points(coords, elevations), params)


class TestExport(unittest.TestCase):
    def setUp(self):
        self.params, self.result = _result()

    def test_results_frame(self):
        df = results_frame(self.result)
        self.assertEqual(len(df), 120)
        self.assertEqual(df["Distance (m)"].iloc[0], 0.0)
        self.assertEqual(int(df["Valve"].sum()), self.result.summary.total_valves)

    def test_condensed_frame(self):
        df = condensed_frame(self.result)
        self.assertEqual(len(df), 50)
        self.assertEqual(df["Index"].iloc[0], 0)
        self.assertEqual(df["Index"].iloc[-1], 119)

    def test_xlsx(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "profile.xlsx")
            export_results(self.result, path, self.params)
            sheets = pd.read_excel(path, sheet_name=None)
        self.assertEqual(
            list(sheets),
            ["Inputs", "Profile", "Condensed", "Pumps", "Valves", "Alarms", "Warnings", "Summary"],
        )
        self.assertEqual(len(sheets["Profile"]), 120)
        self.assertEqual(len(sheets["Valves"]), self.result.summary.total_valves)

    def test_xlsx_without_params(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "profile.xlsx")
            export_results(self.result, path)
            sheets = pd.read_excel(path, sheet_name=None)
        self.assertNotIn("Inputs", sheets)

    def test_csv(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "profile.csv")
            export_results(self.result, path)
            df = pd.read_csv(path)
        self.assertEqual(len(df), 120)
        self.assertAlmostEqual(df["O Combined (psi)"].iloc[-1], self.result.points[-1].combined_pressure_psi, places=6)

    def test_unsupported_suffix(self):
        with self.assertRaises(ValueError):
            export_results(self.result, "profile.json")


class TestPlot(unittest.TestCase):
    def test_plot_profile(self):
        _, result = _result(30)
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "profile.png")
            fig = plot_profile(result, path)
            self.assertTrue(os.path.getsize(path) > 0)
        self.assertIsInstance(fig, Figure)
        self.assertEqual(len(fig.axes), 2)


if __name__ == '__main__':
    unittest.main()
