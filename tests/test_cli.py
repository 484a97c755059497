import contextlib
import io
import logging
import os
import tempfile
import unittest
from unittest import mock

from flexi_profile.cli import main

from kmz_fixtures import SLOPED, make_kml, make_kmz


class TestCli(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.trace = os.path.join(self.tmp.name, "trace.kmz")
        with open(self.trace, "wb") as f:
            f.write(make_kmz(make_kml(SLOPED)))
        env = {"FLEXI_LOG_FILE": os.path.join(self.tmp.name, "run.log"), "ELEVATION_PROVIDER": "static"}
        patcher = mock.patch.dict(os.environ, env)
        patcher.start()
        self.addCleanup(patcher.stop)

        root = logging.getLogger()
        self._handlers = list(root.handlers)
        self._level = root.level

    def tearDown(self):
        # main() replaces the root handlers; put the runner's back
        root = logging.getLogger()
        for handler in list(root.handlers):
            if handler not in self._handlers:
                root.removeHandler(handler)
                handler.close()
        for handler in self._handlers:
            if handler not in root.handlers:
                root.addHandler(handler)
        root.setLevel(self._level)
        self.tmp.cleanup()

    def _run(self, *argv):
        out, err = io.StringIO(), io.StringIO()
        with contextlib.redirect_stdout(out), contextlib.redirect_stderr(err):
            code = main(list(argv))
        return code, out.getvalue(), err.getvalue()

    def test_success(self):
        export = os.path.join(self.tmp.name, "out.csv")
        code, out, _ = self._run(self.trace, "--flow", "500", "--diameter", "10", "--pressure", "2",
                                 "--export", export)
        self.assertEqual(code, 0)
        self.assertIn("Condensed Table", out)
        self.assertIn("Valves (2)", out)
        self.assertIn("ALARM SUMMARY", out)
        self.assertIn("Elevation: start", out)
        self.assertTrue(os.path.exists(export))

    def test_invalid_parameters(self):
        code, _, err = self._run(self.trace, "--flow", "5000", "--diameter", "10", "--pressure", "2")
        self.assertEqual(code, 2)
        self.assertIn("Flow rate too high", err)

    def test_invalid_trace(self):
        bad = os.path.join(self.tmp.name, "bad.kmz")
        with open(bad, "wb") as f:
            f.write(b"not a zip")
        code, _, err = self._run(bad, "--flow", "500", "--diameter", "10", "--pressure", "2")
        self.assertEqual(code, 2)
        self.assertIn("Invalid KMZ file", err)


    def test_unsupported_export_suffix_rejected_before_run(self):
        export = os.path.join(self.tmp.name, "out.txt")
        code, out, err = self._run(self.trace, "--flow", "500", "--diameter", "10", "--pressure", "2",
                                   "--export", export)
        self.assertEqual(code, 2)
        self.assertIn("--export must end in .xlsx or .csv", err)
        self.assertNotIn("Condensed Table", out)
        self.assertFalse(os.path.exists(export))

    def test_export_into_missing_directory(self):
        export = os.path.join(self.tmp.name, "nope", "out.csv")
        code, _, err = self._run(self.trace, "--flow", "500", "--diameter", "10", "--pressure", "2",
                                 "--export", export)
        self.assertEqual(code, 2)
        self.assertIn("Error:", err)
        self.assertFalse(os.path.exists(export))

    def test_unknown_plot_format(self):
        chart = os.path.join(self.tmp.name, "chart.unknownext")
        code, _, err = self._run(self.trace, "--flow", "500", "--diameter", "10", "--pressure", "2",
                                 "--plot", chart)
        self.assertEqual(code, 2)
        self.assertIn("Error:", err)

    def test_unwritable_log_file(self):
        log_file = os.path.join(self.tmp.name, "missing_dir", "run.log")
        with mock.patch.dict(os.environ, {"FLEXI_LOG_FILE": log_file}):
            code, out, err = self._run(self.trace, "--flow", "500", "--diameter", "10", "--pressure", "2")
        self.assertEqual(code, 2)
        self.assertIn("Error:", err)
        self.assertNotIn("Condensed Table", out)

if __name__ == '__main__':
    unittest.main()
