import math
import unittest

from flexi_profile.friction import TABLES, boundary_coefficient, interpolate, table_range
from flexi_profile.types import FlexiDiameter


class TestFrictionTables(unittest.TestCase):
    def test_tables_are_read_only(self):
        table = TABLES[FlexiDiameter.TWELVE_INCH]
        with self.assertRaises(ValueError):
            table.coefficients[0] = 1.0

    def test_table_range(self):
        self.assertEqual(table_range("10"), (12.0, 83.0))
        self.assertEqual(table_range(12), (12.0, 83.0))

    def test_both_tables_have_24_rows(self):
        for diameter in FlexiDiameter:
            self.assertEqual(len(TABLES[diameter].flows), 24)


class TestInterpolate(unittest.TestCase):
    def test_exact_rows(self):
        self.assertEqual(interpolate("12", 12).coefficient, 0.026)
        self.assertEqual(interpolate("12", 40).coefficient, 0.377)
        self.assertEqual(interpolate("12", 83).coefficient, 1.19)
        self.assertEqual(interpolate("10", 60).coefficient, 1.56)

    def test_intermediate_is_rounded(self):
        result = interpolate("12", 12.2)
        self.assertEqual(result.coefficient, 0.027)
        self.assertIsNone(result.message)

    def test_intermediate_unrounded(self):
        self.assertAlmostEqual(interpolate("12", 12.2, decimals=None).coefficient, 0.0268, places=12)
        self.assertAlmostEqual(interpolate("12", 12.576, decimals=None).coefficient, 0.028304, places=12)

    def test_between_table_ends_for_ten_inch(self):
        coef = interpolate("10", 52.4, decimals=None).coefficient
        self.assertGreater(coef, 0.978)
        self.assertLess(coef, 1.560)

    def test_below_range(self):
        result = interpolate("12", 11.9)
        self.assertIsNone(result.coefficient)
        self.assertIn("below the table range", result.message)
        self.assertIn("lines", result.message)

    def test_above_range(self):
        result = interpolate("10", 90.0)
        self.assertIsNone(result.coefficient)
        self.assertIn("exceeds the table range", result.message)
        self.assertIn("more lines", result.message)

    def test_nan(self):
        result = interpolate("12", math.nan)
        self.assertIsNone(result.coefficient)
        self.assertEqual(result.message, "No coefficient data for this flow.")

    def test_boundary_coefficient(self):
        self.assertEqual(boundary_coefficient("12", 5.0), 0.026)
        self.assertEqual(boundary_coefficient("12", 100.0), 1.19)
        self.assertEqual(boundary_coefficient("10", 100.0), 2.97)


if __name__ == '__main__':
    unittest.main()
