import math
import unittest

from flexi_profile.errors import TracePointConstructionError
from flexi_profile.geo import haversine_m
from flexi_profile.profile import build_trace_points, elevation_profile, resample_at_interval
from flexi_profile.types import RawCoordinate, TracePoint


def _coords(n):
    return [RawCoordinate(-34.0 - i * 0.001, -58.0, 0.0) for i in range(n)]


class TestBuildTracePoints(unittest.TestCase):
    def test_distances_accumulate(self):
        coords = _coords(4)
        points = build_trace_points(coords, [10.0, 12.0, 11.0, 9.0])
        self.assertEqual(points[0].distance_from_start_m, 0.0)
        self.assertIsNone(points[0].segment_distance_m)
        step = haversine_m(-34.0, -58.0, -34.001, -58.0)
        for prev, curr in zip(points, points[1:]):
            self.assertGreaterEqual(curr.distance_from_start_m, prev.distance_from_start_m)
            self.assertAlmostEqual(curr.segment_distance_m, step, places=6)
        self.assertEqual([p.index for p in points], [0, 1, 2, 3])
        self.assertEqual(points[2].elevation_m, 11.0)

    def test_accepts_plain_tuples(self):
        points = build_trace_points([(-34.0, -58.0), (-34.001, -58.0)], [0.0, 1.0])
        self.assertEqual(points[1].coordinates, (-34.001, -58.0))

    def test_uses_coordinate_altitude_when_no_elevations(self):
        coords = [RawCoordinate(-34.0, -58.0, 5.0), RawCoordinate(-34.001, -58.0, None)]
        points = build_trace_points(coords)
        self.assertEqual([p.elevation_m for p in points], [5.0, 0.0])

    def test_length_mismatch(self):
        with self.assertRaises(TracePointConstructionError) as ctx:
            build_trace_points(_coords(3), [1.0, 2.0])
        self.assertEqual(ctx.exception.at_index, 2)

    def test_latitude_out_of_range(self):
        coords = _coords(2) + [RawCoordinate(91.0, -58.0, 0.0)]
        with self.assertRaises(TracePointConstructionError) as ctx:
            build_trace_points(coords, [0.0, 0.0, 0.0])
        self.assertEqual(ctx.exception.at_index, 2)
        self.assertIsInstance(ctx.exception, ValueError)

    def test_non_finite_elevation(self):
        with self.assertRaises(TracePointConstructionError) as ctx:
            build_trace_points(_coords(2), [0.0, math.nan])
        self.assertEqual(ctx.exception.at_index, 1)


class TestTracePoint(unittest.TestCase):
    def test_start_must_be_at_zero(self):
        with self.assertRaises(ValueError):
            TracePoint(index=0, latitude=0.0, longitude=0.0, elevation_m=0.0, distance_from_start_m=5.0)

    def test_negative_index(self):
        with self.assertRaises(ValueError):
            TracePoint(index=-1, latitude=0.0, longitude=0.0, elevation_m=0.0, distance_from_start_m=5.0)

    def test_infinite_distance(self):
        with self.assertRaises(ValueError):
            TracePoint(index=1, latitude=0.0, longitude=0.0, elevation_m=0.0, distance_from_start_m=math.inf)

    def test_start_factory(self):
        p = TracePoint.start(-34.0, -58.0, 12.0)
        self.assertEqual(p.index, 0)
        self.assertEqual(p.distance_from_start_m, 0.0)


class TestResample(unittest.TestCase):
    def setUp(self):
        self.points = (
            TracePoint.start(-34.0, -58.0, 545.0),
            TracePoint(index=1, latitude=-34.003, longitude=-58.0, elevation_m=535.0, distance_from_start_m=343.0),
        )

    def test_interval_points_and_end(self):
        out = resample_at_interval(self.points, 100.0)
        self.assertEqual([p.distance_from_start_m for p in out], [0.0, 100.0, 200.0, 300.0, 343.0])
        self.assertEqual([p.index for p in out], [0, 1, 2, 3, 4])
        self.assertAlmostEqual(out[1].elevation_m, 545.0 - 10.0 * 100.0 / 343.0, places=9)
        self.assertAlmostEqual(out[1].latitude, -34.0 - 0.003 * 100.0 / 343.0, places=12)
        self.assertEqual(out[-1].elevation_m, 535.0)
        self.assertAlmostEqual(out[-1].segment_distance_m, 43.0, places=9)

    def test_interval_longer_than_trace(self):
        out = resample_at_interval(self.points, 1000.0)
        self.assertEqual([p.distance_from_start_m for p in out], [0.0, 343.0])

    def test_single_point(self):
        out = resample_at_interval(self.points[:1], 50.0)
        self.assertEqual(len(out), 1)

    def test_rejects_bad_interval(self):
        with self.assertRaises(ValueError):
            resample_at_interval(self.points, 0)


class TestElevationProfile(unittest.TestCase):
    def test_profile(self):
        points = build_trace_points(_coords(3), [10.0, 30.0, 5.0])
        prof = elevation_profile(points)
        self.assertEqual((prof.min_m, prof.max_m), (5.0, 30.0))
        self.assertEqual(prof.difference_m, -5.0)


if __name__ == '__main__':
    unittest.main()
